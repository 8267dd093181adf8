import re
from typing import Optional, Tuple

Version = Tuple[int, int, int]

_VERSION_RE = re.compile(r"v[0-9]+\.[0-9]+")


def parse_semver(s: str) -> Version:
    parts = s.strip().split(".")
    if len(parts) != 3:
        raise ValueError(f"not a major.minor.patch version: {s!r}")
    major, minor, patch = (int(p) for p in parts)
    return major, minor, patch


def parse_version(output: str) -> Optional[Version]:
    """Extract the version from `ipset --version` output.

    ipset prints e.g. "ipset v7.15, protocol version: 7"; only major and
    minor are taken and the patch level is pinned to 0.
    """
    m = _VERSION_RE.search(output or "")
    if m is None:
        return None
    return parse_semver(m.group(0)[1:] + ".0")


def is_supported(version: Version, minimum: str) -> bool:
    return version >= parse_semver(minimum)


def format_version(version: Version) -> str:
    return ".".join(str(v) for v in version)
