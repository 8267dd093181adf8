import logging
import re
from dataclasses import dataclass, replace as dc_replace
from typing import Iterable, List, Optional

from .errors import IPSetError, UnsupportedVersionError
from .system import LocalRunner
from .version import Version, format_version, is_supported, parse_version

logger = logging.getLogger("ipsetctl.ipset")

MIN_IPSET_VERSION = "6.0.0"

DEFAULT_FAMILY = "inet"
DEFAULT_HASHSIZE = 1024
DEFAULT_MAXELEM = 65536

_MEMBERS_RE = re.compile(r"^Members:\n", re.MULTILINE)
_MEMBER_RE = re.compile(r"(\S+).*")


@dataclass
class Params:
    """Optional parameters for a new set. Zero/empty means "use the default"."""

    family: str = ""
    hashsize: int = 0
    maxelem: int = 0
    timeout: int = 0

    def with_defaults(self) -> "Params":
        return dc_replace(
            self,
            family=self.family or DEFAULT_FAMILY,
            hashsize=self.hashsize or DEFAULT_HASHSIZE,
            maxelem=self.maxelem or DEFAULT_MAXELEM,
        )


def parse_members(output: str) -> List[str]:
    """Return the member column of `ipset list NAME` output.

    Everything up to the "Members:" header is dropped; per-member options
    such as "timeout 30" are cut off.
    """
    headers = list(_MEMBERS_RE.finditer(output))
    if headers:
        output = output[headers[-1].end():]
    return _MEMBER_RE.findall(output)


class IPSet:
    def __init__(self, path: Optional[str] = None, runner=None, check_version: bool = True):
        self.runner = runner or LocalRunner()
        self.path = path or self.runner.which("ipset")
        if not self.path:
            raise IPSetError("ipset not found")
        if check_version:
            self.check_version()

    def __repr__(self) -> str:
        return f"IPSet({self.path!r}, runner={self.runner!r})"

    def _run(self, args: List[str], input: str | None = None, combined: bool = True):
        return self.runner.run([self.path, *args], input=input, combined=combined)

    def _call(self, *args: str, input: str | None = None) -> str:
        r = self._run(list(args), input=input)
        if r.returncode != 0:
            raise IPSetError(f"ipset {args[0]} failed (exit status {r.returncode})", args=list(args), returncode=r.returncode, output=r.stdout)
        return r.stdout or ""

    def version(self) -> Version:
        r = self._run(["--version"], combined=False)
        if r.returncode != 0:
            raise IPSetError(f"unable to get ipset version (exit status {r.returncode})", args=["--version"], returncode=r.returncode, output=r.stderr)
        version = parse_version(r.stdout)
        if version is None:
            raise IPSetError("unable to parse ipset version", args=["--version"], output=r.stdout)
        return version

    def check_version(self) -> Version:
        version = self.version()
        if not is_supported(version, MIN_IPSET_VERSION):
            raise UnsupportedVersionError(f"ipset version {format_version(version)} is not supported, need {MIN_IPSET_VERSION} or newer")
        logger.debug(f"ipset {format_version(version)} at {self.path}")
        return version

    def create(self, name: str, set_type: str, params: Optional[Params] = None, *opts: str) -> None:
        if not set_type.startswith("hash:"):
            raise IPSetError(f"not a hash type: {set_type}")
        p = (params or Params()).with_defaults()
        logger.info(f"create {name} {set_type}")
        self._call(
            "create", name, set_type,
            "family", p.family,
            "hashsize", str(p.hashsize),
            "maxelem", str(p.maxelem),
            "timeout", str(p.timeout),
            *opts,
        )

    def add(self, name: str, entry: str, *opts: str) -> None:
        """Add entry to the set. opts are extra arguments, e.g. "timeout", "10"."""
        logger.info(f"add {name} {entry}")
        self._call("add", name, entry, *opts)

    def delete(self, name: str, entry: str, *opts: str) -> None:
        logger.info(f"del {name} {entry}")
        self._call("del", name, entry, *opts)

    def test(self, name: str, entry: str) -> bool:
        r = self._run(["test", name, entry])
        out = r.stdout or ""
        if "is NOT in set" in out:
            return False
        if r.returncode != 0:
            raise IPSetError(f"ipset test failed (exit status {r.returncode})", args=["test", name, entry], returncode=r.returncode, output=out)
        if "is in set" in out:
            return True
        raise IPSetError("unexpected ipset test output", args=["test", name, entry], returncode=r.returncode, output=out)

    def destroy(self, name: str, *opts: str) -> None:
        logger.info(f"destroy {name}")
        self._call("destroy", name, *opts)

    def destroy_all(self) -> None:
        logger.info("destroy all sets")
        self._call("destroy")

    def list(self, name: str) -> List[str]:
        return parse_members(self._call("list", name))

    def list_sorted(self, name: str) -> List[str]:
        return parse_members(self._call("list", name, "-sorted"))

    def list_sets(self) -> List[str]:
        out = self._call("list", "-n")
        return [l for l in out.split("\n") if l.strip()]

    def flush(self, name: str, *opts: str) -> None:
        logger.info(f"flush {name}")
        self._call("flush", name, *opts)

    def flush_all(self) -> None:
        logger.info("flush all sets")
        self._call("flush")

    def swap(self, from_name: str, to_name: str) -> None:
        logger.info(f"swap {from_name} {to_name}")
        # stdout only, stderr is not part of the reported output
        r = self._run(["swap", from_name, to_name], combined=False)
        if r.returncode != 0:
            raise IPSetError(f"ipset swap failed (exit status {r.returncode})", args=["swap", from_name, to_name], returncode=r.returncode, output=r.stdout)

    def replace(self, name: str, entries: Iterable[str]) -> None:
        """Overwrite the set with entries. Not atomic: stops at the first failing add."""
        self.flush(name)
        n = 0
        for entry in entries:
            # per entry at DEBUG, the summary at INFO
            logger.debug(f"add {name} {entry}")
            self._call("add", name, entry)
            n += 1
        logger.info(f"replaced {name} with {n} entries")

    def save(self) -> str:
        return self._call("save")

    def restore(self, data: str) -> None:
        logger.info("restore")
        self._call("restore", input=data)
