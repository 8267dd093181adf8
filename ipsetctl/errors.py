from typing import List, Optional


class IPSetCtlError(Exception):
    """Base exception for ipsetctl."""


class IPSetError(IPSetCtlError):
    """An ipset invocation failed.

    Carries the command line, the exit status and whatever the command
    printed, so callers can tell "set does not exist" from a missing binary.
    """

    def __init__(self, reason: str, args: Optional[List[str]] = None, returncode: Optional[int] = None, output: str = ""):
        self.reason = reason
        self.cmd = list(args or [])
        self.returncode = returncode
        self.output = (output or "").strip()
        msg = f"{reason}: {self.output}" if self.output else reason
        super().__init__(msg)


class UnsupportedVersionError(IPSetError):
    pass


class ConfigError(IPSetCtlError):
    pass


class SourceError(IPSetCtlError):
    pass
