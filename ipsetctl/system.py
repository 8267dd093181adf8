import logging
import shlex
import shutil
import subprocess
from typing import List, Optional

from .errors import IPSetError

logger = logging.getLogger("ipsetctl.system")


def find_cmd(name: str) -> Optional[str]:
    return shutil.which(name)


def run_cmd(args, capture_output: bool = True, input: str | None = None, combined: bool = False) -> subprocess.CompletedProcess:
    logger.debug(f"exec: {shlex.join(args)}")
    if combined and capture_output:
        # one stream, in the order the command wrote it
        kwargs = {"stdout": subprocess.PIPE, "stderr": subprocess.STDOUT}
    else:
        kwargs = {"capture_output": capture_output}
    try:
        return subprocess.run(args, text=True, input=input, **kwargs)
    except OSError as e:
        raise IPSetError(f"unable to run {args[0]}", args=args, output=str(e)) from e


class LocalRunner:
    """Runs commands on this machine."""

    def which(self, name: str) -> Optional[str]:
        return find_cmd(name)

    def run(self, args: List[str], input: str | None = None, combined: bool = False) -> subprocess.CompletedProcess:
        return run_cmd(args, input=input, combined=combined)

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return "LocalRunner()"
