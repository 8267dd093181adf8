import logging
import os
import shlex
import subprocess
from typing import List, Optional

import paramiko

from .errors import IPSetError

logger = logging.getLogger("ipsetctl.remote")


class SSHRunner:
    """Runs commands on a remote host over SSH.

    Drop-in replacement for LocalRunner, so an IPSet can manage the sets of
    another machine.
    """

    def __init__(self, host: str, user: str = "root", port: int = 22, key_path: Optional[str] = None, password: Optional[str] = None, timeout: int = 10):
        self.host = host
        self.user = user
        self.port = port
        self.key_path = key_path
        self.password = password
        self.timeout = timeout
        self.client = paramiko.SSHClient()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    def _connected(self) -> bool:
        transport = self.client.get_transport()
        return transport is not None and transport.is_active()

    def connect(self) -> None:
        if self._connected():
            return
        key_filename = os.path.expanduser(self.key_path) if self.key_path else None
        logger.info(f"Connecting to {self.user}@{self.host}:{self.port}")
        try:
            self.client.connect(
                hostname=self.host,
                port=self.port,
                username=self.user,
                key_filename=key_filename,
                password=self.password,
                timeout=self.timeout,
            )
        except (paramiko.SSHException, OSError) as e:
            raise IPSetError(f"unable to connect to {self.host}", output=str(e)) from e

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc):
        self.close()

    def run(self, args: List[str], input: str | None = None, combined: bool = False) -> subprocess.CompletedProcess:
        self.connect()
        command = shlex.join(args)
        logger.debug(f"exec on {self.host}: {command}")
        try:
            chan = self.client.get_transport().open_session()
        except (paramiko.SSHException, OSError) as e:
            raise IPSetError(f"unable to run {args[0]} on {self.host}", args=args, output=str(e)) from e
        try:
            chan.set_combine_stderr(combined)
            chan.exec_command(command)
            if input is not None:
                chan.sendall(input.encode())
            chan.shutdown_write()
            out = chan.makefile("rb").read().decode()
            err = chan.makefile_stderr("rb").read().decode()
            returncode = chan.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise IPSetError(f"unable to run {args[0]} on {self.host}", args=args, output=str(e)) from e
        finally:
            chan.close()
        return subprocess.CompletedProcess(args, returncode, out, err)

    def which(self, name: str) -> Optional[str]:
        r = self.run(["sh", "-c", f"command -v {shlex.quote(name)}"])
        if r.returncode != 0:
            return None
        return r.stdout.strip() or None

    def __repr__(self) -> str:
        return f"SSHRunner({self.user}@{self.host}:{self.port})"
