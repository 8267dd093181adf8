import shlex
from .errors import IPSetCtlError
from .system import run_cmd

MARKER = "-m ipsetctl.main"


def _current_lines() -> list:
    r = run_cmd(["crontab", "-l"])
    # exit status 1 with "no crontab for user" is an empty crontab
    lines = r.stdout.splitlines() if r.returncode == 0 else []
    return [l for l in lines if not (MARKER in l and l.rstrip().endswith(" sync"))]


def _install(lines: list) -> None:
    tmp = "\n".join(lines) + "\n" if lines else ""
    r = run_cmd(["crontab", "-"], input=tmp)
    if r.returncode != 0:
        raise IPSetCtlError(f"crontab failed: {(r.stderr or r.stdout).strip()}")


def cron_line(python_bin: str, schedule: str, config_path: str) -> str:
    return f"{schedule} {shlex.quote(python_bin)} {MARKER} --config {shlex.quote(config_path)} sync"


def set_cron(python_bin: str, schedule: str, config_path: str) -> str:
    lines = _current_lines()
    line = cron_line(python_bin, schedule, config_path)
    lines.append(line)
    _install(lines)
    return line


def remove_cron() -> None:
    _install(_current_lines())
