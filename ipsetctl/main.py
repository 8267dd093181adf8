import argparse
import logging
import shlex
import sys

from .cli import IPSetCLI
from .config import DEFAULT_CONFIG_PATH, check_log_level, load_config
from .errors import ConfigError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def main(argv=None) -> int:
    p = argparse.ArgumentParser(prog="ipsetctl", description="ipset command wrapper")
    p.add_argument("--config", "-c", default=DEFAULT_CONFIG_PATH, help="path to the YAML config")
    p.add_argument("--log-level", help="override log_level from the config")
    p.add_argument("command", nargs="?")
    p.add_argument("args", nargs=argparse.REMAINDER)
    args = p.parse_args(argv)

    try:
        cfg = load_config(args.config)
        level = check_log_level(args.log_level or cfg.log_level)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    logging.basicConfig(level=level, format=LOG_FORMAT)

    c = IPSetCLI(args.config)
    if not args.command:
        c.cmdloop()
        return 0
    if not hasattr(c, f"do_{args.command}"):
        p.error(f"unknown command: {args.command}")
    try:
        c.onecmd(f"{args.command} {shlex.join(args.args)}")
    finally:
        c.close()
    return 1 if c.failed else 0


if __name__ == "__main__":
    sys.exit(main())
