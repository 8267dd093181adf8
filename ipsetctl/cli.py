import cmd
import shlex
import sys
from typing import Optional

import yaml

from .config import Config, DEFAULT_CONFIG_PATH, config_to_dict, load_config, save_config
from .errors import IPSetCtlError
from .ipset import IPSet, Params
from .remote import SSHRunner
from .scheduler import remove_cron, set_cron
from .sources import fetch_entries
from .sync import sync_all
from .version import format_version


def build_ipset(cfg: Config) -> IPSet:
    runner = None
    if cfg.remote:
        r = cfg.remote
        runner = SSHRunner(r.host, user=r.user, port=r.port, key_path=r.key_path, password=r.get_password())
    return IPSet(path=cfg.ipset_path, runner=runner)


class IPSetCLI(cmd.Cmd):
    prompt = "ipsetctl> "

    def __init__(self, config_path: str = None, ipset: Optional[IPSet] = None, stdout=None):
        super().__init__(stdout=stdout)
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.cfg = load_config(self.config_path)
        self._ipset = ipset
        self.failed = False

    @property
    def ipset(self) -> IPSet:
        if self._ipset is None:
            self._ipset = build_ipset(self.cfg)
        return self._ipset

    def out(self, text="") -> None:
        print(text, file=self.stdout)

    def onecmd(self, line):
        try:
            return super().onecmd(line)
        except IPSetCtlError as e:
            self.failed = True
            self.out(f"error: {e}")
        except (ValueError, OSError) as e:
            # shlex on unbalanced quotes, int() on bad numbers, save/restore files
            self.failed = True
            self.out(f"error: {e}")
        return False

    def emptyline(self):
        return False

    def close(self) -> None:
        if self._ipset is not None:
            self._ipset.runner.close()

    def postloop(self):
        self.close()

    def _args(self, arg: str, min_n: int, usage: str) -> list:
        args = shlex.split(arg)
        if len(args) < min_n:
            raise ValueError(f"usage: {usage}")
        return args

    def do_version(self, arg):
        """version: show the ipset version"""
        self.out(f"ipset {format_version(self.ipset.version())} ({self.ipset.path})")

    def do_create(self, arg):
        """create NAME hash:TYPE [family F] [hashsize N] [maxelem N] [timeout N] [OPTS...]"""
        args = self._args(arg, 2, "create NAME hash:TYPE [options]")
        name, set_type, rest = args[0], args[1], args[2:]
        d = self.cfg.defaults
        params = Params(family=d.family, hashsize=d.hashsize, maxelem=d.maxelem, timeout=d.timeout)
        opts = []
        i = 0
        while i < len(rest):
            key = rest[i]
            if key in ("family", "hashsize", "maxelem", "timeout") and i + 1 < len(rest):
                val = rest[i + 1]
                setattr(params, key, val if key == "family" else int(val))
                i += 2
                continue
            opts.append(key)
            i += 1
        self.ipset.create(name, set_type, params, *opts)
        self.out(f"created {name}")

    def do_add(self, arg):
        """add NAME ENTRY [OPTS...]"""
        args = self._args(arg, 2, "add NAME ENTRY [options]")
        self.ipset.add(*args)

    def do_del(self, arg):
        """del NAME ENTRY [OPTS...]"""
        args = self._args(arg, 2, "del NAME ENTRY [options]")
        self.ipset.delete(*args)

    def do_test(self, arg):
        """test NAME ENTRY"""
        name, entry = self._args(arg, 2, "test NAME ENTRY")[:2]
        if self.ipset.test(name, entry):
            self.out(f"{entry} is in set {name}")
        else:
            self.out(f"{entry} is NOT in set {name}")

    def do_destroy(self, arg):
        """destroy [NAME]: destroy one set, or all sets"""
        args = shlex.split(arg)
        if args:
            self.ipset.destroy(*args)
        else:
            self.ipset.destroy_all()

    def do_list(self, arg):
        """list NAME [-sorted]"""
        args = shlex.split(arg)
        names = [a for a in args if a != "-sorted"]
        if not names:
            raise ValueError("usage: list NAME [-sorted]")
        if "-sorted" in args:
            members = self.ipset.list_sorted(names[0])
        else:
            members = self.ipset.list(names[0])
        for m in members:
            self.out(m)

    def do_sets(self, arg):
        """sets: list set names"""
        for name in self.ipset.list_sets():
            self.out(name)

    def do_flush(self, arg):
        """flush [NAME]: flush one set, or all sets"""
        args = shlex.split(arg)
        if args:
            self.ipset.flush(*args)
        else:
            self.ipset.flush_all()

    def do_swap(self, arg):
        """swap FROM TO"""
        a, b = self._args(arg, 2, "swap FROM TO")[:2]
        self.ipset.swap(a, b)

    def do_replace(self, arg):
        """replace NAME FILE|URL: flush the set and add every entry of the source"""
        name, source = self._args(arg, 2, "replace NAME FILE|URL")[:2]
        entries = fetch_entries(source)
        self.ipset.replace(name, entries)
        self.out(f"{name}: {len(entries)} entries")

    def do_save(self, arg):
        """save [FILE]"""
        data = self.ipset.save()
        args = shlex.split(arg)
        if args:
            with open(args[0], "w", encoding="utf-8") as f:
                f.write(data)
            self.out(f"saved to {args[0]}")
        else:
            self.stdout.write(data)

    def do_restore(self, arg):
        """restore [FILE]: restore from FILE, or stdin"""
        args = shlex.split(arg)
        if args:
            with open(args[0], "r", encoding="utf-8") as f:
                data = f.read()
        else:
            data = sys.stdin.read()
        self.ipset.restore(data)

    def do_sync(self, arg):
        """sync: reload every configured set from its source"""
        if not self.cfg.sets:
            self.out("no sets configured")
            return
        synced, failed = sync_all(self.ipset, self.cfg)
        for name, n in synced.items():
            self.out(f"{name}: {n} entries")
        for name, e in failed.items():
            self.failed = True
            self.out(f"error: {name}: {e}")

    def do_config_show(self, arg):
        self.out(yaml.safe_dump(config_to_dict(self.cfg), allow_unicode=True, sort_keys=False).rstrip())

    def do_config_reset(self, arg):
        self.cfg = Config()
        save_config(self.cfg, self.config_path)
        self.out(f"config reset: {self.config_path}")

    def do_schedule_set(self, arg):
        line = set_cron(sys.executable, self.cfg.schedule_cron, self.config_path)
        self.out(f"cron: {line}")

    def do_schedule_remove(self, arg):
        remove_cron()
        self.out("cron removed")

    def do_exit(self, arg):
        return True

    do_EOF = do_exit