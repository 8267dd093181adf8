import logging
import os
import yaml
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from .errors import ConfigError

DEFAULT_CONFIG_PATH = os.environ.get("IPSETCTL_CONFIG", "/etc/ipsetctl/config.yaml")


@dataclass
class RemoteConfig:
    host: str
    user: str = "root"
    port: int = 22
    key_path: Optional[str] = None
    password: Optional[str] = None
    password_env: Optional[str] = None

    def get_password(self) -> Optional[str]:
        if self.password:
            return self.password
        if self.password_env:
            return os.environ.get(self.password_env)
        return None


@dataclass
class SetDefaults:
    family: str = "inet"
    hashsize: int = 1024
    maxelem: int = 65536
    timeout: int = 0


@dataclass
class ManagedSet:
    name: str
    type: str
    source: str
    family: Optional[str] = None
    hashsize: Optional[int] = None
    maxelem: Optional[int] = None
    timeout: Optional[int] = None
    options: List[str] = field(default_factory=list)


@dataclass
class Config:
    ipset_path: Optional[str] = None
    log_level: str = "INFO"
    schedule_cron: str = "0 3 * * *"
    remote: Optional[RemoteConfig] = None
    defaults: SetDefaults = field(default_factory=SetDefaults)
    sets: List[ManagedSet] = field(default_factory=list)


def check_log_level(name) -> str:
    level = str(name).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"unknown log level: {name}")
    return level


def _build(cls, data, what: str):
    if not isinstance(data, dict):
        raise ConfigError(f"{what}: expected a mapping, got {type(data).__name__}")
    try:
        return cls(**data)
    except TypeError as e:
        raise ConfigError(f"{what}: {e}") from e


def parse_config(data: dict) -> Config:
    if not isinstance(data, dict):
        raise ConfigError(f"config: expected a mapping, got {type(data).__name__}")
    data = dict(data)
    remote = data.pop("remote", None)
    defaults = data.pop("defaults", None) or {}
    sets = data.pop("sets", None) or []
    cfg = _build(Config, data, "config")
    cfg.log_level = check_log_level(cfg.log_level)
    if remote:
        cfg.remote = _build(RemoteConfig, remote, "remote")
    cfg.defaults = _build(SetDefaults, defaults, "defaults")
    cfg.sets = [_build(ManagedSet, s, f"sets[{i}]") for i, s in enumerate(sets)]
    names = [s.name for s in cfg.sets]
    dup = {n for n in names if names.count(n) > 1}
    if dup:
        raise ConfigError(f"duplicate set names: {', '.join(sorted(dup))}")
    return cfg


def load_config(path: str = None) -> Config:
    p = path or DEFAULT_CONFIG_PATH
    if not os.path.exists(p):
        return Config()
    with open(p, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"{p}: {e}") from e
    return parse_config(data or {})


def config_to_dict(cfg: Config) -> dict:
    d = asdict(cfg)
    if d["remote"] is None:
        del d["remote"]
    return d


def save_config(cfg: Config, path: str = None) -> None:
    p = path or DEFAULT_CONFIG_PATH
    os.makedirs(os.path.dirname(os.path.abspath(p)), exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_to_dict(cfg), f, allow_unicode=True, sort_keys=False)
