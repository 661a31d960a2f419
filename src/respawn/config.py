"""Configuration model and YAML loading."""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_NAMES = ("respawn.yml", "respawn.yaml")

DEFAULT_TEMPLATE = """\
# respawn configuration
scripts:
  hello:
    cmd: echo Hello World from respawn.yml
    desc: greet the world

watcher:
  match: ["."]
  exts: [py, json, yaml, yml, toml]

logger:
  fullscreen: false
"""


@dataclass(frozen=True)
class WatcherConfig:
    """Where to look for changes and which files count."""
    match: tuple[str, ...] = (".",)
    exts: tuple[str, ...] = ("py", "json", "yaml", "yml", "toml")
    skip: tuple[str, ...] = (
        "*/.git/*",
        "*/__pycache__/*",
        "*/.venv/*",
        "*/node_modules/*",
    )
    interval_ms: int = 350

    def __post_init__(self):
        if not self.match:
            raise ConfigError("watcher.match must list at least one path")
        if self.interval_ms < 0:
            raise ConfigError("watcher.interval_ms cannot be negative")


@dataclass(frozen=True)
class LoggerConfig:
    fullscreen: bool = False
    quiet: bool = False
    debug: bool = False


@dataclass(frozen=True)
class ScriptConfig:
    """
    A named script.

    Attributes:
        cmd: Shell command line, several joined with ``&&``, or an argv list
        desc: Human readable description shown by ``respawn list``
        watch: Restart the main command when files change
        env: Extra environment variables for every command
        cwd: Working directory for every command
    """
    cmd: str | list[str]
    desc: str = ""
    watch: bool = True
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None

    def __post_init__(self):
        if isinstance(self.cmd, str):
            if not self.cmd.strip():
                raise ConfigError("script cmd cannot be empty")
        elif isinstance(self.cmd, list):
            if not self.cmd or not all(isinstance(arg, str) for arg in self.cmd):
                raise ConfigError("script cmd list must be non-empty strings")
        else:
            raise ConfigError(f"script cmd must be a string or list, got {type(self.cmd).__name__}")
        if not isinstance(self.env, dict):
            raise ConfigError("script env must be a mapping")
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in self.env.items()):
            raise ConfigError("script env names and values must be strings")


@dataclass(frozen=True)
class Config:
    scripts: dict[str, ScriptConfig] = field(default_factory=dict)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    logger: LoggerConfig = field(default_factory=LoggerConfig)


def _build(cls: type, data: Any, where: str) -> Any:
    """Instantiate a config dataclass from a mapping, rejecting unknown keys."""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"{where} must be a mapping")

    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"unknown key(s) in {where}: {', '.join(sorted(unknown))}")

    # YAML gives lists; the frozen configs store tuples.
    values = {k: tuple(v) if isinstance(v, list) and cls is WatcherConfig else v for k, v in data.items()}
    try:
        return cls(**values)
    except TypeError as e:
        raise ConfigError(f"invalid {where}: {e}") from e


def _env_value(value: Any, where: str) -> str:
    """YAML scalars become strings; booleans are spelled "true"/"false"."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if value is None:
        return ""
    raise ConfigError(f"{where} must be a scalar, got {type(value).__name__}")


def _coerce_env(value: Any, where: str) -> Any:
    if not isinstance(value, dict):
        return value
    return {str(k): _env_value(v, f"{where}.{k}") for k, v in value.items()}


def parse_config(raw: Any) -> Config:
    """Validate a decoded YAML document into a Config."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("config root must be a mapping")

    unknown = set(raw) - {"scripts", "watcher", "logger"}
    if unknown:
        raise ConfigError(f"unknown top-level key(s): {', '.join(sorted(unknown))}")

    scripts_raw = raw.get("scripts") or {}
    if not isinstance(scripts_raw, dict):
        raise ConfigError("scripts must be a mapping of name to script")

    scripts: dict[str, ScriptConfig] = {}
    for name, value in scripts_raw.items():
        # `name: "cmd"` is shorthand for `name: {cmd: "cmd"}`
        if isinstance(value, (str, list)):
            value = {"cmd": value}
        if isinstance(value, dict) and "env" in value:
            value = {**value, "env": _coerce_env(value["env"], f"scripts.{name}.env")}
        scripts[str(name)] = _build(ScriptConfig, value, f"scripts.{name}")

    return Config(
        scripts=scripts,
        watcher=_build(WatcherConfig, raw.get("watcher"), "watcher"),
        logger=_build(LoggerConfig, raw.get("logger"), "logger"),
    )


def load_config(path: str | Path) -> Config:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"config file not found: {path}") from None

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    return parse_config(raw)


def find_config(start: str | Path) -> Path | None:
    """Return the first respawn config file found in ``start``."""
    for name in CONFIG_NAMES:
        candidate = Path(start) / name
        if candidate.is_file():
            return candidate
    return None
