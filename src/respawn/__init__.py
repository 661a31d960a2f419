"""Restart a script's main process whenever files change."""

from .command import Command, ProcessHandle, ProcessStatus, ScriptOptions, SubprocessHandle
from .config import Config, LoggerConfig, ScriptConfig, WatcherConfig, load_config
from .daemon import Daemon, DaemonEvent, ExitEvent, ReloadEvent, StartEvent
from .errors import ConfigError, DaemonAlreadyStarted, RespawnError, ScriptNotFound
from .registry import ProcessRegistry
from .runner import CommandSource, Runner
from .terminator import CloseTerminator, KillTerminator, ProcessTerminator, default_terminator
from .watcher import ChangeBatch, ChangeEvent, Watcher

__all__ = [
    # Supervision
    "Daemon",
    "DaemonEvent",
    "StartEvent",
    "ReloadEvent",
    "ExitEvent",
    # Processes
    "Command",
    "ScriptOptions",
    "ProcessHandle",
    "ProcessStatus",
    "SubprocessHandle",
    "ProcessRegistry",
    "ProcessTerminator",
    "KillTerminator",
    "CloseTerminator",
    "default_terminator",
    # Collaborators
    "CommandSource",
    "Runner",
    "Watcher",
    "ChangeEvent",
    "ChangeBatch",
    # Configuration
    "Config",
    "ScriptConfig",
    "WatcherConfig",
    "LoggerConfig",
    "load_config",
    # Errors
    "RespawnError",
    "ConfigError",
    "ScriptNotFound",
    "DaemonAlreadyStarted",
]
