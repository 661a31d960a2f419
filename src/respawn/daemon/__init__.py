"""Supervision of a script's command chain."""

from .base import Daemon, SHUTDOWN_SIGNALS
from .events import DaemonEvent, ExitEvent, ReloadEvent, StartEvent

__all__ = [
    "Daemon",
    "SHUTDOWN_SIGNALS",
    "DaemonEvent",
    "StartEvent",
    "ReloadEvent",
    "ExitEvent",
]
