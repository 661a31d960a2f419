"""Lifecycle events emitted by a Daemon."""

from dataclasses import dataclass
from typing import Literal

from ..watcher import ChangeBatch


@dataclass(frozen=True)
class StartEvent:
    type: Literal["start"] = "start"


@dataclass(frozen=True)
class ReloadEvent:
    change: ChangeBatch
    type: Literal["reload"] = "reload"


@dataclass(frozen=True)
class ExitEvent:
    type: Literal["exit"] = "exit"


DaemonEvent = StartEvent | ReloadEvent | ExitEvent
