"""
Filesystem change feed.

Wraps ``watchfiles.awatch`` and yields batches of ChangeEvent. A batch is
one debounced delivery from the watcher; the daemon reloads on any batch
containing a ``modify`` record.
"""

import fnmatch
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

import anyio
from watchfiles import Change, awatch

from .config import WatcherConfig

logger = logging.getLogger(__name__)

_CHANGE_TYPES: dict[Change, str] = {
    Change.added: "create",
    Change.modified: "modify",
    Change.deleted: "remove",
}


@dataclass(frozen=True)
class ChangeEvent:
    path: str
    type: frozenset[str]


ChangeBatch = tuple[ChangeEvent, ...]


def is_reload_batch(batch: ChangeBatch) -> bool:
    return any("modify" in change.type for change in batch)


class Watcher:
    """
    Async iterable of ChangeBatch for the paths in a WatcherConfig.

    Each ``async for`` starts a new watch; it ends when ``stop_event`` is set.
    """

    def __init__(self, config: WatcherConfig, *, stop_event: anyio.Event | None = None):
        self._config = config
        self._stop_event = stop_event
        self._exts = {ext.lstrip(".").lower() for ext in config.exts}

    def accepts(self, change: Change, path: str) -> bool:
        posix = Path(path).as_posix()
        if any(fnmatch.fnmatch(posix, pattern) for pattern in self._config.skip):
            return False
        if not self._exts:
            return True
        return Path(path).suffix.lstrip(".").lower() in self._exts

    def __aiter__(self) -> AsyncIterator[ChangeBatch]:
        return self._watch()

    async def _watch(self) -> AsyncIterator[ChangeBatch]:
        logger.debug("watching %s", ", ".join(self._config.match))
        async for changes in awatch(
            *self._config.match,
            watch_filter=self.accepts,
            debounce=self._config.interval_ms,
            stop_event=self._stop_event,
        ):
            batch = tuple(
                ChangeEvent(path=path, type=frozenset({_CHANGE_TYPES[change]}))
                for change, path in sorted(changes, key=lambda c: c[1])
            )
            logger.debug("detected %d change(s)", len(batch))
            yield batch
