"""Platform specific ways of ending a supervised process."""

import logging
import sys
from abc import ABC, abstractmethod

from typing_extensions import override

from .command import ProcessHandle

logger = logging.getLogger(__name__)


class ProcessTerminator(ABC):
    """Best-effort termination of a process handle. Never raises."""

    @abstractmethod
    def terminate(self, handle: ProcessHandle) -> None:
        ...


class KillTerminator(ProcessTerminator):
    """Sends SIGKILL (unix)."""

    @override
    def terminate(self, handle: ProcessHandle) -> None:
        logger.debug("K: killing (unix) process with pid %d", handle.pid)
        try:
            handle.request_stop()
        except OSError as e:
            logger.debug("K: could not kill process with pid %d: %s", handle.pid, e)


class CloseTerminator(ProcessTerminator):
    """Closes the process handle (windows)."""

    @override
    def terminate(self, handle: ProcessHandle) -> None:
        logger.debug("K: closing (windows) process with pid %d", handle.pid)
        try:
            handle.close()
        except OSError as e:
            logger.debug("K: could not close process with pid %d: %s", handle.pid, e)


def default_terminator(platform: str = sys.platform) -> ProcessTerminator:
    if platform == "win32":
        return CloseTerminator()
    return KillTerminator()
