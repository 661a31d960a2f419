"""Local registry of supervised processes."""

from typing import Dict, Optional

from ..command import ProcessHandle


class ProcessRegistry:
    """
    Tracks live child processes by pid.

    Only the main command of a chain is registered, so in normal operation
    the registry holds at most one handle. All mutations happen on a single
    event loop; no lock is taken.
    """

    def __init__(self):
        self._handles: Dict[int, ProcessHandle] = {}

    def register(self, handle: ProcessHandle) -> bool:
        """
        Track a process.

        Returns True if successful, False if the pid is already tracked.
        """
        if handle.pid in self._handles:
            return False
        self._handles[handle.pid] = handle
        return True

    def release(self, handle: ProcessHandle) -> bool:
        """
        Stop tracking a process that exited on its own.

        Returns True if the handle was still tracked, False if it was already
        removed (e.g. by ``swap()``). A different handle that reuses the pid
        is left alone.
        """
        if self._handles.get(handle.pid) is not handle:
            return False
        del self._handles[handle.pid]
        return True

    def lookup(self, pid: int) -> Optional[ProcessHandle]:
        return self._handles.get(pid)

    def pids(self) -> list[int]:
        """Return list of all tracked pids."""
        return list(self._handles.keys())

    def swap(self) -> Dict[int, ProcessHandle]:
        """Replace the tracked set with an empty one and return the old set."""
        snapshot, self._handles = self._handles, {}
        return snapshot

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, pid: object) -> bool:
        return pid in self._handles
