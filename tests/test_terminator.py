"""Tests for the platform kill strategies."""

from respawn.terminator import CloseTerminator, KillTerminator, default_terminator


class RecordingHandle:
    def __init__(self, pid: int = 42, error: Exception | None = None):
        self.pid = pid
        self.calls: list[str] = []
        self._error = error

    def request_stop(self) -> None:
        self.calls.append("kill")
        if self._error:
            raise self._error

    def close(self) -> None:
        self.calls.append("close")
        if self._error:
            raise self._error

    async def wait(self):
        raise NotImplementedError


def test_default_terminator_per_platform():
    assert isinstance(default_terminator("win32"), CloseTerminator)
    assert isinstance(default_terminator("linux"), KillTerminator)
    assert isinstance(default_terminator("darwin"), KillTerminator)


def test_kill_terminator_kills():
    handle = RecordingHandle()
    KillTerminator().terminate(handle)
    assert handle.calls == ["kill"]


def test_close_terminator_closes():
    handle = RecordingHandle()
    CloseTerminator().terminate(handle)
    assert handle.calls == ["close"]


def test_already_dead_process_is_ignored():
    handle = RecordingHandle(error=ProcessLookupError())
    KillTerminator().terminate(handle)
    CloseTerminator().terminate(handle)
    assert handle.calls == ["kill", "close"]
