"""Commands, their options, and the handles of the processes they spawn."""

import logging
import os
import shlex
import signal
import sys
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

import anyio
from anyio.abc import Process

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScriptOptions:
    """Execution options shared by every command of a script."""
    watch: bool = False
    env: Mapping[str, str] = field(default_factory=dict)
    cwd: str | None = None


@dataclass(frozen=True)
class ProcessStatus:
    success: bool
    code: int | None = None


class ProcessHandle(Protocol):
    """A live child process as seen by the daemon."""

    @property
    def pid(self) -> int: ...

    def request_stop(self) -> None:
        """Forcefully kill the process."""
        ...

    def close(self) -> None:
        """Release the process without a kill signal."""
        ...

    async def wait(self) -> ProcessStatus:
        """Wait for termination. Raises if the status cannot be retrieved."""
        ...


Spawner = Callable[[tuple[str, ...], ScriptOptions], Awaitable[ProcessHandle]]


class SubprocessHandle:
    """ProcessHandle backed by an AnyIO process."""

    def __init__(self, process: Process):
        self._process = process

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    def request_stop(self) -> None:
        """Kill the process and everything it started (its process group)."""
        try:
            if sys.platform == "win32":
                self._process.kill()
            else:
                os.killpg(self.pid, signal.SIGKILL)
        except ProcessLookupError:
            logger.debug("process with pid %d is already gone", self.pid)

    def close(self) -> None:
        try:
            self._process.terminate()
        except ProcessLookupError:
            logger.debug("process with pid %d is already gone", self.pid)

    async def wait(self) -> ProcessStatus:
        code = await self._process.wait()
        # No pipes are attached, so this only releases the transport.
        await self._process.aclose()
        return ProcessStatus(success=code == 0, code=code)

    def __repr__(self) -> str:
        return f"SubprocessHandle(pid={self.pid})"


async def open_subprocess(cmd: tuple[str, ...], options: ScriptOptions) -> ProcessHandle:
    """
    Default spawner: run ``cmd`` with inherited stdio.

    On POSIX the child leads a new session, so its pid is also the id of the
    process group that ``request_stop()`` kills.
    """
    env = {**os.environ, **options.env} if options.env else None
    process = await anyio.open_process(
        list(cmd),
        stdin=None,
        stdout=None,
        stderr=None,
        cwd=options.cwd,
        env=env,
        start_new_session=sys.platform != "win32",
    )
    return SubprocessHandle(process)


@dataclass(frozen=True)
class Command:
    """
    One step of a script's chain.

    Attributes:
        cmd: Argument list passed to the spawner
        options: Options of the script this command belongs to
        spawner: Coroutine function that starts the process
    """
    cmd: tuple[str, ...]
    options: ScriptOptions = field(default_factory=ScriptOptions)
    spawner: Spawner = open_subprocess

    def __post_init__(self):
        if not self.cmd:
            raise ValueError("Command cannot be empty")

    async def exe(self) -> ProcessHandle:
        """Spawn the command and return its handle."""
        return await self.spawner(self.cmd, self.options)

    def __str__(self) -> str:
        return shlex.join(self.cmd)
