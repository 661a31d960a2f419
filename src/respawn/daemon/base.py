"""
Daemon - runs a script's command chain and restarts it on file changes.

The last command of the chain is the "main" process: it is tracked in a
ProcessRegistry and watched by a monitor task. Every other command is a
setup step that runs to completion before the next one starts.

Lifecycle events (start / reload / exit) are delivered through an
unbuffered memory stream, so the driver only advances when the consumer
pulls the next event:

    async with Daemon(runner, "serve", config=config) as daemon:
        async for event in daemon:
            ...
"""

import logging
import os
import signal
import sys
from collections.abc import AsyncIterable, AsyncIterator, Callable
from typing import Any

import anyio
from anyio.abc import TaskGroup, TaskStatus
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from ..command import ProcessHandle, ScriptOptions
from ..config import Config
from ..errors import DaemonAlreadyStarted
from ..log import clear_screen
from ..registry import ProcessRegistry
from ..runner import CommandSource
from ..terminator import ProcessTerminator, default_terminator
from ..watcher import ChangeBatch, Watcher, is_reload_batch
from .events import DaemonEvent, ExitEvent, ReloadEvent, StartEvent

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name)
    for name in ("SIGHUP", "SIGINT", "SIGTERM", "SIGTSTP")
    if hasattr(signal, name)
)


def _exit_process(status: int) -> None:
    logging.shutdown()
    os._exit(status)


class Daemon:
    """
    Supervises one script. Single use: enter it once, iterate it once.

    Args:
        runner: Builds the command chain; called again on every reload
        script: Name of the script to run
        watcher: Change feed; defaults to a Watcher over ``config.watcher``
        config: Watcher and logger settings
        terminator: Kill strategy; defaults to the platform's
        exit_hook: Called with the exit status after a shutdown signal
        handle_signals: Install the shutdown signal listener
    """

    def __init__(
        self,
        runner: CommandSource,
        script: str,
        *,
        watcher: AsyncIterable[ChangeBatch] | None = None,
        config: Config | None = None,
        terminator: ProcessTerminator | None = None,
        exit_hook: Callable[[int], Any] = _exit_process,
        handle_signals: bool = True,
    ):
        self._runner = runner
        self._script = script
        self._config = config or Config()
        self._watcher = watcher
        self._terminator = terminator or default_terminator()
        self._exit = exit_hook
        self._handle_signals = handle_signals

        self.registry = ProcessRegistry()
        self._released: anyio.Event | None = None
        self._task_group: TaskGroup | None = None
        self._receive: MemoryObjectReceiveStream[DaemonEvent] | None = None
        self._entered = False
        self._iterated = False
        self._finished = False
        # setup step currently being awaited by the executor
        self._pending: ProcessHandle | None = None

    # --- context / iteration ---

    async def __aenter__(self) -> "Daemon":
        if self._entered:
            raise DaemonAlreadyStarted("Daemon instances are single use")
        self._entered = True

        self._released = anyio.Event()
        send, self._receive = anyio.create_memory_object_stream[DaemonEvent](0)
        self._task_group = anyio.create_task_group()
        await self._task_group.__aenter__()
        self._task_group.start_soon(self._drive, send)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool | None:
        assert self._task_group is not None
        if exc_type is None and self._finished:
            # The run concluded on its own: let a still running main process
            # finish (signals are still handled meanwhile).
            try:
                await self.wait_idle()
            except BaseException as e:
                self._teardown()
                if not await self._task_group.__aexit__(type(e), e, e.__traceback__):
                    raise
                return None

        self._teardown()
        return await self._task_group.__aexit__(exc_type, exc, tb)

    def _teardown(self) -> None:
        assert self._task_group is not None
        assert self._receive is not None
        self.kill_all()
        self._receive.close()
        self._task_group.cancel_scope.cancel()

    def __aiter__(self) -> AsyncIterator[DaemonEvent]:
        if self._receive is None:
            raise RuntimeError("Daemon not started; use 'async with Daemon(...)'")
        if self._iterated:
            raise DaemonAlreadyStarted("Daemon events can only be iterated once")
        self._iterated = True
        return self._receive.__aiter__()

    async def wait_idle(self) -> None:
        """Wait until no supervised process is alive."""
        while len(self.registry):
            assert self._released is not None
            await self._released.wait()

    def _notify_released(self) -> None:
        if self._released is not None:
            self._released.set()
            self._released = anyio.Event()

    # --- driver ---

    async def _drive(self, send: MemoryObjectSendStream[DaemonEvent]) -> None:
        async with send:
            try:
                await send.send(StartEvent())
                options = await self._start()
                if self._handle_signals:
                    assert self._task_group is not None
                    await self._task_group.start(self._listen_for_shutdown)

                if options.watch:
                    async for batch in self._change_feed():
                        if not is_reload_batch(batch):
                            continue
                        logger.debug("R: reload event detected, starting the reload procedure...")
                        await send.send(ReloadEvent(change=batch))
                        await self._reload()

                self._finished = True
                await send.send(ExitEvent())
            except anyio.BrokenResourceError:
                # consumer stopped listening
                pass

    def _change_feed(self) -> AsyncIterable[ChangeBatch]:
        if self._watcher is None:
            self._watcher = Watcher(self._config.watcher)
        return self._watcher

    # --- chain execution ---

    async def _start(self) -> ScriptOptions:
        """Run the chain; returns the options of the main (last) command."""
        assert self._task_group is not None
        commands = self._runner.build(self._script)

        for index, command in enumerate(commands):
            handle = await command.exe()
            logger.debug("S: starting process with pid %d", handle.pid)

            if index == len(commands) - 1:
                logger.warning("starting main `%s`", command)
                self.registry.register(handle)
                self._task_group.start_soon(self._monitor, handle, command.options)
                return command.options

            logger.info("starting sequential `%s`", command)
            self._pending = handle
            try:
                status = await handle.wait()
            except anyio.get_cancelled_exc_class():
                self._terminator.terminate(handle)
                raise
            finally:
                self._pending = None
            # Setup steps are not checked; the chain always continues.
            logger.debug(
                "S: sequential process with pid %d exited with code %s",
                handle.pid, status.code,
            )

        return ScriptOptions()

    def kill_all(self) -> None:
        """Kill every tracked process. Safe to call repeatedly."""
        snapshot = self.registry.swap()
        logger.debug("K: killing %d process[es]", len(snapshot))
        for handle in snapshot.values():
            self._terminator.terminate(handle)
        if snapshot:
            self._notify_released()

    async def _monitor(self, handle: ProcessHandle, options: ScriptOptions) -> None:
        logger.debug("M: monitoring status of process with pid %d", handle.pid)
        status = None
        try:
            status = await handle.wait()
            logger.debug("M: got status of process with pid %d", handle.pid)
        except Exception:
            logger.debug("M: error getting status of process with pid %d", handle.pid, exc_info=True)

        if not self.registry.release(handle):
            logger.debug("M: process with pid %d was killed", handle.pid)
            return

        logger.debug("M: process with pid %d exited on its own", handle.pid)
        self._notify_released()
        if status is None:
            return

        match (status.success, options.watch):
            case (True, True):
                logger.info("clean exit - waiting for changes before restart")
            case (True, False):
                logger.info("clean exit - respawn is exiting ...")
            case (False, True):
                logger.error("app crashed - waiting for file changes before starting ...")
            case (False, False):
                logger.error("app crashed - respawn is exiting ...")

    async def _reload(self) -> None:
        if self._config.logger.fullscreen:
            logger.debug("clearing screen")
            clear_screen()

        watcher = self._config.watcher
        if watcher.match:
            logger.info("watching path(s): %s", " ".join(watcher.match))
        if watcher.exts:
            logger.info("watching extensions: %s", ",".join(watcher.exts))
        logger.info("restarting due to changes...")

        self.kill_all()
        await self._start()

    # --- shutdown ---

    async def _listen_for_shutdown(
        self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED
    ) -> None:
        if sys.platform == "win32":
            task_status.started()
            return

        with anyio.open_signal_receiver(*SHUTDOWN_SIGNALS) as signals:
            task_status.started()
            async for signum in signals:
                self._shutdown(signum)
                return

    def _shutdown(self, signum: int) -> None:
        logger.debug("received %s, shutting down", signal.Signals(signum).name)
        self.kill_all()
        # the exit hook skips cancellation, so a running setup step is ended here
        if self._pending is not None:
            logger.debug("K: killing sequential process with pid %d", self._pending.pid)
            self._terminator.terminate(self._pending)
        self._exit(0)
