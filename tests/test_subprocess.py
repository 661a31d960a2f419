"""Integration tests that supervise real shell processes."""

import os
import sys

import anyio
import pytest

from respawn import ChangeEvent, Daemon, ReloadEvent, Runner, StartEvent, SubprocessHandle
from respawn.command import ScriptOptions, open_subprocess
from respawn.config import Config, ScriptConfig

pytestmark = [
    pytest.mark.anyio,
    pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh"),
]


def make_runner(**scripts: ScriptConfig) -> Runner:
    return Runner(Config(scripts=scripts))


async def wait_until(predicate, timeout: float = 5.0) -> None:
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(0.02)


async def test_open_subprocess_reports_status(tmp_path):
    handle = await open_subprocess(
        ("/bin/sh", "-c", 'test "$GREETING" = hi && test "$(pwd -P)" = "$EXPECTED"'),
        ScriptOptions(env={"GREETING": "hi", "EXPECTED": os.path.realpath(tmp_path)}, cwd=str(tmp_path)),
    )
    status = await handle.wait()
    assert status.success is True
    assert status.code == 0

    handle = await open_subprocess(("/bin/sh", "-c", "exit 3"), ScriptOptions())
    status = await handle.wait()
    assert status.success is False
    assert status.code == 3


async def test_crashing_main_without_watch():
    runner = make_runner(fail=ScriptConfig(cmd="exit 1", watch=False))

    with anyio.fail_after(5):
        async with Daemon(runner, "fail", handle_signals=False) as daemon:
            types = [event.type async for event in daemon]

    assert types == ["start", "exit"]
    assert len(daemon.registry) == 0


async def test_reload_kills_and_restarts_main():
    runner = make_runner(dev=ScriptConfig(cmd="echo setup && exec sleep 100"))
    send, feed = anyio.create_memory_object_stream(0)
    batch = (ChangeEvent("app.py", frozenset({"modify"})),)

    async with Daemon(runner, "dev", watcher=feed, handle_signals=False) as daemon:
        events = daemon.__aiter__()
        with anyio.fail_after(5):
            assert await anext(events) == StartEvent()
            await wait_until(lambda: len(daemon.registry) == 1)
            (old_pid,) = daemon.registry.pids()
            old = daemon.registry.lookup(old_pid)
            assert isinstance(old, SubprocessHandle)

            await send.send(batch)
            assert await anext(events) == ReloadEvent(change=batch)

            await wait_until(lambda: daemon.registry.pids() not in ([], [old_pid]))
            await wait_until(lambda: old.returncode is not None)

            assert old.returncode != 0
            (new_pid,) = daemon.registry.pids()
            new = daemon.registry.lookup(new_pid)
            assert new_pid != old_pid

    # leaving early kills the restarted main process
    with anyio.fail_after(5):
        await wait_until(lambda: new.returncode is not None)
    assert len(daemon.registry) == 0


def is_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    # an orphan that nobody reaped yet is gone for our purposes
    try:
        with open(f"/proc/{pid}/stat", encoding="utf-8") as f:
            return f.read().rsplit(")", 1)[1].split()[0] != "Z"
    except (FileNotFoundError, IndexError):
        return True


def read_pid(path) -> int | None:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    return int(text) if text.endswith("\n") else None


async def wait_for_pid(path) -> int:
    await wait_until(lambda: read_pid(path) is not None)
    pid = read_pid(path)
    assert pid is not None and is_alive(pid)
    return pid


async def test_reload_kills_processes_started_by_main(tmp_path):
    pidfile = tmp_path / "child.pid"
    runner = make_runner(dev=ScriptConfig(cmd=f"sleep 300 & echo $! > {pidfile}; wait"))
    send, feed = anyio.create_memory_object_stream(0)
    batch = (ChangeEvent("app.py", frozenset({"modify"})),)

    async with Daemon(runner, "dev", watcher=feed, handle_signals=False) as daemon:
        events = daemon.__aiter__()
        with anyio.fail_after(5):
            assert await anext(events) == StartEvent()
            child = await wait_for_pid(pidfile)
            pidfile.unlink()

            await send.send(batch)
            assert await anext(events) == ReloadEvent(change=batch)
            await wait_until(lambda: not is_alive(child))

            restarted = await wait_for_pid(pidfile)

    with anyio.fail_after(5):
        await wait_until(lambda: not is_alive(restarted))


async def test_leaving_early_kills_processes_started_by_setup_step(tmp_path):
    pidfile = tmp_path / "setup.pid"
    runner = make_runner(dev=ScriptConfig(cmd=f"sleep 300 & echo $! > {pidfile}; wait && exec sleep 100"))
    send, feed = anyio.create_memory_object_stream(0)

    async with Daemon(runner, "dev", watcher=feed, handle_signals=False) as daemon:
        events = daemon.__aiter__()
        with anyio.fail_after(5):
            assert await anext(events) == StartEvent()
            child = await wait_for_pid(pidfile)
        assert len(daemon.registry) == 0

    with anyio.fail_after(5):
        await wait_until(lambda: not is_alive(child))
    assert len(daemon.registry) == 0
