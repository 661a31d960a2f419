"""
Supervise a script from Python instead of the CLI.

Runs a one-shot setup step, then a tiny HTTP server as the main process,
and restarts both whenever a .py file under the current directory changes.

Run:
  uv run python examples/01_supervise.py

Then edit any .py file and watch the reload events.
"""

from __future__ import annotations

import logging
import sys

import anyio

from respawn import Config, Daemon, ReloadEvent, Runner, ScriptConfig, WatcherConfig
from respawn.log import setup_logging


async def main() -> None:
    config = Config(
        scripts={
            "serve": ScriptConfig(
                cmd=f"echo preparing && {sys.executable} -m http.server 8080",
                desc="static file server",
            ),
        },
        watcher=WatcherConfig(match=(".",), exts=("py",)),
    )

    async with Daemon(Runner(config), "serve", config=config) as daemon:
        async for event in daemon:
            if isinstance(event, ReloadEvent):
                print(f"reload: {', '.join(change.path for change in event.change)}")
            else:
                print(event.type)


if __name__ == "__main__":
    setup_logging(logging.DEBUG)
    anyio.run(main)
