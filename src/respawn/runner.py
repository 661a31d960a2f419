"""Turns a script name into the chain of commands to execute."""

import sys
from collections.abc import Sequence
from typing import Protocol

from .command import Command, ScriptOptions, Spawner, open_subprocess
from .config import Config, ScriptConfig
from .errors import ScriptNotFound


class CommandSource(Protocol):
    def build(self, script: str) -> Sequence[Command]:
        """Return a fresh chain for ``script``. Called again on every reload."""
        ...


def shell_argv(line: str, platform: str = sys.platform) -> tuple[str, ...]:
    if platform == "win32":
        return ("cmd.exe", "/c", line)
    return ("/bin/sh", "-c", line)


def split_steps(cmd: str | list[str], platform: str = sys.platform) -> list[tuple[str, ...]]:
    """
    Split a script's ``cmd`` into argument lists.

    A string is split on ``&&`` outside of quotes and each step runs through
    the shell; a list is a single step executed directly.
    """
    if isinstance(cmd, list):
        return [tuple(cmd)]
    steps = [step.strip() for step in _split_and(cmd)]
    return [shell_argv(step, platform) for step in steps if step]


def _split_and(line: str) -> list[str]:
    parts: list[str] = []
    start = 0
    quote = None
    i = 0
    while i < len(line):
        char = line[i]
        if char == "\\" and quote != "'":
            i += 2
            continue
        if quote:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif line.startswith("&&", i):
            parts.append(line[start:i])
            start = i + 2
            i += 2
            continue
        i += 1
    parts.append(line[start:])
    return parts


class Runner:
    """Builds command chains from the scripts of a Config."""

    def __init__(self, config: Config, *, spawner: Spawner = open_subprocess):
        self._config = config
        self._spawner = spawner

    def script(self, name: str) -> ScriptConfig:
        try:
            return self._config.scripts[name]
        except KeyError:
            raise ScriptNotFound(name) from None

    def build(self, script: str) -> list[Command]:
        spec = self.script(script)
        options = ScriptOptions(watch=spec.watch, env=dict(spec.env), cwd=spec.cwd)
        return [
            Command(cmd=argv, options=options, spawner=self._spawner)
            for argv in split_steps(spec.cmd)
        ]
