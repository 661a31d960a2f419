"""Command line interface: ``respawn run|list|init``."""

import logging
from pathlib import Path
from typing import Optional

import anyio
import typer

from .config import CONFIG_NAMES, DEFAULT_TEMPLATE, Config, find_config, load_config
from .daemon import Daemon
from .errors import ConfigError, RespawnError
from .log import setup_logging
from .runner import Runner

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Run a script and restart it whenever files change.",
    no_args_is_help=True,
)

ConfigOption = typer.Option(None, "--config", "-c", help="Path to respawn.yml")


def _load(path: Optional[Path]) -> Config:
    path = path or find_config(Path.cwd())
    if path is None:
        raise ConfigError(f"no {' or '.join(CONFIG_NAMES)} in {Path.cwd()}; run `respawn init`")
    return load_config(path)


def _fail(error: RespawnError) -> typer.Exit:
    typer.echo(f"error: {error}", err=True)
    return typer.Exit(code=1)


async def _supervise(runner: Runner, script: str, config: Config) -> None:
    async with Daemon(runner, script, config=config) as daemon:
        async for event in daemon:
            logger.debug("event: %s", event.type)


@app.command("run")
def run(
    script: str = typer.Argument(..., help="Script to run"),
    config: Optional[Path] = ConfigOption,
    debug: bool = typer.Option(False, "--debug", help="Log process bookkeeping"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
):
    """Run SCRIPT and restart it on changes."""
    try:
        cfg = _load(config)
        runner = Runner(cfg)
        runner.script(script)
    except RespawnError as e:
        raise _fail(e)

    level = logging.DEBUG if debug or cfg.logger.debug else logging.INFO
    setup_logging(level, quiet=quiet or cfg.logger.quiet)
    anyio.run(_supervise, runner, script, cfg)


@app.command("list")
def list_scripts(config: Optional[Path] = ConfigOption):
    """List the scripts defined in the config."""
    try:
        cfg = _load(config)
    except RespawnError as e:
        raise _fail(e)

    if not cfg.scripts:
        typer.echo("no scripts defined")
        return
    width = max(len(name) for name in cfg.scripts)
    for name, script in cfg.scripts.items():
        typer.echo(f"{name.ljust(width)}  {script.desc}".rstrip())


@app.command("init")
def init(force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file")):
    """Write a starter respawn.yml in the current directory."""
    target = Path.cwd() / CONFIG_NAMES[0]
    if target.exists() and not force:
        typer.echo(f"{target.name} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(code=1)
    target.write_text(DEFAULT_TEMPLATE, encoding="utf-8")
    typer.echo(f"created {target.name}")
