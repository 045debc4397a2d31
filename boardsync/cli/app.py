"""
FILE: boardsync/cli/app.py
PURPOSE: Shared Typer application, consoles and global options
EXPORTS:
  - app (Typer application)
  - board_app (Typer sub-application for 'board')
  - console, error_console (Rich consoles)
  - get_config(ctx) -> Config
DEPENDENCIES:
  - typer (CLI framework)
  - rich (formatted output)
  - logging (stdlib)
  - boardsync.core.config (Config)
  - boardsync.core.repository (database location)
NOTES:
  - Command modules register themselves on these objects
  - --verbose turns on engine logging to stderr
  - --config points at a YAML config file
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from .. import __version__
from ..core import repository
from ..core.config import Config

app = typer.Typer(
    name="boardsync",
    help="Kanban boards with optimistic reordering",
    add_completion=False,
    no_args_is_help=True,
)

board_app = typer.Typer(
    name="board",
    help="Board management commands",
)
app.add_typer(board_app, name="board")

console = Console()
error_console = Console(stderr=True)


@app.callback()
def main_options(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine activity to stderr"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to config.yaml"),
):
    """Global options applied before every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    config = Config.load(config_path)
    repository.DB_PATH = Path(config.db_path)
    ctx.obj = config


def get_config(ctx: typer.Context) -> Config:
    return ctx.obj if isinstance(ctx.obj, Config) else Config().resolve_paths()


__all__ = ["app", "board_app", "console", "error_console", "get_config", "__version__"]
