"""
FILE: boardsync/cli/main.py
PURPOSE: Typer-based CLI entry point
EXPORTS:
  - app (Typer application)
  - main() (entry point)
  - version() - Show version
  - board create / board ls - Manage boards
  - add() - Create task
  - rm() - Delete task
  - show() - Show a board
  - mv() - Move task to a bucket/position
DEPENDENCIES:
  - typer (CLI framework)
  - boardsync.cli.app (shared app and consoles)
  - boardsync.cli.commands (command registration)
NOTES:
  - All listing commands support --json and --raw flags
  - Error messages go to stderr
  - Exit codes: 0=success, 1=error
"""

import sys

# Fix Windows console encoding for Unicode characters
if sys.platform == "win32":
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

from .app import app

# Commands are decorated with @app.command() in their modules
from . import commands  # noqa: F401


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
