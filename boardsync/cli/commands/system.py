"""
FILE: boardsync/cli/commands/system.py
PURPOSE: System commands (version)
"""

from ..app import app, console, __version__


@app.command()
def version():
    """Show boardsync version."""
    console.print(f"boardsync v{__version__}")
