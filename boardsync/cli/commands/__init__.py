"""
FILE: boardsync/cli/commands/__init__.py
PURPOSE: CLI command modules
"""

# Export all command handlers for easy importing
from .boards import (
    board_create,
    board_ls,
)
from .tasks import (
    add,
    rm,
    show,
    mv,
)
from .system import (
    version,
)

__all__ = [
    "board_create",
    "board_ls",
    "add",
    "rm",
    "show",
    "mv",
    "version",
]
