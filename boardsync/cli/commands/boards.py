"""
FILE: boardsync/cli/commands/boards.py
PURPOSE: Board management commands (board create, board ls)
"""

import json

import typer

from ..app import board_app, console, error_console
from ...core import service
from ...core.constants import BUCKET_SETS, DEFAULT_KIND
from ...core.exceptions import BoardSyncError, InvalidInputError
from ...formatting import BoardFormatter


@board_app.command("create")
def board_create(
    name: str = typer.Argument(..., help="Board name"),
    kind: str = typer.Option(DEFAULT_KIND, "--kind", "-k",
                             help=f"Bucket set: {', '.join(BUCKET_SETS)}"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new board.

    Example:
        boardsync board create Work
        boardsync board create "Acme deliveries" --kind clients
    """
    try:
        board = service.create_board(name, kind)

        if json_output:
            console.print(board.to_json(), markup=False, highlight=False)
        elif raw:
            console.print(f"{board.id}: {board.name} ({board.kind})", markup=False)
        else:
            console.print(f"[green]✓[/green] Created {board.kind} board {board.id}: {board.name}")

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except BoardSyncError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@board_app.command("ls")
def board_ls(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List all boards.

    Example:
        boardsync board ls
        boardsync board ls --json
    """
    boards = service.list_boards()

    if json_output:
        boards_data = [
            {"id": b.id, "name": b.name, "kind": b.kind, "created_at": b.created_at}
            for b in boards
        ]
        console.print(json.dumps(boards_data, indent=2), markup=False, highlight=False)
    elif raw:
        for board in boards:
            console.print(f"{board.id}: {board.name} ({board.kind})", markup=False)
    else:
        if not boards:
            console.print("[dim]No boards found[/dim]")
            return
        console.print(BoardFormatter.boards_table(boards))
