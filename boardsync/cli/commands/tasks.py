"""
FILE: boardsync/cli/commands/tasks.py
PURPOSE: Task commands (add, rm, show, mv)
"""

import asyncio
from typing import Optional

import typer

from ..app import app, console, error_console, get_config
from ...core import service
from ...core.exceptions import (
    BoardSyncError,
    InvalidInputError,
    PersistenceError,
    TaskNotFoundError,
    ValidationError,
)
from ...formatting import BoardFormatter


@app.command()
def add(
    board_name: str = typer.Argument(..., help="Board name or ID"),
    title: str = typer.Argument(..., help="Task title"),
    bucket: Optional[str] = typer.Option(None, "--bucket", "-b", help="Bucket ID or label"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new task at the end of a bucket.

    Example:
        boardsync add Work "Write documentation"
        boardsync add Work "Fix bug" --bucket "In Progress"
    """
    try:
        task = service.add_task(board_name, title, bucket)

        if json_output:
            console.print(task.to_json(), markup=False, highlight=False)
        elif raw:
            console.print(f"{task.id}: {task.title}", markup=False)
        else:
            console.print(f"[green]✓[/green] Created task {task.id}: {task.title}")

    except (InvalidInputError, ValidationError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except BoardSyncError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def rm(
    task_id: str = typer.Argument(..., help="Task ID to delete"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Delete a task permanently.

    Example:
        boardsync rm 3f9a1c2e
    """
    try:
        service.delete_task(task_id)
        if raw:
            console.print(f"Deleted task {task_id}")
        else:
            console.print(f"[red]✗[/red] Deleted task {task_id}")

    except TaskNotFoundError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except BoardSyncError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def show(
    ctx: typer.Context,
    board_name: str = typer.Argument(..., help="Board name or ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Show a board, one column per bucket.

    Example:
        boardsync show Work
        boardsync show Work --json
    """
    try:
        session = asyncio.run(service.open_session(board_name, get_config(ctx)))
        board = session.board

        if json_output:
            console.print(BoardFormatter.to_json(board), markup=False, highlight=False)
        elif raw:
            for line in BoardFormatter.to_raw_lines(board):
                console.print(line, markup=False)
        else:
            console.print(BoardFormatter.create_table(board, title=board_name))

    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except BoardSyncError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def mv(
    ctx: typer.Context,
    board_name: str = typer.Argument(..., help="Board name or ID"),
    task_id: str = typer.Argument(..., help="Task ID to move"),
    bucket: str = typer.Argument(..., help="Target bucket ID or label (e.g., 'done', 'In Progress')"),
    index: Optional[int] = typer.Option(None, "--index", "-i",
                                        help="Target position, 0 = top (default: end of bucket)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Move a task to a bucket and position.

    Only tasks whose position actually changes are written.

    Example:
        boardsync mv Work 3f9a1c2e done
        boardsync mv Work 3f9a1c2e "In Progress" --index 0
    """
    try:
        result = asyncio.run(
            service.move_task(board_name, task_id, bucket, index, get_config(ctx))
        )
        board = result.board
        target = board.tasks[task_id]
        label = board.bucket_set.label(target.bucket_id)

        if json_output:
            console.print(BoardFormatter.to_json(board, result.updates),
                          markup=False, highlight=False)
        elif raw:
            console.print(f"Moved task {task_id} to {label} at {target.order_index} "
                          f"({len(result.updates)} write(s))", markup=False)
        else:
            console.print(
                f"[blue]→[/blue] Moved task {task_id} to [cyan]{label}[/cyan] "
                f"at position {target.order_index} [dim]({len(result.updates)} write(s))[/dim]"
            )

    except (InvalidInputError, ValidationError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except PersistenceError as e:
        error_console.print(f"[yellow]Move not saved, board reloaded:[/yellow] {e}")
        raise typer.Exit(1)
    except BoardSyncError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
