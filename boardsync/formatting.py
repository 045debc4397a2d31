"""
FILE: boardsync/formatting.py
PURPOSE: Shared formatting utilities for CLI output
EXPORTS:
  - BoardFormatter: Class for formatting boards and updates
DEPENDENCIES:
  - rich (for table formatting)
  - json (for JSON serialization)
  - boardsync.core.models (Board, Task, Update, BoardRecord)
NOTES:
  - Boards render as one table column per bucket, in bucket order
  - JSON output lists buckets in order with their tasks in order
"""

import json
from itertools import zip_longest
from typing import Any, Dict, List, Sequence

from rich.table import Table

from .core.models import Board, BoardRecord, Task, Update


class BoardFormatter:
    """Centralized board display formatting."""

    @staticmethod
    def task_cell(task: Task) -> str:
        marker = "[green]✓[/green] " if task.payload.get("is_completed") else ""
        return f"{marker}{task.title} [dim]{task.id}[/dim]"

    @staticmethod
    def create_table(board: Board, title: str = "Board") -> Table:
        """
        Create Rich table with one column per bucket.

        Args:
            board: Board to display
            title: Table title

        Returns:
            Rich Table object ready for display
        """
        table = Table(title=title, show_header=True, header_style="bold cyan")
        for bucket in board.bucket_set.buckets:
            count = len(board.columns[bucket.id])
            table.add_column(f"{bucket.label} ({count})", style="white")

        columns = [board.column(bucket_id) for bucket_id in board.bucket_set.ids]
        for row in zip_longest(*columns):
            table.add_row(*(BoardFormatter.task_cell(t) if t else "" for t in row))

        return table

    @staticmethod
    def boards_table(boards: Sequence[BoardRecord]) -> Table:
        table = Table(title="Boards", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="cyan", width=10, no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Kind", style="magenta", width=10)
        for board in boards:
            table.add_row(board.id, board.name, board.kind)
        return table

    @staticmethod
    def to_json_dict(board: Board) -> Dict[str, Any]:
        """
        Convert board to JSON-serializable dict.

        Returns:
            {"kind": ..., "buckets": [{"id", "label", "tasks": [...]}, ...]}
        """
        return {
            "kind": board.bucket_set.name,
            "buckets": [
                {
                    "id": bucket.id,
                    "label": bucket.label,
                    "tasks": [
                        {
                            "id": task.id,
                            "title": task.title,
                            "order_index": task.order_index,
                            "is_completed": bool(task.payload.get("is_completed")),
                        }
                        for task in board.column(bucket.id)
                    ],
                }
                for bucket in board.bucket_set.buckets
            ],
        }

    @staticmethod
    def to_json(board: Board, updates: Sequence[Update] = None) -> str:
        data = BoardFormatter.to_json_dict(board)
        if updates is not None:
            data["updates"] = [u.to_dict() for u in updates]
        return json.dumps(data, indent=2)

    @staticmethod
    def to_raw_lines(board: Board) -> List[str]:
        """
        Convert board to plain text lines.

        Returns:
            One header line per bucket followed by its tasks
        """
        lines = []
        for bucket in board.bucket_set.buckets:
            lines.append(f"{bucket.label}:")
            for task in board.column(bucket.id):
                marker = "✓" if task.payload.get("is_completed") else " "
                lines.append(f"  {task.order_index}. {task.id}: [{marker}] {task.title}")
        return lines
