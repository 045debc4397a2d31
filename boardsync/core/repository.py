"""
FILE: boardsync/core/repository.py
PURPOSE: SQLite storage for boards and tasks, and the SQLite gateway
EXPORTS:
  - get_connection() -> Connection
  - init_database(conn) -> None
  - create_board(name, kind) -> BoardRecord
  - get_board(board_id) -> BoardRecord | None
  - get_board_by_name(name) -> BoardRecord | None
  - list_boards() -> List[BoardRecord]
  - create_task(board_id, title, bucket_id, payload) -> Task
  - get_task(task_id) -> Task | None
  - list_tasks(board_id) -> List[Task]
  - delete_task(task_id) -> None
  - apply_updates(board_id, updates, abandoned) -> None
  - SqliteGateway (PersistenceGateway implementation)
DEPENDENCIES:
  - sqlite3 (stdlib)
  - asyncio (stdlib)
  - boardsync.core.models (Task, BoardRecord, Update)
  - boardsync.core.config (Config)
  - boardsync.core.exceptions
NOTES:
  - Database stored at ~/.boardsync/boardsync.db unless configured otherwise
  - Auto-creates directory and initializes schema on first run
  - Returns domain objects (Task, BoardRecord), never raw rows
  - New tasks are appended to the end of their bucket; deleting a task
    closes the gap it leaves
  - apply_updates() runs in one transaction: all updates or none
"""

import asyncio
import json
import logging
import sqlite3
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config import Config
from .constants import BUCKET_SETS
from .gateway import PersistenceGateway
from .models import BoardRecord, Task, Update
from .exceptions import (
    BoardNotFoundError,
    BucketNotFoundError,
    CommitRejectedError,
    InvalidInputError,
    PersistenceError,
    TaskNotFoundError,
    TransportError,
)

logger = logging.getLogger(__name__)

# Overridden by tests and by the CLI; None means "ask Config"
DB_PATH: Optional[Path] = None

SCHEMA = """
CREATE TABLE IF NOT EXISTS boards (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE COLLATE NOCASE,
    kind TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    board_id TEXT NOT NULL REFERENCES boards(id) ON DELETE CASCADE,
    bucket_id TEXT NOT NULL,
    order_index INTEGER NOT NULL DEFAULT 0,
    title TEXT NOT NULL,
    payload TEXT,
    is_completed INTEGER NOT NULL DEFAULT 0,
    completed_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_tasks_board_bucket
    ON tasks(board_id, bucket_id, order_index);
"""


def _new_id() -> str:
    return uuid.uuid4().hex[:8]


def get_connection() -> sqlite3.Connection:
    """
    Get SQLite connection to the boardsync database.

    Creates the database directory if it doesn't exist.
    Enables row_factory for dict-like row access.
    Enables foreign key constraints.
    Initializes database schema on first connection.
    """
    db_path = Path(DB_PATH) if DB_PATH else Path(Config.load().db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    init_database(conn)

    return conn


def init_database(conn: sqlite3.Connection) -> None:
    """Create tables if they don't exist (safe to call repeatedly)."""
    conn.executescript(SCHEMA)
    conn.commit()


def _bucket_set(kind: str):
    try:
        return BUCKET_SETS[kind]
    except KeyError:
        raise InvalidInputError(
            f"Invalid board kind '{kind}'. Must be one of: {', '.join(BUCKET_SETS)}"
        )


# --- Boards ---


def create_board(name: str, kind: str) -> BoardRecord:
    """
    Create a new board.

    Raises:
        InvalidInputError: If the name is empty or taken, or kind is unknown
    """
    name = name.strip()
    if not name:
        raise InvalidInputError("Board name cannot be empty")
    _bucket_set(kind)

    conn = get_connection()
    try:
        with conn:
            conn.execute(
                "INSERT INTO boards (id, name, kind, created_at) VALUES (?, ?, ?, ?)",
                (_new_id(), name, kind, datetime.now().isoformat()),
            )
    except sqlite3.IntegrityError:
        raise InvalidInputError(f"Board '{name}' already exists")
    finally:
        conn.close()

    return get_board_by_name(name)


def get_board(board_id: str) -> Optional[BoardRecord]:
    conn = get_connection()
    try:
        row = conn.execute("SELECT * FROM boards WHERE id = ?", (board_id,)).fetchone()
    finally:
        conn.close()
    return BoardRecord.from_row(row) if row else None


def get_board_by_name(name: str) -> Optional[BoardRecord]:
    """Find board by name (case-insensitive)."""
    conn = get_connection()
    try:
        row = conn.execute("SELECT * FROM boards WHERE name = ?", (name.strip(),)).fetchone()
    finally:
        conn.close()
    return BoardRecord.from_row(row) if row else None


def list_boards() -> List[BoardRecord]:
    conn = get_connection()
    try:
        rows = conn.execute("SELECT * FROM boards ORDER BY created_at, rowid").fetchall()
    finally:
        conn.close()
    return [BoardRecord.from_row(row) for row in rows]


# --- Tasks ---


def create_task(
    board_id: str,
    title: str,
    bucket_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> Task:
    """
    Create a task at the end of a bucket.

    Args:
        board_id: Board to add the task to
        title: Task title (required)
        bucket_id: Bucket to place the task in (defaults to the board's fallback bucket)
        payload: Extra form fields stored as JSON

    Raises:
        BoardNotFoundError: If board_id doesn't exist
        BucketNotFoundError: If bucket_id is not in the board's bucket set
        InvalidInputError: If the title is empty
    """
    title = title.strip()
    if not title:
        raise InvalidInputError("Task title cannot be empty")

    board = get_board(board_id)
    if not board:
        raise BoardNotFoundError(board_id)
    bucket_set = _bucket_set(board.kind)
    bucket_id = bucket_id or bucket_set.fallback_id
    if bucket_id not in bucket_set:
        raise BucketNotFoundError(bucket_id, bucket_set.ids)

    task_id = _new_id()
    now = datetime.now().isoformat()
    completed = bucket_id in bucket_set.completing

    conn = get_connection()
    try:
        with conn:
            (count,) = conn.execute(
                "SELECT COUNT(*) FROM tasks WHERE board_id = ? AND bucket_id = ?",
                (board_id, bucket_id),
            ).fetchone()
            conn.execute(
                """
                INSERT INTO tasks (id, board_id, bucket_id, order_index, title, payload,
                                   is_completed, completed_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (task_id, board_id, bucket_id, count, title,
                 json.dumps(payload) if payload else None,
                 int(completed), now if completed else None, now, now),
            )
    finally:
        conn.close()

    return get_task(task_id)


def get_task(task_id: str) -> Optional[Task]:
    conn = get_connection()
    try:
        row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
    finally:
        conn.close()
    return Task.from_row(row) if row else None


def list_tasks(board_id: str) -> List[Task]:
    """List every task of a board, ordered by bucket then order_index."""
    conn = get_connection()
    try:
        rows = conn.execute(
            "SELECT * FROM tasks WHERE board_id = ? ORDER BY bucket_id, order_index, created_at",
            (board_id,),
        ).fetchall()
    finally:
        conn.close()
    return [Task.from_row(row) for row in rows]


def delete_task(task_id: str) -> None:
    """
    Delete a task permanently and close the gap in its bucket.

    Raises:
        TaskNotFoundError: If task_id doesn't exist
    """
    conn = get_connection()
    try:
        with conn:
            row = conn.execute(
                "SELECT board_id, bucket_id, order_index FROM tasks WHERE id = ?",
                (task_id,),
            ).fetchone()
            if not row:
                raise TaskNotFoundError(task_id)
            conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.execute(
                """
                UPDATE tasks SET order_index = order_index - 1
                WHERE board_id = ? AND bucket_id = ? AND order_index > ?
                """,
                (row["board_id"], row["bucket_id"], row["order_index"]),
            )
    finally:
        conn.close()


def apply_updates(
    board_id: str,
    updates: Sequence[Update],
    abandoned: Optional[threading.Event] = None,
) -> None:
    """
    Write a batch of placement updates in a single transaction.

    Args:
        board_id: Board the updates belong to
        updates: Placement updates to write
        abandoned: Set by the caller once it stopped waiting for the write;
            checked before every statement and before committing

    Raises:
        BoardNotFoundError: If board_id doesn't exist
        CommitRejectedError: If any update names a task that is not on the
            board or a bucket outside its bucket set; nothing is written
        PersistenceError: If the write was abandoned; nothing is written

    Notes:
        - Entering a completing bucket marks the task completed, leaving
          one clears the flag
    """
    def check_abandoned():
        if abandoned is not None and abandoned.is_set():
            raise PersistenceError(f"Commit to board {board_id} was abandoned")

    board = get_board(board_id)
    if not board:
        raise BoardNotFoundError(board_id)
    bucket_set = _bucket_set(board.kind)
    now = datetime.now().isoformat()

    conn = get_connection()
    try:
        with conn:
            for update in updates:
                check_abandoned()
                if update.bucket_id not in bucket_set:
                    raise CommitRejectedError(
                        f"Bucket '{update.bucket_id}' is not part of board {board_id}"
                    )
                completed = update.bucket_id in bucket_set.completing
                cursor = conn.execute(
                    """
                    UPDATE tasks
                    SET bucket_id = ?, order_index = ?, updated_at = ?,
                        completed_at = CASE
                            WHEN ? = 0 THEN NULL
                            WHEN is_completed = 1 THEN completed_at
                            ELSE ?
                        END,
                        is_completed = ?
                    WHERE id = ? AND board_id = ?
                    """,
                    (update.bucket_id, update.order_index, now,
                     int(completed), now, int(completed),
                     update.task_id, board_id),
                )
                if cursor.rowcount != 1:
                    raise CommitRejectedError(
                        f"Task {update.task_id} is not on board {board_id}"
                    )
            # Raising inside the block rolls the transaction back
            check_abandoned()
    finally:
        conn.close()


class SqliteGateway(PersistenceGateway):
    """PersistenceGateway over the local SQLite database."""

    async def load(self, board_id: str) -> List[Task]:
        if await asyncio.to_thread(get_board, board_id) is None:
            raise BoardNotFoundError(board_id)
        return await asyncio.to_thread(list_tasks, board_id)

    async def commit(self, board_id: str, updates: Sequence[Update]) -> None:
        abandoned = threading.Event()
        # The worker thread cannot be cancelled, only told to roll back
        worker = asyncio.ensure_future(
            asyncio.to_thread(apply_updates, board_id, list(updates), abandoned)
        )
        try:
            await asyncio.shield(worker)
        except asyncio.CancelledError:
            abandoned.set()
            await asyncio.wait([worker])
            if not worker.cancelled() and worker.exception() is None:
                logger.warning("Commit to board %s landed after it was abandoned", board_id)
            raise
        except BoardNotFoundError as e:
            raise CommitRejectedError(str(e)) from e
        except sqlite3.OperationalError as e:
            # Locked or unreadable database; the transaction was rolled back
            raise TransportError(str(e)) from e
        logger.debug("Applied %d update(s) to board %s", len(updates), board_id)
