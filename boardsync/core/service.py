"""
FILE: boardsync/core/service.py
PURPOSE: Business logic layer: board sessions and board/task operations
EXPORTS:
  - BoardSession (class)
  - create_board(name, kind) -> BoardRecord
  - list_boards() -> List[BoardRecord]
  - find_board_or_raise(name_or_id) -> BoardRecord
  - bucket_set_for(board) -> BucketSet
  - resolve_bucket_or_raise(bucket_set, name) -> str
  - add_task(board_name, title, bucket_name) -> Task
  - delete_task(task_id) -> None
  - open_session(board_name, config) -> BoardSession
  - move_task(board_name, task_id, bucket_name, index, config) -> CommitResult
DEPENDENCIES:
  - boardsync.core.board (BoardState)
  - boardsync.core.drag (DragController, BoardLayout)
  - boardsync.core.reconcile (ReconciliationEngine, CommitResult)
  - boardsync.core.recovery (ConflictRecoveryPolicy)
  - boardsync.core.repository (storage, SqliteGateway)
  - boardsync.core.config (Config)
NOTES:
  - A BoardSession owns every piece of state for one board instance
  - Forms (task create/delete) go through the repository, then the
    session is reloaded; the engine never creates or deletes tasks
  - Bucket and board lookups are case-insensitive and accept ids or labels
"""

import logging
from dataclasses import replace
from typing import List, Optional

from . import repository
from .board import BoardState
from .config import Config
from .constants import BUCKET_SETS, DEFAULT_KIND
from .drag import BoardLayout, DragController
from .gateway import PersistenceGateway
from .models import Board, BoardRecord, BucketSet, MoveIntent, Task
from .reconcile import CommitResult, ReconciliationEngine
from .recovery import ConflictRecoveryPolicy
from .exceptions import BucketNotFoundError, InvalidInputError

logger = logging.getLogger(__name__)


class BoardSession:
    """
    Everything one open board needs: snapshots, gestures, commits, recovery.

    Args:
        board_id: Board to work on
        bucket_set: Buckets of the board
        gateway: Authoritative store
        config: Timeouts, retries and drag thresholds
        layout: Initial on-screen geometry for the drag controller
    """

    def __init__(
        self,
        board_id: str,
        bucket_set: BucketSet,
        gateway: PersistenceGateway,
        config: Optional[Config] = None,
        layout: Optional[BoardLayout] = None,
    ):
        config = config or Config()
        self.board_id = board_id
        self.state = BoardState(bucket_set)
        self.recovery = ConflictRecoveryPolicy(self.state, gateway, config.commit_retries)
        self.engine = ReconciliationEngine(
            board_id, self.state, gateway, self.recovery, timeout=config.commit_timeout
        )
        self.drag = DragController(
            self.state,
            layout,
            pointer_distance=config.pointer_distance,
            touch_delay=config.touch_delay,
            touch_tolerance=config.touch_tolerance,
        )

    @property
    def board(self) -> Board:
        """Board to display (optimistic while commits are pending)."""
        return self.state.current

    async def open(self) -> Board:
        """Load the authoritative snapshot."""
        return await self.recovery.reload(self.board_id)

    async def reload(self) -> Board:
        """Reload after a task was created, deleted or changed outside a drag."""
        return await self.recovery.reload(self.board_id)

    async def apply(self, intent: MoveIntent) -> CommitResult:
        """
        Apply a move optimistically, then persist it.

        Raises:
            ValidationError: If the intent is invalid; nothing changed
            PersistenceError: If the commit failed; the board was reloaded
        """
        board = self.state.apply(intent)
        return await self.engine.submit(board, intent.task_id)

    async def move(self, task_id: str, bucket_id: str, index: int) -> CommitResult:
        return await self.apply(MoveIntent(task_id, bucket_id, index))


# --- Boards ---


def create_board(name: str, kind: str = DEFAULT_KIND) -> BoardRecord:
    """Create a board of the given kind ('tasks', 'habits', 'clients')."""
    return repository.create_board(name, kind.strip().lower())


def list_boards() -> List[BoardRecord]:
    return repository.list_boards()


def find_board_or_raise(name_or_id: str) -> BoardRecord:
    """
    Find a board by id or name (case-insensitive).

    Raises:
        InvalidInputError: If no board matches (with the available names)
    """
    board = repository.get_board(name_or_id) or repository.get_board_by_name(name_or_id)
    if not board:
        available = ", ".join(b.name for b in list_boards()) or "none"
        raise InvalidInputError(
            f"Board '{name_or_id}' not found. Available boards: {available}"
        )
    return board


def bucket_set_for(board: BoardRecord) -> BucketSet:
    return BUCKET_SETS[board.kind]


def resolve_bucket_or_raise(bucket_set: BucketSet, name: str) -> str:
    """Find a bucket id by id or label, raising BucketNotFoundError."""
    bucket_id = bucket_set.resolve(name)
    if bucket_id is None:
        raise BucketNotFoundError(name, bucket_set.ids)
    return bucket_id


# --- Tasks (forms surface) ---


def add_task(board_name: str, title: str, bucket_name: Optional[str] = None) -> Task:
    """
    Create a task at the end of a bucket.

    Raises:
        InvalidInputError: If the board is unknown or the title is empty
        BucketNotFoundError: If the bucket is not part of the board
    """
    board = find_board_or_raise(board_name)
    bucket_id = None
    if bucket_name:
        bucket_id = resolve_bucket_or_raise(bucket_set_for(board), bucket_name)
    return repository.create_task(board.id, title, bucket_id)


def delete_task(task_id: str) -> None:
    repository.delete_task(task_id)


# --- Moves ---


async def open_session(board_name: str, config: Optional[Config] = None) -> BoardSession:
    """Open a session on a stored board and load its snapshot."""
    board = find_board_or_raise(board_name)
    session = BoardSession(
        board.id, bucket_set_for(board), repository.SqliteGateway(), config
    )
    await session.open()
    return session


async def move_task(
    board_name: str,
    task_id: str,
    bucket_name: str,
    index: Optional[int] = None,
    config: Optional[Config] = None,
) -> CommitResult:
    """
    Move a task on a stored board and persist the result.

    Args:
        board_name: Board name or id
        task_id: Task to move
        bucket_name: Target bucket id or label
        index: Target position (None = end of the bucket)
        config: Engine configuration

    Returns:
        CommitResult with the writes made and the board as stored after them

    Raises:
        InvalidInputError: If the board is unknown
        ValidationError: If the task, bucket or index is invalid
        PersistenceError: If the commit failed (the board was reloaded)
    """
    session = await open_session(board_name, config)
    bucket_id = resolve_bucket_or_raise(session.state.bucket_set, bucket_name)
    if index is None:
        index = len(session.board.columns[bucket_id])
    result = await session.move(task_id, bucket_id, index)
    if result.updates:
        # The store derives completion from the bucket; show its view
        result = replace(result, board=await session.reload())
    logger.info("Moved task %s to %s[%d] (%d write(s))",
                task_id, bucket_id, index, len(result.updates))
    return result
