"""
FILE: boardsync/core/board.py
PURPOSE: In-memory board model and the pure move transformation
EXPORTS:
  - BoardState (class)
  - build_board(bucket_set, tasks) -> Board
  - move_task(board, task_id, target_bucket_id, target_index) -> Board
  - check_move(board, task_id, target_bucket_id, target_index) -> None
DEPENDENCIES:
  - logging (stdlib)
  - boardsync.core.models (Board, BucketSet, Task, MoveIntent)
  - boardsync.core.exceptions (ValidationError, TaskNotFoundError, BucketNotFoundError)
NOTES:
  - Boards are never mutated; every move returns a new Board
  - Order indices inside every bucket are always exactly 0..n-1
  - BoardState only holds snapshots; it performs no I/O
"""

import logging
from typing import Dict, Iterable, List, Optional

from .models import Board, BucketSet, MoveIntent, Task
from .exceptions import BucketNotFoundError, TaskNotFoundError, ValidationError

logger = logging.getLogger(__name__)


def build_board(bucket_set: BucketSet, tasks: Iterable[Task]) -> Board:
    """
    Group tasks into buckets and renumber each bucket to 0..n-1.

    Args:
        bucket_set: Buckets the board is made of
        tasks: Tasks from an authoritative snapshot, in any order

    Returns:
        A normalized Board

    Notes:
        - Tasks in a bucket outside the set go to the fallback bucket
        - Ties on order_index keep their snapshot order
        - A repeated task id keeps its first occurrence
    """
    grouped: Dict[str, List[Task]] = {bucket_id: [] for bucket_id in bucket_set.ids}
    seen = set()

    for task in tasks:
        if task.id in seen:
            logger.warning("Duplicate task %s in snapshot, keeping first", task.id)
            continue
        seen.add(task.id)

        bucket_id = task.bucket_id
        if bucket_id not in grouped:
            logger.warning(
                "Task %s is in unknown bucket '%s', placing it in '%s'",
                task.id, bucket_id, bucket_set.fallback_id,
            )
            bucket_id = bucket_set.fallback_id
        grouped[bucket_id].append(task)

    columns = {}
    by_id = {}
    for bucket_id, group in grouped.items():
        # sorted() is stable, so equal indices keep snapshot order
        group = sorted(group, key=lambda t: t.order_index)
        columns[bucket_id] = tuple(task.id for task in group)
        for index, task in enumerate(group):
            by_id[task.id] = task.placed(bucket_id, index)

    return Board(bucket_set=bucket_set, columns=columns, tasks=by_id)


def check_move(board: Board, task_id: str, target_bucket_id: str, target_index: int) -> None:
    """
    Validate a move intent against a board.

    Raises:
        TaskNotFoundError: If task_id is not on the board
        BucketNotFoundError: If target_bucket_id is not in the bucket set
        ValidationError: If target_index is not a non-negative integer
    """
    if task_id not in board.tasks:
        raise TaskNotFoundError(task_id)
    if target_bucket_id not in board.columns:
        raise BucketNotFoundError(target_bucket_id, board.bucket_set.ids)
    if isinstance(target_index, bool) or not isinstance(target_index, int):
        raise ValidationError(f"Target index must be an integer, got {target_index!r}")
    if target_index < 0:
        raise ValidationError(f"Target index {target_index} is out of range")


def move_task(board: Board, task_id: str, target_bucket_id: str, target_index: int) -> Board:
    """
    Move a task to a bucket and position, returning a new Board.

    Args:
        board: Board to transform (left untouched)
        task_id: Task to move
        target_bucket_id: Destination bucket (may be the current bucket)
        target_index: Destination position; past-the-end appends

    Returns:
        New Board with the source and target buckets renumbered

    Raises:
        ValidationError: If the intent is invalid (see check_move)

    Notes:
        - The task is removed first, so for a same-bucket move the index
          refers to the bucket without the task
        - Moving a task onto its own position returns an equal Board
    """
    check_move(board, task_id, target_bucket_id, target_index)

    source_bucket_id = board.tasks[task_id].bucket_id
    columns = dict(board.columns)

    source = [tid for tid in columns[source_bucket_id] if tid != task_id]
    columns[source_bucket_id] = tuple(source)

    target = list(columns[target_bucket_id])
    target.insert(min(target_index, len(target)), task_id)
    columns[target_bucket_id] = tuple(target)

    tasks = dict(board.tasks)
    for bucket_id in {source_bucket_id, target_bucket_id}:
        for index, tid in enumerate(columns[bucket_id]):
            tasks[tid] = tasks[tid].placed(bucket_id, index)

    return Board(bucket_set=board.bucket_set, columns=columns, tasks=tasks)


class BoardState:
    """
    Holds the committed and optimistic snapshots of one board.

    The committed Board is the last one known to match the store. The
    optimistic Board is what the user sees while writes are pending;
    it is None when nothing is pending.
    """

    def __init__(self, bucket_set: BucketSet):
        self.bucket_set = bucket_set
        self.committed: Board = build_board(bucket_set, ())
        self.optimistic: Optional[Board] = None
        # Bumped on every load; writes computed before a load are stale
        self.generation = 0

    @property
    def current(self) -> Board:
        """Board to display and to compute the next move against."""
        return self.optimistic if self.optimistic is not None else self.committed

    @property
    def pending(self) -> bool:
        return self.optimistic is not None

    def load(self, tasks: Iterable[Task]) -> Board:
        """Replace every snapshot with a normalized authoritative one."""
        self.committed = build_board(self.bucket_set, tasks)
        self.optimistic = None
        self.generation += 1
        logger.debug("Loaded board with %d task(s)", len(self.committed))
        return self.committed

    def move_task(
        self, board: Board, task_id: str, target_bucket_id: str, target_index: int
    ) -> Board:
        """Pure move; see move_task()."""
        return move_task(board, task_id, target_bucket_id, target_index)

    def check_move(self, board: Board, task_id: str, target_bucket_id: str, target_index: int) -> None:
        check_move(board, task_id, target_bucket_id, target_index)

    def apply(self, intent: MoveIntent) -> Board:
        """Move against the current Board and record the result as optimistic."""
        board = move_task(self.current, intent.task_id, intent.bucket_id, intent.index)
        self.optimistic = board
        return board

    def promote(self, board: Board) -> None:
        """Mark a board as persisted."""
        self.committed = board
        if self.optimistic is board or self.optimistic == board:
            self.optimistic = None

    def discard(self) -> None:
        """Drop the optimistic board without touching the committed one."""
        self.optimistic = None
