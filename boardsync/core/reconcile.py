"""
FILE: boardsync/core/reconcile.py
PURPOSE: Diff board snapshots into minimal writes and commit them in order
EXPORTS:
  - diff(committed, optimistic) -> List[Update]
  - CommitPhase (enum)
  - CommitResult (dataclass)
  - ReconciliationEngine (class)
DEPENDENCIES:
  - asyncio (stdlib)
  - logging (stdlib)
  - boardsync.core.board (BoardState)
  - boardsync.core.gateway (PersistenceGateway)
  - boardsync.core.recovery (ConflictRecoveryPolicy)
  - boardsync.core.exceptions (PersistenceError, CommitTimeoutError, StaleStateError)
NOTES:
  - A task is written iff its bucket or order index changed
  - Commits for one board run one at a time, in the order they were submitted
  - Each diff is taken against the previously submitted board, not the
    committed one, so queued moves do not resend each other's writes
  - A failed commit is never resent after a reload; moves queued behind
    it are dropped because they were computed from a discarded board
  - A commit that succeeds after a reload leaves the reloaded board in place
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .board import BoardState
from .gateway import PersistenceGateway
from .models import Board, Update
from .recovery import ConflictRecoveryPolicy
from .constants import DEFAULT_COMMIT_TIMEOUT
from .exceptions import CommitTimeoutError, PersistenceError, StaleStateError

logger = logging.getLogger(__name__)


def diff(committed: Board, optimistic: Board) -> List[Update]:
    """
    Compute the placement writes that turn one board into another.

    Args:
        committed: Board the store is assumed to hold
        optimistic: Board to persist

    Returns:
        Updates ordered by the optimistic board's bucket order, then position

    Raises:
        StaleStateError: If the boards do not hold the same tasks
    """
    if committed.tasks.keys() != optimistic.tasks.keys():
        missing = sorted(committed.tasks.keys() ^ optimistic.tasks.keys())
        raise StaleStateError(
            f"Boards disagree on which tasks exist: {', '.join(missing)}"
        )

    updates = []
    for task in optimistic:
        before = committed.tasks[task.id]
        if before.bucket_id != task.bucket_id or before.order_index != task.order_index:
            updates.append(Update(task.id, task.bucket_id, task.order_index))
    return updates


class CommitPhase(Enum):
    IDLE = "idle"
    COMMITTING = "committing"
    COMMITTED = "committed"
    REVERTING = "reverting"


@dataclass
class CommitResult:
    """Outcome of a successful submit."""

    board: Board
    updates: List[Update] = field(default_factory=list)
    attempts: int = 0


class ReconciliationEngine:
    """
    Serializes commits of optimistic boards for one board instance.

    Args:
        board_id: Board the engine commits to
        state: BoardState holding the committed/optimistic snapshots
        gateway: Store to commit to
        recovery: Policy run when a commit fails
        timeout: Seconds before a commit counts as failed
    """

    def __init__(
        self,
        board_id: str,
        state: BoardState,
        gateway: PersistenceGateway,
        recovery: ConflictRecoveryPolicy,
        timeout: float = DEFAULT_COMMIT_TIMEOUT,
    ):
        self.board_id = board_id
        self.state = state
        self.gateway = gateway
        self.recovery = recovery
        self.timeout = timeout
        self.phase = CommitPhase.IDLE
        # asyncio.Lock wakes waiters first-in first-out
        self._lock = asyncio.Lock()
        self._last_submitted: Optional[Board] = None
        self._last_generation = -1
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        """Number of submitted commits that have not resolved yet."""
        return self._in_flight

    def _base(self) -> Board:
        if self._last_submitted is not None and self._last_generation == self.state.generation:
            return self._last_submitted
        return self.state.committed

    async def submit(self, board: Board, task_id: Optional[str] = None) -> CommitResult:
        """
        Persist an optimistic board.

        Args:
            board: Optimistic board produced by a move
            task_id: Task the move was about (used to detect staleness)

        Returns:
            CommitResult with the updates that were written

        Raises:
            StaleStateError: If the board was reloaded before this commit's turn
            PersistenceError: If the commit failed; the board has been reloaded

        Notes:
            - The diff is computed synchronously at call time
            - Empty diffs are promoted without touching the store
        """
        generation = self.state.generation
        updates = diff(self._base(), board)
        self._last_submitted = board
        self._last_generation = generation

        self._in_flight += 1
        try:
            async with self._lock:
                if self.state.generation != generation:
                    logger.info("Dropping move of %s on board %s: board was reloaded",
                                task_id, self.board_id)
                    raise StaleStateError(
                        f"Board {self.board_id} was reloaded before this move was saved"
                    )
                if not updates:
                    self.state.promote(board)
                    return CommitResult(board=board)
                return await self._commit(board, updates, task_id, generation)
        finally:
            self._in_flight -= 1

    async def _commit(
        self, board: Board, updates: List[Update], task_id: Optional[str], generation: int
    ) -> CommitResult:
        self.phase = CommitPhase.COMMITTING
        attempt = 0
        while True:
            attempt += 1
            try:
                await asyncio.wait_for(
                    self.gateway.commit(self.board_id, updates), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                error = CommitTimeoutError(self.timeout)
            except PersistenceError as e:
                error = e
            else:
                if self.state.generation == generation:
                    self.state.promote(board)
                else:
                    # A reload landed mid-commit; its snapshot stays authoritative
                    logger.info("Board %s was reloaded during a commit, keeping the reloaded board",
                                self.board_id)
                self.phase = CommitPhase.COMMITTED
                logger.info("Committed %d update(s) to board %s", len(updates), self.board_id)
                return CommitResult(board=board, updates=updates, attempts=attempt)

            if not self.recovery.should_retry(error, attempt):
                break
            logger.info("Retrying commit to board %s after: %s", self.board_id, error)

        self.phase = CommitPhase.REVERTING
        try:
            surfaced = await self.recovery.recover(self.board_id, error, task_id)
        finally:
            self.phase = CommitPhase.IDLE
        raise surfaced
