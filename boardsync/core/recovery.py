"""
FILE: boardsync/core/recovery.py
PURPOSE: What happens after a commit fails
EXPORTS:
  - ConflictRecoveryPolicy (class)
DEPENDENCIES:
  - logging (stdlib)
  - boardsync.core.board (BoardState)
  - boardsync.core.gateway (PersistenceGateway)
  - boardsync.core.exceptions (PersistenceError, StaleStateError)
NOTES:
  - The reloaded snapshot is the single source of truth after a failure;
    nothing from the failed optimistic board is merged back
  - Retries are off by default and only ever cover transient failures
"""

import logging
from typing import Optional

from .board import BoardState
from .gateway import PersistenceGateway
from .models import Board
from .exceptions import PersistenceError, StaleStateError

logger = logging.getLogger(__name__)


class ConflictRecoveryPolicy:
    """
    Discard-and-reload recovery for failed commits.

    Args:
        state: BoardState of the board being recovered
        gateway: Store to reload from
        max_retries: Extra attempts for transient failures before reloading
    """

    def __init__(self, state: BoardState, gateway: PersistenceGateway, max_retries: int = 0):
        self.state = state
        self.gateway = gateway
        self.max_retries = max(0, max_retries)

    def should_retry(self, error: PersistenceError, attempt: int) -> bool:
        """
        Decide whether a failed batch may be resent as-is.

        Args:
            error: Failure of the last attempt
            attempt: Number of attempts made so far (1 after the first)

        Notes:
            - Rejections are never retried, only transport errors and timeouts
        """
        return error.transient and attempt <= self.max_retries

    async def reload(self, board_id: str) -> Board:
        """Replace every local snapshot with the store's."""
        tasks = await self.gateway.load(board_id)
        return self.state.load(tasks)

    async def recover(
        self, board_id: str, error: PersistenceError, task_id: Optional[str] = None
    ) -> PersistenceError:
        """
        Discard the optimistic board and reload from the store.

        Args:
            board_id: Board to reload
            error: The failure that triggered recovery
            task_id: Task moved by the failed commit, if known

        Returns:
            The error to surface: StaleStateError when the moved task is
            gone from the reloaded board, otherwise the original error

        Notes:
            - If the reload itself fails the store is unreachable and that
              error propagates unchanged
        """
        logger.warning("Commit for board %s failed (%s), reloading", board_id, error)
        self.state.discard()
        board = await self.reload(board_id)

        if task_id is not None and task_id not in board:
            stale = StaleStateError(f"Task {task_id} no longer exists on board {board_id}")
            stale.__cause__ = error
            return stale
        return error
