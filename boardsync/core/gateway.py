"""
FILE: boardsync/core/gateway.py
PURPOSE: Abstract contract for loading and committing board placements
EXPORTS:
  - PersistenceGateway (abstract class)
DEPENDENCIES:
  - abc (stdlib)
  - boardsync.core.models (Task, Update)
NOTES:
  - load() and commit() are the only suspension points of the engine
  - commit() must be all-or-nothing: a partially applied batch would
    leave gaps or duplicates in a bucket's order indices
  - Failures are reported by raising PersistenceError subclasses
  - A cancelled commit() must not return until its write has either
    rolled back or landed; the engine reloads right after
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from .models import Task, Update


class PersistenceGateway(ABC):
    """Authoritative store for task placement."""

    @abstractmethod
    async def load(self, board_id: str) -> List[Task]:
        """Return the full authoritative snapshot of a board."""

    @abstractmethod
    async def commit(self, board_id: str, updates: Sequence[Update]) -> None:
        """
        Apply a batch of placement updates atomically.

        Raises:
            PersistenceError: If the batch was not applied (nothing was)
        """
