"""
FILE: boardsync/core/exceptions.py
PURPOSE: Custom exception classes for error handling
EXPORTS:
  - BoardSyncError (base exception)
  - ValidationError, TaskNotFoundError, BucketNotFoundError
  - BoardNotFoundError, InvalidInputError
  - PersistenceError, CommitRejectedError, TransportError,
    CommitTimeoutError, StaleStateError
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - All exceptions inherit from BoardSyncError for easy catching
  - ValidationError is local: a bad move intent changes nothing
  - PersistenceError is always followed by a reload of the board
  - Service layer raises these, UI layers catch and display
"""


class BoardSyncError(Exception):
    """Base exception for all boardsync errors."""
    pass


class ValidationError(BoardSyncError):
    """Move intent references an unknown task/bucket or an invalid index."""

    def __init__(self, message: str):
        super().__init__(message)


class TaskNotFoundError(ValidationError):
    """Task with given ID is not on the board."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class BucketNotFoundError(ValidationError):
    """Bucket with given ID is not part of the board's bucket set."""

    def __init__(self, bucket_id: str, available=()):
        self.bucket_id = bucket_id
        message = f"Bucket '{bucket_id}' not found"
        if available:
            message += f". Available buckets: {', '.join(available)}"
        super().__init__(message)


class BoardNotFoundError(BoardSyncError):
    """Board with given ID doesn't exist."""

    def __init__(self, board_id: str):
        self.board_id = board_id
        super().__init__(f"Board {board_id} not found")


class PersistenceError(BoardSyncError):
    """A commit to the persistence gateway failed."""

    transient = False


class CommitRejectedError(PersistenceError):
    """The store refused the batch (unknown task, constraint failure)."""
    pass


class TransportError(PersistenceError):
    """The store could not be reached or the call broke mid-flight."""

    transient = True


class CommitTimeoutError(PersistenceError):
    """A commit did not resolve within the configured interval."""

    transient = True

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Commit did not complete within {timeout:g}s")


class StaleStateError(PersistenceError):
    """A pending move no longer matches the authoritative board."""
    pass


class InvalidInputError(BoardSyncError):
    """Input validation failed (board names, kinds)."""

    def __init__(self, message: str):
        super().__init__(message)
