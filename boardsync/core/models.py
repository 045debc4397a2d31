"""
FILE: boardsync/core/models.py
PURPOSE: Domain models for tasks, buckets, boards, and board updates
EXPORTS:
  - Task (dataclass)
  - Bucket (dataclass)
  - BucketSet (dataclass)
  - Board (dataclass)
  - Update (dataclass)
  - MoveIntent (dataclass)
  - BoardRecord (dataclass)
DEPENDENCIES:
  - dataclasses (stdlib)
  - json (stdlib)
  - typing (stdlib)
NOTES:
  - All models are frozen: a Board is a value, never patched in place
  - Task.payload carries form-owned fields (title, due date, tags...)
    and is never looked at by the ordering logic
  - Task and Update have to_json() for serialization
"""

from dataclasses import dataclass, asdict, field, replace
from typing import Any, Dict, FrozenSet, Iterator, Optional, Tuple
import json


@dataclass(frozen=True)
class Task:
    """A work item placed in a bucket at a position."""

    id: str
    bucket_id: str
    order_index: int = 0
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.payload.get("title", "")

    def placed(self, bucket_id: str, order_index: int) -> "Task":
        """Return a copy of this task at a new position."""
        if bucket_id == self.bucket_id and order_index == self.order_index:
            return self
        return replace(self, bucket_id=bucket_id, order_index=order_index)

    @classmethod
    def from_row(cls, row) -> "Task":
        """Convert SQLite row to Task object."""
        payload = json.loads(row["payload"]) if row["payload"] else {}
        payload["title"] = row["title"]
        payload["is_completed"] = bool(row["is_completed"])
        payload["completed_at"] = row["completed_at"]
        return cls(
            id=row["id"],
            bucket_id=row["bucket_id"],
            order_index=row["order_index"],
            payload=payload,
        )

    def to_json(self) -> str:
        """Serialize task to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass(frozen=True)
class Bucket:
    """A named column of a board (e.g., a kanban status)."""

    id: str
    label: str


@dataclass(frozen=True)
class BucketSet:
    """
    The ordered buckets a board is parameterized by.

    Attributes:
        name: Board kind ('tasks', 'habits', 'clients')
        buckets: Buckets in display order
        fallback: Bucket that receives tasks whose bucket is not in the set
        completing: Buckets whose membership marks a task completed
    """

    name: str
    buckets: Tuple[Bucket, ...]
    fallback: Optional[str] = None
    completing: FrozenSet[str] = frozenset()

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(bucket.id for bucket in self.buckets)

    @property
    def fallback_id(self) -> str:
        return self.fallback or self.buckets[0].id

    def __contains__(self, bucket_id: str) -> bool:
        return any(bucket.id == bucket_id for bucket in self.buckets)

    def label(self, bucket_id: str) -> str:
        for bucket in self.buckets:
            if bucket.id == bucket_id:
                return bucket.label
        return bucket_id

    def resolve(self, name: str) -> Optional[str]:
        """Find a bucket id by id or label (case-insensitive)."""
        wanted = name.strip().lower()
        for bucket in self.buckets:
            if wanted in (bucket.id.lower(), bucket.label.lower()):
                return bucket.id
        return None


@dataclass(frozen=True)
class Board:
    """
    Snapshot of a board: ordered task ids per bucket plus a task lookup.

    Every bucket of the bucket set has an entry in `columns`, empty or not.
    Boards compare by value, so two snapshots with the same placement of
    the same tasks are equal.
    """

    bucket_set: BucketSet
    columns: Dict[str, Tuple[str, ...]]
    tasks: Dict[str, Task]

    def __contains__(self, task_id: str) -> bool:
        return task_id in self.tasks

    def __iter__(self) -> Iterator[Task]:
        """Iterate tasks in bucket order, then position."""
        for bucket_id in self.bucket_set.ids:
            for task_id in self.columns[bucket_id]:
                yield self.tasks[task_id]

    def __len__(self) -> int:
        return len(self.tasks)

    def column(self, bucket_id: str) -> Tuple[Task, ...]:
        return tuple(self.tasks[task_id] for task_id in self.columns[bucket_id])

    def locate(self, task_id: str) -> Tuple[str, int]:
        """Return (bucket_id, order_index) of a task."""
        task = self.tasks[task_id]
        return task.bucket_id, task.order_index


@dataclass(frozen=True)
class Update:
    """A single persisted placement change."""

    task_id: str
    bucket_id: str
    order_index: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize update to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


@dataclass(frozen=True)
class MoveIntent:
    """The (task, bucket, index) a finished drag gesture resolved to."""

    task_id: str
    bucket_id: str
    index: int


@dataclass(frozen=True)
class BoardRecord:
    """A stored board: its identity and which bucket set it uses."""

    id: str
    name: str
    kind: str
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "BoardRecord":
        """Convert SQLite row to BoardRecord object."""
        return cls(
            id=row["id"],
            name=row["name"],
            kind=row["kind"],
            created_at=row["created_at"],
        )

    def to_json(self) -> str:
        """Serialize board record to JSON string."""
        return json.dumps(asdict(self), indent=2)
