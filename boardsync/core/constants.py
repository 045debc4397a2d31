"""
FILE: boardsync/core/constants.py
PURPOSE: Built-in bucket sets and engine defaults
EXPORTS:
  - TASK_BUCKETS, HABIT_BUCKETS, CLIENT_BUCKETS: Built-in bucket sets
  - BUCKET_SETS: Bucket sets by name
  - DEFAULT_KIND: Bucket set used when none is given
  - Default timing/threshold values
DEPENDENCIES:
  - boardsync.core.models (Bucket, BucketSet)
NOTES:
  - Single source of truth for board kinds
  - Thresholds are defaults only; Config overrides them
"""

from .models import Bucket, BucketSet

TASK_BUCKETS = BucketSet(
    name="tasks",
    buckets=(
        Bucket("todo", "To Do"),
        Bucket("in_progress", "In Progress"),
        Bucket("done", "Done"),
    ),
    fallback="todo",
    completing=frozenset({"done"}),
)

HABIT_BUCKETS = BucketSet(
    name="habits",
    buckets=(
        Bucket("morning", "Morning"),
        Bucket("afternoon", "Afternoon"),
        Bucket("evening", "Evening"),
        Bucket("completed", "Completed"),
    ),
    fallback="morning",
    completing=frozenset({"completed"}),
)

CLIENT_BUCKETS = BucketSet(
    name="clients",
    buckets=(
        Bucket("in_progress", "In Production"),
        Bucket("under_review", "Awaiting Approval"),
        Bucket("edit_requested", "Edit Requested"),
        Bucket("approved", "Approved"),
        Bucket("posted", "Posted/Done"),
    ),
    fallback="in_progress",
    completing=frozenset({"approved", "posted"}),
)

BUCKET_SETS = {
    bucket_set.name: bucket_set
    for bucket_set in (TASK_BUCKETS, HABIT_BUCKETS, CLIENT_BUCKETS)
}
DEFAULT_KIND = "tasks"

# Engine defaults
DEFAULT_COMMIT_TIMEOUT = 5.0  # seconds
DEFAULT_COMMIT_RETRIES = 0

# Drag activation defaults
DEFAULT_POINTER_DISTANCE = 8.0  # px of travel before a press becomes a drag
DEFAULT_TOUCH_DELAY = 0.25  # seconds of hold before a touch becomes a drag
DEFAULT_TOUCH_TOLERANCE = 5.0  # px of travel allowed during the hold
