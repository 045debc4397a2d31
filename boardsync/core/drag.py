"""
FILE: boardsync/core/drag.py
PURPOSE: Turn pointer/touch gestures into move intents
EXPORTS:
  - Point, Rect (geometry)
  - BoardLayout (dataclass)
  - InputModality (enum)
  - DragPhase (enum)
  - resolve_drop_target(layout, board, point) -> Optional[Tuple[str, int]]
  - DragController (class)
DEPENDENCIES:
  - math (stdlib)
  - logging (stdlib)
  - boardsync.core.board (BoardState)
  - boardsync.core.models (Board, MoveIntent)
  - boardsync.core.exceptions (ValidationError)
NOTES:
  - One gesture at a time per board; presses during a gesture are refused
  - The controller only reads the board and layout, it never changes them
  - Event timestamps are passed in (seconds), so the machine is deterministic
  - Pointer presses become drags after travelling a minimum distance;
    touch presses after a hold, and travelling too far first is a scroll
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, NamedTuple, Optional, Tuple

from .board import BoardState
from .models import Board, MoveIntent
from .constants import (
    DEFAULT_POINTER_DISTANCE,
    DEFAULT_TOUCH_DELAY,
    DEFAULT_TOUCH_TOLERANCE,
)
from .exceptions import ValidationError

logger = logging.getLogger(__name__)


class Point(NamedTuple):
    x: float
    y: float

    def distance(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


class Rect(NamedTuple):
    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    @property
    def corners(self) -> Tuple[Point, ...]:
        right = self.x + self.width
        return (
            Point(self.x, self.y),
            Point(right, self.y),
            Point(self.x, self.bottom),
            Point(right, self.bottom),
        )

    def contains(self, point: Point) -> bool:
        return (self.x <= point.x <= self.x + self.width
                and self.y <= point.y <= self.bottom)


@dataclass
class BoardLayout:
    """On-screen geometry: drop region per bucket, rect per task."""

    buckets: Dict[str, Rect] = field(default_factory=dict)
    items: Dict[str, Rect] = field(default_factory=dict)


class InputModality(Enum):
    POINTER = "pointer"
    TOUCH = "touch"


class DragPhase(Enum):
    IDLE = "idle"
    PENDING = "pending"
    DRAGGING = "dragging"


def _closeness(rect: Rect, point: Point) -> Tuple[float, float]:
    """Sort key: nearest corner first, then nearest center."""
    return (
        min(corner.distance(point) for corner in rect.corners),
        rect.center.distance(point),
    )


def resolve_drop_target(layout: BoardLayout, board: Board, point: Point) -> Optional[Tuple[str, int]]:
    """
    Find the (bucket_id, index) a pointer position would drop onto.

    Args:
        layout: Current geometry
        board: Board the geometry was drawn from
        point: Pointer position

    Returns:
        (bucket_id, index), or None when the point is outside every bucket

    Notes:
        - The bucket is the first one (in bucket order) whose region holds the point
        - The index is the position of the closest laid-out task in that bucket
        - Below every task of the bucket, or in an empty bucket, the
          index is the end of the bucket
    """
    bucket_id = next(
        (bid for bid in board.bucket_set.ids
         if bid in layout.buckets and layout.buckets[bid].contains(point)),
        None,
    )
    if bucket_id is None:
        return None

    column = board.columns[bucket_id]
    placed = [(tid, layout.items[tid]) for tid in column if tid in layout.items]
    if not placed:
        return bucket_id, len(column)

    if all(point.y > rect.bottom for _, rect in placed):
        return bucket_id, len(column)

    nearest, _ = min(placed, key=lambda item: _closeness(item[1], point))
    return bucket_id, column.index(nearest)


@dataclass
class DragSession:
    task_id: str
    modality: InputModality
    origin: Point
    started_at: float
    candidate: Optional[Tuple[str, int]] = None


class DragController:
    """
    Gesture state machine for one board: IDLE -> PENDING -> DRAGGING -> IDLE.

    Args:
        state: BoardState to read the current board from
        layout: Geometry used for drop-target resolution
        pointer_distance: Travel (px) that activates a pointer drag
        touch_delay: Hold (s) that activates a touch drag
        touch_tolerance: Travel (px) allowed during the touch hold
        on_intent: Called with every MoveIntent the controller emits
    """

    def __init__(
        self,
        state: BoardState,
        layout: Optional[BoardLayout] = None,
        pointer_distance: float = DEFAULT_POINTER_DISTANCE,
        touch_delay: float = DEFAULT_TOUCH_DELAY,
        touch_tolerance: float = DEFAULT_TOUCH_TOLERANCE,
        on_intent: Optional[Callable[[MoveIntent], None]] = None,
    ):
        self.state = state
        self.layout = layout or BoardLayout()
        self.pointer_distance = pointer_distance
        self.touch_delay = touch_delay
        self.touch_tolerance = touch_tolerance
        self.on_intent = on_intent
        self.phase = DragPhase.IDLE
        self._session: Optional[DragSession] = None

    @property
    def active_task_id(self) -> Optional[str]:
        return self._session.task_id if self._session else None

    @property
    def candidate(self) -> Optional[Tuple[str, int]]:
        return self._session.candidate if self._session else None

    def _reset(self) -> None:
        self._session = None
        self.phase = DragPhase.IDLE

    def _activate(self, point: Point) -> None:
        self.phase = DragPhase.DRAGGING
        logger.debug("Drag started for task %s", self._session.task_id)
        self._update_candidate(point)

    def _update_candidate(self, point: Point) -> None:
        self._session.candidate = resolve_drop_target(self.layout, self.state.current, point)

    def press(
        self,
        task_id: str,
        point: Point,
        modality: InputModality = InputModality.POINTER,
        at: float = 0.0,
    ) -> bool:
        """
        Begin a gesture on a task.

        Returns:
            True if a gesture started, False if one is already running or
            the task is not on the board
        """
        if self.phase is not DragPhase.IDLE:
            logger.debug("Ignoring press on %s: gesture already in progress", task_id)
            return False
        if task_id not in self.state.current:
            return False

        self._session = DragSession(task_id, modality, Point(*point), at)
        self.phase = DragPhase.PENDING
        return True

    def tick(self, at: float) -> DragPhase:
        """Advance time without movement; activates a held touch."""
        session = self._session
        if (self.phase is DragPhase.PENDING
                and session.modality is InputModality.TOUCH
                and at - session.started_at >= self.touch_delay):
            self._activate(session.origin)
        return self.phase

    def move(self, point: Point, at: float = 0.0) -> Optional[Tuple[str, int]]:
        """
        Track pointer movement.

        Returns:
            The current candidate drop target, if any
        """
        point = Point(*point)
        session = self._session

        if self.phase is DragPhase.PENDING:
            travelled = session.origin.distance(point)
            if session.modality is InputModality.POINTER:
                if travelled >= self.pointer_distance:
                    self._activate(point)
            elif travelled > self.touch_tolerance:
                # Moved before the hold completed: this is a scroll
                self._reset()
            elif at - session.started_at >= self.touch_delay:
                self._activate(point)
        elif self.phase is DragPhase.DRAGGING:
            self._update_candidate(point)

        return self.candidate

    def release(self, point: Point, at: float = 0.0) -> Optional[MoveIntent]:
        """
        Finish the gesture.

        Returns:
            The MoveIntent for a valid drop, None for a click, a drop
            outside every bucket, or an intent the board rejects
        """
        if self.phase is not DragPhase.DRAGGING:
            self._reset()
            return None

        self._update_candidate(Point(*point))
        session = self._session
        self._reset()

        if session.candidate is None:
            logger.debug("Drag of %s released outside any bucket", session.task_id)
            return None

        bucket_id, index = session.candidate
        intent = MoveIntent(session.task_id, bucket_id, index)
        try:
            self.state.check_move(self.state.current, intent.task_id, intent.bucket_id, intent.index)
        except ValidationError as e:
            logger.debug("Discarding drop of %s: %s", session.task_id, e)
            return None

        if self.on_intent is not None:
            self.on_intent(intent)
        return intent

    def cancel(self) -> None:
        """Abort any gesture; nothing is emitted."""
        self._reset()
