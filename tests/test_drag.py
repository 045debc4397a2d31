"""
Tests for the drag controller: activation, drop-target resolution, intents.
"""

import pytest

from boardsync.core.board import BoardState, build_board
from boardsync.core.drag import (
    BoardLayout,
    DragController,
    DragPhase,
    InputModality,
    Point,
    Rect,
    resolve_drop_target,
)
from boardsync.core.models import MoveIntent

from fakes import AB_BUCKETS, make_tasks

# Column A holds t1..t3 stacked vertically, B and C are empty
LAYOUT = BoardLayout(
    buckets={
        "A": Rect(0, 0, 100, 300),
        "B": Rect(120, 0, 100, 300),
        "C": Rect(240, 0, 100, 300),
    },
    items={
        "t1": Rect(10, 10, 80, 40),
        "t2": Rect(10, 60, 80, 40),
        "t3": Rect(10, 110, 80, 40),
    },
)


@pytest.fixture
def state():
    state = BoardState(AB_BUCKETS)
    state.load(make_tasks({"A": ["t1", "t2", "t3"]}))
    return state


@pytest.fixture
def intents():
    return []


@pytest.fixture
def controller(state, intents):
    return DragController(
        state,
        LAYOUT,
        pointer_distance=8,
        touch_delay=0.25,
        touch_tolerance=5,
        on_intent=intents.append,
    )


# --- Drop target resolution ---


def test_point_outside_every_bucket_has_no_target(state):
    assert resolve_drop_target(LAYOUT, state.current, Point(110, 50)) is None
    assert resolve_drop_target(LAYOUT, state.current, Point(50, 400)) is None


def test_empty_bucket_targets_index_zero(state):
    assert resolve_drop_target(LAYOUT, state.current, Point(170, 150)) == ("B", 0)


def test_nearest_task_gives_index(state):
    assert resolve_drop_target(LAYOUT, state.current, Point(50, 20)) == ("A", 0)
    assert resolve_drop_target(LAYOUT, state.current, Point(50, 75)) == ("A", 1)
    assert resolve_drop_target(LAYOUT, state.current, Point(50, 140)) == ("A", 2)


def test_below_last_task_targets_end(state):
    assert resolve_drop_target(LAYOUT, state.current, Point(50, 250)) == ("A", 3)


def test_corner_tie_broken_by_center():
    """Both rects have a corner ~7.07 away; the one whose center is closer wins."""
    board = build_board(AB_BUCKETS, make_tasks({"A": ["y", "x"]}))
    layout = BoardLayout(
        buckets={"A": Rect(0, 0, 100, 100)},
        items={"x": Rect(0, 0, 10, 10), "y": Rect(0, 20, 10, 30)},
    )

    assert resolve_drop_target(layout, board, Point(5, 15)) == ("A", 1)


# --- Pointer gestures ---


def test_short_pointer_movement_is_a_click(controller, intents):
    assert controller.press("t1", Point(50, 30))
    controller.move(Point(53, 32))

    assert controller.phase is DragPhase.PENDING
    assert controller.release(Point(53, 32)) is None
    assert controller.phase is DragPhase.IDLE
    assert intents == []


def test_pointer_drag_to_other_bucket(controller, intents):
    controller.press("t2", Point(50, 80))
    candidate = controller.move(Point(170, 50))

    assert controller.phase is DragPhase.DRAGGING
    assert controller.active_task_id == "t2"
    assert candidate == ("B", 0)

    intent = controller.release(Point(170, 50))

    assert intent == MoveIntent("t2", "B", 0)
    assert intents == [intent]
    assert controller.phase is DragPhase.IDLE


def test_pointer_drag_within_bucket(controller, state):
    controller.press("t3", Point(50, 130))
    controller.move(Point(50, 20))
    intent = controller.release(Point(50, 20))

    assert intent == MoveIntent("t3", "A", 0)
    board = state.apply(intent)
    assert list(board.columns["A"]) == ["t3", "t1", "t2"]


def test_candidate_follows_pointer(controller):
    controller.press("t1", Point(50, 30))
    controller.move(Point(170, 50))
    assert controller.candidate == ("B", 0)

    controller.move(Point(110, 50))
    assert controller.candidate is None

    controller.move(Point(50, 140))
    assert controller.candidate == ("A", 2)


def test_release_outside_buckets_cancels(controller, intents, state):
    controller.press("t1", Point(50, 30))
    controller.move(Point(170, 50))

    assert controller.release(Point(500, 500)) is None
    assert controller.phase is DragPhase.IDLE
    assert intents == []
    assert not state.pending


def test_cancel_emits_nothing(controller, intents):
    controller.press("t1", Point(50, 30))
    controller.move(Point(170, 50))
    controller.cancel()

    assert controller.phase is DragPhase.IDLE
    assert controller.active_task_id is None
    assert intents == []


def test_only_one_gesture_at_a_time(controller):
    assert controller.press("t1", Point(50, 30))
    assert not controller.press("t2", Point(50, 80))

    controller.move(Point(170, 50))
    assert not controller.press("t2", Point(50, 80))
    assert controller.active_task_id == "t1"


def test_press_on_unknown_task_is_refused(controller):
    assert not controller.press("ghost", Point(50, 30))
    assert controller.phase is DragPhase.IDLE


def test_drop_rejected_when_task_disappeared(controller, state, intents):
    controller.press("t1", Point(50, 30))
    controller.move(Point(170, 50))
    # Forms deleted t1 while the drag was in progress
    state.load(make_tasks({"A": ["t2", "t3"]}))

    assert controller.release(Point(170, 50)) is None
    assert intents == []


# --- Touch gestures ---


def test_touch_activates_after_hold(controller):
    controller.press("t2", Point(50, 80), InputModality.TOUCH, at=0.0)
    controller.move(Point(52, 81), at=0.1)
    assert controller.phase is DragPhase.PENDING

    assert controller.tick(0.3) is DragPhase.DRAGGING
    controller.move(Point(170, 50), at=0.4)

    assert controller.release(Point(170, 50), at=0.5) == MoveIntent("t2", "B", 0)


def test_touch_moving_early_is_a_scroll(controller, intents):
    controller.press("t2", Point(50, 80), InputModality.TOUCH, at=0.0)
    controller.move(Point(50, 100), at=0.05)

    assert controller.phase is DragPhase.IDLE
    assert controller.release(Point(50, 100), at=0.1) is None
    assert intents == []


def test_touch_hold_then_move_within_tolerance_activates(controller):
    controller.press("t1", Point(50, 30), InputModality.TOUCH, at=0.0)
    controller.move(Point(52, 31), at=0.3)

    assert controller.phase is DragPhase.DRAGGING


def test_touch_release_before_hold_is_a_tap(controller, intents):
    controller.press("t1", Point(50, 30), InputModality.TOUCH, at=0.0)

    assert controller.release(Point(50, 30), at=0.1) is None
    assert controller.phase is DragPhase.IDLE
    assert intents == []
