"""
Tests for SQLite storage, the SQLite gateway, and the service layer on top.

Every test runs against a temporary database.
"""

import asyncio
import threading
import time

import pytest

from boardsync.core import repository, service
from boardsync.core.config import Config
from boardsync.core.exceptions import (
    BoardNotFoundError,
    BucketNotFoundError,
    CommitRejectedError,
    CommitTimeoutError,
    InvalidInputError,
    PersistenceError,
    TaskNotFoundError,
)
from boardsync.core.models import Update


@pytest.fixture(autouse=True)
def isolated_db(temp_db):
    yield temp_db


@pytest.fixture
def board():
    return repository.create_board("Work", "tasks")


def placement(board_id):
    return {
        (t.id): (t.bucket_id, t.order_index)
        for t in repository.list_tasks(board_id)
    }


# --- Boards ---


def test_create_and_list_boards():
    work = repository.create_board("Work", "tasks")
    acme = repository.create_board("Acme", "clients")

    boards = repository.list_boards()

    assert [b.id for b in boards] == [work.id, acme.id]
    assert acme.kind == "clients"
    assert repository.get_board_by_name("work").id == work.id


def test_board_name_must_be_unique(board):
    with pytest.raises(InvalidInputError):
        repository.create_board("work", "habits")


def test_board_kind_must_be_known():
    with pytest.raises(InvalidInputError):
        repository.create_board("Odd", "sprints")


def test_board_name_cannot_be_empty():
    with pytest.raises(InvalidInputError):
        repository.create_board("   ", "tasks")


# --- Tasks ---


def test_new_tasks_append_to_bucket(board):
    t1 = repository.create_task(board.id, "First")
    t2 = repository.create_task(board.id, "Second")
    t3 = repository.create_task(board.id, "Elsewhere", "in_progress")

    assert (t1.bucket_id, t1.order_index) == ("todo", 0)
    assert (t2.bucket_id, t2.order_index) == ("todo", 1)
    assert (t3.bucket_id, t3.order_index) == ("in_progress", 0)
    assert t1.title == "First"


def test_task_in_completing_bucket_is_completed(board):
    task = repository.create_task(board.id, "Shipped", "done")

    assert task.payload["is_completed"] is True
    assert task.payload["completed_at"] is not None


def test_create_task_validates_input(board):
    with pytest.raises(InvalidInputError):
        repository.create_task(board.id, "  ")
    with pytest.raises(BucketNotFoundError):
        repository.create_task(board.id, "Task", "someday")
    with pytest.raises(BoardNotFoundError):
        repository.create_task("missing", "Task")


def test_delete_task_closes_gap(board):
    t1 = repository.create_task(board.id, "One")
    t2 = repository.create_task(board.id, "Two")
    t3 = repository.create_task(board.id, "Three")

    repository.delete_task(t2.id)

    assert placement(board.id) == {t1.id: ("todo", 0), t3.id: ("todo", 1)}


def test_delete_unknown_task():
    with pytest.raises(TaskNotFoundError):
        repository.delete_task("nope")


# --- Batched updates ---


def test_apply_updates_is_all_or_nothing(board):
    t1 = repository.create_task(board.id, "One")
    t2 = repository.create_task(board.id, "Two")
    before = placement(board.id)

    with pytest.raises(CommitRejectedError):
        repository.apply_updates(board.id, [
            Update(t2.id, "todo", 0),
            Update("ghost", "todo", 1),
        ])

    assert placement(board.id) == before


def test_apply_updates_rejects_foreign_task(board):
    other = repository.create_board("Other", "tasks")
    foreign = repository.create_task(other.id, "Not yours")

    with pytest.raises(CommitRejectedError):
        repository.apply_updates(board.id, [Update(foreign.id, "done", 0)])


def test_apply_updates_rejects_unknown_bucket(board):
    t1 = repository.create_task(board.id, "One")

    with pytest.raises(CommitRejectedError):
        repository.apply_updates(board.id, [Update(t1.id, "morning", 0)])


def test_completion_follows_bucket(board):
    task = repository.create_task(board.id, "One")

    repository.apply_updates(board.id, [Update(task.id, "done", 0)])
    done = repository.get_task(task.id)
    assert done.payload["is_completed"] is True
    completed_at = done.payload["completed_at"]

    # Reordering inside the completing bucket keeps the original timestamp
    repository.apply_updates(board.id, [Update(task.id, "done", 0)])
    assert repository.get_task(task.id).payload["completed_at"] == completed_at

    repository.apply_updates(board.id, [Update(task.id, "todo", 0)])
    reopened = repository.get_task(task.id)
    assert reopened.payload["is_completed"] is False
    assert reopened.payload["completed_at"] is None


# --- Gateway and service ---


def test_gateway_round_trip(board):
    t1 = repository.create_task(board.id, "One")
    gateway = repository.SqliteGateway()

    tasks = asyncio.run(gateway.load(board.id))
    assert [t.id for t in tasks] == [t1.id]

    asyncio.run(gateway.commit(board.id, [Update(t1.id, "in_progress", 0)]))
    assert placement(board.id) == {t1.id: ("in_progress", 0)}


def test_gateway_load_unknown_board():
    with pytest.raises(BoardNotFoundError):
        asyncio.run(repository.SqliteGateway().load("missing"))


def test_gateway_commit_unknown_board_is_rejected():
    with pytest.raises(CommitRejectedError):
        asyncio.run(repository.SqliteGateway().commit("missing", []))


def test_service_move_persists_minimal_writes(board):
    t1 = service.add_task("Work", "One")
    t2 = service.add_task("Work", "Two")
    t3 = service.add_task("Work", "Three")

    result = asyncio.run(service.move_task("Work", t3.id, "To Do", 0))

    assert [u.task_id for u in result.updates] == [t3.id, t1.id, t2.id]
    assert placement(board.id) == {
        t3.id: ("todo", 0),
        t1.id: ("todo", 1),
        t2.id: ("todo", 2),
    }


def test_service_move_defaults_to_end_of_bucket(board):
    t1 = service.add_task("Work", "One")
    t2 = service.add_task("Work", "Two", "in progress")

    result = asyncio.run(service.move_task("Work", t1.id, "in_progress"))

    assert list(result.board.columns["in_progress"]) == [t2.id, t1.id]
    assert result.updates == [Update(t1.id, "in_progress", 1)]


def test_service_move_unknown_bucket(board):
    t1 = service.add_task("Work", "One")

    with pytest.raises(BucketNotFoundError):
        asyncio.run(service.move_task("Work", t1.id, "someday"))


def test_service_unknown_board():
    with pytest.raises(InvalidInputError):
        service.find_board_or_raise("Nowhere")


def test_session_reload_sees_external_changes(board):
    t1 = service.add_task("Work", "One")
    session = asyncio.run(service.open_session("Work"))
    assert len(session.board) == 1

    t2 = service.add_task("Work", "Two")
    board_after = asyncio.run(session.reload())

    assert list(board_after.columns["todo"]) == [t1.id, t2.id]


def test_abandoned_updates_are_rolled_back(board):
    t1 = repository.create_task(board.id, "One")
    abandoned = threading.Event()
    abandoned.set()

    with pytest.raises(PersistenceError):
        repository.apply_updates(board.id, [Update(t1.id, "done", 0)], abandoned)

    assert placement(board.id) == {t1.id: ("todo", 0)}
    assert repository.get_task(t1.id).payload["is_completed"] is False


def test_timed_out_commit_leaves_store_and_board_in_agreement(board, monkeypatch):
    task = service.add_task("Work", "One")
    original = repository.apply_updates

    def slow_apply(board_id, updates, abandoned=None):
        time.sleep(0.3)
        original(board_id, updates, abandoned)

    monkeypatch.setattr(repository, "apply_updates", slow_apply)

    async def scenario():
        session = await service.open_session("Work", Config(commit_timeout=0.05))
        with pytest.raises(CommitTimeoutError):
            await session.move(task.id, "done", 0)
        return session

    session = asyncio.run(scenario())

    assert session.board.tasks[task.id].bucket_id == "todo"
    assert placement(board.id) == {task.id: ("todo", 0)}


def test_service_move_returns_stored_completion(board):
    task = service.add_task("Work", "One")

    result = asyncio.run(service.move_task("Work", task.id, "done"))

    assert result.board.tasks[task.id].payload["is_completed"] is True
    assert result.board.tasks[task.id].payload["completed_at"] is not None
