"""
Test suite for the command-line interface.

Runs `python -m boardsync.cli.main` in a subprocess against a temporary
data directory (BOARDSYNC_HOME).
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def run_cli(tmp_path):
    """Run the CLI with its own data directory."""
    env = dict(os.environ, BOARDSYNC_HOME=str(tmp_path), COLUMNS="200")

    def run(*args):
        return subprocess.run(
            [sys.executable, "-m", "boardsync.cli.main", *args],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=PROJECT_ROOT,
            env=env,
        )

    return run


def add_task(run_cli, board, title, *extra):
    result = run_cli("add", board, title, "--json", *extra)
    assert result.returncode == 0, result.stderr
    return json.loads(result.stdout)


def test_version(run_cli):
    result = run_cli("version")

    assert result.returncode == 0
    assert "boardsync v" in result.stdout


def test_board_create_and_ls(run_cli):
    result = run_cli("board", "create", "Acme", "--kind", "clients", "--json")
    assert result.returncode == 0, result.stderr
    created = json.loads(result.stdout)
    assert created["kind"] == "clients"

    result = run_cli("board", "ls", "--json")
    boards = json.loads(result.stdout)
    assert [b["name"] for b in boards] == ["Acme"]


def test_board_create_unknown_kind(run_cli):
    result = run_cli("board", "create", "Odd", "--kind", "sprints")

    assert result.returncode == 1
    assert "Invalid board kind" in result.stderr


def test_show_lists_buckets_in_order(run_cli):
    run_cli("board", "create", "Work")
    first = add_task(run_cli, "Work", "First")
    second = add_task(run_cli, "Work", "Second", "--bucket", "done")

    result = run_cli("show", "Work", "--json")
    assert result.returncode == 0, result.stderr
    data = json.loads(result.stdout)

    assert [b["id"] for b in data["buckets"]] == ["todo", "in_progress", "done"]
    assert [t["id"] for t in data["buckets"][0]["tasks"]] == [first["id"]]
    done = data["buckets"][2]["tasks"][0]
    assert done["id"] == second["id"]
    assert done["is_completed"] is True


def test_mv_reports_minimal_writes(run_cli):
    run_cli("board", "create", "Work")
    t1 = add_task(run_cli, "Work", "One")
    t2 = add_task(run_cli, "Work", "Two")
    t3 = add_task(run_cli, "Work", "Three")

    result = run_cli("mv", "Work", t1["id"], "in progress", "--json")
    assert result.returncode == 0, result.stderr
    data = json.loads(result.stdout)

    assert data["updates"] == [
        {"task_id": t2["id"], "bucket_id": "todo", "order_index": 0},
        {"task_id": t3["id"], "bucket_id": "todo", "order_index": 1},
        {"task_id": t1["id"], "bucket_id": "in_progress", "order_index": 0},
    ]

    result = run_cli("show", "Work", "--raw")
    assert result.returncode == 0
    lines = result.stdout.splitlines()
    assert lines.index("In Progress:") < next(
        i for i, line in enumerate(lines) if t1["id"] in line
    )


def test_mv_with_index(run_cli):
    run_cli("board", "create", "Work")
    t1 = add_task(run_cli, "Work", "One")
    t2 = add_task(run_cli, "Work", "Two")

    result = run_cli("mv", "Work", t2["id"], "todo", "--index", "0", "--raw")

    assert result.returncode == 0, result.stderr
    assert "(2 write(s))" in result.stdout


def test_mv_unknown_bucket(run_cli):
    run_cli("board", "create", "Work")
    t1 = add_task(run_cli, "Work", "One")

    result = run_cli("mv", "Work", t1["id"], "someday")

    assert result.returncode == 1
    assert "not found" in result.stderr


def test_mv_unknown_task(run_cli):
    run_cli("board", "create", "Work")

    result = run_cli("mv", "Work", "ghost", "done")

    assert result.returncode == 1
    assert "Task ghost not found" in result.stderr


def test_rm_task(run_cli):
    run_cli("board", "create", "Work")
    t1 = add_task(run_cli, "Work", "One")

    assert run_cli("rm", t1["id"]).returncode == 0
    assert run_cli("rm", t1["id"]).returncode == 1


def test_mv_json_shows_completion_after_move(run_cli):
    run_cli("board", "create", "Work")
    t1 = add_task(run_cli, "Work", "One")

    result = run_cli("mv", "Work", t1["id"], "done", "--json")
    assert result.returncode == 0, result.stderr
    data = json.loads(result.stdout)

    done = next(b for b in data["buckets"] if b["id"] == "done")
    assert done["tasks"] == [
        {"id": t1["id"], "title": "One", "order_index": 0, "is_completed": True}
    ]
