"""Shared pytest configuration and fixtures for tests."""

import sys
import io
from pathlib import Path

import pytest

# Fix Windows console encoding
if sys.platform == "win32":
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from boardsync.core import repository  # noqa: E402


@pytest.fixture
def temp_db(monkeypatch, tmp_path):
    """Use a temporary database."""
    db_path = tmp_path / "test_boardsync.db"
    monkeypatch.setattr(repository, "DB_PATH", db_path)
    monkeypatch.setenv("BOARDSYNC_HOME", str(tmp_path))
    yield db_path
