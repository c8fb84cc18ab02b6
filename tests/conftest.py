"""Snippy test configuration."""
import os
import sys
import pytest
from pathlib import Path

# Ensure snippy package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def tmp_snippy_dir(tmp_path):
    """Create a temporary SNIPPY_HOME for testing."""
    snippy_dir = tmp_path / ".snippy"
    snippy_dir.mkdir()
    old_home = os.environ.get("SNIPPY_HOME")
    old_db = os.environ.pop("SNIPPY_DB", None)
    os.environ["SNIPPY_HOME"] = str(snippy_dir)
    yield snippy_dir
    if old_home is not None:
        os.environ["SNIPPY_HOME"] = old_home
    else:
        os.environ.pop("SNIPPY_HOME", None)
    if old_db is not None:
        os.environ["SNIPPY_DB"] = old_db


@pytest.fixture
def db_path(tmp_snippy_dir):
    return tmp_snippy_dir / "test.db"


@pytest.fixture
def store(db_path):
    """Create a fresh, fully migrated Store for testing."""
    from snippy.store import Store
    s = Store(db_path=db_path)
    yield s
    s.close()


@pytest.fixture
def raw_conn(tmp_snippy_dir):
    """A configured connection with no migrations applied."""
    from snippy.connection import connect
    conn = connect(tmp_snippy_dir / "raw.db")
    yield conn
    conn.close()
