"""
Snippy Connection -- opening the SQLite file and running transactions.

The connection runs in autocommit mode (``isolation_level=None``); every write
goes through :func:`transaction`, which issues BEGIN IMMEDIATE / COMMIT itself.
That keeps "write the row" and "maintain the index" inside one explicit unit,
with no implicit commits from the sqlite3 module in between.
"""

import logging
import os
import sqlite3
import stat
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from snippy.config import MEMORY_DB
from snippy.errors import SnippyError, StorageError

logger = logging.getLogger("snippy.connection")

BUSY_TIMEOUT_MS = 30000


def fold(value):
    """Case-fold a column value for substring tests (registered as ``snippy_fold``)."""
    if value is None:
        return None
    return str(value).casefold()


def secure_connect(db_path: Union[str, Path], **kwargs) -> sqlite3.Connection:
    """Create a SQLite connection with secure file permissions (0o600).

    Pre-creates the DB file with restricted permissions before connecting,
    and fixes existing files that have overly permissive permissions.
    """
    db_path_str = str(db_path)
    if db_path_str == MEMORY_DB:
        return sqlite3.connect(db_path_str, **kwargs)

    path_obj = Path(db_path_str)
    path_obj.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

    if not path_obj.exists():
        # Pre-create with restricted permissions (no TOCTOU window)
        fd = os.open(db_path_str, os.O_CREAT | os.O_WRONLY, 0o600)
        os.close(fd)
    else:
        current_mode = path_obj.stat().st_mode
        if current_mode & (stat.S_IRWXG | stat.S_IRWXO):
            os.chmod(db_path_str, 0o600)

    return sqlite3.connect(db_path_str, **kwargs)


def connect(db_path: Union[str, Path]) -> sqlite3.Connection:
    """Open (or create) the store file and configure the connection."""
    try:
        conn = secure_connect(
            db_path,
            timeout=BUSY_TIMEOUT_MS / 1000,
            isolation_level=None,
            check_same_thread=False,
        )
    except (OSError, sqlite3.Error) as e:
        raise StorageError(f"cannot open {db_path}: {e}") from e

    try:
        if str(db_path) != MEMORY_DB:
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.create_function("snippy_fold", 1, fold, deterministic=True)
    except sqlite3.Error as e:
        conn.close()
        raise StorageError(f"cannot configure {db_path}: {e}") from e

    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the enclosed statements atomically; roll back on any exception."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException as e:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        if isinstance(e, SnippyError):
            logger.debug("transaction rolled back: %s", e)
        else:
            logger.warning("transaction rolled back: %s", e)
        raise
    else:
        conn.execute("COMMIT")
