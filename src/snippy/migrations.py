"""
Snippy Migrations -- content-addressed schema changes.

A migration is identified by the SHA-256 of its body, not by its file name or
position. The ``migrations`` table holds one row per body that has been run:

    CREATE TABLE migrations (hash TEXT PRIMARY KEY, name TEXT, applied_at TEXT)

Renaming a script is therefore a no-op, while editing its body makes it look
new and it runs again (the old row stays). Each script is applied inside one
transaction together with its log row, so the log never claims a script that
only partly ran.

Usage:
    runner = MigrationRunner(conn)
    applied = runner.apply_all(builtin_scripts())
"""

import hashlib
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from snippy.connection import transaction
from snippy.errors import SchemaError, StorageError

logger = logging.getLogger("snippy.migrations")

SCHEMA_DIR = Path(__file__).parent / "schema"

Script = Tuple[str, str]


def fingerprint(body: Union[bytes, str]) -> str:
    """Deterministic content hash identifying a migration body."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hashlib.sha256(body).hexdigest()


def discover_scripts(directory: Path) -> List[Script]:
    """Return ``(file name, body)`` for every ``.sql`` file, in lexical order."""
    scripts = []
    for path in sorted(directory.iterdir(), key=lambda p: p.name):
        if path.suffix != ".sql" or not path.is_file():
            continue
        # read_bytes keeps the body byte-exact (no newline translation)
        scripts.append((path.name, path.read_bytes().decode("utf-8")))
    return scripts


def builtin_scripts() -> List[Script]:
    """The version-controlled schema shipped with the package."""
    return discover_scripts(SCHEMA_DIR)


def split_statements(body: str) -> List[str]:
    """Split a script into complete SQL statements.

    Semicolons inside string literals, comments and trigger bodies do not end
    a statement; ``sqlite3.complete_statement`` decides.
    """
    statements = []
    buffer = ""
    for piece in body.split(";"):
        buffer += piece + ";"
        if sqlite3.complete_statement(buffer):
            if buffer.strip(" \t\r\n;"):
                statements.append(buffer.strip())
            buffer = ""
    if buffer.strip(" \t\r\n;"):
        statements.append(buffer.strip())
    return statements


class MigrationRunner:
    """Applies schema scripts exactly once each, keyed by content hash."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def ensure_log(self) -> None:
        """Create the migration log if absent. Not itself fingerprint-tracked."""
        try:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS migrations (
                    hash TEXT PRIMARY KEY,
                    name TEXT,
                    applied_at TEXT
                )
            """)
        except sqlite3.Error as e:
            raise StorageError(f"cannot create migration log: {e}") from e

    def is_applied(self, digest: str) -> bool:
        row = self._conn.execute(
            "SELECT EXISTS (SELECT 1 FROM migrations WHERE hash = ?)", (digest,)
        ).fetchone()
        return bool(row[0])

    def apply(self, name: str, body: str) -> bool:
        """Apply one script unless its body was already run. Returns True if it ran."""
        digest = fingerprint(body)
        if self.is_applied(digest):
            logger.debug("Skipping migration %s (%s already applied)", name, digest[:12])
            return False

        applied_at = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        try:
            with transaction(self._conn) as c:
                c.execute(
                    "INSERT INTO migrations (hash, name, applied_at) VALUES (?, ?, ?)",
                    (digest, name, applied_at),
                )
                for statement in split_statements(body):
                    c.execute(statement)
        except sqlite3.Error as e:
            logger.error("Migration %s failed, rolled back: %s", name, e)
            raise SchemaError(name, str(e)) from e

        logger.info("Applied migration %s (%s)", name, digest[:12])
        return True

    def apply_all(self, scripts: Iterable[Script]) -> List[str]:
        """Apply ``scripts`` in the given order; return the names that ran.

        The first failure raises SchemaError and stops the run; scripts after
        it are not attempted.
        """
        self.ensure_log()
        return [name for name, body in scripts if self.apply(name, body)]

    def applied(self) -> List[Dict[str, Optional[str]]]:
        """Log rows in the order they were applied."""
        rows = self._conn.execute(
            "SELECT hash, name, applied_at FROM migrations ORDER BY rowid"
        ).fetchall()
        return [{"hash": r[0], "name": r[1], "applied_at": r[2]} for r in rows]
