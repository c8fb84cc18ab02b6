"""Snippet CRUD: fetch by id, insert-or-update, most recent first."""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from snippy import config
from snippy.connection import transaction
from snippy.errors import ConstraintError, NotFoundError
from snippy.models import SearchResult, Snippet
from snippy.search import preview
from snippy.vocabulary import VocabularyIndex

logger = logging.getLogger("snippy.repository")


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp to an aware UTC datetime."""
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class SnippetRepository:
    def __init__(
        self,
        conn: sqlite3.Connection,
        vocabulary: VocabularyIndex,
        max_content_size: Optional[int] = None,
    ):
        self._conn = conn
        self._vocabulary = vocabulary
        self.max_content_size = config.max_content_size() if max_content_size is None else max_content_size

    def fetch(self, snippet_id: int) -> Snippet:
        row = self._conn.execute(
            "SELECT id, name, content, created_at FROM snippets WHERE id = ?",
            (snippet_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError(snippet_id)
        return Snippet(id=row[0], name=row[1], content=row[2], created_at=_parse_dt(row[3]))

    def save(self, snippet: Snippet) -> int:
        """Insert ``snippet`` (no id) or update it in place (with id). Returns the id.

        The row write and the index maintenance share one transaction.
        """
        self._validate(snippet)
        with transaction(self._conn) as c:
            if snippet.id is None:
                created_at = datetime.now(timezone.utc).isoformat(timespec="microseconds")
                cur = c.execute(
                    "INSERT INTO snippets (name, content, created_at) VALUES (?, ?, ?)",
                    (snippet.name, snippet.content, created_at),
                )
                rowid = cur.lastrowid
                self._vocabulary.add(rowid, snippet.name, snippet.content)
                logger.debug("Inserted snippet %d", rowid)
                return rowid

            old = c.execute(
                "SELECT name, content FROM snippets WHERE id = ?", (snippet.id,)
            ).fetchone()
            if old is None:
                raise NotFoundError(snippet.id)
            c.execute(
                "UPDATE snippets SET name = ?, content = ? WHERE id = ?",
                (snippet.name, snippet.content, snippet.id),
            )
            self._vocabulary.remove(snippet.id, old[0], old[1])
            self._vocabulary.add(snippet.id, snippet.name, snippet.content)
            logger.debug("Updated snippet %d", snippet.id)
            return snippet.id

    def recent(self, limit: int = 10) -> List[SearchResult]:
        """The ``limit`` newest snippets, newest first, with a content preview."""
        if limit <= 0:
            return []
        rows = self._conn.execute(
            """SELECT id, name, content FROM snippets
               ORDER BY created_at DESC, id DESC
               LIMIT ?""",
            (limit,),
        ).fetchall()
        return [SearchResult(id=r[0], name=r[1], hint=preview(r[2])) for r in rows]

    def count(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) FROM snippets").fetchone()
        return row[0] if row else 0

    def _validate(self, snippet: Snippet) -> None:
        sid = snippet.id
        if sid is not None and (isinstance(sid, bool) or not isinstance(sid, int) or sid <= 0):
            raise ConstraintError(f"snippet id must be a positive integer, got {sid!r}")
        if not isinstance(snippet.name, str):
            raise ConstraintError("snippet name must be a string")
        if not isinstance(snippet.content, str):
            raise ConstraintError("snippet content must be a string")
        if len(snippet.content) > self.max_content_size:
            raise ConstraintError(
                f"Content size ({len(snippet.content):,} chars) exceeds limit ({self.max_content_size:,}). "
                "Override with SNIPPY_MAX_CONTENT_SIZE env var."
            )
