"""
Snippy Vocabulary -- the full-text index and the term dictionary derived from it.

``snippets_fts`` is an FTS5 external-content table over (name, content) of
``snippets``. Index maintenance is explicit: the repository calls :meth:`add`
after inserting a row and :meth:`remove` + :meth:`add` when updating one, all
inside the same transaction as the row change. ``snippets_vocab`` (fts5vocab)
exposes every distinct indexed term, which is what spelling correction
searches.

The sorted term list is cached in memory and dropped on every index write, so
a search issued right after a save sees the new terms.
"""

import logging
import sqlite3
from typing import List, Optional, Tuple

logger = logging.getLogger("snippy.vocabulary")


class VocabularyIndex:
    """Term index over snippet names and contents."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn
        self._terms: Optional[Tuple[str, ...]] = None

    # ------------------------------------------------------------------
    # Maintenance (called inside the caller's transaction)
    # ------------------------------------------------------------------

    def add(self, rowid: int, name: str, content: str) -> None:
        """Index the terms of one snippet row."""
        self._conn.execute(
            "INSERT INTO snippets_fts(rowid, name, content) VALUES (?, ?, ?)",
            (rowid, name, content),
        )
        self.invalidate()

    def remove(self, rowid: int, name: str, content: str) -> None:
        """De-index a row. ``name``/``content`` must be the values that were indexed."""
        self._conn.execute(
            "INSERT INTO snippets_fts(snippets_fts, rowid, name, content) VALUES ('delete', ?, ?, ?)",
            (rowid, name, content),
        )
        self.invalidate()

    def rebuild(self) -> None:
        """Re-derive the whole index from the snippets table."""
        self._conn.execute("INSERT INTO snippets_fts(snippets_fts) VALUES ('rebuild')")
        self.invalidate()
        logger.info("Rebuilt full-text index")

    def integrity_check(self) -> None:
        """Raise sqlite3.DatabaseError if the index disagrees with the table."""
        self._conn.execute("INSERT INTO snippets_fts(snippets_fts) VALUES ('integrity-check')")

    def invalidate(self) -> None:
        self._terms = None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def terms(self) -> Tuple[str, ...]:
        """All indexed terms, sorted. This order breaks correction ties."""
        if self._terms is None:
            rows = self._conn.execute("SELECT term FROM snippets_vocab ORDER BY term").fetchall()
            self._terms = tuple(r[0] for r in rows)
        return self._terms

    def mentions(self, fragment: str) -> bool:
        """True if any snippet name or content contains ``fragment`` (case-folded)."""
        needle = fragment.casefold()
        row = self._conn.execute(
            """SELECT EXISTS (
                   SELECT 1 FROM snippets
                   WHERE instr(snippy_fold(name), ?1) > 0
                      OR instr(snippy_fold(content), ?1) > 0
               )""",
            (needle,),
        ).fetchone()
        return bool(row[0])

    def containing(self, fragment: str) -> List[str]:
        """Every indexed term that contains ``fragment`` (case-folded), sorted."""
        rows = self._conn.execute(
            """SELECT term FROM snippets_vocab
               WHERE instr(snippy_fold(term), ?) > 0
               ORDER BY term""",
            (fragment.casefold(),),
        ).fetchall()
        return [r[0] for r in rows]

    def __len__(self) -> int:
        return len(self.terms())
