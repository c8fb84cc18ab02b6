"""
Snippy Store -- the handle a UI or CLI holds.

Opening a store runs every pending schema migration before anything else can
touch the file; a failed migration closes the connection and raises
SchemaError. After that the store hands out snippets and search results.

Usage:
    with open_store("~/.snippy/snippy.db") as store:
        sid = store.save(Snippet(name="ffmpeg copy", content="ffmpeg -i $IN -c:v copy $OUT"))
        results = store.search("ffmeg", limit=10)

One Store owns one connection. Views that need it receive the Store itself;
there is no module-level instance. Every call takes the store lock, so writes
are serialized and a search after a save always sees that save.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from snippy import config
from snippy.connection import connect
from snippy.errors import ConstraintError, StorageError
from snippy.migrations import MigrationRunner, Script, builtin_scripts
from snippy.models import SearchResult, Snippet
from snippy.repository import SnippetRepository
from snippy.search import SearchEngine
from snippy.spelling import SpellCorrector
from snippy.vocabulary import VocabularyIndex

logger = logging.getLogger("snippy.store")


class Store:
    """A migrated snippet database."""

    def __init__(
        self,
        db_path: Union[str, Path, None] = None,
        max_edit_distance: Optional[int] = None,
        max_content_size: Optional[int] = None,
        scripts: Optional[Sequence[Script]] = None,
    ):
        if db_path is None:
            db_path = config.default_db_path()
        elif str(db_path) != config.MEMORY_DB:
            db_path = Path(db_path).expanduser()
        self.db_path = db_path

        self._lock = threading.Lock()
        self._conn = connect(db_path)
        self.migrations = MigrationRunner(self._conn)
        try:
            applied = self.migrations.apply_all(builtin_scripts() if scripts is None else scripts)
        except sqlite3.Error as e:
            self._conn.close()
            raise StorageError(f"cannot read migration log in {db_path}: {e}") from e
        except BaseException:
            self._conn.close()
            raise
        if applied:
            logger.info("Store %s migrated: %s", db_path, ", ".join(applied))

        self.vocabulary = VocabularyIndex(self._conn)
        self.corrector = SpellCorrector(self.vocabulary, max_edit_distance)
        self.repository = SnippetRepository(self._conn, self.vocabulary, max_content_size)
        self.search_engine = SearchEngine(self._conn, self.vocabulary, self.corrector)
        self._closed = False

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Serialize access and translate sqlite3 failures into snippy errors."""
        with self._lock:
            if self._closed:
                raise StorageError(f"{action}: store is closed")
            try:
                yield
            except sqlite3.IntegrityError as e:
                raise ConstraintError(f"{action} rejected: {e}") from e
            except OverflowError as e:
                # integers past 64 bits cannot be bound as parameters
                raise ConstraintError(f"{action} rejected: {e}") from e
            except sqlite3.Error as e:
                raise StorageError(f"{action} failed: {e}") from e

    # ------------------------------------------------------------------
    # Snippets
    # ------------------------------------------------------------------

    def fetch(self, snippet_id: int) -> Snippet:
        with self._guard("fetch"):
            return self.repository.fetch(snippet_id)

    def save(self, snippet: Snippet) -> int:
        with self._guard("save"):
            return self.repository.save(snippet)

    def recent(self, limit: int = 10) -> List[SearchResult]:
        with self._guard("recent"):
            return self.repository.recent(limit)

    def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        with self._guard("search"):
            return self.search_engine.search(query, limit)

    def correct(self, query: str) -> str:
        """The query as it would be run after spelling correction."""
        with self._guard("correct"):
            return self.search_engine.correct(query)

    def count(self) -> int:
        with self._guard("count"):
            return self.repository.count()

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def applied_migrations(self) -> List[Dict[str, Optional[str]]]:
        with self._guard("applied_migrations"):
            return self.migrations.applied()

    def validate(self) -> Dict[str, Any]:
        """Run SQLite and FTS5 integrity checks. Never raises for a failed check."""
        with self._guard("validate"):
            report: Dict[str, Any] = {}
            report["integrity"] = self._conn.execute("PRAGMA integrity_check").fetchone()[0]
            try:
                self.vocabulary.integrity_check()
                report["fts"] = "ok"
            except sqlite3.DatabaseError as e:
                report["fts"] = str(e)
            report["snippets"] = self.repository.count()
            report["terms"] = len(self.vocabulary)
            report["migrations"] = len(self.migrations.applied())
            report["ok"] = report["integrity"] == "ok" and report["fts"] == "ok"
            return report

    def rebuild_index(self) -> None:
        with self._guard("rebuild_index"):
            self.vocabulary.rebuild()

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                if str(self.db_path) != config.MEMORY_DB:
                    self._conn.execute("PRAGMA wal_checkpoint(PASSIVE)")
            except sqlite3.Error as e:
                logger.debug("WAL checkpoint on close failed: %s", e)
            self._conn.close()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def open_store(path: Union[str, Path, None] = None, **kwargs) -> Store:
    """Open or create a store at ``path`` and bring its schema up to date."""
    return Store(path, **kwargs)
