"""Snippy -- a snippet store with typo-tolerant search.

Direct Python API::

    from snippy import open_store, Snippet
    with open_store() as store:
        sid = store.save(Snippet(name="copy stream", content="ffmpeg -i $IN -c:v copy $OUT"))
        store.search("ffmeg")
"""

__version__ = "0.1.0"

from snippy.errors import (
    ConstraintError,
    NotFoundError,
    SchemaError,
    SnippyError,
    StorageError,
)
from snippy.migrations import MigrationRunner, fingerprint
from snippy.models import SearchResult, Snippet
from snippy.store import Store, open_store

__all__ = [
    "open_store",
    "Store",
    # Records
    "Snippet",
    "SearchResult",
    # Schema
    "MigrationRunner",
    "fingerprint",
    # Errors
    "SnippyError",
    "StorageError",
    "SchemaError",
    "NotFoundError",
    "ConstraintError",
    # Meta
    "__version__",
]
