"""
Snippy Errors -- typed failures surfaced by the store.

Every error raised across the public API derives from SnippyError, so callers
can catch the whole family at one seam and still branch on the specific type.
"""


class SnippyError(Exception):
    """Base class for all snippy errors."""


class StorageError(SnippyError):
    """The database file could not be opened, read, or written."""


class SchemaError(StorageError):
    """A migration script failed. The store must not be used."""

    def __init__(self, script: str, message: str):
        super().__init__(f"migration {script!r} failed: {message}")
        self.script = script


class NotFoundError(SnippyError, LookupError):
    """No snippet exists with the requested id."""

    def __init__(self, snippet_id: int):
        super().__init__(f"snippet {snippet_id} not found")
        self.snippet_id = snippet_id


class ConstraintError(SnippyError, ValueError):
    """A snippet was rejected before or while writing it."""
