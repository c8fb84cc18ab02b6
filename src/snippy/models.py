"""Records exchanged between the store and its callers."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Snippet:
    """A named piece of text.

    ``id`` stays ``None`` until the snippet is first saved; the store assigns
    it and never changes it afterwards. ``created_at`` is stamped on insert.
    """

    id: Optional[int] = None
    name: str = ""
    content: str = ""
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SearchResult:
    """Read-only projection shown in result lists."""

    id: int
    name: str
    hint: str
