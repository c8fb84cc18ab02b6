"""
Snippy Spelling -- nearest-term correction over the vocabulary.

Any object with a ``terms()`` method returning an ordered sequence of strings
can serve as the dictionary; :class:`snippy.vocabulary.VocabularyIndex` is the
one the store uses. Lookup is a top-1 nearest neighbour by Levenshtein
distance, bounded by ``max_distance``. When several terms are equally close,
the one that comes first in ``terms()`` wins.
"""

import logging
from typing import Optional

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from snippy import config

logger = logging.getLogger("snippy.spelling")


class SpellCorrector:
    def __init__(self, vocabulary, max_distance: Optional[int] = None):
        self._vocabulary = vocabulary
        self.max_distance = config.max_edit_distance() if max_distance is None else max_distance

    def nearest(self, term: str) -> Optional[str]:
        """Closest vocabulary term within ``max_distance``, or None."""
        terms = self._vocabulary.terms()
        if not terms or not term:
            return None
        hit = process.extractOne(
            term.casefold(),
            terms,
            scorer=Levenshtein.distance,
            score_cutoff=self.max_distance,
        )
        if hit is None:
            return None
        match, distance, _idx = hit
        logger.debug("Corrected %r -> %r (distance %d)", term, match, distance)
        return match

    def correct(self, term: str) -> str:
        """``term`` replaced by its nearest neighbour, or unchanged if there is none."""
        return self.nearest(term) or term
