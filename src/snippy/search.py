"""
Snippy Search -- typo-tolerant ranked lookup.

One pass per query:

1. split the query on whitespace;
2. keep each term verbatim if some snippet already contains it, otherwise
   swap in the nearest vocabulary term (or keep it if there is none);
3. require every term to occur as a substring of the name or the content;
4. rank with FTS5 bm25 and cut to ``limit``;
5. attach a short excerpt of the content as the hint.

Matches that bm25 cannot score (every query term made only of punctuation,
which the tokenizer drops) still satisfy step 3; they are listed after the
ranked results, newest first.
"""

import logging
import re
import sqlite3
from typing import Dict, List, Tuple

from snippy.models import SearchResult
from snippy.spelling import SpellCorrector
from snippy.vocabulary import VocabularyIndex

logger = logging.getLogger("snippy.search")

PREVIEW_CHARS = 64
ELLIPSIS = ".."
HINT_TOKENS = 8
_WORD_PIECE = re.compile(r"[^\W_]+")  # runs the unicode61 tokenizer keeps together


def tokenize(query: str) -> List[str]:
    return query.split()


def flatten(text: str) -> str:
    """Collapse line breaks to single spaces."""
    return text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")


def preview(content: str, length: int = PREVIEW_CHARS) -> str:
    """Fixed-length content prefix used where there is no matched excerpt."""
    if len(content) <= length:
        return flatten(content)
    return flatten(content[:length]) + ELLIPSIS


def _quote(term: str) -> str:
    return '"' + term.replace('"', '""') + '"'


class SearchEngine:
    def __init__(self, conn: sqlite3.Connection, vocabulary: VocabularyIndex, corrector: SpellCorrector):
        self._conn = conn
        self._vocabulary = vocabulary
        self._corrector = corrector

    def correct_terms(self, terms: List[str]) -> List[str]:
        """Correct each term on its own; terms found verbatim are never touched."""
        corrected = []
        for term in terms:
            if self._vocabulary.mentions(term):
                corrected.append(term)
            else:
                corrected.append(self._corrector.correct(term))
        return corrected

    def correct(self, query: str) -> str:
        return " ".join(self.correct_terms(tokenize(query)))

    def search(self, query: str, limit: int = 10) -> List[SearchResult]:
        terms = tokenize(query)
        if not terms or limit <= 0:
            return []

        corrected = self.correct_terms(terms)
        if corrected != terms:
            logger.debug("Query %r corrected to %r", query, " ".join(corrected))

        needles = [t.casefold() for t in corrected]
        where, params = self._substring_filter(needles)

        results = self._ranked(needles, where, params, limit)
        if len(results) < limit:
            results.extend(self._unranked(where, params, [r.id for r in results], limit - len(results)))
        return results

    # ------------------------------------------------------------------
    # Query construction
    # ------------------------------------------------------------------

    @staticmethod
    def _substring_filter(needles: List[str]) -> Tuple[str, list]:
        """AND across terms, OR across the name and content columns."""
        clauses = []
        params: list = []
        for needle in needles:
            clauses.append(
                "(instr(snippy_fold(s.name), ?) > 0 OR instr(snippy_fold(s.content), ?) > 0)"
            )
            params.extend((needle, needle))
        return " AND ".join(clauses), params

    def _match_expression(self, needles: List[str]) -> str:
        """FTS5 expression OR-ing every indexed term that holds part of a needle.

        A needle that sits inside one token expands to the terms containing it.
        One that spans a token boundary (``c:v``) expands through its word
        pieces instead. Needles with no word characters contribute nothing.
        """
        expanded: Dict[str, None] = {}
        for needle in needles:
            terms = self._vocabulary.containing(needle)
            if not terms:
                for piece in _WORD_PIECE.findall(needle):
                    terms.extend(self._vocabulary.containing(piece))
            expanded.update(dict.fromkeys(terms))
        return " OR ".join(_quote(t) for t in expanded)

    def _ranked(self, needles: List[str], where: str, params: list, limit: int) -> List[SearchResult]:
        expression = self._match_expression(needles)
        if not expression:
            return []
        rows = self._conn.execute(
            f"""SELECT s.id, s.name,
                       snippet(snippets_fts, 1, '', '', '{ELLIPSIS}', {HINT_TOKENS}),
                       bm25(snippets_fts) AS score
                FROM snippets_fts
                JOIN snippets s ON s.id = snippets_fts.rowid
                WHERE snippets_fts MATCH ? AND {where}
                ORDER BY score, s.id
                LIMIT ?""",
            [expression, *params, limit],
        ).fetchall()
        return [SearchResult(id=r[0], name=r[1], hint=flatten(r[2] or "")) for r in rows]

    def _unranked(self, where: str, params: list, exclude: List[int], limit: int) -> List[SearchResult]:
        sql = f"SELECT s.id, s.name, s.content FROM snippets s WHERE {where}"
        args = list(params)
        if exclude:
            sql += f" AND s.id NOT IN ({', '.join('?' for _ in exclude)})"
            args.extend(exclude)
        sql += " ORDER BY s.created_at DESC, s.id DESC LIMIT ?"
        args.append(limit)
        rows = self._conn.execute(sql, args).fetchall()
        return [SearchResult(id=r[0], name=r[1], hint=preview(r[2])) for r in rows]
