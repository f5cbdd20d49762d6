"""
Bypass Matcher
Filters a dataset snapshot by CSP tokens or by free text
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .dataset import BypassRecord

MODE_DIRECTIVE = 'directive'
MODE_SEARCH = 'search'
MODE_EMPTY = 'empty'


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one query; recomputed every time, never stored"""
    matches: Tuple[BypassRecord, ...] = ()
    mode: str = MODE_EMPTY
    directive: Optional[str] = None
    tokens: Tuple[str, ...] = ()

    @property
    def count(self):
        return len(self.matches)

    def to_dict(self, limit=None):
        matches = self.matches if limit is None else self.matches[:limit]
        return {
            'count': self.count,
            'mode': self.mode,
            'directive': self.directive,
            'tokens': list(self.tokens),
            'matches': [record.to_dict() for record in matches],
        }


EMPTY_RESULT = QueryResult()


def match_tokens(tokens, dataset, directive=None):
    """
    Token mode: a record matches when any token occurs in its domain or payload

    Matching is case-sensitive; callers lower-case the policy beforehand.
    """
    tokens = tuple(tokens or ())
    if not tokens or not dataset:
        return QueryResult(mode=MODE_DIRECTIVE, directive=directive, tokens=tokens)

    matches = tuple(
        record for record in dataset
        if any(token in record.domain or token in record.payload for token in tokens)
    )
    return QueryResult(matches=matches, mode=MODE_DIRECTIVE, directive=directive, tokens=tokens)


def match_text(query, dataset):
    """Free-text mode: case-insensitive substring search over domain and payload"""
    if not query or not dataset:
        return QueryResult(mode=MODE_SEARCH)

    needle = query.lower()
    matches = tuple(
        record for record in dataset
        if needle in record.domain.lower() or needle in record.payload.lower()
    )
    return QueryResult(matches=matches, mode=MODE_SEARCH)


def count_and_filter(tokens_or_query, dataset, directive=None):
    """
    Dispatch to token mode for a collection of tokens, free-text mode for a string

    Args:
        tokens_or_query: list/tuple/set of tokens, or a single query string
        dataset: Dataset snapshot (or any iterable of BypassRecord)

    Returns:
        QueryResult
    """
    if isinstance(tokens_or_query, str):
        return match_text(tokens_or_query, dataset)
    return match_tokens(tokens_or_query, dataset, directive=directive)
