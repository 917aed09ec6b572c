"""
Fuzzy text matching for dealer search and typeahead suggestions.

Every function here is pure: records are only read, never mutated, and
missing or non-string values degrade to the sentinel score instead of
raising.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence

from .normalize import normalize_text

SENTINEL_SCORE = 999
MATCH_THRESHOLD = 4
SUGGESTION_LIMIT = 3

SUGGESTION_KINDS = ("dealer", "city", "state", "zip", "brand")


@dataclass(frozen=True)
class Candidate:
    """A record paired with its best field score for one query."""

    record: Any
    score: int


@dataclass(frozen=True)
class Suggestion:
    kind: str
    value: str


@dataclass(frozen=True)
class ScoredSuggestion:
    kind: str
    value: str
    score: int

    def to_dict(self) -> dict:
        return {"kind": self.kind, "value": self.value, "score": self.score}


def edit_distance(a: str, b: str) -> int:
    """
    Levenshtein distance between two already-normalized strings.

    Rows walk ``b`` and columns walk ``a``; each cell keeps the cheapest of
    a deletion, an insertion or a substitution.
    """
    a = a if isinstance(a, str) else ""
    b = b if isinstance(b, str) else ""

    table = [[i] + [0] * len(a) for i in range(len(b) + 1)]
    for j in range(len(a) + 1):
        table[0][j] = j

    for i in range(1, len(b) + 1):
        for j in range(1, len(a) + 1):
            table[i][j] = min(
                table[i - 1][j] + 1,
                table[i][j - 1] + 1,
                table[i - 1][j - 1] + (0 if a[j - 1] == b[i - 1] else 1),
            )
    return table[len(b)][len(a)]


def score_query(query: Any, text: Any) -> int:
    """
    Score one raw field value against a raw query (lower is better).

    Returns SENTINEL_SCORE when either side normalizes to empty, 0 when the
    normalized field contains the normalized query, and the edit distance
    otherwise.
    """
    nq = normalize_text(query)
    nt = normalize_text(text)
    if not nq or not nt:
        return SENTINEL_SCORE
    if nq in nt:
        return 0
    return edit_distance(nq, nt)


def score_record(query: Any, fields: Iterable[Any]) -> int:
    """Best (minimum) score of ``query`` across a record's fields."""
    return min((score_query(query, f) for f in fields), default=SENTINEL_SCORE)


def searchable_fields(record: Any) -> List[Any]:
    """Fields of a dealer-like record that free-text search looks at."""
    fields = [
        getattr(record, "name", None),
        getattr(record, "city", None),
        getattr(record, "state", None),
        getattr(record, "zip", None),
    ]
    fields.extend(getattr(record, "brands", None) or ())
    return fields


def rank_records(
    query: Any,
    records: Optional[Iterable[Any]],
    fields: Callable[[Any], Iterable[Any]] = searchable_fields,
) -> List[Candidate]:
    """Score every record and sort ascending; ties keep input order."""
    records = records or ()
    candidates = [Candidate(record=r, score=score_record(query, fields(r))) for r in records]
    candidates.sort(key=lambda c: c.score)
    return candidates


def filter_by_relevance(
    query: Any,
    records: Optional[Iterable[Any]],
    threshold: int = MATCH_THRESHOLD,
    fields: Callable[[Any], Iterable[Any]] = searchable_fields,
) -> List[Any]:
    """
    Re-order records by relevance for a filtered listing.

    If the best candidate scores above ``threshold`` the query is treated
    as matching nothing and an empty list is returned. Otherwise all
    records come back, best first, without truncation.
    """
    candidates = rank_records(query, records, fields)
    if not candidates or candidates[0].score > threshold:
        return []
    return [c.record for c in candidates]


def build_suggestion_pool(records: Optional[Sequence[Any]]) -> List[Suggestion]:
    """
    Typeahead pool: names, cities, states and zips of every record (in that
    category order, duplicates kept), followed by the distinct brands.
    """
    records = records or ()
    pool: List[Suggestion] = []
    for kind, attr in (("dealer", "name"), ("city", "city"), ("state", "state"), ("zip", "zip")):
        for r in records:
            pool.append(Suggestion(kind, _as_text(getattr(r, attr, None))))

    seen = set()
    for r in records:
        for brand in getattr(r, "brands", None) or ():
            brand = _as_text(brand)
            if brand not in seen:
                seen.add(brand)
                pool.append(Suggestion("brand", brand))
    return pool


def suggest(query: Any, records: Optional[Sequence[Any]], limit: int = SUGGESTION_LIMIT) -> List[ScoredSuggestion]:
    """Best ``limit`` suggestions for a partial query; no relevance cutoff."""
    if not normalize_text(query) or limit <= 0:
        return []
    scored = [
        ScoredSuggestion(item.kind, item.value, score_query(query, item.value))
        for item in build_suggestion_pool(records)
    ]
    scored.sort(key=lambda s: s.score)
    return scored[:limit]


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""
