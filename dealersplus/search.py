"""
Free-text search box parsing.

Turns what a user typed into structured filters when it is recognisably a
ZIP code or a "City, ST" pair. Anything else is passed on as free text for
the fuzzy matcher.
"""

import re
from dataclasses import dataclass, asdict
from typing import Optional

STATE_NAME_TO_CODE = {
    "alabama": "AL", "alaska": "AK", "arizona": "AZ", "arkansas": "AR",
    "california": "CA", "colorado": "CO", "connecticut": "CT", "delaware": "DE",
    "florida": "FL", "georgia": "GA", "hawaii": "HI", "idaho": "ID",
    "illinois": "IL", "indiana": "IN", "iowa": "IA", "kansas": "KS",
    "kentucky": "KY", "louisiana": "LA", "maine": "ME", "maryland": "MD",
    "massachusetts": "MA", "michigan": "MI", "minnesota": "MN", "mississippi": "MS",
    "missouri": "MO", "montana": "MT", "nebraska": "NE", "nevada": "NV",
    "new hampshire": "NH", "new jersey": "NJ", "new mexico": "NM", "new york": "NY",
    "north carolina": "NC", "north dakota": "ND", "ohio": "OH", "oklahoma": "OK",
    "oregon": "OR", "pennsylvania": "PA", "rhode island": "RI", "south carolina": "SC",
    "south dakota": "SD", "tennessee": "TN", "texas": "TX", "utah": "UT",
    "vermont": "VT", "virginia": "VA", "washington": "WA", "west virginia": "WV",
    "wisconsin": "WI", "wyoming": "WY", "district of columbia": "DC",
}
STATE_CODES = frozenset(STATE_NAME_TO_CODE.values())

_ZIP_PATTERN = re.compile(r"^\s*\d{5}(-\d{4})?\s*$")
_NON_DIGIT = re.compile(r"\D+")


@dataclass
class SearchFilters:
    state: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    brand: Optional[str] = None
    q: str = ""

    def as_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v}


def looks_like_zip(text) -> bool:
    return bool(_ZIP_PATTERN.match(str(text or "")))


def zip5(text) -> str:
    return _NON_DIGIT.sub("", str(text or ""))[:5]


def normalize_state_token(token) -> str:
    """Two-letter code or full state name -> upper-case code, else ""."""
    if not token:
        return ""
    t = " ".join(str(token).strip().lower().split())
    if len(t) == 2 and t.upper() in STATE_CODES:
        return t.upper()
    return STATE_NAME_TO_CODE.get(t, "")


def _title_case(text: str) -> str:
    return re.sub(r"\b[a-z]", lambda m: m.group(0).upper(), text.strip().lower())


def parse_search_query(text) -> SearchFilters:
    """
    Parse a search box entry.

    ZIP codes become an exact ``zip`` filter (the fuzzy matcher is not
    involved), "City, ST" / "City State" become ``city`` + ``state``, and
    everything else is free text in ``q``.
    """
    raw = str(text or "").strip()
    if not raw:
        return SearchFilters(q="")

    if looks_like_zip(raw):
        return SearchFilters(zip=zip5(raw))

    if "," in raw:
        left, right = raw.split(",")[:2]
        city = _title_case(left)
        state = normalize_state_token(right)
        if city and state:
            return SearchFilters(city=city, state=state)

    parts = raw.split()
    if len(parts) >= 2:
        # two-word state names ("Buffalo New York") before single tokens
        for size in (2, 1):
            if len(parts) <= size:
                continue
            state = normalize_state_token(" ".join(parts[-size:]))
            if state:
                city = _title_case(" ".join(parts[:-size]))
                if city:
                    return SearchFilters(city=city, state=state)

    return SearchFilters(q=raw)
