import re

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_text(value) -> str:
    """Canonical form for comparison: lower-case, only ``[a-z0-9]`` kept.

    Missing or non-string values normalize to the empty string.
    """
    if not isinstance(value, str):
        return ""
    return _NON_ALNUM.sub("", value.lower())


def normalize_key(value) -> str:
    """Case-insensitive key for exact structured filters (state, city, brand)."""
    if not isinstance(value, str):
        return ""
    return " ".join(value.strip().lower().split())
