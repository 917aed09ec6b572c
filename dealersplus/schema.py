from typing import Any, Dict, List

REQUIRED_DEALER_FIELDS = ["id", "name", "state"]
OPTIONAL_DEALER_STR_FIELDS = ["city", "zip", "phone"]

MIN_RATING = 1
MAX_RATING = 5


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def validate_dealer(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Used before raw dealer dicts (seed files, imports) enter the store.
    """
    errors: List[str] = []

    for f in REQUIRED_DEALER_FIELDS:
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in OPTIONAL_DEALER_STR_FIELDS:
        if f in data and data[f] is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    state = data.get("state")
    if _is_non_empty_str(state) and len(state.strip()) != 2:
        errors.append("Field 'state' must be a two-letter code")

    brands = data.get("brands")
    if brands is not None:
        if not isinstance(brands, (list, tuple)):
            errors.append("Field 'brands' must be a list of strings")
        elif not all(isinstance(b, str) for b in brands):
            errors.append("Field 'brands' must be a list of strings")

    return errors


def clamp_rating(value: Any) -> int:
    """Coerce a rating to an int in 1..5; unparseable input becomes 0 (invalid)."""
    try:
        rating = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    if rating <= 0:
        return 0
    return max(MIN_RATING, min(MAX_RATING, rating))


def validate_review(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    if not _is_non_empty_str(data.get("review")):
        errors.append("Review text required")
    if not clamp_rating(data.get("rating")):
        errors.append("Rating required")
    year = data.get("car_year")
    if year not in (None, ""):
        try:
            int(year)
        except (TypeError, ValueError):
            errors.append("Field 'car_year' must be a number if provided")
    return errors
