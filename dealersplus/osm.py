"""
Import real dealerships from OpenStreetMap through the Overpass API.

Data is (c) OpenStreetMap contributors, ODbL; show attribution wherever the
imported listings are displayed.
"""

import re
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests

from .config import DEFAULT_OVERPASS_URL
from .logger import get_logger
from .retry import (
    CircuitBreaker,
    CircuitOpenError,
    RetryError,
    TransientHTTPError,
    exponential_backoff,
    should_retry_http_status,
)
from .seed import BRANDS, STATES
from .storage import Dealer

STATE_CODES = [code for code, _ in STATES]
USER_AGENT = "dealers-plus/0.1 (+https://www.openstreetmap.org/copyright)"

_LIFECYCLE_PREFIX = re.compile(r"^(disused|abandoned|was):")
_NEW_CAR_HINT = re.compile(r"new|authorized|dealer|dealership", re.IGNORECASE)


def overpass_query(state: str) -> str:
    """Overpass QL for car shops and dealerships inside US-<state>."""
    return (
        "[out:json][timeout:60];\n"
        f'area["ISO3166-2"="US-{state}"]->.a;\n'
        "(\n"
        '  node["shop"="car"](area.a);\n'
        '  way["shop"="car"](area.a);\n'
        '  relation["shop"="car"](area.a);\n'
        '  node["amenity"="car_dealership"](area.a);\n'
        '  way["amenity"="car_dealership"](area.a);\n'
        '  relation["amenity"="car_dealership"](area.a);\n'
        ");\n"
        "out tags center;"
    )


def is_closed_or_unrelated(tags: Optional[Dict[str, str]]) -> bool:
    """True for disused/abandoned places and anything that is not a car dealer."""
    if not tags:
        return True
    if tags.get("disused") == "yes" or tags.get("abandoned") == "yes":
        return True
    if any(_LIFECYCLE_PREFIX.match(k) for k in tags):
        return True
    return not (tags.get("shop") == "car" or tags.get("amenity") == "car_dealership")


def detect_brands(tags: Dict[str, str], brands: Sequence[str] = BRANDS) -> List[str]:
    haystack = " ".join(tags.get(k, "") for k in ("name", "brand", "operator")).lower()
    found: List[str] = []
    for brand in brands:
        if brand.lower() in haystack and brand not in found:
            found.append(brand)
    return found


def element_to_dealer(element: Dict[str, Any], state: str) -> Dealer:
    tags = element.get("tags") or {}
    name = (tags.get("name") or "").strip()
    brands = detect_brands(tags)
    return Dealer.from_dict({
        "id": f"OSM_{element.get('type')}_{element.get('id')}",
        "name": name,
        "city": tags.get("addr:city"),
        "state": state or tags.get("addr:state"),
        "zip": tags.get("addr:postcode"),
        "brands": brands,
        "phone": tags.get("contact:phone") or tags.get("phone"),
        "is_new": bool(_NEW_CAR_HINT.search(name)) or bool(brands),
        "is_used": True,
    })


def dedupe_dealers(dealers: Iterable[Dealer]) -> List[Dealer]:
    """Drop unnamed dealers and repeats of the same name in the same city and state."""
    seen = set()
    result = []
    for d in dealers:
        if not d.name:
            continue
        key = f"{d.name}|{d.city}|{d.state}".lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(d)
    return result


def parse_overpass_response(data: Dict[str, Any], state: str, per_state: Optional[int] = None) -> List[Dealer]:
    elements = data.get("elements") if isinstance(data, dict) else None
    if not isinstance(elements, list):
        return []
    mapped = [
        element_to_dealer(el, state)
        for el in elements
        if isinstance(el, dict) and not is_closed_or_unrelated(el.get("tags"))
    ]
    deduped = dedupe_dealers(d for d in mapped if d.name and d.state)
    return deduped[:per_state] if per_state else deduped


@exponential_backoff(
    max_retries=3,
    base_delay=2.0,
    exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError, TransientHTTPError),
)
def _post_with_retry(url: str, query: str) -> Dict[str, Any]:
    resp = requests.post(
        url,
        data={"data": query},
        headers={"User-Agent": USER_AGENT},
        timeout=90,
    )
    if should_retry_http_status(resp.status_code):
        raise TransientHTTPError(resp.status_code, f"Overpass returned {resp.status_code}")
    resp.raise_for_status()
    return resp.json()


def fetch_state(state: str, url: str = DEFAULT_OVERPASS_URL, per_state: Optional[int] = None) -> List[Dealer]:
    """
    Fetch and map the dealers of one state.

    Raises:
        ValueError: On HTTP errors, exhausted retries or an unreadable body
    """
    logger = get_logger()
    region = f"US-{state}"
    logger.record_import_attempt(region)
    try:
        data = _post_with_retry(url, overpass_query(state))
    except RetryError as e:
        logger.record_import_failure(region, type(e.__cause__).__name__)
        logger.warning("Overpass retries exhausted", region=region, error=str(e))
        raise ValueError(f"Overpass request for {region} failed after retries: {e.__cause__}")
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "HTTPError"
        logger.record_import_failure(region, f"HTTPError_{status}")
        logger.error("Overpass request failed", region=region, status=status)
        raise ValueError(f"Overpass request for {region} failed ({status})")
    except ValueError as e:
        logger.record_import_failure(region, "InvalidJSON")
        raise ValueError(f"Overpass returned invalid JSON for {region}: {e}")
    except requests.exceptions.RequestException as e:
        logger.record_import_failure(region, "RequestException")
        logger.error("Overpass request error", region=region, error=str(e))
        raise ValueError(f"Overpass request error for {region}: {e}")

    dealers = parse_overpass_response(data, state, per_state)
    logger.record_import_success(region)
    logger.info(f"{region}: {len(dealers)} dealers")
    return dealers


def import_dealers(
    states: Sequence[str] = STATE_CODES,
    url: str = DEFAULT_OVERPASS_URL,
    per_state: Optional[int] = 50,
    pause: float = 1.0,
    breaker: Optional[CircuitBreaker] = None,
) -> List[Dealer]:
    """
    Import dealers state by state. A failing state is logged and skipped;
    once the circuit breaker opens the remaining states are not requested.
    """
    logger = get_logger()
    breaker = breaker or CircuitBreaker(failure_threshold=5, recovery_timeout=300, expected_exception=ValueError)
    collected: List[Dealer] = []

    for state in states:
        try:
            collected.extend(breaker.call(fetch_state, state, url=url, per_state=per_state))
        except CircuitOpenError as e:
            logger.error("Stopping import, Overpass keeps failing", state=state, error=str(e))
            break
        except ValueError as e:
            logger.warning(f"US-{state} failed, continuing", error=str(e))
        if pause:
            time.sleep(pause)

    return dedupe_dealers(collected)
