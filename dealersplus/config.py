"""
Runtime settings read from the environment (after ``load_env``).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .logger import get_logger
from .matcher import MATCH_THRESHOLD, SUGGESTION_LIMIT

DEFAULT_DATA_PATH = "data/dealers.json"
DEFAULT_DB_PATH = "data/dealers.db"
DEFAULT_MAX_QUERY_LENGTH = 64
DEFAULT_PER_STATE = 15
DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"


@dataclass(frozen=True)
class Settings:
    data_path: Path = Path(DEFAULT_DATA_PATH)
    db_path: Path = Path(DEFAULT_DB_PATH)
    match_threshold: int = MATCH_THRESHOLD
    suggestion_limit: int = SUGGESTION_LIMIT
    max_query_length: int = DEFAULT_MAX_QUERY_LENGTH
    log_level: str = "INFO"
    per_state: int = DEFAULT_PER_STATE
    overpass_url: str = DEFAULT_OVERPASS_URL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            data_path=Path(env.get("DEALERS_PLUS_DATA") or DEFAULT_DATA_PATH),
            db_path=Path(env.get("DEALERS_PLUS_DB") or DEFAULT_DB_PATH),
            match_threshold=_int(env, "MATCH_THRESHOLD", MATCH_THRESHOLD),
            suggestion_limit=_int(env, "SUGGESTION_LIMIT", SUGGESTION_LIMIT),
            max_query_length=_int(env, "MAX_QUERY_LENGTH", DEFAULT_MAX_QUERY_LENGTH),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            per_state=_int(env, "PER_STATE", DEFAULT_PER_STATE),
            overpass_url=env.get("OVERPASS_URL") or DEFAULT_OVERPASS_URL,
        )


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        get_logger().warning(f"Ignoring invalid {key}", value=raw, default=default)
        return default
    if value < 0:
        get_logger().warning(f"Ignoring negative {key}", value=raw, default=default)
        return default
    return value
