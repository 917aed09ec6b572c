"""
Pytest configuration and shared fixtures.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from dealersplus.directory import DirectoryService, User
from dealersplus.logger import get_logger, reset_logger
from dealersplus.seed import DEMO_DEALERS, build_demo_store
from dealersplus.storage import Dealer, DealerStore


@pytest.fixture(autouse=True)
def test_logger(tmp_path):
    """Route the global logger to a temp dir with console output off."""
    reset_logger()
    logger = get_logger(log_dir=tmp_path / "logs", enable_console=False)
    yield logger
    reset_logger()


@pytest.fixture
def demo_dealers() -> List[Dealer]:
    return list(DEMO_DEALERS)


@pytest.fixture
def store() -> DealerStore:
    """Demo dealers, catalog and three sample reviews per dealer."""
    return build_demo_store()


@pytest.fixture
def service(store, test_logger) -> DirectoryService:
    return DirectoryService(store, logger=test_logger)


@pytest.fixture
def user() -> User:
    return User(id="u-1", first_name="Ada", last_name="Lovelace", username="ada")


@pytest.fixture
def valid_dealer_dict() -> Dict[str, Any]:
    return {
        "id": "D900",
        "name": "Prairie Auto Plaza",
        "city": "Omaha",
        "state": "NE",
        "zip": "68102",
        "brands": ["Subaru", "Mazda"],
        "phone": "(402) 555-0101",
    }


@pytest.fixture
def dealers_json(tmp_path, demo_dealers) -> Path:
    """A dealers JSON file holding the demo dealers."""
    path = tmp_path / "dealers.json"
    path.write_text(json.dumps([d.to_dict() for d in demo_dealers], indent=2))
    return path
