"""
Tests for scripts/validate_migration.py.
"""

import importlib.util
from pathlib import Path

import pytest

from dealersplus.database import save_store_to_database
from dealersplus.seed import build_demo_store
from dealersplus.storage import save_dealers

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "validate_migration.py"


@pytest.fixture(scope="module")
def validate_migration():
    spec = importlib.util.spec_from_file_location("validate_migration", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestValidateMigration:
    def test_matching_stores(self, tmp_path, validate_migration, dealers_json, capsys):
        db_path = tmp_path / "d.db"
        save_store_to_database(build_demo_store(), db_path)

        assert validate_migration.validate(dealers_json, db_path) is True
        assert "All dealers validated successfully" in capsys.readouterr().out

    def test_count_mismatch(self, tmp_path, validate_migration, demo_dealers):
        json_path = tmp_path / "two.json"
        save_dealers(json_path, demo_dealers[:2])
        db_path = tmp_path / "d.db"
        save_store_to_database(build_demo_store(), db_path)

        assert validate_migration.validate(json_path, db_path) is False

    def test_field_mismatch(self, tmp_path, validate_migration, demo_dealers, capsys):
        db_path = tmp_path / "d.db"
        store = build_demo_store(with_reviews=False)
        store.update("D003", city="Houston")
        save_store_to_database(store, db_path)

        json_path = tmp_path / "dealers.json"
        save_dealers(json_path, demo_dealers)

        assert validate_migration.validate(json_path, db_path) is False
        assert "city: JSON='Austin' vs DB='Houston'" in capsys.readouterr().out
