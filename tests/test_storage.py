"""
Tests for the in-memory dealer store and JSON persistence.
"""

import pytest

from dealersplus.storage import MAX_FIELD_LENGTH, Dealer, DealerStore, Review, load_dealers, save_dealers


def _review(review_id="r1", dealer_id="D001", user_id="u-1"):
    return Review(id=review_id, dealer_id=dealer_id, user_id=user_id, user_name="Ada L", review="Nice", rating=4)


class TestDealer:
    """Dealer record conversion."""

    def test_from_dict_coerces_missing_fields(self):
        dealer = Dealer.from_dict({"id": "X", "name": "Metro Motors", "zip": None})
        assert dealer.zip == ""
        assert dealer.city == ""
        assert dealer.brands == ()

    def test_from_dict_accepts_camel_case_flags(self):
        dealer = Dealer.from_dict({"id": "X", "name": "A", "isNew": True, "isUsed": False})
        assert dealer.is_new is True
        assert dealer.is_used is False

    def test_from_dict_drops_blank_brands(self):
        dealer = Dealer.from_dict({"id": "X", "name": "A", "brands": ["Kia", "", None]})
        assert dealer.brands == ("Kia",)

    def test_from_dict_caps_field_length(self):
        dealer = Dealer.from_dict({"id": "X", "name": "A" * 5000, "city": " " + "b" * 300, "brands": ["K" * 400]})
        assert len(dealer.name) == MAX_FIELD_LENGTH
        assert dealer.city == "b" * MAX_FIELD_LENGTH
        assert dealer.brands == ("K" * MAX_FIELD_LENGTH,)

    def test_to_dict_lists_brands(self, demo_dealers):
        assert demo_dealers[0].to_dict()["brands"] == ["Toyota", "Honda"]


class TestDealerStore:
    """Store ownership and snapshots."""

    def test_insert_and_get(self, demo_dealers):
        store = DealerStore(demo_dealers)
        assert store.get("D003").city == "Austin"
        assert store.get("missing") is None
        assert len(store) == 5

    def test_duplicate_insert_rejected(self, demo_dealers):
        store = DealerStore(demo_dealers)
        with pytest.raises(ValueError):
            store.insert(demo_dealers[0])

    def test_snapshot_is_immutable_view(self, demo_dealers):
        store = DealerStore(demo_dealers[:2])
        snap = store.snapshot()
        store.insert(demo_dealers[2])
        assert isinstance(snap, tuple)
        assert len(snap) == 2
        assert len(store.snapshot()) == 3

    def test_update(self, demo_dealers):
        store = DealerStore(demo_dealers)
        updated = store.update("D001", city="Boulder", brands=["Kia"])
        assert updated.city == "Boulder"
        assert updated.brands == ("Kia",)
        assert store.get("D001").city == "Boulder"

    def test_update_missing(self):
        with pytest.raises(KeyError):
            DealerStore().update("nope", city="X")

    def test_delete_removes_reviews(self, demo_dealers):
        store = DealerStore(demo_dealers)
        store.add_review(_review())
        assert store.delete("D001") is True
        assert store.get("D001") is None
        assert store.reviews_for("D001") == []
        assert store.delete("D001") is False

    def test_review_copies_do_not_leak(self, demo_dealers):
        store = DealerStore(demo_dealers)
        store.add_review(_review())
        copy = store.get_review("r1")
        copy.rating = 1
        assert store.get_review("r1").rating == 4

    def test_update_review(self, demo_dealers):
        store = DealerStore(demo_dealers)
        store.add_review(_review())
        assert store.update_review("r1", review="Changed").review == "Changed"
        with pytest.raises(KeyError):
            store.update_review("missing", review="x")


class TestJsonPersistence:
    """Loading and saving dealer datasets."""

    def test_missing_file(self, tmp_path):
        assert load_dealers(tmp_path / "missing.json") == []

    def test_empty_file(self, tmp_path):
        path = tmp_path / "dealers.json"
        path.write_text("   ")
        assert load_dealers(path) == []

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "dealers.json"
        path.write_text("{not json")
        assert load_dealers(path) == []

    def test_wrapped_dealers_key(self, tmp_path):
        path = tmp_path / "dealers.json"
        path.write_text('{"dealers": [{"id": "X", "name": "Alpha", "state": "NV"}]}')
        assert [d.id for d in load_dealers(path)] == ["X"]

    def test_save_creates_parents(self, tmp_path, demo_dealers):
        path = tmp_path / "nested" / "dir" / "dealers.json"
        save_dealers(path, demo_dealers)
        assert load_dealers(path) == demo_dealers

    def test_loads_fixture_file(self, dealers_json):
        assert len(load_dealers(dealers_json)) == 5
