"""
Tests for demo data and the synthetic dealer generator.
"""

from datetime import datetime, timedelta

from dealersplus.seed import (
    BRANDS,
    DEMO_DEALERS,
    DEMO_USER_ID,
    STATES,
    build_demo_store,
    generate_dealers,
    pick_n,
    pseudo_random_int,
    seed_reviews,
)
from dealersplus.schema import validate_dealer
from dealersplus.storage import DealerStore


class TestPseudoRandom:
    def test_in_range_and_stable(self):
        values = [pseudo_random_int(3, 7, f"seed-{i}") for i in range(50)]
        assert all(3 <= v <= 7 for v in values)
        assert values == [pseudo_random_int(3, 7, f"seed-{i}") for i in range(50)]

    def test_pick_n_distinct(self):
        picked = pick_n(BRANDS, 3, "CO-Denver-0")
        assert len(picked) == 3
        assert len(set(picked)) == 3
        assert set(picked) <= set(BRANDS)


class TestGenerateDealers:
    def test_covers_every_state(self):
        dealers = generate_dealers(per_state=2)
        assert len(dealers) == 100
        assert len({d.state for d in dealers}) == 50
        assert len({d.id for d in dealers}) == 100
        assert dealers[0].id == "D0001"

    def test_deterministic(self):
        assert generate_dealers(per_state=3) == generate_dealers(per_state=3)

    def test_dealers_are_valid(self):
        cities = dict(STATES)
        for d in generate_dealers(per_state=2):
            assert validate_dealer(d.to_dict()) == []
            assert d.city in cities[d.state]
            assert 1 <= len(d.brands) <= 3
            assert len(d.zip) == 5

    def test_zero_per_state(self):
        assert generate_dealers(per_state=0) == []


class TestDemoStore:
    def test_demo_store_contents(self):
        store = build_demo_store()
        assert [d.id for d in store.snapshot()] == [d.id for d in DEMO_DEALERS]
        assert len(store.makes()) == 7
        assert len(store.models()) == 9
        assert len(store.all_reviews()) == 15

    def test_without_reviews(self):
        assert build_demo_store(with_reviews=False).all_reviews() == []

    def test_seed_reviews(self):
        store = DealerStore(list(DEMO_DEALERS))
        now = datetime(2024, 5, 1, 12, 0)
        assert seed_reviews(store, now=now) == 15

        reviews = store.reviews_for("D001")
        assert all(r.user_id == DEMO_USER_ID for r in reviews)
        assert all(3 <= r.rating <= 5 for r in reviews)
        assert sorted(r.time for r in reviews) == [now - timedelta(days=k) for k in (3, 2, 1)]
