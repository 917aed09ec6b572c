"""
Tests for the OpenStreetMap importer. Network calls are mocked.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from dealersplus import osm
from dealersplus.retry import CircuitBreaker
from dealersplus.storage import MAX_FIELD_LENGTH, Dealer

ELEMENTS = [
    {"type": "node", "id": 1, "tags": {
        "shop": "car", "name": "Mile High Toyota", "addr:city": "Denver",
        "addr:postcode": "80202", "phone": "303-555-0100",
    }},
    {"type": "way", "id": 2, "tags": {
        "amenity": "car_dealership", "name": "Front Range Used Cars", "addr:city": "Aurora",
    }},
    {"type": "node", "id": 3, "tags": {"shop": "car", "name": "Old Lot", "disused": "yes"}},
    {"type": "node", "id": 4, "tags": {"shop": "car_repair", "name": "Fix It"}},
    {"type": "node", "id": 5, "tags": {"shop": "car", "name": "Mile High Toyota", "addr:city": "Denver"}},
    {"type": "node", "id": 6, "tags": {"shop": "car"}},
    {"type": "node", "id": 7, "tags": {"shop": "car", "was:shop": "car", "name": "Gone Motors"}},
]


def _response(status=200, payload=None, json_error=None):
    resp = MagicMock()
    resp.status_code = status
    if json_error:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = payload if payload is not None else {"elements": []}
    if status >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status} Error", response=resp)
    return resp


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr("dealersplus.retry.time.sleep", lambda seconds: None)


class TestParsing:
    def test_query_targets_state(self):
        query = osm.overpass_query("CO")
        assert 'area["ISO3166-2"="US-CO"]' in query
        assert '"amenity"="car_dealership"' in query

    @pytest.mark.parametrize("tags,expected", [
        (None, True),
        ({"shop": "car"}, False),
        ({"amenity": "car_dealership"}, False),
        ({"shop": "car", "abandoned": "yes"}, True),
        ({"disused:shop": "car"}, True),
        ({"shop": "tyres"}, True),
    ])
    def test_is_closed_or_unrelated(self, tags, expected):
        assert osm.is_closed_or_unrelated(tags) is expected

    def test_detect_brands(self):
        assert osm.detect_brands({"name": "Bay Honda", "operator": "Honda Group"}) == ["Honda"]
        assert osm.detect_brands({"name": "Corner Lot"}) == []

    def test_element_to_dealer(self):
        dealer = osm.element_to_dealer(ELEMENTS[0], "CO")
        assert dealer == Dealer(
            id="OSM_node_1", name="Mile High Toyota", city="Denver", state="CO", zip="80202",
            brands=("Toyota",), phone="303-555-0100", is_new=True, is_used=True,
        )

    def test_long_names_are_capped(self):
        element = {"type": "node", "id": 9, "tags": {"shop": "car", "name": "Motors " * 500}}
        dealer = osm.element_to_dealer(element, "CO")
        assert len(dealer.name) <= MAX_FIELD_LENGTH
        assert dealer.name.startswith("Motors Motors")

    def test_parse_response_filters_and_dedupes(self):
        dealers = osm.parse_overpass_response({"elements": ELEMENTS}, "CO")
        assert [d.id for d in dealers] == ["OSM_node_1", "OSM_way_2"]
        assert dealers[1].is_new is False

    def test_parse_response_cap(self):
        assert len(osm.parse_overpass_response({"elements": ELEMENTS}, "CO", per_state=1)) == 1

    @pytest.mark.parametrize("data", [None, [], {}, {"elements": "nope"}])
    def test_parse_malformed(self, data):
        assert osm.parse_overpass_response(data, "CO") == []


class TestFetchState:
    def test_success(self, test_logger):
        with patch("dealersplus.osm.requests.post", return_value=_response(payload={"elements": ELEMENTS})) as post:
            dealers = osm.fetch_state("CO", url="http://overpass.test/api")

        assert len(dealers) == 2
        assert post.call_args.args[0] == "http://overpass.test/api"
        assert post.call_args.kwargs["headers"]["User-Agent"] == osm.USER_AGENT
        assert test_logger.metrics["imports_successful"] == 1

    def test_http_error(self, test_logger):
        with patch("dealersplus.osm.requests.post", return_value=_response(status=404)):
            with pytest.raises(ValueError, match="404"):
                osm.fetch_state("CO")

        assert test_logger.metrics["errors_by_type"]["HTTPError_404"] == 1
        assert test_logger.metrics["imports_failed"] == 1

    def test_transient_status_is_retried(self, test_logger, no_sleep):
        responses = [_response(status=429), _response(payload={"elements": ELEMENTS[:1]})]
        with patch("dealersplus.osm.requests.post", side_effect=responses) as post:
            dealers = osm.fetch_state("CO")

        assert post.call_count == 2
        assert [d.id for d in dealers] == ["OSM_node_1"]

    def test_retries_exhausted(self, test_logger, no_sleep):
        with patch("dealersplus.osm.requests.post", return_value=_response(status=503)) as post:
            with pytest.raises(ValueError, match="after retries"):
                osm.fetch_state("CO")

        assert post.call_count == 4
        assert test_logger.metrics["errors_by_type"]["TransientHTTPError"] == 1

    def test_timeouts_exhausted(self, test_logger, no_sleep):
        with patch("dealersplus.osm.requests.post", side_effect=requests.exceptions.Timeout("slow")):
            with pytest.raises(ValueError):
                osm.fetch_state("CO")

        assert test_logger.metrics["errors_by_type"]["Timeout"] == 1

    def test_invalid_json(self, test_logger):
        bad = _response(json_error=ValueError("Expecting value"))
        with patch("dealersplus.osm.requests.post", return_value=bad):
            with pytest.raises(ValueError, match="invalid JSON"):
                osm.fetch_state("CO")

        assert test_logger.metrics["errors_by_type"]["InvalidJSON"] == 1


class TestImportDealers:
    def test_failed_state_is_skipped(self):
        dealer = Dealer(id="OSM_node_1", name="Mile High Toyota", city="Denver", state="CO")
        with patch("dealersplus.osm.fetch_state", side_effect=[ValueError("boom"), [dealer]]):
            result = osm.import_dealers(["AL", "CO"], pause=0)
        assert result == [dealer]

    def test_breaker_stops_import(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=300, expected_exception=ValueError)
        with patch("dealersplus.osm.fetch_state", side_effect=ValueError("down")) as fetch:
            result = osm.import_dealers(["AL", "AK", "AZ", "AR"], pause=0, breaker=breaker)

        assert result == []
        assert fetch.call_count == 2
        assert breaker.state == CircuitBreaker.OPEN

    def test_results_are_deduplicated(self):
        a = Dealer(id="1", name="Metro Motors", city="Reno", state="NV")
        b = Dealer(id="2", name="Metro Motors", city="Reno", state="NV")
        with patch("dealersplus.osm.fetch_state", side_effect=[[a], [b]]):
            assert osm.import_dealers(["NV", "NV"], pause=0) == [a]
