"""
tests/test_api.py — Tests for the HTTP serving layer.

Runs against the packaged sample dataset (energyviz/data/energy_data.json)
through the real lifespan hook. Only the degraded-mode tests swap in an
engine that was never loaded.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from energyviz import api
from energyviz.constants import ENERGY_TYPE_KEYS
from energyviz.engine import EnergyDataEngine

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def client():
    """Test client with the lifespan run, so the sample dataset is loaded."""
    with TestClient(api.app) as c:
        yield c


# ===========================================================================
# Metadata
# ===========================================================================


class TestMetadata:
    def test_ready(self, client: TestClient):
        assert client.get("/ready").json() == {"ready": True}

    def test_root_reports_timeline(self, client: TestClient):
        body = client.get("/").json()
        assert body["data_loaded"] is True
        assert body["start_year"] == 2018
        assert body["end_year"] == 2021

    def test_docs_hidden_outside_dev(self, client: TestClient):
        assert client.get("/docs").status_code == 404


class TestEnergyTypes:
    def test_grouped_by_category(self, client: TestClient):
        body = client.get("/energy-types").json()
        categories = [c["category"] for c in body["categories"]]
        assert categories == ["fossil_fuels", "nuclear", "renewables"]
        types = [t["type"] for c in body["categories"] for t in c["types"]]
        assert tuple(types) == ENERGY_TYPE_KEYS

    def test_labels_and_colors(self, client: TestClient):
        body = client.get("/energy-types").json()
        gas = body["categories"][0]["types"][2]
        assert gas == {"type": "gas", "label": "Natural Gas", "color": "#696969"}


# ===========================================================================
# Data views
# ===========================================================================


class TestYearsAndStack:
    def test_years(self, client: TestClient):
        assert client.get("/years").json() == {"years": [2018, 2019, 2020, 2021]}

    def test_stack_ranked(self, client: TestClient):
        body = client.get("/stack/2020").json()
        names = [c["country"] for c in body["countries"]]
        assert names == ["China", "United States", "India", "Japan", "Germany", "Vietnam"]
        totals = [c["total"] for c in body["countries"]]
        assert totals == sorted(totals, reverse=True)

    def test_stack_records_have_every_type(self, client: TestClient):
        for record in client.get("/stack/2020").json()["countries"]:
            assert set(record) == {"country", "total", *ENERGY_TYPE_KEYS}
        vietnam = client.get("/stack/2020").json()["countries"][-1]
        assert vietnam["nuclear"] == 0.0
        assert vietnam["biofuel"] == 0.0

    def test_unknown_year_is_empty_not_error(self, client: TestClient):
        r = client.get("/stack/1990")
        assert r.status_code == 200
        assert r.json() == {"year": 1990, "countries": []}

    def test_non_integer_year_rejected(self, client: TestClient):
        assert client.get("/stack/latest").status_code == 422


class TestAverage:
    def test_first_year_defines_candidates(self, client: TestClient):
        body = client.get("/average", params={"start": 2018, "end": 2021}).json()
        names = [c["country"] for c in body["countries"]]
        assert "Vietnam" not in names
        assert names[0] == "China"
        assert body["countries"][0]["total"] == pytest.approx(145.6)

    def test_later_range_includes_vietnam(self, client: TestClient):
        body = client.get("/average", params={"start": 2020, "end": 2021}).json()
        vietnam = next(c for c in body["countries"] if c["country"] == "Vietnam")
        assert vietnam["total"] == pytest.approx(4.1)
        assert vietnam["solar"] == pytest.approx(0.15)

    def test_inverted_range_is_400(self, client: TestClient):
        r = client.get("/average", params={"start": 2021, "end": 2018})
        assert r.status_code == 400
        assert "start 2021 is after end 2018" in r.json()["detail"]

    def test_range_without_data_is_empty(self, client: TestClient):
        body = client.get("/average", params={"start": 1990, "end": 1995}).json()
        assert body["countries"] == []

    def test_missing_bound_is_422(self, client: TestClient):
        assert client.get("/average", params={"start": 2018}).status_code == 422


class TestConsumption:
    def test_unfiltered_series(self, client: TestClient):
        body = client.get("/consumption").json()
        assert body["filtered"] is False
        assert [p["year"] for p in body["series"]] == [2018, 2019, 2020, 2021]

    def test_filtered_series(self, client: TestClient):
        body = client.get(
            "/consumption", params=[("country", "Japan"), ("country", "Germany")],
        ).json()
        assert body["filtered"] is True
        assert body["countries"] == ["Japan", "Germany"]
        first = body["series"][0]
        assert first["energy"]["oil"] == pytest.approx(12.1)
        assert first["energy"]["wind"] == pytest.approx(1.0)
        assert first["totalConsumption"] == pytest.approx(sum(first["energy"].values()))

    def test_filter_does_not_leak_into_engine(self, client: TestClient):
        client.get("/consumption", params={"country": "Japan"})
        assert not api.engine.has_selected_countries()
        assert client.get("/consumption").json()["filtered"] is False


class TestMap:
    def test_raw_passthrough(self, client: TestClient):
        body = client.get("/map").json()
        assert [r["year"] for r in body] == [2018, 2019, 2020, 2021]
        china = body[0]["countries"][0]
        assert china["name"] == "China"
        assert "biofuel" not in china["energy"]

    def test_range_snapshot(self, client: TestClient):
        body = client.get("/map", params={"start": 2019, "end": 2021}).json()
        assert len(body) == 1
        assert body[0]["year"] == 2021
        for country in body[0]["countries"]:
            assert set(country["energy"]) == set(ENERGY_TYPE_KEYS)

    def test_half_range_is_400(self, client: TestClient):
        for params in ({"end": 2021}, {"start": 2019}):
            r = client.get("/map", params=params)
            assert r.status_code == 400
            assert "pair of integers" in r.json()["detail"]

    def test_inverted_range_is_400(self, client: TestClient):
        assert client.get("/map", params={"start": 2021, "end": 2019}).status_code == 400


# ===========================================================================
# Degraded mode
# ===========================================================================


class TestDegraded:
    @pytest.fixture
    def degraded_client(self, monkeypatch, tmp_path):
        monkeypatch.setattr(api, "engine", EnergyDataEngine(tmp_path / "absent.json"))
        return TestClient(api.app)

    def test_data_endpoints_503(self, degraded_client: TestClient):
        for path in ("/years", "/stack/2020", "/average?start=2018&end=2021", "/consumption", "/map"):
            r = degraded_client.get(path)
            assert r.status_code == 503
            assert r.json() == {"detail": "Energy dataset not loaded."}

    def test_ready_reports_not_ready(self, degraded_client: TestClient):
        assert degraded_client.get("/ready").json() == {"ready": False}

    def test_root_falls_back_to_default_timeline(self, degraded_client: TestClient):
        body = degraded_client.get("/").json()
        assert body["data_loaded"] is False
        assert body["start_year"] == 1965
        assert body["end_year"] == 2023
