"""
Tests for the Flask API.

The module-level catalog store is swapped for one backed by a stub loader,
so no request leaves the process.
"""

import pytest

import backend
from catalog_loader import CatalogLoadResult, CatalogStore
from config import FALLBACK_WARNING


@pytest.fixture
def client(monkeypatch, stub_loader):
    monkeypatch.setattr(backend, "catalog_store", CatalogStore(loader=stub_loader, source="stub"))
    backend.cache.clear()
    backend.cache_stats.update(hits=0, misses=0)
    backend.app.config["TESTING"] = True
    with backend.app.test_client() as client:
        yield client
    backend.cache.clear()


class TestQueryEndpoints:

    def test_query_defaults(self, client):
        response = client.get("/api/query")
        assert response.status_code == 200
        data = response.get_json()
        assert data["total"] == 3
        assert data["warning"] is None
        assert data["state"]["sort"] == "relevance"

    def test_query_and_semantics_from_args(self, client):
        response = client.get("/api/query?industries=Tech&industries=Finance")
        data = response.get_json()
        assert data["total"] == 1
        assert data["cards"][0]["title"].startswith("Zero Trust")

    def test_query_from_json_body(self, client):
        response = client.post("/api/query", json={"term": "zero trust", "sort": "relevance"})
        data = response.get_json()
        assert data["cards"][0]["id"] == 1

    def test_page_is_clamped_in_returned_state(self, client):
        data = client.get("/api/query?sort=newest&page=5&page_size=6").get_json()
        assert data["state"]["page"] == 1
        assert data["pager"]["page_count"] == 1

    def test_bad_sort_is_rejected(self, client):
        response = client.get("/api/query?sort=popular")
        assert response.status_code == 400
        assert "sort" in response.get_json()["error"]

    @pytest.mark.parametrize("body", [
        [1],
        "text",
        {"type": 5},
        {"industries": {"Tech": True}},
        {"page": 1e999},
        {"page_size": 1e999},
    ])
    def test_malformed_body_is_rejected(self, client, body):
        response = client.post("/api/query", json=body)
        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_repeat_query_is_cached(self, client):
        client.get("/api/query?sort=newest")
        client.get("/api/query?sort=newest")
        assert backend.cache_stats == {"hits": 1, "misses": 1}


class TestStateEndpoint:

    def test_toggle_resets_page(self, client):
        response = client.post("/api/state", json={
            "state": {"page": 2, "page_size": 6},
            "action": {"type": "toggle_facet", "dimension": "type", "value": "video"},
        })
        assert response.status_code == 200
        data = response.get_json()
        assert data["state"]["type"] == ["video"]
        assert data["state"]["page"] == 1
        assert data["result"]["total"] == 1
        assert data["result"]["chips"] == [{"dimension": "type", "value": "video"}]

    def test_missing_action(self, client):
        response = client.post("/api/state", json={"state": {}})
        assert response.status_code == 400

    def test_unknown_action(self, client):
        response = client.post("/api/state", json={"action": {"type": "explode"}})
        assert response.status_code == 400
        assert "explode" in response.get_json()["error"]

    @pytest.mark.parametrize("body", [
        [1],
        {"state": [1], "action": {"type": "reset"}},
        {"state": {"type": 5}, "action": {"type": "reset"}},
        {"state": {}, "action": {"type": "set_page", "value": 1e999}},
    ])
    def test_malformed_body_is_rejected(self, client, body):
        response = client.post("/api/state", json=body)
        assert response.status_code == 400
        assert "error" in response.get_json()


class TestCatalogEndpoints:

    def test_catalog_loads_once(self, client, stub_loader):
        client.get("/api/catalog")
        data = client.get("/api/catalog").get_json()
        assert len(data["items"]) == 3
        assert data["items"][0]["industries"] == ["Tech", "Finance"]
        assert stub_loader.calls == 1

    def test_first_use_does_not_reload_after_load(self, client, stub_loader):
        client.get("/api/query")
        client.post("/api/query", json={})
        client.get("/api/catalog")
        assert stub_loader.calls == 1
        assert backend.catalog_store.generation == 1

    def test_reload_bumps_generation(self, client, stub_loader):
        client.get("/api/query")
        response = client.post("/api/catalog/reload")
        assert response.status_code == 200
        assert response.get_json()["count"] == 3
        assert stub_loader.calls == 2
        assert backend.catalog_store.generation == 2

    def test_fallback_warning_reaches_results(self, monkeypatch, client, sample_items, make_stub_loader):
        result = CatalogLoadResult(items=sample_items, warning=FALLBACK_WARNING, fallback=True)
        monkeypatch.setattr(backend, "catalog_store", CatalogStore(loader=make_stub_loader(result)))
        data = client.get("/api/query").get_json()
        assert data["warning"] == FALLBACK_WARNING
        assert data["total"] == 3

    def test_health(self, client):
        client.get("/api/query")
        data = client.get("/api/health").get_json()
        assert data["status"] == "healthy"
        assert data["catalog_size"] == 3
        assert data["cache_size"] == 1

    def test_clear_cache(self, client):
        client.get("/api/query")
        assert client.post("/api/cache/clear").status_code == 200
        assert len(backend.cache) == 0
