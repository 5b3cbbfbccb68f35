from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from complyai.features.indexing.dependencies.components import get_components
from complyai.platform.exceptions import NavigationTimeout, PersistenceError


@pytest.fixture
def components(test_app):
    stub = SimpleNamespace(
        pipeline=SimpleNamespace(index_website=AsyncMock(), scan_page=AsyncMock()),
        store=SimpleNamespace(get_page_report=AsyncMock(return_value=None)),
        search_engine=SimpleNamespace(
            semantic_search=AsyncMock(return_value=[]),
            search_violations=AsyncMock(return_value=[]),
            search_websites_by_compliance=AsyncMock(return_value=[]),
        ),
    )
    test_app.dependency_overrides[get_components] = lambda: stub
    yield stub
    test_app.dependency_overrides.pop(get_components, None)


class TestIndexingRoutes:
    def test_index_website(self, client, components):
        components.pipeline.index_website.return_value = {
            "domain": "example.com",
            "pages_indexed": 2,
            "compliance_score": 72.5,
        }

        response = client.post("/api/v1/index", json={"domain": "example.com"})

        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "success"
        assert payload["data"] == {"domain": "example.com", "pages_indexed": 2, "compliance_score": 72.5}
        components.pipeline.index_website.assert_awaited_once_with("example.com")

    def test_index_invalid_domain(self, client, components):
        components.pipeline.index_website.side_effect = ValueError("URL cannot be empty")

        response = client.post("/api/v1/index", json={"domain": " "})

        assert response.status_code == 400
        assert response.json()["message"] == "URL cannot be empty"

    def test_index_requires_domain(self, client, components):
        response = client.post("/api/v1/index", json={})

        assert response.status_code == 422
        assert response.json()["status"] == "error"

    def test_scan_navigation_failure_is_bad_gateway(self, client, components):
        components.pipeline.scan_page.side_effect = NavigationTimeout("https://slow.example.com", "timed out")

        response = client.post("/api/v1/scan", json={"url": "https://slow.example.com"})

        assert response.status_code == 502
        assert response.json()["status"] == "error"

    def test_scan_persistence_failure_is_server_error(self, client, components):
        components.pipeline.scan_page.side_effect = PersistenceError("rolled back")

        response = client.post("/api/v1/scan", json={"url": "https://example.com"})

        assert response.status_code == 500

    def test_unknown_page_report(self, client, components):
        response = client.get("/api/v1/pages/report", params={"url": "https://example.com/missing"})

        assert response.status_code == 404
        assert response.json()["message"] == "Page not found"


class TestSearchRoutes:
    def test_semantic_search_formats_similarity(self, client, components):
        components.search_engine.semantic_search.return_value = [
            {
                "id": "v1",
                "violation_id": "color-contrast",
                "description": "Low contrast text",
                "severity": "critical",
                "html": "<p>",
                "suggestion": "",
                "url": "https://example.com/",
                "title": "Home",
                "domain": "example.com",
                "similarity": 0.8734,
            }
        ]

        response = client.post("/api/v1/search/semantic", json={"query": "contrast", "limit": 3})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["query"] == "contrast"
        assert data["results"][0]["similarity"] == "87.3%"
        assert data["results"][0]["violation_id"] == "color-contrast"
        components.search_engine.semantic_search.assert_awaited_once_with("contrast", 3)

    def test_semantic_search_rejects_empty_query(self, client, components):
        response = client.post("/api/v1/search/semantic", json={"query": ""})

        assert response.status_code == 422

    def test_violation_search_needs_a_filter(self, client, components):
        response = client.get("/api/v1/search/violations")

        assert response.status_code == 400
        components.search_engine.search_violations.assert_not_awaited()

    def test_violation_search_passes_filters(self, client, components):
        response = client.get("/api/v1/search/violations", params={"severity": "critical", "domain": "example"})

        assert response.status_code == 200
        components.search_engine.search_violations.assert_awaited_once_with(
            violation_id=None, severity="critical", domain="example", limit=100
        )

    def test_compliance_search(self, client, components):
        components.search_engine.search_websites_by_compliance.return_value = [
            {"domain": "example.com", "compliance_score": 90.0, "last_scanned": None}
        ]

        response = client.get("/api/v1/search/compliance", params={"min_score": 80})

        assert response.status_code == 200
        assert response.json()["data"][0]["domain"] == "example.com"
        components.search_engine.search_websites_by_compliance.assert_awaited_once_with(80.0, 50)
