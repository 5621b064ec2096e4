"""Unit tests for taxonomy API endpoints."""

import pytest
from fastapi.testclient import TestClient

from taxonomy_api.core.auth import verify_token
from taxonomy_api.main import app
from tests.fixtures.taxonomy_fixtures import FRAMEWORK_HEADERS, FRAMEWORK_ROWS


@pytest.mark.unit
class TestTaxonomyEndpoints:
    """Test suite for taxonomy API endpoints."""

    @pytest.fixture
    def client(self):
        """Create test client with token verification bypassed."""
        app.dependency_overrides[verify_token] = lambda: "test-token"
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_healthz(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-API-Version" in response.headers

    def test_readyz_reports_limits(self, client):
        response = client.get("/readyz")

        assert response.status_code == 200
        limits = response.json()["limits"]
        assert set(limits) == {"labeled", "referenced"}

    def test_detect_columns(self, client):
        response = client.post("/api/taxonomy/columns", json={"headers": FRAMEWORK_HEADERS})

        assert response.status_code == 200
        assert response.json()["column_mapping"]["level2"] == "Niveau 2"

    def test_labeled_tree(self, client):
        payload = {
            "headers": FRAMEWORK_HEADERS,
            "rows": FRAMEWORK_ROWS,
            "filename": "ANSSI-hygiene.xlsx",
        }

        response = client.post("/api/taxonomy/labeled-tree", json=payload)

        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "labeled"
        assert data["stats"]["node_count"] == 6
        assert data["stats"]["item_count"] == 5
        assert data["stats"]["warning_count"] == 1
        assert data["framework"] == {"code": "ANSSI", "name": "ANSSI-hygiene"}
        nodes = {node["id"]: node for node in data["nodes"]}
        assert data["roots"] == ["/L0:gouvernance", "/L0:securite"]
        assert nodes["/L0:securite/L1:reseau/L2:pare-feu"]["items"][0]["id"] == "SEC-1"

    def test_labeled_tree_bad_override(self, client):
        payload = {"headers": ["Titre"], "rows": [], "column_overrides": {"title": "Nom"}}

        response = client.post("/api/taxonomy/labeled-tree", json=payload)

        assert response.status_code == 400

    def test_labeled_tree_missing_rows_is_validation_error(self, client):
        response = client.post("/api/taxonomy/labeled-tree", json={"headers": ["Titre"]})

        assert response.status_code == 422  # Validation error

    def test_referenced_tree(self, client):
        payload = {
            "entities": [
                {"id": "c-sup", "title": "Fournisseurs"},
                {"id": "c-cloud", "title": "Hébergeurs cloud", "parent_id": "c-sup"},
            ],
            "items": [{"id": "o1", "foreign_key": "c-cloud", "weight": 40}],
        }

        response = client.post("/api/taxonomy/referenced-tree", json=payload)

        assert response.status_code == 200
        data = response.json()
        root, child = data["nodes"]
        assert root["item_count"] == 1
        assert root["aggregate_weight"] == 40
        assert root["children"] == ["c-cloud"]
        assert child["parent_id"] == "c-sup"

    def test_ecosystem(self, client):
        payload = {
            "poles": [{"id": "p-dir", "title": "Direction générale"}],
            "categories": [{"id": "c-sup", "title": "Fournisseurs"}],
            "organizations": [
                {"id": "o1", "name": "Siège", "pole_id": "p-dir"},
                {"id": "o2", "name": "Hébergeur", "category_id": "c-sup"},
            ],
        }

        response = client.post("/api/taxonomy/ecosystem", json=payload)

        assert response.status_code == 200
        assert response.json()["summary"] == {
            "internal_count": 1,
            "external_count": 1,
            "unassigned_count": 0,
            "total_count": 2,
        }


@pytest.mark.unit
class TestTokenRequired:
    """Test suite for bearer token enforcement."""

    def test_wrong_token_rejected(self, monkeypatch):
        monkeypatch.setenv("DEV_TOKEN", "portal-secret")
        client = TestClient(app)

        response = client.post(
            "/api/taxonomy/columns",
            json={"headers": ["Titre"]},
            headers={"Authorization": "Bearer wrong"},
        )

        assert response.status_code == 401

    def test_configured_token_accepted(self, monkeypatch):
        monkeypatch.setenv("DEV_TOKEN", "portal-secret")
        client = TestClient(app)

        response = client.post(
            "/api/taxonomy/columns",
            json={"headers": ["Titre"]},
            headers={"Authorization": "Bearer portal-secret"},
        )

        assert response.status_code == 200


class TestRouteFunctions:
    """Route coroutines called directly, without the HTTP layer."""

    @pytest.mark.asyncio
    async def test_detect_columns_coroutine(self):
        from taxonomy_api.main import detect_columns
        from taxonomy_api.models.models import ColumnDetectionRequest

        response = await detect_columns(ColumnDetectionRequest(headers=["Domaine", "Titre"]), token="t")

        assert response.column_mapping["level0"] == "Domaine"
        assert response.column_mapping["title"] == "Titre"

    @pytest.mark.asyncio
    async def test_readiness_coroutine(self):
        from taxonomy_api.main import readiness_check

        response = await readiness_check()

        assert response["status"] == "ready"
