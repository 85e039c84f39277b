"""Tests for catalog API routes."""

from decimal import Decimal

from fastapi import status

from aihub.exceptions import ExternalFetchError
from aihub.proxy.dependencies import get_catalog_repository


class TestSyncEndpoint:
    """Tests for POST /v1/catalog/sync."""

    def test_requires_auth(self, client):
        """Test syncing without a token is rejected."""
        response = client.post("/v1/catalog/sync")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_rejects_non_admin_key(self, client):
        """Test a non-admin key is forbidden."""
        response = client.post("/v1/catalog/sync", headers={"Authorization": "Bearer sk-user"})
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_rejected_before_repository_is_opened(self, app, client):
        """Test unauthenticated admin calls never open a database session."""
        opened = []
        app.dependency_overrides[get_catalog_repository] = lambda: opened.append(True)

        assert client.post("/v1/catalog/sync").status_code == status.HTTP_401_UNAUTHORIZED
        assert client.delete("/v1/catalog/rate-limits/m1/pro").status_code == status.HTTP_401_UNAUTHORIZED
        assert opened == []

    def test_sync(self, client, admin_headers, memory_repository):
        """Test a sync reports created and updated records."""
        response = client.post("/v1/catalog/sync", headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["companies"]["created"] == 1
        assert data["models"]["created"] == 2
        assert data["models"]["updated"] == 1
        assert data["models"]["unlinked"] == 0
        assert data["skipped"] == 0
        assert len(memory_repository.model_results) == 1

    def test_fetch_failure_is_502(self, app, client, admin_headers, fake_catalog_client, memory_repository):
        """Test a fetch failure returns 502 and writes nothing."""
        fake_catalog_client.error = ExternalFetchError("LiteLLM returned HTTP 503", status_code=503)

        response = client.post("/v1/catalog/sync", headers=admin_headers)

        assert response.status_code == 502
        assert response.json()["error"]["type"] == "external_fetch_error"
        assert memory_repository.model_results == []


class TestQuotaEndpoint:
    """Tests for GET /v1/catalog/models/{model_id}/quota."""

    def test_unlimited_when_no_row(self, client):
        """Test a pair without a row resolves to unlimited (0 on the wire)."""
        response = client.get("/v1/catalog/models/m1/quota", params={"tier_id": "free"})
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["limits"] == {
            "requests_per_minute": 0,
            "requests_per_day": 0,
            "tokens_per_minute": 0,
            "tokens_per_day": 0,
        }
        assert Decimal(data["price"]["input"]) == Decimal("0.00003")
        assert data["explicit"] is False
        assert data["display_price"] is None

    def test_explicit_limits(self, client):
        """Test an explicit row is returned as such."""
        data = client.get("/v1/catalog/models/m1/quota", params={"tier_id": "pro"}).json()
        assert data["limits"]["requests_per_minute"] == 60
        assert data["explicit"] is True

    def test_display_currency(self, client):
        """Test the price is also shown in the requested currency."""
        data = client.get("/v1/catalog/models/m1/quota", params={"tier_id": "free", "currency": "RUB"}).json()
        assert data["display_currency"] == "RUB"
        assert data["display_converted"] is True
        assert Decimal(data["display_price"]["input"]) == Decimal("0.00285")

    def test_display_currency_without_rate(self, client):
        """Test a missing rate leaves the display price in USD, flagged unconverted."""
        data = client.get("/v1/catalog/models/m1/quota", params={"tier_id": "free", "currency": "EUR"}).json()
        assert data["display_converted"] is False
        assert data["display_price"]["currency"] == "USD"
        assert Decimal(data["display_price"]["input"]) == Decimal("0.00003")

    def test_free_model(self, client):
        """Test a free model is zero-priced."""
        data = client.get("/v1/catalog/models/m2/quota", params={"tier_id": "free"}).json()
        assert data["price"]["is_free"] is True
        assert Decimal(data["price"]["input"]) == 0

    def test_unknown_model_404(self, client):
        """Test an unknown model is a 404 naming model_id."""
        response = client.get("/v1/catalog/models/nope/quota", params={"tier_id": "free"})
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["param"] == "model_id"

    def test_unknown_tier_404(self, client):
        """Test an unknown tier is a 404."""
        response = client.get("/v1/catalog/models/m1/quota", params={"tier_id": "gold"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_disabled_model_403(self, client):
        """Test a disabled model is a 403."""
        response = client.get("/v1/catalog/models/m3/quota", params={"tier_id": "free"})
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"]["type"] == "model_unavailable"

    def test_tier_required(self, client):
        """Test tier_id is a required parameter."""
        response = client.get("/v1/catalog/models/m1/quota")
        assert response.status_code == 422


class TestRateLimitEndpoints:
    """Tests for rate-limit administration."""

    def test_list_materializes_every_tier(self, client):
        """Test every tier gets a row, zero-valued where none is stored."""
        response = client.get("/v1/catalog/models/m1/rate-limits")
        assert response.status_code == status.HTTP_200_OK

        items = response.json()["items"]
        assert [i["tier_id"] for i in items] == ["free", "pro", "enterprise"]
        assert items[0]["id"] is None
        assert items[0]["requests_per_minute"] == 0
        assert items[1]["id"] == "rl-1"

    def test_put_creates(self, client, admin_headers, memory_repository):
        """Test PUT creates a missing rate limit."""
        payload = {"model_id": "m1", "tier_id": "free", "requests_per_minute": 10, "tokens_per_day": 50000}
        response = client.put("/v1/catalog/rate-limits", json=payload, headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["requests_per_minute"] == 10
        assert memory_repository.rate_limits[("m1", "free")].tokens_per_day == 50000

    def test_put_updates(self, client, admin_headers, memory_repository):
        """Test PUT updates an existing rate limit in place."""
        payload = {"model_id": "m1", "tier_id": "pro", "requests_per_minute": 120}
        response = client.put("/v1/catalog/rate-limits", json=payload, headers=admin_headers)

        assert response.json()["id"] == "rl-1"
        assert memory_repository.rate_limits[("m1", "pro")].requests_per_minute == 120

    def test_put_rejects_negative(self, client, admin_headers):
        """Test negative counters fail validation."""
        payload = {"model_id": "m1", "tier_id": "pro", "requests_per_minute": -1}
        response = client.put("/v1/catalog/rate-limits", json=payload, headers=admin_headers)
        assert response.status_code == 422

    def test_put_unknown_tier(self, client, admin_headers):
        """Test PUT for an unknown tier is a 404."""
        payload = {"model_id": "m1", "tier_id": "gold"}
        response = client.put("/v1/catalog/rate-limits", json=payload, headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_put_requires_admin(self, client):
        """Test PUT without a token is rejected."""
        response = client.put("/v1/catalog/rate-limits", json={"model_id": "m1", "tier_id": "pro"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_delete_falls_back_to_unlimited(self, client, admin_headers):
        """Test deleting a row makes the pair unlimited again."""
        response = client.delete("/v1/catalog/rate-limits/m1/pro", headers=admin_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        data = client.get("/v1/catalog/models/m1/quota", params={"tier_id": "pro"}).json()
        assert data["explicit"] is False
        assert data["limits"]["requests_per_minute"] == 0

    def test_delete_missing(self, client, admin_headers):
        """Test deleting a missing row is a 404."""
        response = client.delete("/v1/catalog/rate-limits/m1/free", headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
