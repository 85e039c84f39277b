"""Tests for the LiteLLM catalog client."""

import httpx
import pytest
import respx

from aihub.exceptions import ExternalFetchError, ExternalTimeoutError
from aihub.providers.litellm import LiteLLMCatalogClient

BASE_URL = "http://litellm.test:4000"


@pytest.fixture
def client():
    return LiteLLMCatalogClient(BASE_URL + "/", api_key="sk-litellm")


class TestFetchModelGroups:
    """Test fetch_model_groups()."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_success(self, client, model_groups):
        """Test model groups are fetched with the bearer key."""
        route = respx.get(f"{BASE_URL}/model_group/info").mock(
            return_value=httpx.Response(200, json={"data": model_groups})
        )

        groups = await client.fetch_model_groups()

        assert [g["model_group"] for g in groups] == ["gpt-4o", "claude-3-5-sonnet", "text-embedding-3-small"]
        assert route.called
        assert route.calls.last.request.headers["Authorization"] == "Bearer sk-litellm"

    @respx.mock
    @pytest.mark.asyncio
    async def test_no_key_no_auth_header(self):
        """Test no Authorization header is sent without a key."""
        route = respx.get(f"{BASE_URL}/model_group/info").mock(
            return_value=httpx.Response(200, json={"data": []})
        )
        assert await LiteLLMCatalogClient(BASE_URL).fetch_model_groups() == []
        assert "Authorization" not in route.calls.last.request.headers

    @respx.mock
    @pytest.mark.asyncio
    async def test_unexpected_shape(self, client):
        """Test an unexpected payload shape is a fetch error."""
        respx.get(f"{BASE_URL}/model_group/info").mock(
            return_value=httpx.Response(200, json={"models": []})
        )
        with pytest.raises(ExternalFetchError, match="no 'data' list"):
            await client.fetch_model_groups()

    @respx.mock
    @pytest.mark.asyncio
    async def test_auth_error(self, client):
        """Test 401 maps to an authentication error."""
        respx.get(f"{BASE_URL}/model_group/info").mock(
            return_value=httpx.Response(401, json={"error": {"message": "invalid key"}})
        )
        with pytest.raises(ExternalFetchError) as exc_info:
            await client.fetch_model_groups()

        assert exc_info.value.status_code == 401
        assert exc_info.value.type == "external_authentication_error"
        assert "invalid key" in exc_info.value.message

    @respx.mock
    @pytest.mark.asyncio
    async def test_server_error(self, client):
        """Test 5xx maps to a fetch error."""
        respx.get(f"{BASE_URL}/model_group/info").mock(return_value=httpx.Response(503, text="unavailable"))
        with pytest.raises(ExternalFetchError) as exc_info:
            await client.fetch_model_groups()
        assert exc_info.value.status_code == 503

    @respx.mock
    @pytest.mark.asyncio
    async def test_timeout(self, client):
        """Test a timeout maps to ExternalTimeoutError."""
        respx.get(f"{BASE_URL}/model_group/info").mock(side_effect=httpx.ReadTimeout("timed out"))
        with pytest.raises(ExternalTimeoutError):
            await client.fetch_model_groups()

    @respx.mock
    @pytest.mark.asyncio
    async def test_connection_error(self, client):
        """Test a connection failure is a fetch error."""
        respx.get(f"{BASE_URL}/model_group/info").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(ExternalFetchError, match="Could not reach LiteLLM"):
            await client.fetch_model_groups()

    @respx.mock
    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        """Test a non-JSON body is a fetch error."""
        respx.get(f"{BASE_URL}/model_group/info").mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(ExternalFetchError, match="invalid JSON"):
            await client.fetch_model_groups()
