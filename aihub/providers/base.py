"""Shared HTTP plumbing for external data sources."""

import logging
from typing import Any, Optional

import httpx

from aihub.exceptions import ExternalFetchError, ExternalTimeoutError, map_http_status_to_error

logger = logging.getLogger(__name__)


class BaseHTTPSource:
    """Base class for JSON-over-HTTP collaborators.

    Subclasses build a client with ``_get_client`` and call ``_get_json``.
    Every transport or status failure surfaces as an ``ExternalFetchError``.
    Nothing here retries; callers decide on backoff.
    """

    source_name = "external"

    def __init__(self, api_base: str, api_key: Optional[str] = None, timeout: float = 30.0):
        self.api_base = api_base.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    def _get_client(self) -> httpx.AsyncClient:
        """Get configured HTTP client."""
        return httpx.AsyncClient(
            base_url=self.api_base,
            headers=self._headers(),
            timeout=self.timeout,
        )

    def _handle_error(self, exc: httpx.HTTPStatusError) -> None:
        """Handle HTTP errors."""
        status_code = exc.response.status_code

        try:
            body = exc.response.json()
        except ValueError:
            body = None
        message = f"{self.source_name} returned HTTP {status_code}"
        if isinstance(body, dict) and isinstance(body.get("error"), dict) and body["error"].get("message"):
            message = f"{message}: {body['error']['message']}"

        raise map_http_status_to_error(status_code, message, body)

    async def _get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        client = self._get_client()
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            self._handle_error(e)
        except httpx.TimeoutException as e:
            raise ExternalTimeoutError(f"{self.source_name} timed out: {e}")
        except httpx.HTTPError as e:
            raise ExternalFetchError(f"Could not reach {self.source_name}: {e}")
        except ValueError as e:
            raise ExternalFetchError(f"{self.source_name} returned invalid JSON: {e}")
        finally:
            await client.aclose()
