"""Client for the LiteLLM routing service catalog."""

import logging
from typing import Any, Optional

from aihub.exceptions import ExternalFetchError

from .base import BaseHTTPSource

logger = logging.getLogger(__name__)


class LiteLLMCatalogClient(BaseHTTPSource):
    """Reads the model-group catalog from a LiteLLM proxy.

    Usage:
        client = LiteLLMCatalogClient("http://litellm:4000", api_key="sk-...")
        entries = await client.fetch_model_groups()
    """

    source_name = "LiteLLM"

    def __init__(self, api_base: str, api_key: Optional[str] = None, timeout: float = 30.0):
        super().__init__(api_base, api_key=api_key, timeout=timeout)

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def fetch_model_groups(self) -> list[dict[str, Any]]:
        """Fetch raw model-group entries.

        Entries are returned as-is; validation happens per entry during
        reconciliation.

        Raises:
            ExternalFetchError: On transport failure, HTTP error or an
                unexpected response shape
        """
        data = await self._get_json("/model_group/info")
        if isinstance(data, dict):
            data = data.get("data")
        if not isinstance(data, list):
            raise ExternalFetchError("LiteLLM model_group/info returned no 'data' list")
        logger.info(f"Fetched {len(data)} model groups from LiteLLM")
        return data
