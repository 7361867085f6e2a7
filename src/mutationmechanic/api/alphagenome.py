"""AlphaGenome lookup client.

The primary provider returns a complete annotation bundle in one call. It is
only used when both an API URL and key are configured.
"""

from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mutationmechanic.constants import REQUEST_TIMEOUT_SECONDS


class AlphaGenomeAPIError(Exception):
    """Exception raised for AlphaGenome API errors."""

    pass


class AlphaGenomeClient:
    """Client for the AlphaGenome variant lookup endpoint."""

    DEFAULT_TIMEOUT = REQUEST_TIMEOUT_SECONDS

    def __init__(
        self,
        api_url: str | None,
        api_key: str | None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.api_url = api_url.rstrip("/") if api_url else None
        self.api_key = api_key
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    async def __aenter__(self) -> "AlphaGenomeClient":
        self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    @retry(
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
    )
    async def _query(self, gene: str, variant: str) -> httpx.Response:
        client = self._get_client()
        return await client.get(
            f"{self.api_url}/lookup",
            params={"gene": gene, "variant": variant},
            headers={"Authorization": f"Bearer {self.api_key}"},
        )

    async def lookup(self, gene: str, variant: str) -> dict[str, Any] | None:
        """Fetch a full annotation bundle.

        Returns:
            The camelCase bundle, or None when unconfigured or the variant is unknown

        Raises:
            AlphaGenomeAPIError: If the request fails or returns an error status
        """
        if not self.configured:
            return None

        try:
            response = await self._query(gene, variant)
        except Exception as e:
            raise AlphaGenomeAPIError(f"AlphaGenome unreachable: {str(e)}")

        if response.status_code == 404:
            return None
        if response.is_error:
            raise AlphaGenomeAPIError(f"AlphaGenome returned HTTP {response.status_code}")

        data = response.json()
        if not isinstance(data, dict):
            raise AlphaGenomeAPIError("AlphaGenome returned an unexpected payload")
        return data

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
