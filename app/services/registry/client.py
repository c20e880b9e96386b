import asyncio
import xml.etree.ElementTree as ET

import httpx
from loguru import logger

from app.core.config import settings
from app.core.exceptions import RegistryUnavailable
from app.core.version import __version__


class RegistryClient:
    """
    Client for the EVE Online XML API, the registry of New Eden citizens.

    Every call answers an ``<eveapi>`` document; ``fetch_result`` hands back its
    ``<result>`` element and turns transport failures, API ``<error>`` elements
    and unparseable bodies into ``RegistryUnavailable``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.REGISTRY_BASE_URL
        self.timeout = timeout or settings.REGISTRY_TIMEOUT
        self.max_retries = max_retries or settings.REGISTRY_MAX_RETRIES
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    async def get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"User-Agent": f"NewEdenFaces/{__version__}", "Accept": "application/xml"},
                follow_redirects=True,
                transport=self.transport,
            )
        return self._client

    async def close(self):
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get_body(self, path: str, params: dict[str, str]) -> str:
        """GET ``path``, retrying transport and HTTP errors with exponential backoff."""
        client = await self.get_client()
        for attempt in range(1, self.max_retries + 1):
            try:
                response = await client.get(path, params=params)
                response.raise_for_status()
                return response.text
            except (httpx.HTTPStatusError, httpx.RequestError) as exc:
                if attempt == self.max_retries:
                    logger.error(f"Registry call {path} failed after {attempt} attempts: {exc}")
                    raise RegistryUnavailable(f"Character registry is unavailable: {exc}") from exc
                delay = 0.5 * 2 ** (attempt - 1)
                logger.warning(
                    f"Registry call {path} failed: {exc}. Retrying in {delay}s (Attempt {attempt}/{self.max_retries})"
                )
                await asyncio.sleep(delay)
        raise RegistryUnavailable("Character registry is unavailable.")

    async def fetch_result(self, path: str, params: dict[str, str]) -> ET.Element:
        """Call the API and return the ``<result>`` element of its answer."""
        body = await self._get_body(path, params)
        try:
            root = ET.fromstring(body)
        except ET.ParseError as exc:
            raise RegistryUnavailable(f"Registry returned malformed XML: {exc}") from exc

        error = root.find("error")
        if error is not None:
            raise RegistryUnavailable(f"Registry error {error.get('code')}: {(error.text or '').strip()}")

        result = root.find("result")
        if result is None:
            raise RegistryUnavailable("Registry response has no result element.")
        return result
