from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from georoute.core.config import settings

logger = logging.getLogger(__name__)


class NominatimClient:
    """Thin async wrapper over the Nominatim search/reverse endpoints.

    Every method returns ``None`` (or an empty list) on transport errors,
    non-200 responses or empty results; failures are logged, never raised.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.NOMINATIM_URL).rstrip("/")
        self.user_agent = user_agent or settings.GEOCODER_USER_AGENT
        self._timeout = httpx.Timeout(timeout or settings.REQUEST_TIMEOUT, connect=10.0)
        self._transport = transport

    def _client(self, **kwargs: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
            **kwargs,
        )

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Optional[Any]:
        url = f"{self.base_url}/{path}"
        try:
            async with self._client() as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Nominatim request to %s failed: %s", path, exc)
            return None

        if response.status_code != 200:
            logger.warning("Nominatim %s returned HTTP %s", path, response.status_code)
            return None

        try:
            return response.json()
        except ValueError:
            logger.warning("Nominatim %s returned a non-JSON body", path)
            return None

    async def search(self, query: str, limit: int = 1) -> List[Dict[str, Any]]:
        data = await self._get_json("search", {"format": "json", "q": query, "limit": limit, "addressdetails": 1})
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    async def geocode(self, query: str) -> Optional[Tuple[float, float]]:
        results = await self.search(query, limit=1)
        if not results:
            logger.info("No geocoding result for %r", query)
            return None
        first = results[0]
        try:
            return float(first["lat"]), float(first["lon"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Malformed geocoding result for %r: %r", query, first)
            return None

    async def reverse(self, lat: float, lng: float) -> Optional[str]:
        data = await self._get_json(
            "reverse",
            {"format": "json", "lat": lat, "lon": lng, "zoom": 18, "addressdetails": 1},
        )
        if not isinstance(data, dict):
            return None
        name = data.get("display_name")
        return name if isinstance(name, str) and name.strip() else None

    async def fetch_final_url_and_body(self, url: str) -> Optional[Tuple[str, str]]:
        """Follow redirects of ``url`` and return the final URL with the page body."""
        try:
            async with self._client(follow_redirects=True) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Failed to follow link %s: %s", url, exc)
            return None
        return str(response.url), response.text


nominatim_client = NominatimClient()
