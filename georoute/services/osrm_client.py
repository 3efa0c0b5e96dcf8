from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from georoute.core.config import settings
from georoute.core.exceptions import RoutingBackendError
from georoute.models.routes import LatLng

logger = logging.getLogger(__name__)


class OSRMClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.OSRM_URL).rstrip("/")
        self._timeout = httpx.Timeout(timeout or settings.REQUEST_TIMEOUT, connect=10.0)
        self._transport = transport

    async def route(self, points: Sequence[LatLng], profile: str = "driving") -> Dict[str, Any]:
        """Return the first route of an OSRM ``/route`` response for ``points`` in order."""
        if len(points) < 2:
            raise RoutingBackendError("At least two points are required for routing")

        coord_pairs = [f"{lng},{lat}" for lat, lng in points]
        url = f"{self.base_url}/route/v1/{profile}/" + ";".join(coord_pairs)
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "true",
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            logger.error("OSRM request failed: %s", exc)
            raise RoutingBackendError("Routing service request failed") from exc
        except ValueError as exc:
            logger.error("OSRM returned a non-JSON body: %s", exc)
            raise RoutingBackendError("Routing service returned an invalid response") from exc

        code = payload.get("code") if isinstance(payload, dict) else None
        if code != "Ok":
            logger.error("OSRM returned code %r: %s", code, payload.get("message") if isinstance(payload, dict) else "")
            raise RoutingBackendError("Routing service could not calculate a route")

        routes = payload.get("routes") or []
        if not routes:
            logger.error("OSRM returned no routes")
            raise RoutingBackendError("Routing service returned no routes")

        return routes[0]


osrm_client = OSRMClient()
