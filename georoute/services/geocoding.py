from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar
from urllib.parse import unquote_plus

from georoute.core.config import settings
from georoute.models.locations import Coordinate, SearchResult
from georoute.services.detection import extract_url_coordinates
from georoute.services.geo import is_valid_coordinate
from georoute.services.nominatim_client import NominatimClient, nominatim_client

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FINAL_URL_COORDINATES_RE = re.compile(r"@(-?\d+(?:\.\d+)?),(-?\d+(?:\.\d+)?)")
_BODY_CENTER_RE = re.compile(r'"center"\s*:\s*\{\s*"lat"\s*:\s*(-?\d+(?:\.\d+)?)\s*,\s*"lng"\s*:\s*(-?\d+(?:\.\d+)?)')
_PLACE_PATH_RE = re.compile(r"place/([^/\s@?]+)")

MIN_SEARCH_QUERY_LENGTH = 2


def _coordinate_or_none(lat: float, lng: float) -> Optional[Coordinate]:
    if not is_valid_coordinate(lat, lng):
        return None
    return Coordinate(lat=lat, lng=lng)


def place_name_from_url(url: str) -> Optional[str]:
    match = _PLACE_PATH_RE.search(url)
    if not match:
        return None
    name = unquote_plus(match.group(1)).strip()
    return name or None


class GeocodingService:
    """Forward/reverse geocoding and map-link resolution.

    Nothing here raises for a failed lookup: ``None`` means "could not
    resolve" and callers carry on with the remaining items.

    Every forward request (geocode or search) passes through one gate, so
    consecutive requests start at least ``throttle_seconds`` apart no matter
    which resolution strategy issued them.
    """

    def __init__(
        self,
        client: Optional[NominatimClient] = None,
        throttle_seconds: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.client = client or nominatim_client
        self.throttle_seconds = settings.GEOCODE_THROTTLE_SECONDS if throttle_seconds is None else throttle_seconds
        self._clock = clock or time.monotonic
        self._last_forward: Optional[float] = None
        self._forward_lock = asyncio.Lock()

    async def _throttled(self, request: Callable[[], Awaitable[T]]) -> T:
        async with self._forward_lock:
            if self._last_forward is not None:
                remaining = self.throttle_seconds - (self._clock() - self._last_forward)
                if remaining > 0:
                    logger.debug("Waiting %.2fs before the next geocoding request", remaining)
                    await asyncio.sleep(remaining)
            self._last_forward = self._clock()
            return await request()

    async def geocode_address(self, address: str) -> Optional[Coordinate]:
        if not address or not address.strip():
            logger.warning("Empty address provided")
            return None

        query = address.strip()
        coords = await self._throttled(lambda: self.client.geocode(query))
        if coords is None:
            return None
        result = _coordinate_or_none(*coords)
        if result is None:
            logger.warning("Geocoder returned out-of-range coordinates %s for %r", coords, address)
        return result

    async def reverse_geocode(self, lat: float, lng: float) -> Optional[str]:
        if not is_valid_coordinate(lat, lng):
            return None
        return await self.client.reverse(lat, lng)

    async def search(self, query: str, limit: Optional[int] = None) -> List[SearchResult]:
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_QUERY_LENGTH:
            return []

        limit = limit or settings.GEOCODE_SEARCH_LIMIT
        items = await self._throttled(lambda: self.client.search(query, limit=limit))
        results: List[SearchResult] = []
        for item in items:
            try:
                lat, lon = float(item["lat"]), float(item["lon"])
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed search result %r", item)
                continue
            if not is_valid_coordinate(lat, lon):
                continue
            results.append(
                SearchResult(
                    lat=lat,
                    lon=lon,
                    display_name=str(item.get("display_name") or query),
                    place_id=item.get("place_id") if isinstance(item.get("place_id"), int) else None,
                )
            )
        return results

    async def resolve_short_link(self, url: str) -> Optional[Coordinate]:
        """Resolve a shortened map link, first successful strategy wins.

        1. ``@lat,lng`` in the redirect target.
        2. ``"center":{"lat":..,"lng":..}`` in the page body.
        3. ``place/<name>`` in the redirect target, geocoded.
        4. The original URL text, geocoded.
        """
        fetched = await self.client.fetch_final_url_and_body(url)
        if fetched is not None:
            final_url, body = fetched

            match = _FINAL_URL_COORDINATES_RE.search(final_url)
            if match:
                coords = _coordinate_or_none(float(match.group(1)), float(match.group(2)))
                if coords:
                    return coords

            match = _BODY_CENTER_RE.search(body or "")
            if match:
                coords = _coordinate_or_none(float(match.group(1)), float(match.group(2)))
                if coords:
                    return coords

            place = place_name_from_url(final_url)
            if place:
                coords = await self.geocode_address(place)
                if coords:
                    return coords

        logger.info("Falling back to geocoding the raw link %s", url)
        return await self.geocode_address(url)

    async def extract_place_from_url(self, url: str) -> Optional[Coordinate]:
        place = place_name_from_url(url)
        if place:
            coords = await self.geocode_address(place)
            if coords:
                return coords
        return extract_url_coordinates(url)

    async def geocode_batch(self, addresses: Sequence[str]) -> List[Optional[Coordinate]]:
        """Geocode one address after another; spacing comes from the request gate."""
        results: List[Optional[Coordinate]] = []
        for address in addresses:
            results.append(await self.geocode_address(address))
        return results

    async def reverse_geocode_batch(self, coordinates: Sequence[Coordinate]) -> List[Optional[str]]:
        return list(
            await asyncio.gather(*(self.reverse_geocode(coord.lat, coord.lng) for coord in coordinates))
        )


geocoding_service = GeocodingService()
