from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

from georoute.models.locations import PinnedLocation
from georoute.models.routes import RouteRequest, RouteResult, SavedRoute, TravelMode, Waypoint
from georoute.services.geocoding import GeocodingService, geocoding_service
from georoute.services.pinned import PinnedLocationStore, pinned_location_store
from georoute.services.routing import RouteEngine, assign_roles, route_engine
from georoute.services.saved_routes import SavedRouteStore, generate_route_name, saved_route_store
from georoute.services.transport_settings import TransportSettingsStore, transport_settings_store

logger = logging.getLogger(__name__)


class RouteService:
    """Runs a calculation with the current transport settings and optionally
    records the result as a saved route with its points pinned."""

    def __init__(
        self,
        engine: Optional[RouteEngine] = None,
        settings_store: Optional[TransportSettingsStore] = None,
        saved_routes: Optional[SavedRouteStore] = None,
        pinned: Optional[PinnedLocationStore] = None,
        geocoder: Optional[GeocodingService] = None,
    ) -> None:
        self.engine = engine or route_engine
        self.settings_store = settings_store or transport_settings_store
        self.saved_routes = saved_routes or saved_route_store
        self.pinned = pinned or pinned_location_store
        self.geocoder = geocoder or geocoding_service

    async def calculate_and_save(self, request: RouteRequest) -> Tuple[RouteResult, Optional[SavedRoute]]:
        origin, destination, waypoints = assign_roles(request.points)
        # settings may change between calculations, never cache them
        transport_settings = self.settings_store.load()
        result = await self.engine.calculate(
            origin,
            destination,
            waypoints,
            travel_mode=request.travel_mode,
            transport_settings=transport_settings,
        )
        saved = None
        if request.auto_save:
            saved = await self.auto_save(
                origin, destination, waypoints, request.travel_mode, result, request.conversation_id
            )
        return result, saved

    async def auto_save(
        self,
        origin: Waypoint,
        destination: Waypoint,
        waypoints: List[Waypoint],
        travel_mode: TravelMode,
        result: RouteResult,
        conversation_id: Optional[str] = None,
    ) -> Optional[SavedRoute]:
        if self.saved_routes.is_duplicate_route(origin, destination, waypoints, travel_mode):
            logger.info("Route already saved, skipping auto-save")
            return None

        name = generate_route_name(travel_mode, origin, destination, len(waypoints))
        origin = await self._pin_point(origin, f"Route Origin: {name}", conversation_id)
        destination = await self._pin_point(destination, f"Route Destination: {name}", conversation_id)
        pinned_waypoints = [
            await self._pin_point(wp, f"Route Waypoint: {name}", conversation_id) for wp in waypoints
        ]

        return self.saved_routes.add(
            name=name,
            origin=origin,
            destination=destination,
            waypoints=pinned_waypoints,
            travel_mode=travel_mode,
            route_info=result,
            conversation_id=conversation_id,
        )

    async def _pin_point(self, point: Waypoint, label: str, conversation_id: Optional[str]) -> Waypoint:
        address = await self.geocoder.reverse_geocode(point.lat, point.lng)
        address = address or f"{point.lat:.6f}, {point.lng:.6f}"
        point_id = point.id or f"route-point-{point.lat}-{point.lng}-{int(time.time() * 1000)}"
        self.pinned.add(
            PinnedLocation(
                id=point_id,
                lat=point.lat,
                lng=point.lng,
                original_text=label,
                address=address,
                conversation_id=conversation_id,
            )
        )
        return point.model_copy(update={"address": point.address or address})


route_service = RouteService()
