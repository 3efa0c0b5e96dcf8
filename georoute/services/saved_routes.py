from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Sequence
from uuid import uuid4

from pydantic import ValidationError

from georoute.core.config import settings
from georoute.models.routes import RouteResult, SavedRoute, TravelMode, Waypoint
from georoute.services.events import EventBus, EventKind, event_bus
from georoute.services.storage import SAVED_ROUTES, RecordStore, record_store

logger = logging.getLogger(__name__)

GROUND_ROUTE_COLOR = "#667eea"
ROUTE_COLORS = {
    TravelMode.PLANE: "#4A90E2",
    TravelMode.CONTAINER_SHIP: "#2ECC71",
    TravelMode.BOAT: "#3498DB",
}


def route_color(mode: TravelMode) -> str:
    return ROUTE_COLORS.get(mode, GROUND_ROUTE_COLOR)


def generate_route_name(mode: TravelMode, origin: Waypoint, destination: Waypoint, waypoint_count: int) -> str:
    mode_name = mode.value[:1].upper() + mode.value[1:]
    if waypoint_count > 0:
        plural = "s" if waypoint_count > 1 else ""
        return f"{mode_name} route ({waypoint_count} waypoint{plural})"
    return (
        f"{mode_name} route: {origin.lat:.4f}, {origin.lng:.4f}"
        f" → {destination.lat:.4f}, {destination.lng:.4f}"
    )


def _close(a: Waypoint, b: Waypoint, tolerance: float) -> bool:
    return abs(a.lat - b.lat) < tolerance and abs(a.lng - b.lng) < tolerance


def _now_ms() -> int:
    return int(time.time() * 1000)


class SavedRouteStore:
    def __init__(
        self,
        store: Optional[RecordStore] = None,
        events: Optional[EventBus] = None,
        clock: Optional[Callable[[], int]] = None,
        random_suffix: Optional[Callable[[], str]] = None,
        tolerance: Optional[float] = None,
    ) -> None:
        self.store = store or record_store
        self.events = events or event_bus
        self.clock = clock or _now_ms
        self.random_suffix = random_suffix or (lambda: uuid4().hex[:7])
        self.tolerance = settings.DUPLICATE_TOLERANCE_DEG if tolerance is None else tolerance

    def load(self) -> List[SavedRoute]:
        raw = self.store.get(SAVED_ROUTES, [])
        if not isinstance(raw, list):
            logger.warning("Saved routes record is not a list, ignoring it")
            return []
        routes: List[SavedRoute] = []
        for item in raw:
            try:
                routes.append(SavedRoute.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed saved route: %s", exc.errors()[:1])
        return routes

    def save(self, routes: List[SavedRoute]) -> bool:
        saved = self.store.set(SAVED_ROUTES, [route.model_dump(mode="json") for route in routes])
        if saved:
            self.events.publish(EventKind.ROUTES_UPDATED)
        return saved

    def get(self, route_id: str) -> Optional[SavedRoute]:
        return next((route for route in self.load() if route.id == route_id), None)

    def add(
        self,
        *,
        name: str,
        origin: Waypoint,
        destination: Waypoint,
        waypoints: Sequence[Waypoint],
        travel_mode: TravelMode,
        route_info: RouteResult,
        conversation_id: Optional[str] = None,
    ) -> SavedRoute:
        now = self.clock()
        route = SavedRoute(
            id=f"route-{now}-{self.random_suffix()}",
            name=name,
            origin=origin,
            destination=destination,
            waypoints=list(waypoints),
            travel_mode=travel_mode,
            route_info=route_info,
            geometry=list(route_info.geometry),
            color=route_color(travel_mode),
            saved_at=now,
            conversation_id=conversation_id,
        )
        routes = self.load()
        routes.append(route)
        self.save(routes)
        logger.info("Saved route %s (%s)", route.id, route.name)
        return route

    def remove(self, route_id: str) -> bool:
        routes = self.load()
        remaining = [r for r in routes if r.id != route_id]
        if len(remaining) == len(routes):
            return False
        self.save(remaining)
        return True

    def rename(self, route_id: str, name: str) -> Optional[SavedRoute]:
        routes = self.load()
        for index, route in enumerate(routes):
            if route.id == route_id:
                routes[index] = route.model_copy(update={"name": name})
                self.save(routes)
                return routes[index]
        return None

    def is_duplicate_route(
        self,
        origin: Waypoint,
        destination: Waypoint,
        waypoints: Sequence[Waypoint],
        travel_mode: TravelMode,
    ) -> bool:
        for route in self.load():
            if route.travel_mode != travel_mode:
                continue
            if not (_close(route.origin, origin, self.tolerance) and _close(route.destination, destination, self.tolerance)):
                continue
            if len(route.waypoints) != len(waypoints):
                continue
            if all(_close(saved, wp, self.tolerance) for saved, wp in zip(route.waypoints, waypoints)):
                return True
        return False


saved_route_store = SavedRouteStore()
