"""Route computation for ground, air and sea travel modes."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from georoute.core.config import settings
from georoute.core.exceptions import GeoRouteError, InvalidRouteRequestError
from georoute.models.routes import (
    GROUND_MODES,
    LatLng,
    RouteLeg,
    RouteResult,
    RouteState,
    RouteStep,
    TravelMode,
    Waypoint,
)
from georoute.models.settings import TransportSettings
from georoute.services.geo import chain_legs, great_circle_points, is_valid_coordinate, maritime_points, path_length_km
from georoute.services.instructions import segment_label, step_instruction
from georoute.services.osrm_client import OSRMClient, osrm_client

logger = logging.getLogger(__name__)

OSRM_PROFILES: Dict[TravelMode, str] = {
    TravelMode.DRIVING: "driving",
    TravelMode.WALKING: "walking",
    TravelMode.CYCLING: "cycling",
    # no native transit profile: driving geometry, duration recomputed from speed
    TravelMode.TRANSIT: "driving",
}

SPEED_ONLY_MODES = frozenset({TravelMode.WALKING, TravelMode.CYCLING, TravelMode.TRANSIT})

VEHICLE_NAMES: Dict[TravelMode, str] = {
    TravelMode.PLANE: "Commercial Plane",
    TravelMode.BOAT: "Boat",
    TravelMode.CONTAINER_SHIP: "Container Ship",
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_distance(meters: float) -> str:
    km = meters / 1000.0
    if km >= 1:
        return f"{km:.2f} km"
    return f"{meters:.0f} m"


def format_duration(seconds: float) -> str:
    seconds = max(0.0, seconds)
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    if hours > 0:
        return f"{hours} hr {minutes} min"
    return f"{minutes} min"


def format_cost(distance_km: float, cost_per_km: float) -> str:
    total = distance_km * cost_per_km
    if total == 0:
        return "Free"
    return f"${total:.2f}"


def computed_duration(distance_km: float, speed_kmh: float) -> int:
    return _round_half_up(distance_km / speed_kmh * 3600)


def reconcile_duration(
    mode: TravelMode,
    backend_seconds: float,
    distance_km: float,
    speed_kmh: float,
    tolerance: float,
) -> float:
    """Choose between the backend duration and one derived from the speed table.

    Walking, cycling and transit always use the derived value. Driving keeps
    the backend value unless it falls outside ``1 ± tolerance`` of the derived
    one.
    """
    computed = computed_duration(distance_km, speed_kmh)
    if mode in SPEED_ONLY_MODES:
        return computed
    if mode == TravelMode.DRIVING:
        if computed <= 0:
            return computed
        ratio = backend_seconds / computed
        if ratio < 1 - tolerance or ratio > 1 + tolerance:
            return computed
    return backend_seconds


def assign_roles(points: Sequence[Waypoint]) -> Tuple[Waypoint, Waypoint, List[Waypoint]]:
    """First point is the origin, last the destination, anything between a waypoint."""
    if len(points) < 2:
        raise InvalidRouteRequestError("A route needs an origin and a destination")
    return points[0], points[-1], list(points[1:-1])


class RouteEngine:
    def __init__(
        self,
        osrm: Optional[OSRMClient] = None,
        *,
        duration_tolerance: Optional[float] = None,
        maritime_segment_km: Optional[float] = None,
        air_points_direct: Optional[int] = None,
        air_points_per_leg: Optional[int] = None,
        serialize: Optional[bool] = None,
    ) -> None:
        self.osrm = osrm or osrm_client
        self.duration_tolerance = (
            settings.DRIVING_DURATION_TOLERANCE if duration_tolerance is None else duration_tolerance
        )
        self.maritime_segment_km = maritime_segment_km or settings.MARITIME_SEGMENT_KM
        self.air_points_direct = air_points_direct or settings.AIR_WAYPOINTS_DIRECT
        self.air_points_per_leg = air_points_per_leg or settings.AIR_WAYPOINTS_PER_LEG
        serialize = settings.SERIALIZE_ROUTE_CALCULATIONS if serialize is None else serialize
        self._lock: Optional[asyncio.Lock] = asyncio.Lock() if serialize else None
        self.state = RouteState.IDLE
        self.last_error: Optional[str] = None

    async def calculate(
        self,
        origin: Waypoint,
        destination: Waypoint,
        waypoints: Sequence[Waypoint] = (),
        *,
        travel_mode: TravelMode,
        transport_settings: TransportSettings,
    ) -> RouteResult:
        points = [origin, *waypoints, destination]
        for point in points:
            if not is_valid_coordinate(point.lat, point.lng):
                raise InvalidRouteRequestError(f"Invalid coordinates: {point.lat}, {point.lng}")

        if self._lock is None:
            return await self._run(points, travel_mode, transport_settings)
        async with self._lock:
            return await self._run(points, travel_mode, transport_settings)

    async def calculate_points(
        self,
        points: Sequence[Waypoint],
        travel_mode: TravelMode,
        transport_settings: TransportSettings,
    ) -> RouteResult:
        origin, destination, waypoints = assign_roles(points)
        return await self.calculate(
            origin,
            destination,
            waypoints,
            travel_mode=travel_mode,
            transport_settings=transport_settings,
        )

    async def _run(
        self,
        points: List[Waypoint],
        travel_mode: TravelMode,
        transport_settings: TransportSettings,
    ) -> RouteResult:
        self.state = RouteState.CALCULATING
        self.last_error = None
        coords: List[LatLng] = [(p.lat, p.lng) for p in points]
        logger.info("Calculating %s route through %s point(s)", travel_mode.value, len(coords))
        try:
            if travel_mode in GROUND_MODES:
                result = await self._ground_route(coords, travel_mode, transport_settings)
            elif travel_mode == TravelMode.PLANE:
                result = self._air_route(coords, transport_settings)
            else:
                result = self._sea_route(coords, travel_mode, transport_settings)
        except GeoRouteError as exc:
            self.state = RouteState.FAILED
            self.last_error = exc.message
            logger.warning("Route calculation failed: %s", exc.message)
            raise

        self.state = RouteState.SUCCEEDED
        logger.info("Route ready: %s, %s, %s", result.distance, result.duration, result.cost)
        return result

    async def _ground_route(
        self,
        coords: List[LatLng],
        mode: TravelMode,
        transport_settings: TransportSettings,
    ) -> RouteResult:
        route = await self.osrm.route(coords, profile=OSRM_PROFILES[mode])
        speed = transport_settings.speed_for(mode)

        def reconcile(payload: Dict[str, Any]) -> Tuple[float, float]:
            meters = float(payload.get("distance") or 0.0)
            seconds = reconcile_duration(
                mode, float(payload.get("duration") or 0.0), meters / 1000.0, speed, self.duration_tolerance
            )
            return meters, seconds

        distance_m, duration_s = reconcile(route)
        geometry = [
            (float(lat), float(lng)) for lng, lat in (route.get("geometry") or {}).get("coordinates", [])
        ]

        legs_payload = route.get("legs") or []
        leg_count = len(legs_payload)
        legs: List[RouteLeg] = []
        steps: List[RouteStep] = []
        for leg_index, leg in enumerate(legs_payload):
            label = segment_label(leg_index, leg_count)
            leg_m, leg_s = reconcile(leg)
            legs.append(
                RouteLeg(
                    label=label,
                    distance=format_distance(leg_m),
                    duration=format_duration(leg_s),
                    distance_meters=leg_m,
                    duration_seconds=leg_s,
                )
            )
            if leg_count > 1:
                steps.append(
                    RouteStep(
                        instruction=f"{label} ({format_distance(leg_m)} • {format_duration(leg_s)})",
                        distance_meters=leg_m,
                        duration_seconds=leg_s,
                        segment_index=leg_index,
                        is_segment_start=True,
                        segment_label=label,
                    )
                )
            for step in leg.get("steps") or []:
                step_m, step_s = reconcile(step)
                steps.append(
                    RouteStep(
                        instruction=step_instruction(step, leg_index, leg_count),
                        distance_meters=step_m,
                        duration_seconds=step_s,
                        coordinates=[
                            (float(lat), float(lng))
                            for lng, lat in (step.get("geometry") or {}).get("coordinates", [])
                        ],
                        segment_index=leg_index,
                    )
                )

        return RouteResult(
            distance=format_distance(distance_m),
            duration=format_duration(duration_s),
            cost=format_cost(distance_m / 1000.0, transport_settings.cost_per_km(mode)),
            steps=steps,
            geometry=geometry,
            distance_meters=distance_m,
            duration_seconds=duration_s,
            legs=legs,
        )

    def _air_leg(self, start: LatLng, end: LatLng) -> List[LatLng]:
        return great_circle_points(start, end, self.air_points_per_leg)

    def _sea_leg(self, start: LatLng, end: LatLng) -> List[LatLng]:
        return maritime_points(start, end, self.maritime_segment_km)

    def _air_route(self, coords: List[LatLng], transport_settings: TransportSettings) -> RouteResult:
        if len(coords) == 2:
            path = great_circle_points(coords[0], coords[1], self.air_points_direct)
            leg_paths = [path]
        else:
            path = chain_legs(coords, self._air_leg)
            leg_paths = [self._air_leg(a, b) for a, b in zip(coords, coords[1:])]
        return self._synthetic_route(
            TravelMode.PLANE,
            path,
            leg_paths,
            transport_settings,
            depart=f"Depart by {VEHICLE_NAMES[TravelMode.PLANE]} - following great circle route",
        )

    def _sea_route(self, coords: List[LatLng], mode: TravelMode, transport_settings: TransportSettings) -> RouteResult:
        path = chain_legs(coords, self._sea_leg)
        leg_paths = [self._sea_leg(a, b) for a, b in zip(coords, coords[1:])]
        return self._synthetic_route(
            mode,
            path,
            leg_paths,
            transport_settings,
            depart=f"Depart by {VEHICLE_NAMES[mode]} - following maritime route",
            announce_waypoints=True,
        )

    def _synthetic_route(
        self,
        mode: TravelMode,
        path: List[LatLng],
        leg_paths: List[List[LatLng]],
        transport_settings: TransportSettings,
        *,
        depart: str,
        announce_waypoints: bool = False,
    ) -> RouteResult:
        speed = transport_settings.speed_for(mode)
        distance_km = path_length_km(path)
        duration_s = distance_km / speed * 3600

        legs: List[RouteLeg] = []
        for leg_index, leg_path in enumerate(leg_paths):
            leg_km = path_length_km(leg_path)
            leg_s = leg_km / speed * 3600
            legs.append(
                RouteLeg(
                    label=segment_label(leg_index, len(leg_paths)),
                    distance=f"{leg_km:.2f} km",
                    duration=format_duration(leg_s),
                    distance_meters=leg_km * 1000,
                    duration_seconds=leg_s,
                )
            )

        steps = [
            RouteStep(
                instruction=depart,
                distance_meters=distance_km * 1000,
                duration_seconds=duration_s,
                coordinates=list(path),
            )
        ]
        if announce_waypoints and len(path) > 2:
            count = len(path) - 2
            plural = "s" if count > 1 else ""
            steps.append(RouteStep(instruction=f"Route passes through {count} waypoint{plural} to avoid landmasses"))
        steps.append(RouteStep(instruction="Arrive at destination", coordinates=[path[-1]]))

        return RouteResult(
            distance=f"{distance_km:.2f} km",
            duration=format_duration(duration_s),
            cost=format_cost(distance_km, transport_settings.cost_per_km(mode)),
            steps=steps,
            geometry=path,
            distance_meters=distance_km * 1000,
            duration_seconds=duration_s,
            legs=legs,
        )


route_engine = RouteEngine()
