"""Pure geographic helpers: validation, haversine distance and path interpolation.

No side effects and no network access; every function works on ``(lat, lng)``
tuples in decimal degrees.
"""

from __future__ import annotations

import math
from typing import Callable, List, Sequence, Tuple

EARTH_RADIUS_KM = 6371.0

LatLng = Tuple[float, float]


def is_valid_coordinate(lat: object, lng: object) -> bool:
    """True when ``lat`` is within [-90, 90] and ``lng`` within [-180, 180]."""
    try:
        lat_f = float(lat)  # type: ignore[arg-type]
        lng_f = float(lng)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    if math.isnan(lat_f) or math.isnan(lng_f):
        return False
    return -90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def path_length_km(points: Sequence[LatLng]) -> float:
    """Sum of haversine distances between consecutive points."""
    total = 0.0
    for (lat1, lng1), (lat2, lng2) in zip(points, points[1:]):
        total += haversine_km(lat1, lng1, lat2, lng2)
    return total


def great_circle_points(origin: LatLng, destination: LatLng, segments: int = 10) -> List[LatLng]:
    """
    Points along the great circle from origin to destination.

    Spherical linear interpolation over ``segments`` equal fractions, so the
    result holds ``segments + 1`` points including both endpoints.

    Args:
        origin: Start point.
        destination: End point.
        segments: Number of equal sub-arcs; values below 1 are treated as 1.

    Returns:
        List of ``(lat, lng)`` tuples.
    """
    segments = max(1, int(segments))
    lat1, lng1 = math.radians(origin[0]), math.radians(origin[1])
    lat2, lng2 = math.radians(destination[0]), math.radians(destination[1])

    cos_d = math.sin(lat1) * math.sin(lat2) + math.cos(lat1) * math.cos(lat2) * math.cos(lng2 - lng1)
    d = math.acos(max(-1.0, min(1.0, cos_d)))
    sin_d = math.sin(d)

    # Coincident or antipodal endpoints have no unique great circle.
    if sin_d < 1e-12:
        return linear_points(origin, destination, segments - 1)

    points: List[LatLng] = [(float(origin[0]), float(origin[1]))]
    for i in range(1, segments):
        f = i / segments
        a = math.sin((1 - f) * d) / sin_d
        b = math.sin(f * d) / sin_d
        x = a * math.cos(lat1) * math.cos(lng1) + b * math.cos(lat2) * math.cos(lng2)
        y = a * math.cos(lat1) * math.sin(lng1) + b * math.cos(lat2) * math.sin(lng2)
        z = a * math.sin(lat1) + b * math.sin(lat2)
        lat = math.atan2(z, math.sqrt(x * x + y * y))
        lng = math.atan2(y, x)
        points.append((math.degrees(lat), math.degrees(lng)))
    points.append((float(destination[0]), float(destination[1])))
    return points


def linear_points(origin: LatLng, destination: LatLng, intermediate: int) -> List[LatLng]:
    """Origin, ``intermediate`` evenly spaced lat/lng points, destination."""
    intermediate = max(0, int(intermediate))
    points: List[LatLng] = [(float(origin[0]), float(origin[1]))]
    for j in range(1, intermediate + 1):
        fraction = j / (intermediate + 1)
        points.append(
            (
                origin[0] + (destination[0] - origin[0]) * fraction,
                origin[1] + (destination[1] - origin[1]) * fraction,
            )
        )
    points.append((float(destination[0]), float(destination[1])))
    return points


def maritime_points(origin: LatLng, destination: LatLng, segment_km: float = 500.0) -> List[LatLng]:
    """
    Straight lat/lng path with one intermediate point per ``segment_km``.

    Coastlines are not considered; callers place manual waypoints to steer
    around land.
    """
    distance = haversine_km(origin[0], origin[1], destination[0], destination[1])
    intermediate = max(0, math.floor(distance / segment_km) - 1) if segment_km > 0 else 0
    return linear_points(origin, destination, intermediate)


def chain_legs(points: Sequence[LatLng], leg: Callable[[LatLng, LatLng], List[LatLng]]) -> List[LatLng]:
    """
    Build a path leg by leg through ``points``.

    Each leg after the first drops its first point, which duplicates the
    previous leg's last point.
    """
    if not points:
        return []
    path: List[LatLng] = [(float(points[0][0]), float(points[0][1]))]
    for start, end in zip(points, points[1:]):
        path.extend(leg(start, end)[1:])
    return path
