import math

import pytest

from georoute.services.geo import (
    chain_legs,
    great_circle_points,
    haversine_km,
    is_valid_coordinate,
    linear_points,
    maritime_points,
    path_length_km,
)


@pytest.mark.parametrize(
    "lat, lng",
    [(0, 0), (90, 180), (-90, -180), (37.7749, -122.4194), (-33.45, -70.66)],
)
def test_valid_coordinates(lat, lng) -> None:
    assert is_valid_coordinate(lat, lng)


@pytest.mark.parametrize(
    "lat, lng",
    [(90.0001, 0), (-90.5, 0), (0, 180.01), (0, -181), (float("nan"), 0), ("north", 0), (None, 1)],
)
def test_invalid_coordinates(lat, lng) -> None:
    assert not is_valid_coordinate(lat, lng)


def test_haversine_one_degree_of_latitude() -> None:
    assert haversine_km(0, 0, 1, 0) == pytest.approx(111.19, rel=1e-3)


def test_great_circle_points_include_endpoints() -> None:
    points = great_circle_points((40.0, -74.0), (51.5, -0.12), segments=20)

    assert len(points) == 21
    assert points[0] == (40.0, -74.0)
    assert points[-1] == (51.5, -0.12)


def test_great_circle_path_length_matches_direct_distance() -> None:
    points = great_circle_points((40.0, -74.0), (51.5, -0.12), segments=20)

    assert path_length_km(points) == pytest.approx(haversine_km(40.0, -74.0, 51.5, -0.12), rel=1e-6)


def test_great_circle_coincident_points_fall_back_to_linear() -> None:
    points = great_circle_points((10.0, 10.0), (10.0, 10.0), segments=4)

    assert len(points) == 5
    assert all(p == pytest.approx((10.0, 10.0)) for p in points)


def test_linear_points_are_evenly_spaced() -> None:
    assert linear_points((0.0, 0.0), (0.0, 3.0), 2) == [(0.0, 0.0), (0.0, 1.0), (0.0, 2.0), (0.0, 3.0)]


def test_maritime_points_density_scales_with_distance() -> None:
    short = maritime_points((0.0, 0.0), (0.0, 1.0), segment_km=500)
    long = maritime_points((0.0, 0.0), (0.0, 20.0), segment_km=500)

    assert len(short) == 2
    # ~2224 km: floor(4.45) - 1 intermediate points
    assert len(long) == 5


def test_chain_legs_drops_duplicated_junctions() -> None:
    points = [(0.0, 0.0), (0.0, 2.0), (0.0, 4.0)]
    path = chain_legs(points, lambda a, b: linear_points(a, b, 1))

    assert path == [(0.0, 0.0), (0.0, 1.0), (0.0, 2.0), (0.0, 3.0), (0.0, 4.0)]


def test_chain_legs_empty() -> None:
    assert chain_legs([], lambda a, b: [a, b]) == []


def test_path_length_of_single_point_is_zero() -> None:
    assert path_length_km([(1.0, 1.0)]) == 0.0
    assert not math.isnan(path_length_km([]))
