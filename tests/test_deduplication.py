from typing import Optional

from georoute.models.locations import Coordinate, DetectedLocation, LocationKind
from georoute.services.deduplication import are_duplicate, deduplicate, exclude_known


def make_location(
    location_id: str,
    text: str = "Golden Gate Bridge",
    lat: Optional[float] = 37.8199,
    lng: Optional[float] = -122.4783,
    message_id: Optional[str] = "m1",
    address: Optional[str] = None,
) -> DetectedLocation:
    coordinates = Coordinate(lat=lat, lng=lng) if lat is not None else None
    return DetectedLocation(
        id=location_id,
        text=text,
        kind=LocationKind.ADDRESS,
        coordinates=coordinates,
        address=address,
        source_message_id=message_id,
    )


def test_same_id_is_duplicate() -> None:
    a = make_location("x", text="one", message_id="m1")
    b = make_location("x", text="two", message_id="m2", lat=None)

    assert are_duplicate(a, b)


def test_nearby_same_text_is_duplicate() -> None:
    a = make_location("a")
    b = make_location("b", lat=37.8199 + 0.00005, lng=-122.4783 + 0.00005)

    assert are_duplicate(a, b)


def test_far_apart_same_text_is_not_duplicate() -> None:
    a = make_location("a")
    b = make_location("b", lat=37.8199 + 0.0005, lng=-122.4783 + 0.0005)

    assert not are_duplicate(a, b)


def test_different_messages_are_never_duplicates() -> None:
    a = make_location("a", message_id="m1")
    b = make_location("b", message_id="m2")

    assert not are_duplicate(a, b)


def test_different_text_and_address_is_not_duplicate() -> None:
    a = make_location("a", text="first", address="1 Main St")
    b = make_location("b", text="second", address="2 Main St")

    assert not are_duplicate(a, b)


def test_matching_address_with_different_text_is_duplicate() -> None:
    a = make_location("a", text="ADDRESS: 1 Main St", address="1 Main St")
    b = make_location("b", text="1 Main St", address="1 Main St")

    assert are_duplicate(a, b)


def test_missing_coordinates_cannot_be_compared() -> None:
    a = make_location("a", lat=None)
    b = make_location("b", lat=None)

    assert not are_duplicate(a, b)


def test_deduplicate_keeps_first_seen() -> None:
    first = make_location("a")
    second = make_location("b", lat=37.81991)
    other = make_location("c", text="Alcatraz", lat=37.8267, lng=-122.4230)

    assert [loc.id for loc in deduplicate([first, second, other])] == ["a", "c"]


def test_deduplicate_is_idempotent() -> None:
    locations = [
        make_location("a"),
        make_location("b", lat=37.81991),
        make_location("c", message_id="m2"),
        make_location("a"),
        make_location("d", lat=None),
    ]

    once = deduplicate(locations)

    assert deduplicate(once) == once


def test_exclude_known_filters_saved_duplicates() -> None:
    saved = [make_location("saved")]
    candidates = [make_location("new"), make_location("other", text="Alcatraz", lat=37.8267, lng=-122.4230)]

    assert [loc.id for loc in exclude_known(candidates, saved)] == ["other"]
