import pytest

from georoute.models.locations import LocationKind
from georoute.services.detection import LocationDetector, LocationIdGenerator, extract_url_coordinates


@pytest.fixture
def detector() -> LocationDetector:
    ids = LocationIdGenerator(clock=lambda: 1700000000000, random_suffix=lambda: "abc1234")
    return LocationDetector(id_generator=ids)


@pytest.mark.parametrize(
    "text",
    [
        "37.7749,-122.4194",
        "Meet me at 37.7749,-122.4194 tonight",
        "lat: 37.7749, lng: -122.4194",
    ],
)
def test_detects_single_coordinate_pair(detector: LocationDetector, text: str) -> None:
    locations = detector.detect_coordinates(text)

    assert len(locations) == 1
    assert locations[0].kind == LocationKind.COORDINATES
    assert locations[0].coordinates.lat == pytest.approx(37.7749)
    assert locations[0].coordinates.lng == pytest.approx(-122.4194)


def test_out_of_range_pairs_are_dropped(detector: LocationDetector) -> None:
    assert detector.detect_coordinates("Call 555,1234 or 91.5,10") == []


def test_map_link_with_embedded_coordinates(detector: LocationDetector) -> None:
    locations = detector.detect_map_links("See https://www.google.com/maps/@40.7128,-74.0060,15z.")

    assert len(locations) == 1
    link = locations[0]
    assert link.text == "https://www.google.com/maps/@40.7128,-74.0060,15z"
    assert link.coordinates.lat == pytest.approx(40.7128)
    assert link.coordinates.lng == pytest.approx(-74.006)


def test_map_link_query_coordinates() -> None:
    coords = extract_url_coordinates("https://maps.google.com/?q=48.8584,2.2945")

    assert coords.lat == pytest.approx(48.8584)
    assert coords.lng == pytest.approx(2.2945)


def test_short_map_link_is_left_unresolved(detector: LocationDetector) -> None:
    locations = detector.detect_map_links("https://maps.app.goo.gl/AbCdEf123")

    assert len(locations) == 1
    assert locations[0].coordinates is None


def test_explicit_address_prefix_bypasses_scoring(detector: LocationDetector) -> None:
    locations = detector.detect_addresses("ADDRESS: the old mill by the river")

    assert len(locations) == 1
    assert locations[0].address == "the old mill by the river"
    assert locations[0].text.startswith("ADDRESS:")


def test_explicit_address_suppresses_overlapping_candidate(detector: LocationDetector) -> None:
    locations = detector.detect_addresses("ADDRESS: 1600 Amphitheatre Parkway, Mountain View CA 94043")

    assert [loc.address for loc in locations] == ["1600 Amphitheatre Parkway, Mountain View CA 94043"]


def test_scored_address_candidate_is_accepted(detector: LocationDetector) -> None:
    locations = detector.detect_addresses("I live at 42 Baker St, London")

    assert len(locations) == 1
    assert "42 Baker St" in locations[0].address


def test_house_number_alone_is_rejected(detector: LocationDetector) -> None:
    assert detector.detect_addresses("I will call you at 555 1234 tomorrow") == []


@pytest.mark.parametrize(
    "text",
    [
        "Office at 42 Baker Street, see https://example.com",
        "Write to jane@example.org about 42 Baker Street",
    ],
)
def test_url_or_email_disables_scored_addresses(detector: LocationDetector, text: str) -> None:
    assert detector.detect_addresses(text) == []


def test_hard_negatives_keep_explicit_addresses(detector: LocationDetector) -> None:
    text = "ADDRESS: 42 Baker Street\nmore at https://example.com"

    locations = detector.detect_addresses(text)

    assert [loc.address for loc in locations] == ["42 Baker Street"]


def test_unknown_locale_behaves_like_english(detector: LocationDetector) -> None:
    text = "Deliver to 221 Baker Street, London NW1 please"

    german = [loc.address for loc in detector.detect_addresses(text, "de")]
    english = [loc.address for loc in detector.detect_addresses(text, "en")]

    assert german == english


def test_detect_stamps_message_metadata(detector: LocationDetector) -> None:
    locations = detector.detect(
        "Meet at 37.7749,-122.4194",
        source_message_id="m1",
        timestamp="2024-05-01T10:00:00Z",
        author="alex",
    )

    assert len(locations) == 1
    location = locations[0]
    assert location.source_message_id == "m1"
    assert location.timestamp == "2024-05-01T10:00:00Z"
    assert location.author == "alex"
    assert location.id == "coordinates-37.7749,-122.4194-37.774900--122.419400-msgm1-idx0-1700000000000-abc1234"


def test_ids_unique_within_a_run_and_counter_resets(detector: LocationDetector) -> None:
    text = "1.5,2.5 and 3.5,4.5"

    first = [loc.id for loc in detector.detect(text)]
    second = [loc.id for loc in detector.detect(text)]

    assert len(set(first)) == 2
    assert first == second


def test_detect_ignores_blank_text(detector: LocationDetector) -> None:
    assert detector.detect("   ") == []


def test_map_link_and_embedded_pair_are_both_reported(detector: LocationDetector) -> None:
    locations = detector.detect("https://www.google.com/maps/@40.7128,-74.0060,15z")

    assert {loc.kind for loc in locations} == {LocationKind.MAPS_LINK, LocationKind.COORDINATES}


def test_five_decimal_coordinate_pair_is_not_also_an_address(detector: LocationDetector) -> None:
    locations = detector.detect("Meet at 40.71280, -74.00600", "en", "m1")

    assert [loc.kind for loc in locations] == [LocationKind.COORDINATES]


def test_address_next_to_coordinates_is_still_found(detector: LocationDetector) -> None:
    text = "Meet at 40.71280, -74.00600. Office: 350 Fifth Avenue, New York 10118"

    locations = detector.detect(text, "en", "m1")

    assert [loc.kind for loc in locations] == [LocationKind.COORDINATES, LocationKind.ADDRESS]
    assert locations[1].address == "350 Fifth Avenue, New York 10118"


def test_out_of_range_pair_does_not_hide_an_address(detector: LocationDetector) -> None:
    locations = detector.detect("Apt 5, 221 Baker Street, London", "en")

    assert [loc.kind for loc in locations] == [LocationKind.ADDRESS]
    assert "221 Baker Street" in locations[0].address
