"""Detection of coordinates, map links and postal addresses in free-form text."""

from __future__ import annotations

import logging
import re
import time
from typing import Callable, List, Optional, Sequence, Tuple
from uuid import uuid4

from georoute.core.config import settings
from georoute.models.locations import Coordinate, DetectedLocation, LocationKind
from georoute.services.geo import is_valid_coordinate
from georoute.services.locales import AddressScorer, address_scorer

logger = logging.getLogger(__name__)

COORDINATE_PAIR_RE = re.compile(
    r"(?:lat(?:itude)?\s*[:=]\s*)?"
    r"(-?\d+(?:\.\d+)?)\s*,\s*"
    r"(?:(?:lng|lon(?:gitude)?)\s*[:=]\s*)?"
    r"(-?\d+(?:\.\d+)?)",
    re.IGNORECASE,
)

MAPS_URL_RE = re.compile(
    r"https?://(?:(?:www\.|maps\.)?google\.(?:com|maps)|maps\.app\.goo\.gl|goo\.gl/maps)[^\s<>\"']*",
    re.IGNORECASE,
)
URL_COORDINATES_RE = re.compile(r"[@=/](-?\d+(?:\.\d+)?),\s*(-?\d+(?:\.\d+)?)")

EXPLICIT_ADDRESS_RE = re.compile(r"(?:ADDRESS|DIRECTION):\s*([^\n\r]+)", re.IGNORECASE)
URL_SCHEME_RE = re.compile(r"https?://", re.IGNORECASE)
EMAIL_RE = re.compile(r"\S+@\S+\.\S+")

# Capitalised street words, a house-number token, then up to ten trailing
# tokens on the same line.
ADDRESS_CANDIDATE_RE = re.compile(
    r"(?:[A-ZÁÉÍÓÚÑÄÖÜ][\w'’.-]*[ \t]+(?:(?:de|del|la|las|los|du|des|le)[ \t]+)?){0,5}"
    r"#?\d{1,5}[\w/-]*"
    r"(?:,?[ \t]+[\w'’#.-]+){1,10}"
)

MIN_CANDIDATE_LENGTH = 5
MIN_EXPLICIT_LENGTH = 3
_TRAILING_PUNCTUATION = ".,;:!?)]}"


def _content_slug(content: str) -> str:
    return re.sub(r"\s+", "-", content[:20]).lower()


class LocationIdGenerator:
    """
    Builds detection ids from kind, leading content, coordinates, message
    context, a timestamp and a random suffix.

    The counter is reset at the start of every detection run, so ids are only
    guaranteed unique within one run. Pass ``clock`` / ``random_suffix`` to get
    deterministic ids in tests.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], int]] = None,
        random_suffix: Optional[Callable[[], str]] = None,
    ) -> None:
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._random_suffix = random_suffix or (lambda: uuid4().hex[:7])
        self._counter = 0

    def reset(self) -> None:
        self._counter = 0

    def __call__(
        self,
        kind: LocationKind,
        content: str,
        coordinates: Optional[Coordinate] = None,
        message_id: Optional[str] = None,
        index: Optional[int] = None,
    ) -> str:
        self._counter += 1
        coord_part = f"{coordinates.lat:.6f}-{coordinates.lng:.6f}" if coordinates else ""
        if message_id:
            context = f"-msg{message_id}-idx{index if index is not None else self._counter}"
        else:
            context = f"-idx{self._counter}"
        return (
            f"{kind.value}-{_content_slug(content)}-{coord_part}{context}"
            f"-{self._clock()}-{self._random_suffix()}"
        )


def _spans_overlap(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


class LocationDetector:
    """Runs the coordinate, map-link and address detectors over one text unit."""

    def __init__(
        self,
        scorer: Optional[AddressScorer] = None,
        id_generator: Optional[LocationIdGenerator] = None,
        score_threshold: Optional[int] = None,
    ) -> None:
        self.scorer = scorer or address_scorer
        self.id_generator = id_generator or LocationIdGenerator()
        self.score_threshold = score_threshold if score_threshold is not None else settings.ADDRESS_SCORE_THRESHOLD

    @staticmethod
    def _coordinate_matches(text: str) -> List[Tuple[re.Match, Coordinate]]:
        matches: List[Tuple[re.Match, Coordinate]] = []
        for match in COORDINATE_PAIR_RE.finditer(text):
            lat, lng = float(match.group(1)), float(match.group(2))
            if not is_valid_coordinate(lat, lng):
                logger.debug("Dropped out-of-range coordinate pair %r", match.group(0))
                continue
            matches.append((match, Coordinate(lat=lat, lng=lng)))
        return matches

    def detect_coordinates(self, text: str, message_id: Optional[str] = None) -> List[DetectedLocation]:
        locations: List[DetectedLocation] = []
        for match, coords in self._coordinate_matches(text):
            locations.append(
                DetectedLocation(
                    id=self.id_generator(LocationKind.COORDINATES, match.group(0), coords, message_id, len(locations)),
                    text=match.group(0),
                    kind=LocationKind.COORDINATES,
                    coordinates=coords,
                )
            )
        return locations

    def detect_map_links(self, text: str, message_id: Optional[str] = None) -> List[DetectedLocation]:
        locations: List[DetectedLocation] = []
        for index, match in enumerate(MAPS_URL_RE.finditer(text)):
            url = match.group(0).rstrip(_TRAILING_PUNCTUATION)
            coords = extract_url_coordinates(url)
            if coords is None and URL_COORDINATES_RE.search(url):
                logger.debug("Dropped map link with out-of-range coordinates: %s", url)
                continue
            locations.append(
                DetectedLocation(
                    id=self.id_generator(LocationKind.MAPS_LINK, url, coords, message_id, index),
                    text=url,
                    kind=LocationKind.MAPS_LINK,
                    coordinates=coords,
                )
            )
        return locations

    def detect_addresses(
        self,
        text: str,
        locale_key: Optional[str] = None,
        message_id: Optional[str] = None,
        occupied_spans: Sequence[Tuple[int, int]] = (),
    ) -> List[DetectedLocation]:
        """Explicit-prefix addresses, then scored candidates.

        Scored candidates overlapping an explicit address or any span in
        ``occupied_spans`` (text already claimed by another detector) are skipped.
        """
        locale = self.scorer.resolve(locale_key or settings.DEFAULT_LOCALE)
        locations: List[DetectedLocation] = []
        explicit_spans: List[Tuple[int, int]] = []

        for match in EXPLICIT_ADDRESS_RE.finditer(text):
            address = match.group(1).strip()
            if len(address) < MIN_EXPLICIT_LENGTH:
                continue
            explicit_spans.append(match.span())
            locations.append(
                DetectedLocation(
                    id=self.id_generator(LocationKind.ADDRESS, address, None, message_id, len(locations)),
                    text=match.group(0),
                    kind=LocationKind.ADDRESS,
                    address=address,
                )
            )

        if URL_SCHEME_RE.search(text) or EMAIL_RE.search(text):
            return locations

        for candidate, span in self._extract_candidates(text):
            if any(_spans_overlap(span, taken) for taken in (*explicit_spans, *occupied_spans)):
                continue
            score = self.scorer.score_with(candidate, locale)
            if score < self.score_threshold:
                logger.debug("Rejected address candidate %r (score %s)", candidate, score)
                continue
            locations.append(
                DetectedLocation(
                    id=self.id_generator(LocationKind.ADDRESS, candidate, None, message_id, len(locations)),
                    text=candidate,
                    kind=LocationKind.ADDRESS,
                    address=candidate,
                )
            )
        return locations

    @staticmethod
    def _extract_candidates(text: str) -> Sequence[Tuple[str, Tuple[int, int]]]:
        candidates = []
        for match in ADDRESS_CANDIDATE_RE.finditer(text):
            candidate = match.group(0).strip().rstrip(_TRAILING_PUNCTUATION).strip()
            if len(candidate) < MIN_CANDIDATE_LENGTH:
                continue
            candidates.append((candidate, match.span()))
        return candidates

    def detect(
        self,
        text: str,
        locale_key: Optional[str] = None,
        source_message_id: Optional[str] = None,
        timestamp: Optional[str] = None,
        author: Optional[str] = None,
    ) -> List[DetectedLocation]:
        """Detect every location kind in ``text`` and stamp message metadata on each."""
        self.id_generator.reset()
        if not text or not text.strip():
            return []

        occupied = [match.span() for match, _ in self._coordinate_matches(text)]
        occupied += [match.span() for match in MAPS_URL_RE.finditer(text)]
        detected = [
            *self.detect_map_links(text, source_message_id),
            *self.detect_coordinates(text, source_message_id),
            *self.detect_addresses(text, locale_key, source_message_id, occupied_spans=occupied),
        ]
        for location in detected:
            location.source_message_id = source_message_id
            location.timestamp = timestamp
            location.author = author

        if detected:
            logger.info(
                "Detected %s location(s) from %s: %s",
                len(detected),
                author or "unknown",
                ", ".join(f"{loc.kind.value}={loc.text!r}" for loc in detected),
            )
        return detected


def extract_url_coordinates(url: str) -> Optional[Coordinate]:
    """Coordinates embedded as ``@lat,lng``, ``q=lat,lng`` or ``/lat,lng`` in a map URL."""
    match = URL_COORDINATES_RE.search(url)
    if not match:
        return None
    lat, lng = float(match.group(1)), float(match.group(2))
    if not is_valid_coordinate(lat, lng):
        return None
    return Coordinate(lat=lat, lng=lng)


location_detector = LocationDetector()
