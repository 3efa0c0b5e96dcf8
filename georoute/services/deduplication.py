"""Duplicate detection for locations found in conversations."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from georoute.core.config import settings
from georoute.models.locations import DetectedLocation

logger = logging.getLogger(__name__)


def are_duplicate(a: DetectedLocation, b: DetectedLocation, tolerance: Optional[float] = None) -> bool:
    if a.id == b.id:
        return True

    # Distinct messages are separate signals even when they name the same place.
    if a.source_message_id and b.source_message_id and a.source_message_id != b.source_message_id:
        return False

    if a.text != b.text and a.address != b.address:
        return False

    if a.coordinates is None or b.coordinates is None:
        return False

    tolerance = settings.DUPLICATE_TOLERANCE_DEG if tolerance is None else tolerance
    close = (
        abs(a.coordinates.lat - b.coordinates.lat) < tolerance
        and abs(a.coordinates.lng - b.coordinates.lng) < tolerance
    )
    same_origin = a.text == b.text or (bool(a.address) and a.address == b.address)
    return close and same_origin


def deduplicate(locations: Iterable[DetectedLocation], tolerance: Optional[float] = None) -> List[DetectedLocation]:
    """Drop later entries that duplicate an earlier one; first seen wins."""
    unique: List[DetectedLocation] = []
    for location in locations:
        if any(are_duplicate(location, kept, tolerance) for kept in unique):
            logger.info("Dropping duplicate location %s (%r)", location.id, location.text)
            continue
        unique.append(location)
    return unique


def exclude_known(
    candidates: Iterable[DetectedLocation],
    known: Sequence[DetectedLocation],
    tolerance: Optional[float] = None,
) -> List[DetectedLocation]:
    remaining: List[DetectedLocation] = []
    for location in candidates:
        if any(are_duplicate(location, saved, tolerance) for saved in known):
            logger.info("Location %s already saved, skipping", location.id)
            continue
        remaining.append(location)
    return remaining
