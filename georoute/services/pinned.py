from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from pydantic import ValidationError

from georoute.core.config import settings
from georoute.models.locations import PinnedLocation, PinnedLocationUpdate
from georoute.services.events import EventBus, EventKind, event_bus
from georoute.services.storage import PINNED_LOCATIONS, RecordStore, record_store

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME_PREFIX = "Location at "


def _now_ms() -> int:
    return int(time.time() * 1000)


class PinnedLocationStore:
    def __init__(
        self,
        store: Optional[RecordStore] = None,
        events: Optional[EventBus] = None,
        clock: Optional[Callable[[], int]] = None,
        tolerance: Optional[float] = None,
    ) -> None:
        self.store = store or record_store
        self.events = events or event_bus
        self.clock = clock or _now_ms
        self.tolerance = settings.DUPLICATE_TOLERANCE_DEG if tolerance is None else tolerance

    def load(self) -> List[PinnedLocation]:
        raw = self.store.get(PINNED_LOCATIONS, [])
        if not isinstance(raw, list):
            logger.warning("Pinned locations record is not a list, ignoring it")
            return []
        locations: List[PinnedLocation] = []
        for item in raw:
            try:
                locations.append(PinnedLocation.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed pinned location %r: %s", item, exc.errors()[:1])
        return locations

    def save(self, locations: List[PinnedLocation]) -> bool:
        saved = self.store.set(PINNED_LOCATIONS, [loc.model_dump(mode="json") for loc in locations])
        if saved:
            self.events.publish(EventKind.PINNED_LOCATIONS_UPDATED)
        return saved

    def get(self, location_id: str) -> Optional[PinnedLocation]:
        return next((loc for loc in self.load() if loc.id == location_id), None)

    def _matches(self, pinned: PinnedLocation, location_id: str, lat: float, lng: float) -> bool:
        return pinned.id == location_id or (
            abs(pinned.lat - lat) < self.tolerance and abs(pinned.lng - lng) < self.tolerance
        )

    def is_pinned(self, location_id: str, lat: float, lng: float) -> bool:
        return any(self._matches(p, location_id, lat, lng) for p in self.load())

    def add(self, location: PinnedLocation) -> Optional[PinnedLocation]:
        """Pin ``location`` unless it is already pinned by id or by position."""
        pinned = self.load()
        if any(self._matches(p, location.id, location.lat, location.lng) for p in pinned):
            logger.info("Location %s already pinned", location.id)
            return None

        new_location = location.model_copy(
            update={
                "pinned_at": self.clock(),
                "display_name": location.display_name or location.address or location.original_text,
            }
        )
        pinned.append(new_location)
        self.save(pinned)
        logger.info("Location pinned: %s", new_location.display_name or f"{location.lat}, {location.lng}")
        return new_location

    def remove(self, location_id: str) -> bool:
        pinned = self.load()
        remaining = [p for p in pinned if p.id != location_id]
        if len(remaining) == len(pinned):
            return False
        self.save(remaining)
        logger.info("Location %s unpinned", location_id)
        return True

    def update(self, location_id: str, updates: PinnedLocationUpdate) -> Optional[PinnedLocation]:
        pinned = self.load()
        for index, location in enumerate(pinned):
            if location.id != location_id:
                continue
            changes = updates.model_dump(exclude_none=True)
            updated = location.model_copy(update=changes)
            if (
                updates.address
                and updated.display_name
                and updated.display_name.startswith(PLACEHOLDER_NAME_PREFIX)
            ):
                updated = updated.model_copy(update={"display_name": updates.address})
            pinned[index] = updated
            self.save(pinned)
            return updated

        logger.warning("Pinned location %s not found", location_id)
        return None


pinned_location_store = PinnedLocationStore()
