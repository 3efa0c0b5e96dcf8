"""Conversation scanning and per-conversation summaries."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from typing import Iterable, List, Optional, Sequence

from pydantic import ValidationError

from georoute.models.locations import (
    ConversationMessage,
    ConversationSummary,
    DetectedLocation,
    LocationKind,
    PinnedLocation,
)
from georoute.models.routes import SavedRoute
from georoute.services.deduplication import are_duplicate, deduplicate, exclude_known
from georoute.services.detection import LocationDetector, location_detector
from georoute.services.events import EventBus, EventKind, event_bus
from georoute.services.geocoding import GeocodingService, geocoding_service
from georoute.services.storage import SAVED_LOCATIONS, RecordStore, record_store

logger = logging.getLogger(__name__)

SHORT_LINK_MARKER = "goo.gl"


class ConversationScanner:
    """
    Keeps the ephemeral locations found in the current conversation and the
    persisted set the user chose to keep.

    ``scan`` detects locations message by message, resolves what it can
    through the geocoder and merges the result into the ephemeral set.
    Anything still without coordinates after resolution is dropped.
    """

    def __init__(
        self,
        detector: Optional[LocationDetector] = None,
        geocoder: Optional[GeocodingService] = None,
        store: Optional[RecordStore] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.detector = detector or location_detector
        self.geocoder = geocoder or geocoding_service
        self.store = store or record_store
        self.events = events or event_bus
        self.conversation_id: Optional[str] = None
        self.ephemeral: List[DetectedLocation] = []
        self._lock = asyncio.Lock()

    def load_saved(self) -> List[DetectedLocation]:
        raw = self.store.get(SAVED_LOCATIONS, [])
        if not isinstance(raw, list):
            return []
        saved: List[DetectedLocation] = []
        for item in raw:
            try:
                saved.append(DetectedLocation.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping malformed saved location: %s", exc.errors()[:1])
        return saved

    def _store_saved(self, locations: Sequence[DetectedLocation]) -> None:
        self.store.set(SAVED_LOCATIONS, [loc.model_dump(mode="json") for loc in locations])

    async def scan(
        self,
        messages: Sequence[ConversationMessage],
        conversation_id: Optional[str] = None,
        locale_key: Optional[str] = None,
    ) -> List[DetectedLocation]:
        async with self._lock:
            if conversation_id and conversation_id != self.conversation_id:
                logger.info("Conversation changed to %s, clearing detected locations", conversation_id)
                self.conversation_id = conversation_id
                self.ephemeral = []

            detected: List[DetectedLocation] = []
            logger.info("Scanning %s message(s) for locations", len(messages))
            for message in messages:
                detected.extend(
                    self.detector.detect(
                        message.content,
                        locale_key,
                        source_message_id=message.id,
                        timestamp=message.timestamp,
                        author=message.author,
                    )
                )

            await self._resolve(detected)

            resolved = [loc for loc in detected if loc.coordinates is not None]
            if len(resolved) < len(detected):
                logger.warning("Could not resolve %s location(s)", len(detected) - len(resolved))

            await self._attach_addresses(resolved)

            previous = len(self.ephemeral)
            merged = deduplicate([*self.ephemeral, *resolved])
            self.ephemeral = exclude_known(merged, self.load_saved())
            logger.info("Added %s new location(s)", max(0, len(self.ephemeral) - previous))
        self.events.publish(EventKind.LOCATIONS_UPDATED)
        return list(self.ephemeral)

    async def _resolve(self, detected: Sequence[DetectedLocation]) -> None:
        addresses = [
            loc for loc in detected if loc.kind == LocationKind.ADDRESS and loc.address and loc.coordinates is None
        ]
        if addresses:
            coords = await self.geocoder.geocode_batch([loc.address for loc in addresses])
            for location, resolved in zip(addresses, coords):
                location.coordinates = resolved

        links = [loc for loc in detected if loc.kind == LocationKind.MAPS_LINK and loc.coordinates is None]
        for location in links:
            if SHORT_LINK_MARKER in location.text:
                coords = await self.geocoder.resolve_short_link(location.text)
                if coords is None:
                    coords = await self.geocoder.extract_place_from_url(location.text)
            else:
                coords = await self.geocoder.extract_place_from_url(location.text)
                if coords is None:
                    coords = await self.geocoder.geocode_address(location.text)
            location.coordinates = coords

    async def _attach_addresses(self, resolved: Sequence[DetectedLocation]) -> None:
        pending: List[DetectedLocation] = []
        for location in resolved:
            if location.formatted_address or location.kind == LocationKind.ADDRESS:
                if location.address:
                    location.formatted_address = location.address
                continue
            pending.append(location)

        addresses = await self.geocoder.reverse_geocode_batch([loc.coordinates for loc in pending])
        for location, address in zip(pending, addresses):
            if address:
                location.formatted_address = address

    def save_location(self, location_id: str) -> bool:
        location = next((loc for loc in self.ephemeral if loc.id == location_id), None)
        if location is None:
            logger.warning("Location not found: %s", location_id)
            return False

        self.ephemeral = [loc for loc in self.ephemeral if loc.id != location_id]
        saved = self.load_saved()
        if any(are_duplicate(existing, location) for existing in saved):
            logger.info("Location already saved: %s", location.formatted_address or location.text)
        else:
            self._store_saved([*saved, location])
        self.events.publish(EventKind.LOCATIONS_UPDATED)
        return True

    def add_location(self, location: DetectedLocation) -> bool:
        if any(are_duplicate(existing, location) for existing in self.ephemeral):
            logger.info("Skipped duplicate location: %s", location.formatted_address or location.text)
            return False
        self.ephemeral.append(location)
        self.events.publish(EventKind.LOCATIONS_UPDATED)
        return True

    def remove_location(self, location_id: str, from_saved: bool = False) -> bool:
        if from_saved:
            saved = self.load_saved()
            remaining = [loc for loc in saved if loc.id != location_id]
            if len(remaining) == len(saved):
                return False
            self._store_saved(remaining)
        else:
            if not any(loc.id == location_id for loc in self.ephemeral):
                return False
            self.ephemeral = [loc for loc in self.ephemeral if loc.id != location_id]
        self.events.publish(EventKind.LOCATIONS_UPDATED)
        return True

    def clear(self) -> None:
        self.ephemeral = []
        self.events.publish(EventKind.LOCATIONS_UPDATED)


def conversation_label(conversation_id: str) -> str:
    return f"Conversation {conversation_id[:8]}..."


def list_conversations(
    pinned: Iterable[PinnedLocation], routes: Iterable[SavedRoute]
) -> List[ConversationSummary]:
    summaries: "OrderedDict[str, ConversationSummary]" = OrderedDict()

    def _summary(conversation_id: str) -> ConversationSummary:
        if conversation_id not in summaries:
            summaries[conversation_id] = ConversationSummary(
                id=conversation_id, label=conversation_label(conversation_id)
            )
        return summaries[conversation_id]

    for route in routes:
        if route.conversation_id:
            _summary(route.conversation_id).routes_count += 1
    for location in pinned:
        if location.conversation_id:
            _summary(location.conversation_id).points_count += 1

    return sorted(summaries.values(), key=lambda s: s.points_count + s.routes_count, reverse=True)


def all_conversations_label(conversations: Sequence[ConversationSummary]) -> str:
    points = sum(c.points_count for c in conversations)
    routes = sum(c.routes_count for c in conversations)
    return f"All Conversations ({len(conversations)} conversations, {points} points, {routes} routes)"


def filter_by_conversation(items: Iterable, conversation_id: Optional[str]) -> list:
    """Items belonging to ``conversation_id``; everything when it is ``None``."""
    if conversation_id is None:
        return list(items)
    return [item for item in items if getattr(item, "conversation_id", None) == conversation_id]


conversation_scanner = ConversationScanner()
