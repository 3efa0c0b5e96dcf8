from __future__ import annotations

import logging
from typing import Optional

from georoute.models.settings import MapStyle, TransportSettings
from georoute.services.events import EventBus, EventKind, event_bus
from georoute.services.storage import COST_SETTINGS, MAP_STYLE, SPEED_SETTINGS, RecordStore, record_store

logger = logging.getLogger(__name__)


class TransportSettingsStore:
    """Speed/cost tables and the map-style preference, each its own record.

    Reads always return a complete table: missing or corrupt entries fall back
    to the defaults. Writes are last-write-wins.
    """

    def __init__(self, store: Optional[RecordStore] = None, events: Optional[EventBus] = None) -> None:
        self.store = store or record_store
        self.events = events or event_bus

    def load(self) -> TransportSettings:
        return TransportSettings(
            speeds=self.store.get(SPEED_SETTINGS),
            costs=self.store.get(COST_SETTINGS),
        )

    def save(self, transport_settings: TransportSettings) -> TransportSettings:
        record = transport_settings.to_record()
        saved_speeds = self.store.set(SPEED_SETTINGS, record["speeds"])
        saved_costs = self.store.set(COST_SETTINGS, record["costs"])
        if saved_speeds or saved_costs:
            self.events.publish(EventKind.TRANSPORT_SETTINGS_CHANGED)
        return transport_settings

    def reset(self) -> TransportSettings:
        logger.info("Resetting transport settings to defaults")
        return self.save(TransportSettings())

    def load_map_style(self) -> MapStyle:
        raw = self.store.get(MAP_STYLE)
        try:
            return MapStyle(raw)
        except ValueError:
            if raw is not None:
                logger.warning("Unknown map style %r, using standard", raw)
            return MapStyle.STANDARD

    def save_map_style(self, style: MapStyle) -> MapStyle:
        self.store.set(MAP_STYLE, style.value)
        return style


transport_settings_store = TransportSettingsStore()
