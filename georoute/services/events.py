from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from typing import Callable, DefaultDict, List

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class EventKind(str, Enum):
    ROUTES_UPDATED = "routes_updated"
    PINNED_LOCATIONS_UPDATED = "pinned_locations_updated"
    LOCATIONS_UPDATED = "locations_updated"
    SELECTION_MODE_CHANGED = "selection_mode_changed"
    TRANSPORT_SETTINGS_CHANGED = "transport_settings_changed"


class EventBus:
    """Payload-less change notifications.

    Listeners are told *that* something changed and reload the state they care
    about themselves; the same kind may be delivered more than once.
    """

    def __init__(self) -> None:
        self._listeners: DefaultDict[EventKind, List[Listener]] = defaultdict(list)

    def subscribe(self, kind: EventKind, listener: Listener) -> Callable[[], None]:
        self._listeners[kind].append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(kind, listener)

        return _unsubscribe

    def unsubscribe(self, kind: EventKind, listener: Listener) -> None:
        try:
            self._listeners[kind].remove(listener)
        except ValueError:
            pass

    def publish(self, kind: EventKind) -> None:
        logger.debug("Publishing %s", kind.value)
        for listener in list(self._listeners[kind]):
            try:
                listener()
            except Exception:  # noqa: BLE001
                logger.exception("Listener for %s failed", kind.value)


event_bus = EventBus()
