from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

from georoute.models.routes import TravelMode

logger = logging.getLogger(__name__)

DEFAULT_SPEEDS_KMH: Dict[TravelMode, float] = {
    TravelMode.DRIVING: 60.0,
    TravelMode.WALKING: 5.0,
    TravelMode.CYCLING: 15.0,
    TravelMode.TRANSIT: 30.0,
    TravelMode.PLANE: 850.0,
    TravelMode.BOAT: 30.0,
    TravelMode.CONTAINER_SHIP: 25.0,
}

DEFAULT_COSTS_PER_KM: Dict[TravelMode, float] = {
    TravelMode.DRIVING: 0.15,
    TravelMode.WALKING: 0.0,
    TravelMode.CYCLING: 0.0,
    TravelMode.TRANSIT: 0.10,
    TravelMode.PLANE: 0.12,
    TravelMode.BOAT: 0.20,
    TravelMode.CONTAINER_SHIP: 0.05,
}


class MapStyle(str, Enum):
    STANDARD = "standard"
    TERRAIN = "terrain"
    SATELLITE = "satellite"


def _merge_with_defaults(
    raw: Any, defaults: Dict[TravelMode, float], *, allow_zero: bool, label: str
) -> Dict[TravelMode, float]:
    merged = dict(defaults)
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning("Ignoring malformed %s table: %r", label, raw)
        return merged

    for key, value in raw.items():
        try:
            mode = TravelMode(key)
            number = float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring %s entry %r=%r", label, key, value)
            continue
        if number < 0 or (number == 0 and not allow_zero):
            logger.warning("Ignoring out-of-range %s for %s: %s", label, mode.value, number)
            continue
        merged[mode] = number
    return merged


class TransportSettings(BaseModel):
    """Speed (km/h) and cost-per-km tables keyed by travel mode.

    Partial or missing tables are merged with the defaults so every mode
    always has an entry.
    """

    speeds: Dict[TravelMode, float] = Field(default_factory=lambda: dict(DEFAULT_SPEEDS_KMH))
    costs: Dict[TravelMode, float] = Field(default_factory=lambda: dict(DEFAULT_COSTS_PER_KM))

    @field_validator("speeds", mode="before")
    @classmethod
    def _merge_speeds(cls, value: Any) -> Dict[TravelMode, float]:
        return _merge_with_defaults(value, DEFAULT_SPEEDS_KMH, allow_zero=False, label="speed")

    @field_validator("costs", mode="before")
    @classmethod
    def _merge_costs(cls, value: Any) -> Dict[TravelMode, float]:
        return _merge_with_defaults(value, DEFAULT_COSTS_PER_KM, allow_zero=True, label="cost")

    def speed_for(self, mode: TravelMode) -> float:
        speed = self.speeds.get(mode)
        if not speed or speed <= 0:
            return self.speeds.get(TravelMode.DRIVING) or DEFAULT_SPEEDS_KMH[TravelMode.DRIVING]
        return speed

    def cost_per_km(self, mode: TravelMode) -> float:
        cost = self.costs.get(mode)
        if cost is None:
            return self.costs.get(TravelMode.DRIVING, DEFAULT_COSTS_PER_KM[TravelMode.DRIVING])
        return cost

    def to_record(self) -> Dict[str, Dict[str, float]]:
        return {
            "speeds": {mode.value: value for mode, value in self.speeds.items()},
            "costs": {mode.value: value for mode, value in self.costs.items()},
        }
