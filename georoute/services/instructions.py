"""Turn-by-turn phrasing for ground routes."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

UNNAMED_ROAD = "unnamed road"

_TURN_MODIFIERS = frozenset({"left", "right", "sharp left", "sharp right", "slight left", "slight right"})
_ON_WORD_RE = re.compile(r"\bon(?:to)?\b", re.IGNORECASE)


def _first(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    return str(value or "")


def maneuver_phrase(maneuver: Mapping[str, Any], leg_index: int, leg_count: int) -> str:
    kind = maneuver.get("type") or ""
    modifier = maneuver.get("modifier") or ""

    if kind == "depart":
        return f"Head {modifier or 'straight'}"
    if kind == "arrive":
        if leg_index < leg_count - 1:
            return f"Arrive at waypoint {leg_index + 1}"
        return "Arrive at destination"
    if kind == "turn":
        return f"Turn {modifier if modifier in _TURN_MODIFIERS else 'straight'}"
    if kind == "merge":
        return "Merge"
    if kind in ("ramp", "on ramp", "off ramp"):
        return "Take the ramp"
    if kind == "fork":
        if modifier in ("left", "right"):
            return f"Take the {modifier} fork"
        return "Take the fork"
    if kind in ("roundabout", "rotary"):
        exit_number = maneuver.get("exit")
        if exit_number:
            return f"Enter roundabout and take exit {exit_number}"
        return "Enter roundabout"
    if kind == "continue":
        return "Continue straight"
    return maneuver.get("instruction") or kind or "Continue"


def road_name(step: Mapping[str, Any]) -> Optional[str]:
    name = _first(step.get("name")) or _first(step.get("ref"))
    name = name.strip()
    if not name or name.lower() == UNNAMED_ROAD:
        return None
    return name


def step_instruction(step: Mapping[str, Any], leg_index: int, leg_count: int) -> str:
    instruction = maneuver_phrase(step.get("maneuver") or {}, leg_index, leg_count)
    name = road_name(step)
    if name:
        if _ON_WORD_RE.search(instruction):
            instruction = f"{instruction} {name}"
        else:
            instruction = f"{instruction} onto {name}"
    return instruction.strip()


def segment_label(leg_index: int, leg_count: int) -> str:
    if leg_index == 0:
        return "Start → Via 1" if leg_count > 1 else "Start → End"
    if leg_index == leg_count - 1:
        return f"Via {leg_index} → End"
    return f"Via {leg_index} → Via {leg_index + 1}"
