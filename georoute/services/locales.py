"""Locale tables and the additive postal-address scoring model."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Pattern, Sequence

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"

HOUSE_NUMBER_POINTS = 2
STREET_CLASSIFIER_POINTS = 3
POSTAL_CODE_POINTS = 3
UNIT_MARKER_POINTS = 1
PLACE_NAME_POINTS = 1

_HOUSE_NUMBER_RE = re.compile(r"\b\d{1,5}\b")
_PLACE_NAME_RE = re.compile(r"\b[A-ZÁÉÍÓÚÑÄÖÜ]\w+(?:\s+[A-ZÁÉÍÓÚÑÄÖÜ]\w+)+\b")


def _token_pattern(tokens: Iterable[str]) -> Optional[Pattern[str]]:
    words = [re.escape(t) for t in tokens if t and t[0].isalnum()]
    symbols = [re.escape(t) for t in tokens if t and not t[0].isalnum()]
    alternatives: List[str] = []
    if words:
        alternatives.append(r"\b(?:" + "|".join(words) + r")\b")
    if symbols:
        alternatives.append(r"(?:" + "|".join(symbols) + r")\s*\w")
    if not alternatives:
        return None
    return re.compile("|".join(alternatives), re.IGNORECASE)


@dataclass
class LocaleConfig:
    street_classifiers: Sequence[str]
    unit_markers: Sequence[str]
    postal_codes: Sequence[str]
    _street_re: Optional[Pattern[str]] = field(init=False, repr=False, default=None)
    _unit_re: Optional[Pattern[str]] = field(init=False, repr=False, default=None)
    _postal_res: List[Pattern[str]] = field(init=False, repr=False, default_factory=list)

    def __post_init__(self) -> None:
        self._street_re = _token_pattern(self.street_classifiers)
        self._unit_re = _token_pattern(self.unit_markers)
        self._postal_res = [re.compile(p) for p in self.postal_codes]

    def has_street_classifier(self, text: str) -> bool:
        return bool(self._street_re and self._street_re.search(text))

    def has_unit_marker(self, text: str) -> bool:
        return bool(self._unit_re and self._unit_re.search(text))

    def has_postal_code(self, text: str) -> bool:
        return any(p.search(text) for p in self._postal_res)


LOCALES: Dict[str, LocaleConfig] = {
    "en": LocaleConfig(
        street_classifiers=(
            "street", "st",
            "avenue", "ave",
            "road", "rd",
            "boulevard", "blvd",
            "drive", "dr",
            "lane", "ln",
            "way", "court", "ct",
            "parkway", "pkwy",
        ),
        unit_markers=("apt", "apartment", "suite", "ste", "unit", "#"),
        postal_codes=(r"\b\d{5}(?:-\d{4})?\b",),
    ),
    "es": LocaleConfig(
        street_classifiers=("calle", "c", "avenida", "av", "pasaje", "pje", "camino", "km"),
        unit_markers=("depto", "departamento", "piso", "oficina", "#"),
        postal_codes=(r"\b\d{7}\b",),
    ),
    "fr": LocaleConfig(
        street_classifiers=("rue", "avenue", "boulevard"),
        unit_markers=("apt", "appartement"),
        postal_codes=(r"\b\d{5}\b",),
    ),
}


def has_house_number(text: str) -> bool:
    return bool(_HOUSE_NUMBER_RE.search(text))


def looks_like_place_name(text: str) -> bool:
    """Two or more consecutive capitalised words."""
    return bool(_PLACE_NAME_RE.search(text))


class AddressScorer:
    """Scores how likely a text span is a postal address for a given locale."""

    def __init__(self, locales: Optional[Dict[str, LocaleConfig]] = None, fallback: str = DEFAULT_LOCALE) -> None:
        self.locales = locales if locales is not None else LOCALES
        self.fallback = fallback
        if self.fallback not in self.locales:
            raise ValueError(f"Fallback locale {fallback!r} missing from locale table")

    def resolve(self, locale_key: Optional[str]) -> LocaleConfig:
        key = (locale_key or self.fallback).lower()
        locale = self.locales.get(key)
        if locale is None:
            logger.warning("Unsupported locale %r, falling back to %r", locale_key, self.fallback)
            return self.locales[self.fallback]
        return locale

    def score(self, candidate: str, locale_key: Optional[str] = None) -> int:
        locale = self.resolve(locale_key)
        return self.score_with(candidate, locale)

    @staticmethod
    def score_with(candidate: str, locale: LocaleConfig) -> int:
        score = 0
        if has_house_number(candidate):
            score += HOUSE_NUMBER_POINTS
        if locale.has_street_classifier(candidate):
            score += STREET_CLASSIFIER_POINTS
        if locale.has_postal_code(candidate):
            score += POSTAL_CODE_POINTS
        if locale.has_unit_marker(candidate):
            score += UNIT_MARKER_POINTS
        if looks_like_place_name(candidate):
            score += PLACE_NAME_POINTS
        return score


address_scorer = AddressScorer()
