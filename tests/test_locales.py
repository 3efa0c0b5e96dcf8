import logging

import pytest

from georoute.services.locales import AddressScorer, LocaleConfig, address_scorer, has_house_number


def test_house_number_alone_is_below_threshold() -> None:
    assert address_scorer.score("Call me at 555", "en") == 2


def test_us_address_scores_all_signals() -> None:
    score = address_scorer.score("1600 Amphitheatre Parkway, Mountain View CA 94043", "en")

    # house number + street classifier + postal code + place name
    assert score == 9


def test_spanish_address_needs_spanish_locale() -> None:
    text = "Calle San Martín 123, Santiago 7500000"

    assert address_scorer.score(text, "es") >= 4
    assert address_scorer.score(text, "en") < 4


def test_unit_marker_adds_a_point() -> None:
    base = address_scorer.score("12 Baker Street", "en")
    with_unit = address_scorer.score("12 Baker Street Apt 4", "en")

    assert with_unit == base + 1


def test_symbol_unit_marker_requires_following_token() -> None:
    locale = LocaleConfig(street_classifiers=(), unit_markers=("#",), postal_codes=())

    assert locale.has_unit_marker("Suite #4")
    assert not locale.has_unit_marker("trailing #")


def test_street_classifier_matches_whole_words_only() -> None:
    en = address_scorer.resolve("en")

    assert en.has_street_classifier("42 Baker St")
    assert not en.has_street_classifier("Stadium tour")


def test_unknown_locale_falls_back_to_english(caplog) -> None:
    text = "221 Baker Street, London"
    with caplog.at_level(logging.WARNING):
        fallback = address_scorer.score(text, "de")

    assert fallback == address_scorer.score(text, "en")
    assert "Unsupported locale" in caplog.text


def test_scorer_requires_fallback_locale() -> None:
    with pytest.raises(ValueError):
        AddressScorer(locales={}, fallback="en")


def test_house_number_detection() -> None:
    assert has_house_number("Unit 7")
    assert not has_house_number("no digits here")
    assert not has_house_number("1234567")
