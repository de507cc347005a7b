from __future__ import annotations

import pytest

from newsroom_tui.config import SUPPORTED_COUNTRY_CODES, SUPPORTED_LANGUAGES
from newsroom_tui.reference import (
    COUNTRY_NAMES,
    ReferenceDataLoader,
    country_display_name,
    country_options,
    language_options,
    parse_sources,
)

RAW = (
    "Display Name\tCountry Code\tLanguage Code\tIdentifier\n"
    "# comment line\n"
    "Le Monde\tfr\tfr\tle-monde\n"
    "The Guardian\tgb\ten\tthe-guardian\n"
    "Broken line\tfr\n"
    "\tde\tde\tno-name\n"
    "Die Welt  de  de  die-welt\n"
    "\n"
    "The Times\tgb\ten\tthe-times\n"
)


def test_parse_sources_skips_header_comments_and_bad_rows():
    dataset = parse_sources(RAW)
    assert [s.identifier for s in dataset.sources] == [
        "le-monde",
        "the-guardian",
        "die-welt",
        "the-times",
    ]
    assert dataset.sources[2].display_name == "Die Welt"


def test_countries_sorted_by_display_name():
    dataset = parse_sources(RAW)
    assert [(c.code, c.display_name) for c in dataset.countries] == [
        ("fr", "France"),
        ("de", "Germany"),
        ("gb", "United Kingdom"),
    ]
    countries = set(dataset.country_codes())
    assert all(s.country_code in countries for s in dataset.sources)


def test_sources_for_country_keeps_dataset_order():
    dataset = parse_sources(RAW)
    assert [s.identifier for s in dataset.sources_for_country("GB")] == ["the-guardian", "the-times"]
    assert dataset.sources_for_country("") == []


def test_country_display_name():
    assert country_display_name("de") == "Germany"
    assert country_display_name(" ci ") == "Côte d’Ivoire"
    assert country_display_name("xk") == "XK"
    assert country_display_name("") == ""


def test_every_supported_country_has_a_name():
    missing = [c for c in SUPPORTED_COUNTRY_CODES if c.upper() not in COUNTRY_NAMES]
    assert missing == []


def test_country_options_sorted_by_name():
    options = country_options(["us", "DE", "fr", ""])
    assert options == [
        ("France (FR)", "fr"),
        ("Germany (DE)", "de"),
        ("United States (US)", "us"),
    ]


def test_language_options_sorted_by_name():
    options = language_options({"en": "English", "de": "German", "ar": "Arabic"})
    assert [value for _, value in options] == ["ar", "en", "de"]
    assert options[0] == ("Arabic (AR)", "ar")
    assert len(language_options(SUPPORTED_LANGUAGES)) == len(SUPPORTED_LANGUAGES)


def test_loader_memoizes():
    calls = []

    def read():
        calls.append(1)
        return RAW

    loader = ReferenceDataLoader(read_text=read)
    first = loader.load()
    second = loader.load()
    assert first is second
    assert len(calls) == 1
    assert loader.error is None


def test_loader_read_failure_yields_empty_dataset():
    def read():
        raise OSError("asset missing")

    loader = ReferenceDataLoader(read_text=read)
    dataset = loader.load()
    assert dataset.sources == ()
    assert dataset.countries == ()
    assert loader.error is not None
    assert loader.loaded


@pytest.mark.parametrize("raw", ["", None])
def test_loader_empty_text_is_reported(raw):
    loader = ReferenceDataLoader(read_text=lambda: raw)
    assert loader.load().sources == ()
    assert "Could not read" in str(loader.error)


def test_packaged_dataset_parses():
    dataset = ReferenceDataLoader().load()
    assert dataset.has_country("us")
    assert len(dataset.sources_for_country("us")) > 1
