from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse


# --- Reference data ---
@dataclass(frozen=True)
class Country:
    code: str
    display_name: str


@dataclass(frozen=True)
class NewspaperSource:
    display_name: str
    country_code: str
    language_code: str
    identifier: str


@dataclass(frozen=True)
class ReferenceDataset:
    countries: tuple = ()
    sources: tuple = ()

    def sources_for_country(self, code: str) -> List[NewspaperSource]:
        if not code:
            return []
        code = code.lower()
        return [s for s in self.sources if s.country_code.lower() == code]

    def country_codes(self) -> List[str]:
        return [c.code for c in self.countries]

    def has_country(self, code: str) -> bool:
        return bool(code) and code.lower() in {c.code.lower() for c in self.countries}


# --- API results ---
@dataclass
class Article:
    id: int
    title: str
    url: str
    summary: str = ""
    image: str = ""
    publish_date: Optional[str] = None
    author: Optional[str] = None
    language: Optional[str] = None
    source_country: Optional[str] = None

    @property
    def domain(self) -> str:
        """Host of the article URL without a leading "www.", or "Open"."""
        try:
            host = urlparse(self.url or "").hostname or ""
        except ValueError:
            host = ""
        if host.startswith("www."):
            host = host[4:]
        return host or "Open"


@dataclass
class TopNewsCluster:
    news: List[Article]

    @property
    def lead(self) -> Article:
        return self.news[0]

    @property
    def related(self) -> List[Article]:
        return self.news[1:]


@dataclass
class FrontPage:
    url: str
    source_name: str
    country: str
    date: str
    language: str = ""


# --- Search ---
@dataclass
class SearchCriteria:
    text: str = ""
    language: str = ""
    country: str = ""
    category: str = ""
    earliest_date: str = ""
    latest_date: str = ""

    def is_empty(self) -> bool:
        return not any(
            (v or "").strip()
            for v in (
                self.text,
                self.language,
                self.country,
                self.category,
                self.earliest_date,
                self.latest_date,
            )
        )

    def to_params(self) -> Dict[str, Any]:
        params = {
            "text": self.text.strip(),
            "language": self.language,
            "source-country": self.country,
            "categories": self.category,
            "earliest-publish-date": (
                f"{self.earliest_date} 00:00:00" if self.earliest_date else ""
            ),
            "latest-publish-date": (
                f"{self.latest_date} 23:59:59" if self.latest_date else ""
            ),
        }
        return {k: v for k, v in params.items() if v}


@dataclass
class SearchPaginationState:
    criteria: SearchCriteria
    page_size: int = 25
    offset: int = 0
    # Held for the read-fetch-advance of one page.
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass
class SearchPage:
    items: List[Article]
    offset: int
    append: bool = False

    @property
    def has_more(self) -> bool:
        return bool(self.items)


# --- Front pages ---
@dataclass
class FrontPageBatchState:
    country: str
    date: date
    identifiers: List[str]
    cursor: int = 0
    fallback_attempted: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.identifiers)

    @property
    def remaining(self) -> int:
        return len(self.identifiers) - self.cursor


@dataclass
class FrontPageLoad:
    pages: List[FrontPage]
    has_more: bool
    used_fallback: bool = False


# --- User library ---
@dataclass
class SavedSearch:
    id: str
    name: str
    text: str = ""
    language: str = ""
    country: str = ""
    category: str = ""
    earliestDate: str = ""
    latestDate: str = ""
    created: str = ""

    @property
    def criteria(self) -> SearchCriteria:
        return SearchCriteria(
            text=self.text,
            language=self.language,
            country=self.country,
            category=self.category,
            earliest_date=self.earliestDate,
            latest_date=self.latestDate,
        )


@dataclass
class Folder:
    id: str
    name: str
    created: str = ""


@dataclass
class SavedArticle:
    id: int
    title: str
    url: str
    summary: str = ""
    image: str = ""
    savedAt: str = ""
    folderId: str = ""
