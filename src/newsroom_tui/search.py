from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import List, Optional

from .api import WorldNewsClient
from .config import SEARCH_PAGE_SIZE, TOP_NEWS_COUNT
from .datamodels import SearchCriteria, SearchPage, SearchPaginationState, TopNewsCluster
from .errors import ValidationError
from .reference import country_display_name

logger = logging.getLogger("newsroom")


class SearchPaginator:
    """Offset-based paging over ``/search-news``.

    The API does not report a total, so a page is the only signal: a
    non-empty page means "there may be more", an empty one means done.
    """

    def __init__(self, client: WorldNewsClient, page_size: int = SEARCH_PAGE_SIZE):
        self.client = client
        self.page_size = page_size
        self.state: Optional[SearchPaginationState] = None

    def start_search(self, criteria: SearchCriteria) -> SearchPage:
        if criteria.is_empty():
            raise ValidationError(
                "Enter keywords or choose at least one filter to search."
            )
        state = SearchPaginationState(criteria=replace(criteria), page_size=self.page_size)
        self.state = state
        return self._fetch(state, append=False)

    def continue_search(self, state: Optional[SearchPaginationState] = None) -> SearchPage:
        state = state or self.state
        if state is None:
            raise ValidationError("No active search to continue.")
        return self._fetch(state, append=True)

    def clear(self) -> None:
        self.state = None

    def _fetch(self, state: SearchPaginationState, append: bool) -> SearchPage:
        # Two continuations of one session must not read the same offset.
        with state.lock:
            offset = state.offset
            params = state.criteria.to_params()
            params["number"] = state.page_size
            params["offset"] = offset
            items = self.client.search_news(params)

            if state is not self.state:
                # A newer search replaced this one while the request was in flight.
                logger.debug("Dropping stale search page at offset %d", offset)
            elif items:
                state.offset += len(items)
        logger.debug("Search page at offset %d returned %d items", offset, len(items))
        return SearchPage(items=items, offset=offset, append=append)


class TopNewsLoader:
    def __init__(self, client: WorldNewsClient, number: int = TOP_NEWS_COUNT):
        self.client = client
        self.number = number

    def load(self, country: str, language: str) -> List[TopNewsCluster]:
        if not country:
            raise ValidationError("Choose a country to load top news.")
        clusters = self.client.top_news(country, language, self.number)
        return [c for c in clusters if c.news]


def suggest_search_name(criteria: SearchCriteria) -> str:
    """Suggest a saved-search name from the query text or its filters."""
    if criteria.text.strip():
        return criteria.text.strip()
    bits = []
    if criteria.language:
        bits.append(criteria.language)
    if criteria.country:
        bits.append(country_display_name(criteria.country))
    if criteria.category:
        bits.append(criteria.category)
    return " • ".join(bits) or "Untitled Search"


def earliest_date_preset(preset: str, today: Optional[date] = None) -> Optional[date]:
    """Resolve a "From" date shortcut relative to ``today``.

    ``month`` steps back one calendar month, clamping to the last day of a
    shorter month (March 31 becomes February 28 or 29). Unknown presets
    return None so the caller leaves the field untouched.
    """
    today = today or date.today()
    if preset == "yesterday":
        return today - timedelta(days=1)
    if preset == "week":
        return today - timedelta(days=7)
    if preset == "month":
        year, month = (today.year, today.month - 1) if today.month > 1 else (today.year - 1, 12)
        day = min(today.day, calendar.monthrange(year, month)[1])
        return date(year, month, day)
    if preset == "year":
        return date(today.year, 1, 1)
    return None
