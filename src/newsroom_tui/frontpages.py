from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import List, Optional, Union

from .api import WorldNewsClient
from .config import FRONT_PAGE_BATCH_TARGET, FRONT_PAGE_CONCURRENCY
from .datamodels import FrontPage, FrontPageBatchState, FrontPageLoad, ReferenceDataset
from .errors import (
    ApiError,
    NewsroomError,
    PerSourceFetchError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger("newsroom")


def clamp_date(requested: Union[date, str, None], today: Optional[date] = None) -> date:
    """Replace an empty or future date with today's local date."""
    today = today or date.today()
    if not requested:
        return today
    if isinstance(requested, str):
        try:
            requested = datetime.strptime(requested.strip(), "%Y-%m-%d").date()
        except ValueError as e:
            raise ValidationError(f"Invalid date '{requested}', expected YYYY-MM-DD") from e
    return min(requested, today)


class FrontPageFetcher:
    """Collects front pages for a country a few sources at a time.

    Each call to :meth:`next_batch` dispatches windows of ``concurrency``
    requests and waits for the whole window before deciding whether to
    send another, stopping once ``batch_target`` pages were found or every
    source has been tried. The cursor counts attempts, so a window full of
    failures still moves the session forward.
    """

    def __init__(
        self,
        client: WorldNewsClient,
        dataset: ReferenceDataset,
        batch_target: int = FRONT_PAGE_BATCH_TARGET,
        concurrency: int = FRONT_PAGE_CONCURRENCY,
    ):
        self.client = client
        self.dataset = dataset
        self.batch_target = batch_target
        self.concurrency = concurrency

    def start_batch(
        self,
        country: str,
        requested_date: Union[date, str, None] = None,
        source_filter: Optional[str] = None,
        today: Optional[date] = None,
    ) -> FrontPageBatchState:
        if not country:
            raise ValidationError("Please select a country first.")
        if source_filter:
            identifiers = [source_filter]
        else:
            identifiers = [s.identifier for s in self.dataset.sources_for_country(country)]
        if not identifiers:
            raise ValidationError("No newspapers configured for this country.")

        state = FrontPageBatchState(
            country=country,
            date=clamp_date(requested_date, today),
            identifiers=identifiers,
        )
        logger.info(
            "Front pages for %s on %s: %d sources",
            country,
            state.date.isoformat(),
            len(identifiers),
        )
        return state

    def _fetch_one(self, state: FrontPageBatchState, identifier: str) -> FrontPage:
        try:
            page = self.client.retrieve_front_page(
                state.date.isoformat(), source_name=identifier
            )
        except (ApiError, TransportError) as e:
            raise PerSourceFetchError(identifier, str(e)) from e
        if page is None:
            raise PerSourceFetchError(identifier, "no image in response")
        if not page.country:
            page.country = state.country
        return page

    def next_batch(self, state: FrontPageBatchState) -> List[FrontPage]:
        with state.lock:
            return self._collect(state)

    def _collect(self, state: FrontPageBatchState) -> List[FrontPage]:
        results: List[FrontPage] = []
        while not state.exhausted and len(results) < self.batch_target:
            start = state.cursor
            window = state.identifiers[start : start + self.concurrency]
            state.cursor = start + len(window)

            with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
                futures = [executor.submit(self._fetch_one, state, i) for i in window]
                for future in futures:
                    try:
                        results.append(future.result())
                    except PerSourceFetchError as e:
                        logger.debug("%s", e)

            logger.debug(
                "Front page window %d-%d: %d collected so far",
                start,
                state.cursor,
                len(results),
            )
        return results

    def fallback(self, state: FrontPageBatchState) -> Optional[FrontPage]:
        """Ask for any front page of the country; used at most once per session."""
        with state.lock:
            if state.fallback_attempted:
                return None
            state.fallback_attempted = True
        try:
            return self.client.retrieve_front_page(
                state.date.isoformat(), country=state.country
            )
        except NewsroomError as e:
            logger.info("Country-level front page fallback failed: %s", e)
            return None

    def load_initial(self, state: FrontPageBatchState) -> FrontPageLoad:
        pages = self.next_batch(state)
        used_fallback = False
        if not pages and state.exhausted:
            page = self.fallback(state)
            if page is not None:
                pages = [page]
                used_fallback = True
        return FrontPageLoad(pages=pages, has_more=not state.exhausted, used_fallback=used_fallback)

    def load_more(self, state: FrontPageBatchState) -> FrontPageLoad:
        # The fallback belongs to the first load only.
        state.fallback_attempted = True
        pages = self.next_batch(state)
        return FrontPageLoad(pages=pages, has_more=not state.exhausted)
