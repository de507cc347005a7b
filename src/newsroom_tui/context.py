from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from .api import WorldNewsClient
from .config import save_settings
from .datamodels import FrontPageBatchState, ReferenceDataset
from .filters import FrontPageFilterState
from .frontpages import FrontPageFetcher
from .library import Library
from .reference import ReferenceDataLoader
from .search import SearchPaginator, TopNewsLoader

logger = logging.getLogger("newsroom")


class AppContext:
    """Everything the commands share: settings, client, loaders and sessions."""

    def __init__(
        self,
        settings: Dict[str, Any],
        client: WorldNewsClient,
        reference_loader: ReferenceDataLoader,
        persist: Callable[[Dict[str, Any]], None] = save_settings,
    ):
        self.settings = settings
        self.client = client
        self.reference_loader = reference_loader
        self.library = Library(settings, persist=persist)
        self.search = SearchPaginator(client)
        self.top_news = TopNewsLoader(client)
        self.filters = FrontPageFilterState()
        self.front_page_state: Optional[FrontPageBatchState] = None
        self._front_pages: Optional[FrontPageFetcher] = None

    @classmethod
    def create(
        cls,
        settings: Dict[str, Any],
        persist: Callable[[Dict[str, Any]], None] = save_settings,
    ) -> "AppContext":
        client = WorldNewsClient(settings.get("apiKey", ""))
        return cls(settings, client, ReferenceDataLoader(), persist=persist)

    @property
    def preferences(self) -> Dict[str, Any]:
        return self.settings.setdefault("preferences", {})

    @property
    def has_api_key(self) -> bool:
        return bool(self.settings.get("apiKey"))

    def load_reference_data(self) -> ReferenceDataset:
        dataset = self.reference_loader.load()
        self.filters.rebind(dataset)
        return dataset

    @property
    def front_pages(self) -> FrontPageFetcher:
        if self._front_pages is None:
            self._front_pages = FrontPageFetcher(self.client, self.load_reference_data())
        return self._front_pages

    def begin_front_pages(self, date: Optional[str] = None) -> FrontPageBatchState:
        """Start a new front-page session from the current filter selection."""
        state = self.front_pages.start_batch(
            self.filters.country, date, self.filters.source or None
        )
        self.front_page_state = state
        return state

    def is_current(self, state: FrontPageBatchState) -> bool:
        return state is self.front_page_state

    def reconfigure(self) -> None:
        """Rebuild the API client after the key changed in settings."""
        logger.info("Reconfiguring API client")
        self.client = WorldNewsClient(self.settings.get("apiKey", ""))
        self.search = SearchPaginator(self.client)
        self.top_news = TopNewsLoader(self.client)
        if self._front_pages is not None:
            self._front_pages.client = self.client
        self.front_page_state = None
