from __future__ import annotations

from typing import List, Optional, Tuple

from .datamodels import NewspaperSource, ReferenceDataset


class FrontPageFilterState:
    """Country and newspaper selectors for the front pages view.

    The newspaper list always belongs to the selected country, and both the
    newspaper selector and the fetch action are off until a country is set.
    """

    def __init__(self, dataset: Optional[ReferenceDataset] = None):
        self.dataset = dataset or ReferenceDataset()
        self.country = ""
        self.source = ""
        self._sources: List[NewspaperSource] = []

    def rebind(self, dataset: ReferenceDataset) -> None:
        self.dataset = dataset
        self.select_country(self.country)

    def select_country(self, code: Optional[str]) -> None:
        code = (code or "").strip()
        if code and not self.dataset.has_country(code):
            code = ""
        if code.lower() != self.country.lower():
            self.source = ""
        self.country = code
        self._sources = sorted(
            self.dataset.sources_for_country(code),
            key=lambda s: s.display_name.casefold(),
        )
        if self.source and self.source not in {s.identifier for s in self._sources}:
            self.source = ""

    def select_source(self, identifier: Optional[str]) -> None:
        identifier = (identifier or "").strip()
        if identifier not in {s.identifier for s in self._sources}:
            identifier = ""
        self.source = identifier

    @property
    def country_options(self) -> List[Tuple[str, str]]:
        return [
            (f"{c.display_name} ({c.code.upper()})", c.code)
            for c in self.dataset.countries
        ]

    @property
    def source_options(self) -> List[Tuple[str, str]]:
        return [(s.display_name, s.identifier) for s in self._sources]

    @property
    def source_enabled(self) -> bool:
        return bool(self.country)

    @property
    def fetch_enabled(self) -> bool:
        return bool(self.country)
