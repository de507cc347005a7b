from __future__ import annotations

import logging
import time
from dataclasses import asdict, fields
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from .config import save_settings
from .datamodels import Article, Folder, SavedArticle, SavedSearch, SearchCriteria
from .errors import PersistenceError, ValidationError

logger = logging.getLogger("newsroom")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def _time_id() -> str:
    return str(int(time.time() * 1000))


def _from_dict(cls, data: Dict[str, Any]):
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


def unique_name(base: str, taken: set[str]) -> str:
    """Return ``base`` or ``"base (2)"``, ``"base (3)"``... whichever is free."""
    name = base
    counter = 2
    while name in taken:
        name = f"{base} ({counter})"
        counter += 1
    return name


class Library:
    """Saved searches, folders and saved articles held in the settings document.

    Every mutation changes the in-memory document first and then writes the
    whole document back. A failed write is logged and re-raised; the memory
    copy keeps the change.
    """

    def __init__(
        self,
        settings: Dict[str, Any],
        persist: Callable[[Dict[str, Any]], None] = save_settings,
        clock: Callable[[], str] = _now_iso,
        id_factory: Callable[[], str] = _time_id,
    ):
        self.settings = settings
        self._persist = persist
        self._clock = clock
        self._id_factory = id_factory
        self.normalize()

    def normalize(self) -> None:
        s = self.settings
        if not isinstance(s.get("savedSearches"), list):
            s["savedSearches"] = []
        if not isinstance(s.get("folders"), list):
            s["folders"] = []
        if not isinstance(s.get("savedNews"), dict):
            s["savedNews"] = {}
        folder_ids = {f.get("id") for f in s["folders"]}
        orphans = [k for k in s["savedNews"] if k not in folder_ids]
        for key in orphans:
            logger.warning("Dropping saved articles for missing folder %s", key)
            del s["savedNews"][key]

    def _flush(self) -> None:
        try:
            self._persist(self.settings)
        except PersistenceError as e:
            logger.error("Library change kept in memory only: %s", e)
            raise

    def _new_id(self, taken: set[str]) -> str:
        new_id = self._id_factory()
        while new_id in taken:
            new_id = str(int(new_id) + 1) if new_id.isdigit() else f"{new_id}-1"
        return new_id

    # --- saved searches ---
    def saved_searches(self) -> List[SavedSearch]:
        return [_from_dict(SavedSearch, s) for s in self.settings["savedSearches"]]

    def get_saved_search(self, search_id: str) -> Optional[SavedSearch]:
        for s in self.settings["savedSearches"]:
            if s.get("id") == search_id:
                return _from_dict(SavedSearch, s)
        return None

    def save_search(self, criteria: SearchCriteria, proposed_name: str) -> SavedSearch:
        base = (proposed_name or "").strip()
        if not base:
            raise ValidationError("A saved search needs a name.")
        searches = self.settings["savedSearches"]
        saved = SavedSearch(
            id=self._new_id({s.get("id") for s in searches}),
            name=unique_name(base, {s.get("name") for s in searches}),
            text=criteria.text,
            language=criteria.language,
            country=criteria.country,
            category=criteria.category,
            earliestDate=criteria.earliest_date,
            latestDate=criteria.latest_date,
            created=self._clock(),
        )
        searches.append(asdict(saved))
        self._flush()
        return saved

    def delete_saved_search(self, search_id: str) -> bool:
        searches = self.settings["savedSearches"]
        kept = [s for s in searches if s.get("id") != search_id]
        if len(kept) == len(searches):
            return False
        self.settings["savedSearches"] = kept
        self._flush()
        return True

    # --- folders ---
    def folders(self) -> List[Folder]:
        return [_from_dict(Folder, f) for f in self.settings["folders"]]

    def get_folder(self, folder_id: str) -> Optional[Folder]:
        for f in self.settings["folders"]:
            if f.get("id") == folder_id:
                return _from_dict(Folder, f)
        return None

    def create_folder(self, name: str) -> Folder:
        name = (name or "").strip()
        if not name:
            raise ValidationError("A folder needs a name.")
        folders = self.settings["folders"]
        folder = Folder(
            id=self._new_id({f.get("id") for f in folders}),
            name=name,
            created=self._clock(),
        )
        folders.append(asdict(folder))
        self._flush()
        return folder

    def delete_folder(self, folder_id: str) -> int:
        """Delete a folder and its saved articles; return how many articles went."""
        if self.get_folder(folder_id) is None:
            return 0
        removed = len(self.settings["savedNews"].get(folder_id, []))
        self.settings["folders"] = [
            f for f in self.settings["folders"] if f.get("id") != folder_id
        ]
        self.settings["savedNews"].pop(folder_id, None)
        self._flush()
        return removed

    def folder_articles(self, folder_id: str) -> List[SavedArticle]:
        return [
            _from_dict(SavedArticle, a)
            for a in self.settings["savedNews"].get(folder_id, [])
        ]

    # --- saved articles ---
    def save_article_to_folder(
        self, article: Union[Article, SavedArticle], folder_id: str
    ) -> bool:
        """Snapshot ``article`` into a folder. Returns False if it was already there."""
        if self.get_folder(folder_id) is None:
            raise ValidationError("That folder no longer exists.")
        bucket = self.settings["savedNews"].setdefault(folder_id, [])
        if any(a.get("id") == article.id for a in bucket):
            return False
        snapshot = SavedArticle(
            id=article.id,
            title=article.title,
            url=article.url,
            summary=article.summary or "",
            image=article.image or "",
            savedAt=self._clock(),
            folderId=folder_id,
        )
        bucket.append(asdict(snapshot))
        self._flush()
        return True

    def remove_article(self, article_id: int, folder_id: str) -> bool:
        bucket = self.settings["savedNews"].get(folder_id)
        if not bucket:
            return False
        kept = [a for a in bucket if a.get("id") != article_id]
        if len(kept) == len(bucket):
            return False
        self.settings["savedNews"][folder_id] = kept
        self._flush()
        return True

    def is_saved(self, article_id: int) -> bool:
        return any(
            a.get("id") == article_id
            for bucket in self.settings["savedNews"].values()
            for a in bucket
        )

    # --- preferences ---
    def update_preferences(
        self,
        api_key: Optional[str] = None,
        default_country: Optional[str] = None,
        default_language: Optional[str] = None,
        theme: Optional[str] = None,
    ) -> None:
        prefs = self.settings.setdefault("preferences", {})
        if api_key is not None:
            self.settings["apiKey"] = api_key.strip()
        if default_country is not None:
            prefs["defaultCountry"] = default_country
        if default_language is not None:
            prefs["defaultLanguage"] = default_language
        if theme is not None:
            prefs["theme"] = theme
        self._flush()
