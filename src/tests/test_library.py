from __future__ import annotations

import itertools
from unittest.mock import MagicMock

import pytest

from newsroom_tui.config import default_settings
from newsroom_tui.datamodels import Article, SearchCriteria
from newsroom_tui.errors import PersistenceError, ValidationError
from newsroom_tui.library import Library, unique_name


@pytest.fixture
def persist():
    return MagicMock()


@pytest.fixture
def library(persist):
    ids = (str(1700000000000 + i) for i in itertools.count())
    return Library(
        default_settings(),
        persist=persist,
        clock=lambda: "2024-05-10T12:00:00.000+00:00",
        id_factory=lambda: next(ids),
    )


def article(article_id=42):
    return Article(id=article_id, title="Headline", url="https://n/42", summary="Short", image="https://img/42.jpg")


def test_unique_name_counter():
    assert unique_name("Tech", set()) == "Tech"
    assert unique_name("Tech", {"Tech"}) == "Tech (2)"
    assert unique_name("Tech", {"Tech", "Tech (2)"}) == "Tech (3)"


def test_save_search_dedupes_names(library, persist):
    criteria = SearchCriteria(text="gpu")
    first = library.save_search(criteria, "Tech")
    second = library.save_search(criteria, "Tech")
    third = library.save_search(criteria, " Tech ")

    assert [s.name for s in library.saved_searches()] == ["Tech", "Tech (2)", "Tech (3)"]
    assert len({first.id, second.id, third.id}) == 3
    assert persist.call_count == 3
    assert library.settings["savedSearches"][0]["text"] == "gpu"


def test_save_search_requires_name(library, persist):
    with pytest.raises(ValidationError):
        library.save_search(SearchCriteria(text="x"), "   ")
    persist.assert_not_called()


def test_saved_search_round_trips_criteria(library):
    criteria = SearchCriteria(text="rates", country="gb", category="business", latest_date="2024-01-31")
    saved = library.save_search(criteria, "Rates")
    assert library.get_saved_search(saved.id).criteria == criteria


def test_delete_saved_search(library):
    saved = library.save_search(SearchCriteria(text="x"), "X")
    assert library.delete_saved_search(saved.id)
    assert library.get_saved_search(saved.id) is None
    assert not library.delete_saved_search(saved.id)


def test_folders_allow_duplicate_names(library):
    a = library.create_folder("Reading")
    b = library.create_folder("Reading")
    assert a.id != b.id
    assert [f.name for f in library.folders()] == ["Reading", "Reading"]


def test_create_folder_rejects_blank(library):
    with pytest.raises(ValidationError):
        library.create_folder("")


def test_saving_article_twice_keeps_one_entry_per_folder(library):
    first = library.create_folder("First")
    second = library.create_folder("Second")

    assert library.save_article_to_folder(article(), first.id)
    assert not library.save_article_to_folder(article(), first.id)
    assert library.save_article_to_folder(article(), second.id)

    assert [a.id for a in library.folder_articles(first.id)] == [42]
    assert [a.id for a in library.folder_articles(second.id)] == [42]
    snapshot = library.folder_articles(first.id)[0]
    assert snapshot.folderId == first.id
    assert snapshot.image == "https://img/42.jpg"
    assert library.is_saved(42)


def test_save_to_unknown_folder(library):
    with pytest.raises(ValidationError):
        library.save_article_to_folder(article(), "nope")
    assert library.settings["savedNews"] == {}


def test_remove_article_only_touches_its_folder(library, persist):
    first = library.create_folder("First")
    second = library.create_folder("Second")
    library.save_article_to_folder(article(), first.id)
    library.save_article_to_folder(article(), second.id)
    calls = persist.call_count

    assert library.remove_article(42, first.id)
    assert library.folder_articles(first.id) == []
    assert len(library.folder_articles(second.id)) == 1

    assert not library.remove_article(42, first.id)
    assert not library.remove_article(7, "missing")
    assert persist.call_count == calls + 1


def test_delete_folder_removes_bucket(library):
    folder = library.create_folder("Doomed")
    for i in range(3):
        library.save_article_to_folder(article(i), folder.id)

    assert library.delete_folder(folder.id) == 3
    assert library.get_folder(folder.id) is None
    assert folder.id not in library.settings["savedNews"]
    assert library.folder_articles(folder.id) == []
    assert library.delete_folder(folder.id) == 0


def test_persistence_failure_keeps_memory(library, persist):
    persist.side_effect = PersistenceError("disk full")
    with pytest.raises(PersistenceError):
        library.create_folder("Kept")
    assert [f.name for f in library.folders()] == ["Kept"]


def test_normalize_drops_orphan_buckets(persist):
    settings = default_settings()
    settings["folders"] = [{"id": "1", "name": "A", "created": ""}]
    settings["savedNews"] = {"1": [], "2": [{"id": 5, "title": "t", "url": "u"}]}
    library = Library(settings, persist=persist)
    assert list(library.settings["savedNews"]) == ["1"]


def test_colliding_ids_are_bumped(persist):
    library = Library(default_settings(), persist=persist, id_factory=lambda: "100")
    a = library.create_folder("A")
    b = library.create_folder("B")
    assert (a.id, b.id) == ("100", "101")


def test_update_preferences(library, persist):
    library.update_preferences(api_key=" key ", default_country="de", default_language="de")
    assert library.settings["apiKey"] == "key"
    assert library.settings["preferences"]["defaultCountry"] == "de"
    persist.assert_called_once_with(library.settings)
