from __future__ import annotations

import threading
import time
from datetime import date
from unittest.mock import MagicMock

import pytest

from newsroom_tui.datamodels import Article, SearchCriteria, TopNewsCluster
from newsroom_tui.errors import RateLimitError, ValidationError
from newsroom_tui.search import (
    SearchPaginator,
    TopNewsLoader,
    earliest_date_preset,
    suggest_search_name,
)


def articles(count, start=0):
    return [Article(id=start + i, title=f"Story {start + i}", url=f"https://n/{start + i}") for i in range(count)]


@pytest.fixture
def client():
    return MagicMock()


def test_empty_criteria_rejected_without_request(client):
    paginator = SearchPaginator(client)
    with pytest.raises(ValidationError):
        paginator.start_search(SearchCriteria(text="   "))
    client.search_news.assert_not_called()
    assert paginator.state is None


def test_filter_only_search_is_allowed(client):
    client.search_news.return_value = articles(2)
    page = SearchPaginator(client).start_search(SearchCriteria(category="sports"))
    assert len(page.items) == 2
    params = client.search_news.call_args.args[0]
    assert params == {"categories": "sports", "number": 25, "offset": 0}


def test_offsets_follow_received_counts(client):
    client.search_news.side_effect = [articles(25), articles(25, 25), articles(13, 50), [], []]
    paginator = SearchPaginator(client)

    first = paginator.start_search(SearchCriteria(text="climate"))
    pages = [first] + [paginator.continue_search() for _ in range(4)]

    offsets = [c.args[0]["offset"] for c in client.search_news.call_args_list]
    assert offsets == [0, 25, 50, 63, 63]
    assert paginator.state.offset == 63
    assert [p.has_more for p in pages] == [True, True, True, False, False]
    assert not first.append
    assert all(p.append for p in pages[1:])


def test_criteria_held_constant_across_pages(client):
    client.search_news.side_effect = [articles(25), articles(1, 25)]
    paginator = SearchPaginator(client)
    criteria = SearchCriteria(text="ai", language="en", earliest_date="2024-01-01")
    paginator.start_search(criteria)
    criteria.text = "changed after submit"
    paginator.continue_search()

    for call in client.search_news.call_args_list:
        params = call.args[0]
        assert params["text"] == "ai"
        assert params["earliest-publish-date"] == "2024-01-01 00:00:00"


def test_new_search_resets_offset(client):
    client.search_news.side_effect = [articles(25), articles(25), articles(4)]
    paginator = SearchPaginator(client)
    paginator.start_search(SearchCriteria(text="one"))
    paginator.continue_search()
    paginator.start_search(SearchCriteria(text="two"))
    assert client.search_news.call_args.args[0]["offset"] == 0
    assert paginator.state.offset == 4


def test_superseded_state_is_not_advanced(client):
    client.search_news.side_effect = [articles(25), articles(3), articles(25)]
    paginator = SearchPaginator(client)
    paginator.start_search(SearchCriteria(text="old"))
    old_state = paginator.state
    paginator.start_search(SearchCriteria(text="new"))
    paginator.continue_search(old_state)
    assert old_state.offset == 25


def test_continue_without_session(client):
    with pytest.raises(ValidationError):
        SearchPaginator(client).continue_search()


def test_api_errors_propagate_and_keep_offset(client):
    client.search_news.side_effect = [articles(25), RateLimitError()]
    paginator = SearchPaginator(client)
    paginator.start_search(SearchCriteria(text="x"))
    with pytest.raises(RateLimitError):
        paginator.continue_search()
    assert paginator.state.offset == 25


def test_criteria_params_expand_dates_and_drop_blanks():
    params = SearchCriteria(country="gb", latest_date="2024-02-01").to_params()
    assert params == {
        "source-country": "gb",
        "latest-publish-date": "2024-02-01 23:59:59",
    }


def test_top_news_drops_empty_clusters(client):
    client.top_news.return_value = [TopNewsCluster(news=articles(3)), TopNewsCluster(news=[])]
    clusters = TopNewsLoader(client).load("us", "en")
    assert len(clusters) == 1
    assert len(clusters[0].related) == 2
    client.top_news.assert_called_once_with("us", "en", 20)


def test_top_news_requires_country(client):
    with pytest.raises(ValidationError):
        TopNewsLoader(client).load("", "en")


def test_suggest_search_name():
    assert suggest_search_name(SearchCriteria(text=" Elections ")) == "Elections"
    assert suggest_search_name(SearchCriteria(language="en", country="de", category="business")) == "en • Germany • business"
    assert suggest_search_name(SearchCriteria(earliest_date="2024-01-01")) == "Untitled Search"


class SlowSearchClient:
    """Returns full pages after a short delay and records requested offsets."""

    def __init__(self, page_size=25):
        self.page_size = page_size
        self.offsets = []
        self._lock = threading.Lock()

    def search_news(self, params):
        with self._lock:
            self.offsets.append(params["offset"])
        time.sleep(0.05)
        return articles(self.page_size, params["offset"])


def test_concurrent_continuations_fetch_distinct_pages():
    client = SlowSearchClient()
    paginator = SearchPaginator(client)
    paginator.start_search(SearchCriteria(text="markets"))

    pages = []
    threads = [
        threading.Thread(target=lambda: pages.append(paginator.continue_search()))
        for _ in range(2)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(client.offsets) == [0, 25, 50]
    assert sorted(p.offset for p in pages) == [25, 50]
    assert paginator.state.offset == 75
    ids = sorted(a.id for p in pages for a in p.items)
    assert ids == list(range(25, 75))


@pytest.mark.parametrize(
    "preset, today, expected",
    [
        ("yesterday", date(2024, 3, 1), date(2024, 2, 29)),
        ("week", date(2024, 1, 3), date(2023, 12, 27)),
        ("month", date(2024, 5, 15), date(2024, 4, 15)),
        ("month", date(2024, 3, 31), date(2024, 2, 29)),
        ("month", date(2024, 1, 10), date(2023, 12, 10)),
        ("year", date(2024, 8, 20), date(2024, 1, 1)),
    ],
)
def test_earliest_date_presets(preset, today, expected):
    assert earliest_date_preset(preset, today) == expected


def test_unknown_preset_leaves_date_alone():
    assert earliest_date_preset("", date(2024, 1, 1)) is None
    assert earliest_date_preset("decade", date(2024, 1, 1)) is None
