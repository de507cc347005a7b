from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from newsroom_tui.api import WorldNewsClient
from newsroom_tui.datamodels import Article
from newsroom_tui.errors import (
    ApiError,
    AuthError,
    MissingApiKeyError,
    RateLimitError,
    TransportError,
)


def response(status=200, payload=None, text="", reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.reason = reason
    resp.text = text
    resp.json.return_value = payload if payload is not None else {}
    return resp


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return WorldNewsClient("secret", session=session)


def test_missing_key_fails_before_request(session):
    client = WorldNewsClient("  ", session=session)
    with pytest.raises(MissingApiKeyError):
        client.search_news({"text": "x"})
    session.get.assert_not_called()


def test_search_news_normalizes_articles(client, session):
    session.get.return_value = response(
        payload={
            "news": [
                {
                    "id": "11",
                    "title": "Markets <b>rally</b>",
                    "url": "https://n/11",
                    "text": "<p>Stocks rose.</p>",
                    "image": None,
                    "publish_date": "2024-05-10 08:00:00",
                },
                {"title": "no id"},
            ]
        }
    )
    items = client.search_news({"text": "markets", "language": "", "offset": 0})

    assert len(items) == 1
    assert items[0].id == 11
    assert items[0].title == "Markets rally"
    assert items[0].summary == "Stocks rose."
    assert items[0].image == ""

    url = session.get.call_args.args[0]
    params = session.get.call_args.kwargs["params"]
    assert url == "https://api.worldnewsapi.com/search-news"
    assert params == {"text": "markets", "offset": 0, "api-key": "secret"}


@pytest.mark.parametrize(
    "status, error",
    [(401, AuthError), (429, RateLimitError), (500, ApiError)],
)
def test_status_classification(client, session, status, error):
    session.get.return_value = response(status=status, text="oops", reason="Bad")
    with pytest.raises(error) as exc_info:
        client.top_news("us", "en", 20)
    assert exc_info.value.status == status


def test_generic_error_includes_status_and_body(client, session):
    session.get.return_value = response(status=502, text="upstream down", reason="Bad Gateway")
    with pytest.raises(ApiError) as exc_info:
        client.search_news({"text": "x"})
    assert str(exc_info.value) == "API request failed: 502 Bad Gateway. Details: upstream down"


def test_connectivity_failure(client, session):
    session.get.side_effect = requests.ConnectionError("no route")
    with pytest.raises(TransportError) as exc_info:
        client.search_news({"text": "x"})
    assert "internet connection" in str(exc_info.value)


def test_top_news_skips_empty_clusters(client, session):
    session.get.return_value = response(
        payload={
            "top_news": [
                {"news": [{"id": 1, "title": "A", "url": "u1"}, {"id": 2, "title": "B", "url": "u2"}]},
                {"news": []},
            ]
        }
    )
    clusters = client.top_news("us", "en", 20)
    assert len(clusters) == 1
    assert clusters[0].lead.id == 1
    assert [a.id for a in clusters[0].related] == [2]


def test_top_news_ignores_malformed_entries(client, session):
    session.get.return_value = response(
        payload={"top_news": ["junk", None, 7, {"news": [{"id": 3, "title": "C", "url": "u3"}]}]}
    )
    clusters = client.top_news("us", "en", 20)
    assert [c.lead.id for c in clusters] == [3]


@pytest.mark.parametrize(
    "url, domain",
    [
        ("https://www.example.com/story", "example.com"),
        ("https://news.example.org/a?b=1", "news.example.org"),
        ("not a url", "Open"),
        ("", "Open"),
    ],
)
def test_article_domain(url, domain):
    assert Article(id=1, title="t", url=url).domain == domain


def test_front_page_defaults_from_request(client, session):
    session.get.return_value = response(payload={"front_page": {"image": "https://img/1.jpg"}})
    page = client.retrieve_front_page("2024-05-10", source_name="le-monde")
    assert page.url == "https://img/1.jpg"
    assert page.source_name == "le-monde"
    assert page.date == "2024-05-10"
    params = session.get.call_args.kwargs["params"]
    assert "source-country" not in params
    assert params["source-name"] == "le-monde"


def test_front_page_alternate_image_key(client, session):
    session.get.return_value = response(
        payload={"front_page": {"front_page_url": "https://img/2.jpg", "name": "Le Monde", "country": "fr"}}
    )
    page = client.retrieve_front_page("2024-05-10", country="fr")
    assert page.url == "https://img/2.jpg"
    assert page.source_name == "Le Monde"
    assert page.country == "fr"


def test_front_page_without_image_is_none(client, session):
    session.get.return_value = response(payload={"front_page": {"name": "Nothing"}})
    assert client.retrieve_front_page("2024-05-10", source_name="x") is None
