from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import API_BASE_URL, FRONT_PAGE_CONCURRENCY, HTTP_TIMEOUT, REQUEST_HEADERS
from .datamodels import Article, FrontPage, TopNewsCluster
from .errors import (
    ApiError,
    AuthError,
    MissingApiKeyError,
    RateLimitError,
    TransportError,
)

logger = logging.getLogger("newsroom")

# Keys the front-page endpoint has used for the image URL over time.
_FRONT_PAGE_IMAGE_KEYS = ("image", "front_page_url", "url")


class WorldNewsClient:
    """Thin client for the World News API.

    Responses are normalized into the dataclasses in ``datamodels`` before
    they leave this module, so nothing else has to know about the raw JSON.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = API_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: int = HTTP_TIMEOUT,
    ):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update(REQUEST_HEADERS)
        # Failures surface to the user; "load more" is the retry.
        adapter = HTTPAdapter(
            pool_maxsize=FRONT_PAGE_CONCURRENCY,
            max_retries=Retry(total=0, raise_on_status=False),
        )
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        return s

    def _request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise MissingApiKeyError()

        query = {k: v for k, v in params.items() if v is not None and v != ""}
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        logger.debug("GET %s %s", url, query)
        query["api-key"] = self.api_key

        try:
            resp = self.session.get(url, params=query, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", endpoint, e)
            raise TransportError() from e

        if resp.status_code == 401:
            logger.error("API key rejected for %s", endpoint)
            raise AuthError(resp.text)
        if resp.status_code == 429:
            logger.warning("Rate limited on %s", endpoint)
            raise RateLimitError(resp.text)
        if not resp.ok:
            body = resp.text or ""
            message = f"API request failed: {resp.status_code} {resp.reason}"
            if body:
                message += f". Details: {body}"
            logger.warning("%s returned %s", endpoint, resp.status_code)
            raise ApiError(message, resp.status_code, body)

        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(
                f"API returned invalid JSON for {endpoint}", resp.status_code, resp.text
            ) from e
        logger.debug("%s returned %s", endpoint, resp.status_code)
        return data if isinstance(data, dict) else {}

    def search_news(self, params: Dict[str, Any]) -> List[Article]:
        data = self._request("/search-news", params)
        return [a for a in (_normalize_article(n) for n in data.get("news") or []) if a]

    def top_news(self, country: str, language: str, number: int) -> List[TopNewsCluster]:
        params = {"source-country": country, "language": language, "number": number}
        data = self._request("/top-news", params)
        clusters: List[TopNewsCluster] = []
        for raw in data.get("top_news") or []:
            if not isinstance(raw, dict):
                continue
            news = [a for a in (_normalize_article(n) for n in raw.get("news") or []) if a]
            if news:
                clusters.append(TopNewsCluster(news=news))
        return clusters

    def retrieve_front_page(
        self,
        date: str,
        source_name: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Optional[FrontPage]:
        """Return the front page for one source (or a whole country), if any."""
        params = {"source-name": source_name, "source-country": country, "date": date}
        data = self._request("/retrieve-front-page", params)
        return _normalize_front_page(
            data.get("front_page"),
            default_name=source_name or "Unknown Source",
            default_country=country or "",
            default_date=date,
        )


def _clean_text(value: Any) -> str:
    if not value:
        return ""
    text = str(value)
    if "<" not in text:
        return text.strip()
    return BeautifulSoup(text, "lxml").get_text(" ", strip=True)


def _normalize_article(raw: Any) -> Optional[Article]:
    if not isinstance(raw, dict) or raw.get("id") is None:
        return None
    try:
        article_id = int(raw["id"])
    except (TypeError, ValueError):
        return None
    summary = raw.get("summary") or raw.get("text") or ""
    return Article(
        id=article_id,
        title=_clean_text(raw.get("title")) or "Untitled",
        url=raw.get("url") or "",
        summary=_clean_text(summary),
        image=raw.get("image") or "",
        publish_date=raw.get("publish_date"),
        author=raw.get("author"),
        language=raw.get("language"),
        source_country=raw.get("source_country"),
    )


def _normalize_front_page(
    raw: Any, default_name: str, default_country: str, default_date: str
) -> Optional[FrontPage]:
    if not isinstance(raw, dict):
        return None
    image = next((raw[k] for k in _FRONT_PAGE_IMAGE_KEYS if raw.get(k)), "")
    if not image:
        return None
    return FrontPage(
        url=image,
        source_name=raw.get("name") or default_name,
        country=raw.get("country") or default_country,
        date=raw.get("date") or default_date,
        language=raw.get("language") or "",
    )
