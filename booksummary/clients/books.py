"""Google Books search with a short timeout and degraded-result fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from booksummary.clients.cache import CacheStore, CacheStoreError
from booksummary.config import Settings
from booksummary.summarizer.cache_keys import search_cache_key
from booksummary.summarizer.models import BookCandidate

logger = logging.getLogger(__name__)

MIN_QUERY_CHARS = 2

UNREACHABLE_HINT = "Book search service is unreachable right now. Please try again."
INVALID_RESPONSE_HINT = "Book search returned an invalid response."


@dataclass(slots=True)
class SearchOutcome:
    items: List[BookCandidate] = field(default_factory=list)
    error: Optional[str] = None


def secure_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    if url[:5].lower() == "http:":
        return "https:" + url[5:]
    return url


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def parse_volume(item: Any) -> Optional[BookCandidate]:
    """
    Parse a single volume from the Google Books API.

    Returns None for volumes without an id or a title, since neither can
    be selected for a summary.
    """
    if not isinstance(item, dict):
        return None
    volume_info = item.get("volumeInfo") or {}
    if not isinstance(volume_info, dict):
        return None

    book_id = item.get("id")
    title = volume_info.get("title")
    if not isinstance(book_id, str) or not book_id:
        return None
    if not isinstance(title, str) or not title.strip():
        return None

    image_links = volume_info.get("imageLinks") or {}
    thumbnail = None
    if isinstance(image_links, dict):
        thumbnail = image_links.get("thumbnail") or image_links.get("smallThumbnail")

    published_date = volume_info.get("publishedDate")
    description = volume_info.get("description")
    return BookCandidate(
        id=book_id,
        title=title,
        authors=_string_list(volume_info.get("authors")),
        published_date=published_date if isinstance(published_date, str) else None,
        description=description if isinstance(description, str) else None,
        categories=_string_list(volume_info.get("categories")),
        thumbnail=secure_url(thumbnail if isinstance(thumbnail, str) else None),
    )


def parse_volumes_response(response_json: Any) -> List[BookCandidate]:
    """Parse a volumes response, skipping unusable items and repeated ids."""
    if not isinstance(response_json, dict):
        return []
    items = response_json.get("items") or []
    if not isinstance(items, list):
        return []

    seen_ids = set()
    books: List[BookCandidate] = []
    for item in items:
        book = parse_volume(item)
        if book is None or book.id in seen_ids:
            continue
        seen_ids.add(book.id)
        books.append(book)
    return books


class GoogleBooksClient:
    """Async client for the Google Books volumes endpoint."""

    def __init__(
        self,
        base_url: str = "https://www.googleapis.com/books/v1/volumes",
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        max_results_cap: int = 40,
        cache: Optional[CacheStore] = None,
        cache_ttl: int = 60,
        cache_prefix: str = "trl:books:",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the search client.

        Args:
            base_url: Volumes endpoint URL
            api_key: Optional API key (raises provider rate limits)
            timeout: Request timeout in seconds
            max_results_cap: Upper bound the provider accepts for maxResults
            cache: Optional cache store for short-lived result caching
            cache_ttl: Seconds to keep cached results; 0 disables caching
            cache_prefix: Key prefix for cached results
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.max_results_cap = max_results_cap
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.cache_prefix = cache_prefix
        self.transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, cache: Optional[CacheStore] = None
    ) -> "GoogleBooksClient":
        return cls(
            base_url=settings.books_base_url,
            api_key=settings.google_books_api_key,
            timeout=settings.books_timeout_s,
            max_results_cap=settings.books_max_results,
            cache=cache,
            cache_ttl=settings.search_cache_ttl_s,
            cache_prefix=settings.search_cache_prefix,
        )

    async def search(
        self,
        query: str,
        max_results: int = 30,
        lang_restrict: Optional[str] = None,
    ) -> SearchOutcome:
        """
        Search for books.

        Never raises for upstream failures: timeouts, transport errors and
        bad responses produce an empty result with an advisory ``error``.
        """
        query = query.strip()
        if len(query) < MIN_QUERY_CHARS:
            return SearchOutcome()

        max_results = max(1, min(max_results, self.max_results_cap))
        cache_key = search_cache_key(
            query, max_results, lang_restrict, prefix=self.cache_prefix
        )
        cached = await self._cached_items(cache_key)
        if cached is not None:
            return SearchOutcome(items=cached)

        params: Dict[str, Any] = {
            "q": query,
            "maxResults": max_results,
            "printType": "books",
            "orderBy": "relevance",
        }
        if lang_restrict:
            params["langRestrict"] = lang_restrict
        if self.api_key:
            params["key"] = self.api_key

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(self.base_url, params=params)
        except httpx.TimeoutException:
            logger.warning(f"Book search timed out after {self.timeout}s")
            return SearchOutcome(error=UNREACHABLE_HINT)
        except httpx.HTTPError as exc:
            logger.warning(f"Book search request failed: {exc}")
            return SearchOutcome(error=UNREACHABLE_HINT)

        if response.status_code != 200:
            logger.warning(f"Book search returned status {response.status_code}")
            return SearchOutcome(
                error=f"Book search failed (HTTP {response.status_code})."
            )

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Book search returned a non-JSON body")
            return SearchOutcome(error=INVALID_RESPONSE_HINT)

        books = parse_volumes_response(payload)
        await self._store_items(cache_key, books)
        return SearchOutcome(items=books)

    async def _cached_items(self, key: str) -> Optional[List[BookCandidate]]:
        if self.cache is None or self.cache_ttl <= 0:
            return None
        try:
            cached = await self.cache.get_json(key)
        except CacheStoreError as exc:
            logger.warning(f"Search cache read failed, continuing without it: {exc}")
            return None
        if not isinstance(cached, list):
            return None
        return [
            BookCandidate(
                id=item.get("id", ""),
                title=item.get("title", ""),
                authors=_string_list(item.get("authors")),
                published_date=item.get("publishedDate"),
                description=item.get("description"),
                categories=_string_list(item.get("categories")),
                thumbnail=item.get("thumbnail"),
            )
            for item in cached
            if isinstance(item, dict) and item.get("title")
        ]

    async def _store_items(self, key: str, books: List[BookCandidate]) -> None:
        if self.cache is None or self.cache_ttl <= 0:
            return
        try:
            await self.cache.set_json(
                key, [book.to_dict() for book in books], self.cache_ttl
            )
        except CacheStoreError as exc:
            logger.warning(f"Search cache write failed: {exc}")
