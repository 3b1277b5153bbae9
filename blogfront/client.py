"""Read-only client for the WordPress REST content source.

Every call degrades to ``None`` or ``[]`` and logs the reason. Pages keep
rendering with less content instead of failing outright.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping, Optional

import httpx

from .cache import ResponseCache
from .fetcher import DEFAULT_RETRY_POLICY, RetryPolicy, Sleep, fetch_with_retry
from .models import Category, ContentItem, MediaAsset, PostPage

logger = logging.getLogger(__name__)

TOTAL_HEADER = "X-WP-Total"
TOTAL_PAGES_HEADER = "X-WP-TotalPages"
DEFAULT_TIMEOUT = 15.0


def _header_int(headers: Mapping[str, str], name: str) -> int:
    try:
        return max(0, int(str(headers.get(name, "0")).strip() or 0))
    except ValueError:
        return 0


class ContentClient:
    """Async access to ``/posts``, ``/categories`` and ``/media``."""

    def __init__(
        self,
        base_url: str,
        *,
        http: Optional[httpx.AsyncClient] = None,
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        cache: Optional[ResponseCache] = None,
        sleep: Sleep = asyncio.sleep,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.policy = policy
        self.cache = cache
        self._sleep = sleep
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )

    async def __aenter__(self) -> "ContentClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # Transport -------------------------------------------------------------
    async def _get_json(
        self, path: str, params: Optional[Mapping[str, object]] = None
    ) -> Optional[tuple[Any, dict[str, str]]]:
        """Return ``(payload, pagination headers)`` or ``None`` on any failure."""

        if self.cache is not None:
            cached = self.cache.get(path, params)
            if cached is not None:
                return cached

        url = f"{self.base_url}{path}"
        try:
            response = await fetch_with_retry(
                self._http, url, params=params, policy=self.policy, sleep=self._sleep
            )
        except httpx.HTTPError as exc:
            logger.error("Error fetching %s: %s", url, exc)
            return None

        if not response.is_success:
            logger.error(
                "Content API error: %s %s for %s",
                response.status_code, response.reason_phrase, url,
            )
            return None

        text = response.text
        if not text.strip():
            logger.error("Empty response from content API for %s", url)
            return None
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            logger.error("Failed to parse content API response for %s: %s", url, text[:100])
            return None

        headers = {
            name: response.headers[name]
            for name in (TOTAL_HEADER, TOTAL_PAGES_HEADER)
            if name in response.headers
        }
        result = (payload, headers)
        if self.cache is not None:
            self.cache.set(path, params, result)
        return result

    async def _get_list(self, path: str, params=None) -> Optional[tuple[list, dict[str, str]]]:
        result = await self._get_json(path, params)
        if result is None:
            return None
        payload, headers = result
        if not isinstance(payload, list):
            logger.error("Expected a JSON array from %s, got %s", path, type(payload).__name__)
            return None
        return payload, headers

    # Endpoints ---------------------------------------------------------------
    async def fetch_post_by_slug(self, slug: str) -> Optional[ContentItem]:
        result = await self._get_list("/posts", {"slug": slug})
        if result is None:
            return None
        posts = [entry for entry in result[0] if isinstance(entry, Mapping)]
        return ContentItem.from_api(posts[0]) if posts else None

    async def fetch_categories(self) -> list[Category]:
        result = await self._get_list("/categories")
        if result is None:
            return []
        return [Category.from_api(entry) for entry in result[0] if isinstance(entry, Mapping)]

    async def fetch_media(self, media_id: Optional[int]) -> Optional[MediaAsset]:
        if not media_id:
            return None
        result = await self._get_json(f"/media/{media_id}")
        if result is None:
            return None
        payload = result[0]
        if not isinstance(payload, Mapping):
            logger.error("Expected a JSON object for media %s", media_id)
            return None
        media = MediaAsset.from_api(payload)
        if not media.source_url and not media.renditions:
            logger.warning("Media %s has no image URL", media_id)
            return None
        return media

    async def fetch_posts_page(
        self, page: int = 1, per_page: int = 10, *, embed: bool = False
    ) -> Optional[PostPage]:
        """Fetch one page of posts; ``None`` means the fetch failed."""

        if page < 1 or per_page < 1:
            raise ValueError("page and per_page must be >= 1")
        params: dict[str, object] = {"page": page, "per_page": per_page}
        if embed:
            params["_embed"] = 1
        result = await self._get_list("/posts", params)
        if result is None:
            return None
        payload, headers = result
        return PostPage(
            items=tuple(ContentItem.from_api(entry) for entry in payload if isinstance(entry, Mapping)),
            total_items=_header_int(headers, TOTAL_HEADER),
            total_pages=_header_int(headers, TOTAL_PAGES_HEADER),
        )

    async def fetch_latest_posts(self, limit: int = 10) -> list[ContentItem]:
        page = await self.fetch_posts_page(1, limit)
        return list(page.items) if page is not None else []

    async def fetch_all_posts(self, per_page: int = 100) -> list[ContentItem]:
        """Walk every page until one comes back short or the last page is reached."""

        posts: list[ContentItem] = []
        page_number = 1
        while True:
            page = await self.fetch_posts_page(page_number, per_page)
            if page is None:
                logger.error("Stopping post listing at page %d after a failed fetch", page_number)
                break
            posts.extend(page.items)
            if len(page.items) < per_page:
                break
            if page.total_pages and page_number >= page.total_pages:
                break
            page_number += 1
        return posts
