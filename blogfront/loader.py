"""Paged post loading with rate-limited media lookups.

Media lookups for a page run in small concurrent batches with a pause
between batches. :class:`PostFeed` keeps the incremental "load more" list
and its state as an explicit state machine.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable, Optional, Sequence, TypeVar

from .images import resolve_post_image
from .models import Category, ContentItem, PostWithMedia

if TYPE_CHECKING:
    from .client import ContentClient

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

UNCATEGORIZED = "Uncategorized"


@dataclasses.dataclass(frozen=True)
class BatchSettings:
    size: int = 3
    delay: float = 1.0

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ValueError("batch size must be >= 1")
        if self.delay < 0:
            raise ValueError("batch delay must be >= 0")


async def process_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    size: int = 3,
    delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[R]:
    """Run ``worker`` over ``items`` ``size`` at a time, pausing between batches.

    Results keep the order of ``items``. No pause follows the last batch.
    """

    if size < 1:
        raise ValueError("batch size must be >= 1")
    results: list[R] = []
    for start in range(0, len(items), size):
        batch = items[start:start + size]
        results.extend(await asyncio.gather(*(worker(item) for item in batch)))
        if start + size < len(items):
            await sleep(delay)
    return results


async def attach_media(client: "ContentClient", item: ContentItem) -> PostWithMedia:
    media = item.embedded_media
    if media is None and item.featured_media:
        media = await client.fetch_media(item.featured_media)
        if media is None:
            logger.info("Featured media %s for %r unavailable; scanning content", item.featured_media, item.slug)
    featured, content_image = resolve_post_image(item, media)
    return PostWithMedia(item=item, featured_image=featured, content_image=content_image)


async def load_posts_with_media(
    client: "ContentClient",
    items: Sequence[ContentItem],
    settings: BatchSettings = BatchSettings(),
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> list[PostWithMedia]:
    return await process_in_batches(
        items,
        lambda item: attach_media(client, item),
        size=settings.size,
        delay=settings.delay,
        sleep=sleep,
    )


# Categories -------------------------------------------------------------------
def category_name(categories: Iterable[Category], category_id: int) -> str:
    for category in categories:
        if category.id == category_id:
            return category.name or UNCATEGORIZED
    return UNCATEGORIZED


def filter_by_category(
    posts: Iterable[PostWithMedia], categories: Iterable[Category], slug: Optional[str]
) -> list[PostWithMedia]:
    """Keep posts tagged with the category ``slug``; no slug keeps everything."""

    posts = list(posts)
    if not slug:
        return posts
    wanted = {category.id for category in categories if category.slug == slug}
    return [post for post in posts if wanted.intersection(post.item.categories)]


def active_categories(categories: Iterable[Category], limit: int = 6) -> list[Category]:
    return [category for category in categories if category.count > 0][:limit]


# Feed state machine -------------------------------------------------------------
class FeedState(enum.Enum):
    IDLE = "idle"
    LOADING_INITIAL = "loading_initial"
    LOADING_MORE = "loading_more"
    READY = "ready"
    ERROR = "error"


TRANSITIONS: dict[FeedState, frozenset[FeedState]] = {
    FeedState.IDLE: frozenset({FeedState.LOADING_INITIAL}),
    FeedState.LOADING_INITIAL: frozenset({FeedState.READY, FeedState.ERROR}),
    FeedState.READY: frozenset({FeedState.LOADING_MORE, FeedState.LOADING_INITIAL}),
    FeedState.LOADING_MORE: frozenset({FeedState.READY, FeedState.ERROR}),
    FeedState.ERROR: frozenset({FeedState.LOADING_INITIAL, FeedState.LOADING_MORE}),
}


class InvalidTransition(ValueError):
    def __init__(self, current: FeedState, target: FeedState) -> None:
        super().__init__(f"cannot move feed from {current.value} to {target.value}")
        self.current = current
        self.target = target


class PostFeed:
    """Growing, order-preserving list of posts for the blog listing.

    Pages are appended exactly as the source returns them; nothing is
    deduplicated or reordered. A failed load moves the feed to ``ERROR`` but
    keeps whatever was already loaded.
    """

    def __init__(
        self,
        client: "ContentClient",
        *,
        per_page: int = 6,
        batch: BatchSettings = BatchSettings(),
        embed: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if per_page < 1:
            raise ValueError("per_page must be >= 1")
        self.client = client
        self.per_page = per_page
        self.batch = batch
        self.embed = embed
        self._sleep = sleep
        self.posts: list[PostWithMedia] = []
        self.categories: list[Category] = []
        self.current_page = 0
        self.total_pages = 0
        self.total_posts = 0
        self.state = FeedState.IDLE
        self.error: Optional[str] = None

    def transition(self, target: FeedState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(self.state, target)
        logger.debug("Feed %s -> %s", self.state.value, target.value)
        self.state = target

    @property
    def is_loading(self) -> bool:
        return self.state in (FeedState.LOADING_INITIAL, FeedState.LOADING_MORE)

    @property
    def has_more(self) -> bool:
        return self.current_page < self.total_pages

    def _fail(self, message: str) -> None:
        self.error = message
        self.transition(FeedState.ERROR)

    async def load_initial(self) -> bool:
        """Load page 1 and the categories, replacing any loaded posts."""

        self.transition(FeedState.LOADING_INITIAL)
        self.error = None
        try:
            page, categories = await asyncio.gather(
                self.client.fetch_posts_page(1, self.per_page, embed=self.embed),
                self.client.fetch_categories(),
            )
            if page is None:
                self._fail("Failed to load blog posts. Please try again later.")
                return False
            posts = await load_posts_with_media(self.client, page.items, self.batch, sleep=self._sleep)
        except Exception:
            logger.exception("Error loading initial posts")
            self._fail("Failed to load blog posts. Please try again later.")
            return False

        self.posts = posts
        self.categories = categories
        self.total_pages = page.total_pages
        self.total_posts = page.total_items
        self.current_page = 1
        self.transition(FeedState.READY)
        return True

    async def load_more(self) -> bool:
        """Append the next page. Returns ``True`` only when a page was appended."""

        if self.is_loading or not self.has_more:
            return False
        if self.state is FeedState.IDLE:
            return False

        next_page = self.current_page + 1
        self.transition(FeedState.LOADING_MORE)
        try:
            page = await self.client.fetch_posts_page(next_page, self.per_page, embed=self.embed)
            if page is None:
                self._fail("Failed to load more posts. Please try again.")
                return False
            posts = await load_posts_with_media(self.client, page.items, self.batch, sleep=self._sleep)
        except Exception:
            logger.exception("Error loading page %d", next_page)
            self._fail("Failed to load more posts. Please try again.")
            return False

        self.posts.extend(posts)
        self.current_page = next_page
        self.error = None
        self.transition(FeedState.READY)
        return True

    def visible_posts(self, category_slug: Optional[str] = None) -> list[PostWithMedia]:
        return filter_by_category(self.posts, self.categories, category_slug)

    def show_load_more(self, category_slug: Optional[str] = None) -> bool:
        # Filtering only applies to what is loaded, so paging is hidden while filtered.
        return self.has_more and not category_slug
