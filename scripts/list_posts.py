#!/usr/bin/env python3
"""List blog posts page by page, the way the blog listing loads them."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import os
import sys
from typing import Iterable, Optional

from blogfront.cache import ResponseCache
from blogfront.client import ContentClient
from blogfront.config import SiteConfig
from blogfront.images import CARD_RENDITIONS, display_image_url
from blogfront.loader import FeedState, PostFeed, category_name
from blogfront.sanitize import clean_title


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="List blog posts with their card images")
    parser.add_argument(
        "--pages",
        type=int,
        default=1,
        help="How many pages to load (initial page plus 'load more' calls)",
    )
    parser.add_argument("--category", default=None, help="Only show posts in this category slug")
    parser.add_argument("--per-page", type=int, default=None, help="Override POSTS_PER_PAGE")
    return parser


def format_feed(feed: PostFeed, category: Optional[str] = None) -> list[str]:
    lines = []
    for post in feed.visible_posts(category):
        labels = ", ".join(category_name(feed.categories, cid) for cid in post.item.categories[:2])
        image = display_image_url(post, CARD_RENDITIONS) or "-"
        lines.append(f"{post.item.date[:10]}  {clean_title(post.item.title)}  [{labels}]  {image}")
    lines.append(
        f"Page {feed.current_page}/{feed.total_pages}, {len(feed.posts)} of {feed.total_posts} posts loaded"
    )
    if feed.show_load_more(category):
        lines.append("More posts available")
    return lines


async def fill_feed(feed: PostFeed, pages: int) -> PostFeed:
    await feed.load_initial()
    while feed.state is FeedState.READY and feed.current_page < pages:
        if not await feed.load_more():
            break
    return feed


async def _run(site: SiteConfig, pages: int) -> PostFeed:
    async with ContentClient(
        site.api_base,
        policy=site.retry_policy(),
        cache=ResponseCache(site.cache_ttl),
        timeout=site.http_timeout,
    ) as client:
        feed = PostFeed(client, per_page=site.posts_per_page, batch=site.batch_settings())
        return await fill_feed(feed, pages)


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

    site = SiteConfig.from_env()
    if args.per_page:
        site = dataclasses.replace(site, posts_per_page=args.per_page)

    feed = asyncio.run(_run(site, max(1, args.pages)))
    for line in format_feed(feed, args.category):
        print(line)
    if feed.state is FeedState.ERROR:
        print(feed.error, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
