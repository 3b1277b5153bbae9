"""Write the crawler-facing files (sitemap, robots, blog JSON-LD) into ``dist``."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Optional

from blogfront.cache import ResponseCache
from blogfront.client import ContentClient
from blogfront.config import SiteConfig
from blogfront.loader import load_posts_with_media
from blogfront.metadata import blog_json_ld, render_json_ld
from blogfront.sitemap import build_sitemap, render_robots_txt, render_sitemap_xml, sitemap_records

logger = logging.getLogger(__name__)


async def _build(dest: Path, site: SiteConfig, client: ContentClient) -> list[Path]:
    posts = await client.fetch_all_posts(site.sitemap_page_size)
    entries = build_sitemap(posts, site)

    listing = posts[: site.posts_per_page]
    with_media = await load_posts_with_media(client, listing, site.batch_settings())

    outputs = {
        "sitemap.xml": render_sitemap_xml(entries),
        "sitemap.json": json.dumps(sitemap_records(entries), ensure_ascii=False, indent=2) + "\n",
        "robots.txt": render_robots_txt(site),
        "blog.jsonld": render_json_ld(blog_json_ld(with_media, site)) + "\n",
    }
    written = []
    for name, text in outputs.items():
        path = dest / name
        path.write_text(text, encoding="utf-8")
        written.append(path)
    logger.info("Sitemap has %d URLs (%d posts)", len(entries), len(posts))
    return written


def build(
    dest: Path = Path("dist"),
    *,
    site: Optional[SiteConfig] = None,
    client: Optional[ContentClient] = None,
) -> list[Path]:
    site = site or SiteConfig.from_env()
    dest.mkdir(parents=True, exist_ok=True)

    async def run() -> list[Path]:
        if client is not None:
            return await _build(dest, site, client)
        cache = ResponseCache(site.cache_ttl)
        async with ContentClient(
            site.api_base,
            policy=site.retry_policy(),
            cache=cache,
            timeout=site.http_timeout,
        ) as owned:
            return await _build(dest, site, owned)

    return asyncio.run(run())


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    for path in build():
        print("Wrote", path)
