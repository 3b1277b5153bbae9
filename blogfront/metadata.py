"""Page metadata and JSON-LD payloads for blog pages."""

from __future__ import annotations

import asyncio
import dataclasses
import json
from typing import TYPE_CHECKING, Any, Iterable, Optional

from .config import SiteConfig
from .images import DETAIL_RENDITIONS, display_image_url, optimal_image_url, resolve_post_image
from .loader import category_name
from .models import Category, ContentItem, PostWithMedia
from .sanitize import clean_title, strip_html, truncate

if TYPE_CHECKING:
    from .client import ContentClient

SCHEMA_CONTEXT = "https://schema.org"
OG_IMAGE_WIDTH = 1200
OG_IMAGE_HEIGHT = 630


def blog_url(site: SiteConfig) -> str:
    return f"{site.origin}/blog"


def post_url(site: SiteConfig, slug: str) -> str:
    return f"{site.origin}/blog/{slug}"


def describe(excerpt: str) -> str:
    return truncate(strip_html(excerpt))


def _organization(site: SiteConfig, *, with_logo: bool = False) -> dict[str, Any]:
    org: dict[str, Any] = {"@type": "Organization", "name": site.site_name}
    if with_logo:
        org["logo"] = {"@type": "ImageObject", "url": site.logo_url}
    return org


def build_post_metadata(
    item: ContentItem, site: SiteConfig, image_url: Optional[str] = None
) -> dict[str, Any]:
    title = clean_title(item.title)
    description = describe(item.excerpt)
    canonical = post_url(site, item.slug)
    image = image_url or site.default_post_image

    return {
        "title": f"{title} | {site.blog_name}",
        "description": description,
        "openGraph": {
            "title": title,
            "description": description,
            "url": canonical,
            "type": "article",
            "publishedTime": item.date,
            "authors": [site.author_name],
            "images": [
                {
                    "url": image,
                    "width": OG_IMAGE_WIDTH,
                    "height": OG_IMAGE_HEIGHT,
                    "alt": title,
                }
            ],
        },
        "twitter": {
            "card": "summary_large_image",
            "title": title,
            "description": description,
            "images": [image],
        },
        "alternates": {"canonical": canonical},
    }


def not_found_metadata(site: SiteConfig) -> dict[str, Any]:
    return {
        "title": f"Post Not Found | {site.blog_name}",
        "description": "The blog post you are looking for could not be found.",
    }


def post_json_ld(
    post: PostWithMedia, site: SiteConfig, categories: Iterable[Category] = ()
) -> dict[str, Any]:
    """``BlogPosting`` structured data for a single post page."""

    item = post.item
    categories = list(categories)
    canonical = post_url(site, item.slug)
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "BlogPosting",
        "headline": clean_title(item.title),
        "description": strip_html(item.excerpt),
        "image": display_image_url(post, DETAIL_RENDITIONS) or site.default_post_image,
        "author": _organization(site),
        "publisher": _organization(site, with_logo=True),
        "datePublished": item.date,
        "dateModified": item.date,
        "mainEntityOfPage": {"@type": "WebPage", "@id": canonical},
        "url": canonical,
        "articleSection": ", ".join(category_name(categories, cid) for cid in item.categories),
    }


def blog_json_ld(posts: Iterable[PostWithMedia], site: SiteConfig) -> dict[str, Any]:
    """``Blog`` structured data for the listing page."""

    listing = blog_url(site)
    blog_posts = []
    for post in posts:
        canonical = post_url(site, post.item.slug)
        entry = {
            "@type": "BlogPosting",
            "headline": clean_title(post.item.title),
            "description": strip_html(post.item.excerpt),
            "url": canonical,
            "datePublished": post.item.date,
            "author": _organization(site),
            "publisher": _organization(site, with_logo=True),
            "mainEntityOfPage": {"@type": "WebPage", "@id": canonical},
        }
        image = display_image_url(post, DETAIL_RENDITIONS)
        if image:
            entry["image"] = image
        blog_posts.append(entry)

    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "Blog",
        "name": site.blog_title,
        "description": site.blog_description,
        "url": listing,
        "publisher": _organization(site, with_logo=True),
        "mainEntityOfPage": {"@type": "WebPage", "@id": listing},
        "blogPost": blog_posts,
        "breadcrumb": {
            "@type": "BreadcrumbList",
            "itemListElement": [
                {"@type": "ListItem", "position": 1, "name": "Home", "item": site.origin},
                {"@type": "ListItem", "position": 2, "name": "Blog", "item": listing},
            ],
        },
    }


def organization_json_ld(site: SiteConfig) -> dict[str, Any]:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "Organization",
        "name": site.site_name,
        "url": site.origin,
        "logo": site.logo_url,
        "description": site.organization_description,
    }


def render_json_ld(data: dict[str, Any]) -> str:
    """Serialize for a ``<script type="application/ld+json">`` body."""

    text = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    return text.replace("</", "<\\/")


async def resolve_post_metadata(
    client: "ContentClient", slug: str, site: SiteConfig
) -> tuple[dict[str, Any], Optional[dict[str, Any]]]:
    """Fetch a post and return ``(metadata, json_ld)`` for its page.

    The Open Graph image is the featured media's original upload; JSON-LD
    uses the best rendition. A missing post yields not-found metadata and no
    JSON-LD.
    """

    item, categories = await asyncio.gather(
        client.fetch_post_by_slug(slug), client.fetch_categories()
    )
    if item is None:
        return not_found_metadata(site), None

    media = item.embedded_media
    if media is None and item.featured_media:
        media = await client.fetch_media(item.featured_media)
    featured, content_image = resolve_post_image(item, media)
    if content_image is not None:
        content_image = dataclasses.replace(content_image, alt=clean_title(item.title))
    post = PostWithMedia(item=item, featured_image=featured, content_image=content_image)

    if featured is not None:
        og_image = featured.source_url or optimal_image_url(featured)
    elif content_image is not None:
        og_image = content_image.src
    else:
        og_image = None

    return build_post_metadata(item, site, og_image), post_json_ld(post, site, categories)
