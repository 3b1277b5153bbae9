"""Sitemap entries and crawler rules for the site.

The sitemap lists the fixed pages plus one entry per post. It renders to
``sitemap.xml`` and ``robots.txt`` through the Jinja2 templates in
``templates/``.
"""

from __future__ import annotations

import dataclasses
import datetime as _dt
import pathlib
from typing import TYPE_CHECKING, Any, Iterable, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .config import SiteConfig
from .metadata import blog_url, post_url
from .models import ContentItem

if TYPE_CHECKING:
    from .client import ContentClient

TEMPLATES_DIR = pathlib.Path(__file__).resolve().parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(enabled_extensions=("xml.j2",), default_for_string=False),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)

POST_CHANGE_FREQUENCY = "monthly"
POST_PRIORITY = 0.6


@dataclasses.dataclass(frozen=True)
class SitemapEntry:
    url: str
    change_frequency: str
    priority: float
    last_modified: Optional[_dt.datetime] = None

    @property
    def lastmod(self) -> str:
        return format_lastmod(self.last_modified)


@dataclasses.dataclass(frozen=True)
class RobotsRule:
    user_agent: str
    allow: str = "/"
    disallow: tuple[str, ...] = ()


def format_lastmod(value: Optional[_dt.datetime]) -> str:
    """ISO-8601 in UTC with milliseconds and a ``Z`` suffix, or ``""``."""

    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=_dt.timezone.utc)
    value = value.astimezone(_dt.timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def static_entries(site: SiteConfig, now: Optional[_dt.datetime] = None) -> list[SitemapEntry]:
    return [
        SitemapEntry(url=f"{site.origin}/", change_frequency="weekly", priority=1.0, last_modified=now),
        SitemapEntry(url=blog_url(site), change_frequency="daily", priority=0.8, last_modified=now),
    ]


def build_sitemap(
    posts: Iterable[ContentItem], site: SiteConfig, *, now: Optional[_dt.datetime] = None
) -> list[SitemapEntry]:
    """Static pages first, then one entry per post in source order."""

    if now is None:
        now = _dt.datetime.now(_dt.timezone.utc)
    entries = static_entries(site, now)
    for post in posts:
        if not post.slug:
            continue
        entries.append(
            SitemapEntry(
                url=post_url(site, post.slug),
                change_frequency=POST_CHANGE_FREQUENCY,
                priority=POST_PRIORITY,
                last_modified=post.published_at,
            )
        )
    return entries


async def collect_sitemap(
    client: "ContentClient",
    site: SiteConfig,
    *,
    per_page: Optional[int] = None,
    now: Optional[_dt.datetime] = None,
) -> list[SitemapEntry]:
    posts = await client.fetch_all_posts(per_page or site.sitemap_page_size)
    return build_sitemap(posts, site, now=now)


def sitemap_records(entries: Iterable[SitemapEntry]) -> list[dict[str, Any]]:
    records = []
    for entry in entries:
        record: dict[str, Any] = {"url": entry.url}
        if entry.last_modified is not None:
            record["lastModified"] = entry.lastmod
        record["changeFrequency"] = entry.change_frequency
        record["priority"] = entry.priority
        records.append(record)
    return records


def render_sitemap_xml(entries: Iterable[SitemapEntry]) -> str:
    return _env.get_template("sitemap.xml.j2").render(
        entries=[
            {
                "url": entry.url,
                "lastmod": entry.lastmod,
                "change_frequency": entry.change_frequency,
                "priority": f"{entry.priority:.1f}",
            }
            for entry in entries
        ]
    )


# Robots ---------------------------------------------------------------------------
ROBOTS_RULES = (
    RobotsRule(
        user_agent="*",
        disallow=(
            "/api/",
            "/admin/",
            "/_next/",
            "/private/",
            "/temp/",
            "/*.json$",
            "/search?*",
        ),
    ),
    RobotsRule(user_agent="Googlebot", disallow=("/api/", "/admin/", "/private/")),
    RobotsRule(user_agent="Bingbot", disallow=("/api/", "/admin/", "/private/")),
)


def robots_rules(site: SiteConfig) -> dict[str, Any]:
    return {
        "rules": [
            {"userAgent": rule.user_agent, "allow": rule.allow, "disallow": list(rule.disallow)}
            for rule in ROBOTS_RULES
        ],
        "sitemap": f"{site.origin}/sitemap.xml",
        "host": site.origin,
    }


def render_robots_txt(site: SiteConfig) -> str:
    return _env.get_template("robots.txt.j2").render(
        rules=ROBOTS_RULES,
        host=site.origin,
        sitemap=f"{site.origin}/sitemap.xml",
    )
