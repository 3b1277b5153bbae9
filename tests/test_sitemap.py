import datetime as dt
import xml.etree.ElementTree as ET

import httpx
import pytest

from blogfront.models import ContentItem
from blogfront.sitemap import (
    SitemapEntry,
    build_sitemap,
    collect_sitemap,
    format_lastmod,
    render_robots_txt,
    render_sitemap_xml,
    robots_rules,
    sitemap_records,
)

from conftest import make_post

NOW = dt.datetime(2024, 6, 1, 12, 30, 15, 250000, tzinfo=dt.timezone.utc)
NS = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}


def test_format_lastmod():
    assert format_lastmod(NOW) == "2024-06-01T12:30:15.250Z"
    assert format_lastmod(dt.datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05.000Z"
    offset = dt.timezone(dt.timedelta(hours=2))
    assert format_lastmod(dt.datetime(2024, 1, 2, 3, 4, 5, tzinfo=offset)) == "2024-01-02T01:04:05.000Z"
    assert format_lastmod(None) == ""


def test_build_sitemap_static_pages_then_posts(site):
    posts = [ContentItem.from_api(make_post(n)) for n in (1, 2)]

    entries = build_sitemap(posts, site, now=NOW)

    assert [e.url for e in entries] == [
        "https://www.clipbo.red/",
        "https://www.clipbo.red/blog",
        "https://www.clipbo.red/blog/post-1",
        "https://www.clipbo.red/blog/post-2",
    ]
    assert [(e.change_frequency, e.priority) for e in entries] == [
        ("weekly", 1.0),
        ("daily", 0.8),
        ("monthly", 0.6),
        ("monthly", 0.6),
    ]
    assert entries[0].last_modified == NOW
    assert entries[2].lastmod == "2024-05-10T08:00:00.000Z"


def test_build_sitemap_skips_posts_without_slug(site):
    posts = [ContentItem(id=1, slug=""), ContentItem.from_api(make_post(2))]
    entries = build_sitemap(posts, site, now=NOW)
    assert len(entries) == 3


def test_post_with_bad_date_has_no_lastmod(site):
    post = ContentItem.from_api(make_post(1, date="not a date"))
    entry = build_sitemap([post], site, now=NOW)[-1]
    assert entry.last_modified is None
    assert "lastModified" not in sitemap_records([entry])[0]


@pytest.mark.asyncio
async def test_collect_sitemap_walks_every_page(source, client, site):
    source.posts = [make_post(n) for n in range(1, 138)]

    entries = await collect_sitemap(client, site, now=NOW)

    assert len(entries) == 139
    assert source.count("/posts") == 2
    assert entries[-1].url == "https://www.clipbo.red/blog/post-137"


@pytest.mark.asyncio
async def test_collect_sitemap_keeps_static_pages_on_outage(source, client, site):
    source.enqueue("/posts", httpx.Response(500))
    entries = await collect_sitemap(client, site, now=NOW)
    assert [e.url for e in entries] == ["https://www.clipbo.red/", "https://www.clipbo.red/blog"]


def test_sitemap_records(site):
    records = sitemap_records(build_sitemap([ContentItem.from_api(make_post(1))], site, now=NOW))
    assert records[0] == {
        "url": "https://www.clipbo.red/",
        "lastModified": "2024-06-01T12:30:15.250Z",
        "changeFrequency": "weekly",
        "priority": 1.0,
    }


def test_render_sitemap_xml_is_valid_and_escaped():
    entries = [
        SitemapEntry("https://www.clipbo.red/", "weekly", 1.0, NOW),
        SitemapEntry("https://www.clipbo.red/blog/a&b", "monthly", 0.6),
    ]

    text = render_sitemap_xml(entries)

    assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "a&amp;b" in text
    root = ET.fromstring(text.encode("utf-8"))
    urls = root.findall("sm:url", NS)
    assert [u.findtext("sm:loc", namespaces=NS) for u in urls] == [
        "https://www.clipbo.red/",
        "https://www.clipbo.red/blog/a&b",
    ]
    assert urls[0].findtext("sm:lastmod", namespaces=NS) == "2024-06-01T12:30:15.250Z"
    assert urls[1].find("sm:lastmod", NS) is None
    assert urls[1].findtext("sm:priority", namespaces=NS) == "0.6"


def test_robots_rules(site):
    robots = robots_rules(site)

    agents = [rule["userAgent"] for rule in robots["rules"]]
    assert agents == ["*", "Googlebot", "Bingbot"]
    assert "/_next/" in robots["rules"][0]["disallow"]
    assert robots["rules"][1]["disallow"] == ["/api/", "/admin/", "/private/"]
    assert all(rule["allow"] == "/" for rule in robots["rules"])
    assert robots["sitemap"] == "https://www.clipbo.red/sitemap.xml"
    assert robots["host"] == "https://www.clipbo.red"


def test_render_robots_txt(site):
    lines = render_robots_txt(site).splitlines()

    assert lines[0] == "User-agent: *"
    assert lines[1] == "Allow: /"
    assert "Disallow: /*.json$" in lines
    assert lines.count("User-agent: Googlebot") == 1
    assert lines[-2:] == ["Host: https://www.clipbo.red", "Sitemap: https://www.clipbo.red/sitemap.xml"]
