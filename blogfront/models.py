"""Immutable records mirroring the content API's JSON schema."""

from __future__ import annotations

import dataclasses
import datetime as _dt
from typing import Any, Mapping, Optional


def _coerce_string(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def _coerce_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _rendered(payload: Mapping[str, Any], key: str) -> str:
    """WordPress wraps rich text as ``{"rendered": "..."}``."""

    value = payload.get(key)
    if isinstance(value, Mapping):
        value = value.get("rendered")
    if isinstance(value, str):
        return value
    return ""


def parse_timestamp(value: Any) -> Optional[_dt.datetime]:
    """Parse an API timestamp into an aware UTC datetime.

    WordPress sends ``date`` without an offset; naive values are taken as UTC.
    """

    text = _coerce_string(value)
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = _dt.datetime.fromisoformat(text)
    except ValueError:
        try:
            dt = _dt.datetime.strptime(text, "%Y-%m-%d")
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)
    return dt.astimezone(_dt.timezone.utc)


@dataclasses.dataclass(frozen=True)
class Rendition:
    url: str
    width: int = 0
    height: int = 0


@dataclasses.dataclass(frozen=True)
class MediaAsset:
    id: int
    source_url: str
    alt_text: str = ""
    width: int = 0
    height: int = 0
    renditions: Mapping[str, Rendition] = dataclasses.field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "MediaAsset":
        details = payload.get("media_details")
        if not isinstance(details, Mapping):
            details = {}
        sizes = details.get("sizes")
        renditions: dict[str, Rendition] = {}
        if isinstance(sizes, Mapping):
            for name, size in sizes.items():
                if not isinstance(size, Mapping):
                    continue
                url = _coerce_string(size.get("source_url"))
                if not url:
                    continue
                renditions[str(name)] = Rendition(
                    url=url,
                    width=_coerce_int(size.get("width")),
                    height=_coerce_int(size.get("height")),
                )
        return cls(
            id=_coerce_int(payload.get("id")),
            source_url=_coerce_string(payload.get("source_url")),
            alt_text=_coerce_string(payload.get("alt_text")),
            width=_coerce_int(details.get("width")),
            height=_coerce_int(details.get("height")),
            renditions=renditions,
        )


@dataclasses.dataclass(frozen=True)
class ImageReference:
    """An image pulled straight out of body HTML."""

    src: str
    alt: str


@dataclasses.dataclass(frozen=True)
class Category:
    id: int
    name: str
    slug: str
    count: int = 0

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Category":
        return cls(
            id=_coerce_int(payload.get("id")),
            name=_coerce_string(payload.get("name")),
            slug=_coerce_string(payload.get("slug")),
            count=_coerce_int(payload.get("count")),
        )


@dataclasses.dataclass(frozen=True)
class ContentItem:
    id: int
    slug: str
    title: str = ""
    excerpt: str = ""
    content: str = ""
    date: str = ""
    link: str = ""
    categories: tuple[int, ...] = ()
    author: int = 0
    featured_media: Optional[int] = None
    embedded_media: Optional[MediaAsset] = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "ContentItem":
        raw_categories = payload.get("categories")
        categories: tuple[int, ...] = ()
        if isinstance(raw_categories, list):
            categories = tuple(
                _coerce_int(value) for value in raw_categories if _coerce_int(value, -1) >= 0
            )

        return cls(
            id=_coerce_int(payload.get("id")),
            slug=_coerce_string(payload.get("slug")),
            title=_rendered(payload, "title"),
            excerpt=_rendered(payload, "excerpt"),
            content=_rendered(payload, "content"),
            date=_coerce_string(payload.get("date")),
            link=_coerce_string(payload.get("link")),
            categories=categories,
            author=_coerce_int(payload.get("author")),
            featured_media=_coerce_int(payload.get("featured_media")) or None,
            embedded_media=_embedded_media(payload),
        )

    @property
    def published_at(self) -> Optional[_dt.datetime]:
        return parse_timestamp(self.date)


def _embedded_media(payload: Mapping[str, Any]) -> Optional[MediaAsset]:
    """Return the ``_embed=1`` featured media, if the API inlined one."""

    embedded = payload.get("_embedded")
    if not isinstance(embedded, Mapping):
        return None
    candidates = embedded.get("wp:featuredmedia")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    # Inaccessible media is embedded as an error object without a source_url.
    if not isinstance(first, Mapping) or not _coerce_string(first.get("source_url")):
        return None
    return MediaAsset.from_api(first)


@dataclasses.dataclass(frozen=True)
class PostPage:
    """One page of posts plus the totals from the pagination headers."""

    items: tuple[ContentItem, ...] = ()
    total_items: int = 0
    total_pages: int = 0


@dataclasses.dataclass(frozen=True)
class PostWithMedia:
    item: ContentItem
    featured_image: Optional[MediaAsset] = None
    content_image: Optional[ImageReference] = None
