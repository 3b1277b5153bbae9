"""Pick display images for posts."""

from __future__ import annotations

from html.parser import HTMLParser
from typing import Optional, Sequence

from .models import ContentItem, ImageReference, MediaAsset, PostWithMedia

DETAIL_RENDITIONS = ("large", "medium_large", "medium")
CARD_RENDITIONS = ("medium", "medium_large")
DEFAULT_IMAGE_ALT = "Blog post image"


def optimal_image_url(media: MediaAsset, preference: Sequence[str] = DETAIL_RENDITIONS) -> str:
    """Return the first rendition URL in ``preference`` order, else the source URL."""

    for name in preference:
        rendition = media.renditions.get(name)
        if rendition is not None and rendition.url:
            return rendition.url
    return media.source_url


def _to_https(u: str) -> str:
    u = u.strip()
    if u.startswith("//"):
        return "https:" + u
    return u


class _FirstImgParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.found: Optional[ImageReference] = None

    def handle_starttag(self, tag, attrs):
        if self.found is not None or tag.lower() != "img":
            return
        values = {name.lower(): (value or "") for name, value in attrs if name}
        src = values.get("src", "").strip()
        if not src:
            return
        alt = values.get("alt", "").strip() or DEFAULT_IMAGE_ALT
        self.found = ImageReference(src=_to_https(src), alt=alt)

    def handle_startendtag(self, tag, attrs):
        self.handle_starttag(tag, attrs)


def extract_first_image(html: str | None) -> Optional[ImageReference]:
    """Return the first ``<img>`` with a ``src`` in ``html``, or ``None``."""

    if not html or "<img" not in html.lower():
        return None
    parser = _FirstImgParser()
    parser.feed(html)
    parser.close()
    return parser.found


def resolve_post_image(
    item: ContentItem, media: Optional[MediaAsset]
) -> tuple[Optional[MediaAsset], Optional[ImageReference]]:
    """Apply the image precedence: featured media first, then the body scan."""

    if media is not None:
        return media, None
    return None, extract_first_image(item.content)


def display_image_url(
    post: PostWithMedia, preference: Sequence[str] = DETAIL_RENDITIONS
) -> Optional[str]:
    if post.featured_image is not None:
        return optimal_image_url(post.featured_image, preference) or None
    if post.content_image is not None:
        return post.content_image.src
    return None
