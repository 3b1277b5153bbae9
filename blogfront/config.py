"""Site identity and runtime knobs, read from the environment.

Env knobs (optional):
  SITE_ORIGIN, CONTENT_API_BASE, SITE_NAME, BLOG_NAME, AUTHOR_NAME,
  DEFAULT_POST_IMAGE, POSTS_PER_PAGE, SITEMAP_PAGE_SIZE, CACHE_TTL,
  MEDIA_BATCH_SIZE, MEDIA_BATCH_DELAY, MAX_RETRIES, RETRY_BASE_DELAY, HTTP_TIMEOUT
"""

from __future__ import annotations

import dataclasses
import logging
import math
import os
from typing import Optional

from .fetcher import RetryPolicy
from .loader import BatchSettings

logger = logging.getLogger(__name__)

DEFAULT_SITE_ORIGIN = "https://www.clipbo.red"
DEFAULT_API_BASE = "https://public-api.wordpress.com/wp/v2/sites/clipboredcom.wordpress.com"
# WordPress rejects per_page above 100 with a 400.
MAX_PER_PAGE = 100


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip()
    return raw or default


def _in_range(name: str, value, default, minimum, maximum):
    if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
        logger.warning(
            "Out of range %s=%r (allowed %s..%s); falling back to %s",
            name, value, minimum, maximum, default,
        )
        return default
    return value


def _env_int(
    name: str, default: int, *, minimum: Optional[int] = None, maximum: Optional[int] = None
) -> int:
    """Return an integer from the environment or ``default`` on failure."""

    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; falling back to %s", name, raw, default)
        return default
    return _in_range(name, value, default, minimum, maximum)


def _env_float(name: str, default: float, *, minimum: Optional[float] = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; falling back to %s", name, raw, default)
        return default
    if not math.isfinite(value):
        logger.warning("Invalid %s=%r; falling back to %s", name, raw, default)
        return default
    return _in_range(name, value, default, minimum, None)


@dataclasses.dataclass(frozen=True)
class SiteConfig:
    """Deployment identity plus the fetch/loader tuning values."""

    origin: str = DEFAULT_SITE_ORIGIN
    api_base: str = DEFAULT_API_BASE
    site_name: str = "Clipbored"
    blog_name: str = "Clipbored Blog"
    blog_title: str = "Clipbored Creative Productivity Blog"
    blog_description: str = (
        "Productivity tips, design workflow optimization strategies, and insights for "
        "creative professionals using clipboard managers and productivity tools."
    )
    organization_description: str = (
        "Smart clipboard manager and productivity tools designed specifically for "
        "designers and creative professionals."
    )
    author_name: str = "Clipbored Team"
    logo_path: str = "/logo.png"
    default_post_image: str = "/og-blog-post.jpg"
    posts_per_page: int = 6
    sitemap_page_size: int = 100
    cache_ttl: float = 3600.0
    media_batch_size: int = 3
    media_batch_delay: float = 1.0
    max_retries: int = 3
    retry_base_delay: float = 1.0
    http_timeout: float = 15.0

    def __post_init__(self) -> None:
        # Trailing slashes would produce "//blog" in canonical URLs.
        object.__setattr__(self, "origin", self.origin.rstrip("/"))
        object.__setattr__(self, "api_base", self.api_base.rstrip("/"))

    @classmethod
    def from_env(cls) -> "SiteConfig":
        defaults = cls()
        return cls(
            origin=_env_str("SITE_ORIGIN", defaults.origin),
            api_base=_env_str("CONTENT_API_BASE", defaults.api_base),
            site_name=_env_str("SITE_NAME", defaults.site_name),
            blog_name=_env_str("BLOG_NAME", defaults.blog_name),
            author_name=_env_str("AUTHOR_NAME", defaults.author_name),
            default_post_image=_env_str("DEFAULT_POST_IMAGE", defaults.default_post_image),
            posts_per_page=_env_int(
                "POSTS_PER_PAGE", defaults.posts_per_page, minimum=1, maximum=MAX_PER_PAGE
            ),
            sitemap_page_size=_env_int(
                "SITEMAP_PAGE_SIZE", defaults.sitemap_page_size, minimum=1, maximum=MAX_PER_PAGE
            ),
            cache_ttl=_env_float("CACHE_TTL", defaults.cache_ttl, minimum=0),
            media_batch_size=_env_int("MEDIA_BATCH_SIZE", defaults.media_batch_size, minimum=1),
            media_batch_delay=_env_float("MEDIA_BATCH_DELAY", defaults.media_batch_delay, minimum=0),
            max_retries=_env_int("MAX_RETRIES", defaults.max_retries, minimum=0),
            retry_base_delay=_env_float("RETRY_BASE_DELAY", defaults.retry_base_delay, minimum=0),
            http_timeout=_env_float("HTTP_TIMEOUT", defaults.http_timeout, minimum=0.1),
        )

    def absolute(self, path: str) -> str:
        """Return ``path`` joined to the site origin unless already absolute."""

        if path.startswith(("http://", "https://")):
            return path
        return f"{self.origin}/{path.lstrip('/')}"

    @property
    def logo_url(self) -> str:
        return self.absolute(self.logo_path)

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_retries=self.max_retries, base_delay=self.retry_base_delay)

    def batch_settings(self) -> BatchSettings:
        return BatchSettings(size=self.media_batch_size, delay=self.media_batch_delay)
