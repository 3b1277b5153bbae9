"""Blog front end data layer: content fetching, SEO metadata and sitemaps."""

from .client import ContentClient
from .config import SiteConfig
from .sanitize import clean_title, strip_html

__all__ = ["ContentClient", "SiteConfig", "clean_title", "strip_html"]
