"""Turn rendered rich-text fields into plain text."""

from __future__ import annotations

import re
from html import unescape

_BLOCKS_RE = re.compile(r"(?is)<script.*?</script>|<style.*?</style>|<!--.*?-->")
_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")

DESCRIPTION_LIMIT = 160


def _clean_once(text: str) -> str:
    text = unescape(text)
    text = _BLOCKS_RE.sub(" ", text)
    text = _TAG_RE.sub("", text)
    return _SPACE_RE.sub(" ", text).strip()


def clean_title(html: str | None) -> str:
    """Decode entities, drop tags and collapse whitespace.

    Runs until the text stops changing: ``&amp;lt;b&amp;gt;`` only turns into
    a tag after one decode, and ``<<b>b>`` only after one strip. Every pass
    shortens or keeps the text, so the loop terminates.
    """

    text = html or ""
    while True:
        cleaned = _clean_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def strip_html(html: str | None) -> str:
    """Remove tags only; entities are left as-is."""

    return _TAG_RE.sub("", html or "").strip()


def truncate(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    return text[:limit] if limit >= 0 else text
