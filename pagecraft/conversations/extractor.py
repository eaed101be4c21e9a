"""Heuristic HTML fragment extraction from streamed model output."""

from __future__ import annotations

import re

# Not a parser: mid-stream text is usually incomplete markup.
_FENCED_HTML_RE = re.compile(r"```html\n([\s\S]*?)\n```")
_TAG_START_RE = re.compile(r"<([a-z][a-z0-9]*)\b[^>]*>", re.IGNORECASE)


def extract_html(raw_text: str) -> str | None:
    """Return the HTML fragment ``raw_text`` currently represents, if any.

    A fenced ```html block wins and yields its inner content. Failing that,
    any tag start makes the whole text the fragment, trailing prose included.
    """
    fenced = _FENCED_HTML_RE.search(raw_text)
    if fenced:
        # An empty fence falls back to the full text.
        return fenced.group(1) or raw_text
    if _TAG_START_RE.search(raw_text):
        return raw_text
    return None
