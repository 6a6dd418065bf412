"""Plain-text helpers for note bodies.

Note content arrives from the document store as HTML.  Before chunking and
embedding it is reduced to whitespace-normalized plain text so embeddings
capture the prose and not the markup.
"""

import re

from bs4 import BeautifulSoup

_MULTI_WHITESPACE = re.compile(r"\s+")

_JSON_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


def strip_markup(html: str) -> str:
    """Reduce an HTML fragment to single-spaced plain text.

    Every tag boundary becomes a space so adjacent block elements do not
    run their words together ("<p>a</p><p>b</p>" -> "a b").
    """
    if not html or not html.strip():
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return _MULTI_WHITESPACE.sub(" ", text).strip()


def excerpt(text: str, limit: int) -> str:
    """Return the first *limit* characters of *text*."""
    return text[:limit]


def strip_code_fence(raw: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    match = _JSON_FENCE_RE.match(raw)
    if match:
        return match.group(1)
    return raw
