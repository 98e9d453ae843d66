"""Document preprocessing utilities."""

from __future__ import annotations

import logging
import re
from typing import Tuple

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_HEADLINE_RE = re.compile(r"[^\n]+")

_QUOTE_ENTITIES = {
    "&quot;": '"',
    "&#34;": '"',
    "&ldquo;": '"',
    "&rdquo;": '"',
    "&apos;": "'",
    "&#39;": "'",
    "&lsquo;": "'",
    "&rsquo;": "'",
}
_QUOTE_ENTITY_RE = re.compile("|".join(re.escape(entity) for entity in _QUOTE_ENTITIES))

# One character in, one character out, so offsets survive the fold.
_TYPOGRAPHIC_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})

# "Price Action:" label, optionally bolded, starting a paragraph.
_PRICE_ACTION_RE = re.compile(
    r"(?:<(?:strong|b)>\s*|\*\*)?Price Action:",
    re.IGNORECASE,
)
_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n\s*\S")


def strip_html(text: str) -> str:
    """Replace every HTML tag with a single space."""

    return _TAG_RE.sub(" ", text)


def decode_quote_entities(text: str) -> str:
    """Decode the HTML entities used for quote marks and fold curly quotes."""

    decoded = _QUOTE_ENTITY_RE.sub(lambda match: _QUOTE_ENTITIES[match.group(0)], text)
    return decoded.translate(_TYPOGRAPHIC_QUOTES)


def clean_document(text: str) -> str:
    """Tag-stripped, quote-normalised form used for all matching."""

    return decode_quote_entities(strip_html(text))


def split_headline(text: str) -> Tuple[str, str, int]:
    """Split a document into ``(headline, body, body_offset)``.

    The headline is the first line. A document that opens with a newline has
    no headline and is all body.
    """

    match = _HEADLINE_RE.match(text)
    if not match:
        return "", text, 0
    return match.group(0), text[match.end():], match.end()


def context_window(text: str, start: int, end: int, radius: int) -> str:
    """Return ``text`` around ``[start, end)`` padded by ``radius`` characters."""

    lo = max(0, start - radius)
    hi = min(len(text), end + radius)
    return text[lo:hi].strip()


def strip_price_action(article: str) -> str:
    """Remove a trailing "Price Action:" paragraph from a generated article.

    The price action sentence is appended from a live quote feed, so its
    figures can never be found in the source. Only the final paragraph is
    removed; a label followed by further paragraphs is left in place.
    """

    matches = list(_PRICE_ACTION_RE.finditer(article))
    if not matches:
        return article

    match = matches[-1]
    if _PARAGRAPH_BREAK_RE.search(article, match.end()):
        return article

    line_start = article.rfind("\n", 0, match.start()) + 1
    prefix = article[line_start:match.start()]
    cut = line_start if not strip_html(prefix).strip(" \t*") else match.start()

    logger.debug("Removed price action paragraph before verification")
    return article[:cut].rstrip()
