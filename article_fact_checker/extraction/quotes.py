"""
Quotation claim extraction.

Headlines attribute opinion with single quotes; bodies use double quotes for
direct speech. Each convention is only looked for in its own part of the
article.
"""

import logging
import re
from typing import List

from ..core.claims import ClaimOrigin, QuotationClaim
from ..core.normalize import quote_dedup_key
from ..core.preprocess import clean_document, context_window, split_headline

logger = logging.getLogger(__name__)

_SINGLE_QUOTE_RE = re.compile(r"'([^']{3,})'")
_DOUBLE_QUOTE_RE = re.compile(r'"([^"]*)"')

# Fragments left behind by mis-paired quote marks
_POSSESSIVE_FRAGMENT_RE = re.compile(r"^s\s")
_DANGLING_DETERMINER_RE = re.compile(r"\s(?:a|an|the|this|that|these|those)\s*$", re.IGNORECASE)
_WORD_RE = re.compile(r"\w")


class QuoteExtractor:
    """Extracts headline and body quotations from an article."""

    def __init__(self,
                 headline_context_radius: int = 30,
                 body_context_radius: int = 50,
                 min_length: int = 3,
                 max_length: int = 500,
                 filter_fragments: bool = True):
        self.headline_context_radius = headline_context_radius
        self.body_context_radius = body_context_radius
        self.min_length = min_length
        self.max_length = max_length
        self.filter_fragments = filter_fragments

    def extract(self, article: str) -> List[QuotationClaim]:
        """Headline quotes first, then body quotes, de-duplicated by text."""
        headline, body, body_offset = split_headline(article)
        claims = self.extract_headline(headline) + self.extract_body(body, body_offset)
        unique = deduplicate_quotes(claims)
        logger.debug(f"Extracted {len(unique)} quotation claims ({len(claims)} before de-duplication)")
        return unique

    def extract_headline(self, headline: str) -> List[QuotationClaim]:
        """Single-quoted spans of at least three characters."""
        clean = clean_document(headline)
        claims: List[QuotationClaim] = []

        pos = 0
        while True:
            match = _SINGLE_QUOTE_RE.search(clean, pos)
            if not match:
                break
            if self._is_apostrophe(clean, match):
                # the opening mark belongs to a word; retry from the next character
                pos = match.start() + 1
                continue
            claims.append(QuotationClaim(
                quote=match.group(0),
                context=context_window(clean, match.start(), match.end(), self.headline_context_radius),
                position=match.start(),
                origin=ClaimOrigin.HEADLINE,
            ))
            pos = match.end()

        return claims

    def extract_body(self, body: str, offset: int = 0) -> List[QuotationClaim]:
        """
        Double-quoted spans between ``min_length`` and ``max_length`` characters.

        Args:
            body: Article text after the headline
            offset: Position of ``body`` within the article
        """
        clean = clean_document(body)
        claims: List[QuotationClaim] = []

        for match in _DOUBLE_QUOTE_RE.finditer(clean):
            inner = match.group(1).strip()
            if len(inner) > self.max_length:
                logger.debug(f"Discarding {len(inner)}-character span as mis-paired quote marks")
                continue
            if len(inner) < self.min_length:
                continue
            if self.filter_fragments and _is_fragment(inner):
                continue
            claims.append(QuotationClaim(
                quote=match.group(0),
                context=context_window(clean, match.start(), match.end(), self.body_context_radius),
                position=offset + match.start(),
                origin=ClaimOrigin.BODY,
            ))

        return claims

    @staticmethod
    def _is_apostrophe(text: str, match: re.Match) -> bool:
        start, end = match.start(), match.end()
        if start > 0 and text[start - 1].isalpha():
            return True
        if _POSSESSIVE_FRAGMENT_RE.match(match.group(1)):
            return True
        return end < len(text) and text[end].isalpha()


def _is_fragment(inner: str) -> bool:
    if not _WORD_RE.search(inner):
        return True
    if _POSSESSIVE_FRAGMENT_RE.match(inner):
        return True
    return bool(_DANGLING_DETERMINER_RE.search(inner))


def deduplicate_quotes(claims: List[QuotationClaim]) -> List[QuotationClaim]:
    """Keep the first claim for each normalized quote text, wherever it occurs."""
    seen = set()
    unique: List[QuotationClaim] = []
    for claim in claims:
        key = quote_dedup_key(claim.quote)
        if key in seen:
            continue
        seen.add(key)
        unique.append(claim)
    return unique
