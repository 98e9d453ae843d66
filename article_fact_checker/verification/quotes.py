"""
Quotation verification as an ordered cascade of matching tiers.

Each tier implements ``attempt(quote, source)`` and returns a
:class:`QuoteMatch` or ``None``. Tiers run in the order of
:data:`DEFAULT_TIERS` and the first hit wins; every tier except the final
paraphrase tier counts as an exact match.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from ..core.claims import QuotationClaim
from ..core.normalize import collapse_whitespace_with_offsets, fold_case, normalize_quote
from ..models import QuoteCheck, QuoteStatus
from .vocabulary import ARTICLE_FILLERS, LEADING_FILLERS, PREPOSITION_FILLERS, RELATIVE_FILLERS

logger = logging.getLogger(__name__)

_TRAILING_PUNCT_RE = re.compile(r"[.,;:!?…]+$")
_SENTENCE_BREAK_RE = re.compile(r"[.!?;]\s+")
_WORD_EDGE_PUNCT = "'\".,;:!?()[]{}…-—"


@dataclass
class PreparedSource:
    """Source text in the forms the tiers search.

    ``collapsed`` has whitespace runs collapsed; ``folded`` is its lowercase
    twin of identical length. ``offsets`` maps collapsed positions back to
    ``original`` so contexts are always verbatim slices of the source.
    """

    original: str
    collapsed: str
    folded: str
    offsets: List[int]
    _sentences: Optional[List[Tuple[int, int]]] = field(default=None, repr=False)

    @classmethod
    def from_text(cls, text: str) -> "PreparedSource":
        collapsed, offsets = collapse_whitespace_with_offsets(text)
        return cls(original=text, collapsed=collapsed, folded=fold_case(collapsed), offsets=offsets)

    def context(self, start: int, end: int, radius: int) -> str:
        lo = max(0, start - radius)
        hi = min(len(self.collapsed), end + radius)
        if hi <= lo:
            return ""
        return self.original[self.offsets[lo]:self.offsets[hi - 1] + 1].strip()

    def sentences(self) -> List[Tuple[int, int]]:
        """Spans of sentence-like units, split on ``. ! ? ;``."""
        if self._sentences is None:
            spans = []
            start = 0
            for match in _SENTENCE_BREAK_RE.finditer(self.collapsed):
                spans.append((start, match.start() + 1))
                start = match.end()
            if start < len(self.collapsed):
                spans.append((start, len(self.collapsed)))
            self._sentences = spans
        return self._sentences


@dataclass(frozen=True)
class PreparedQuote:
    """Normalized forms of a quotation claim."""

    raw: str
    text: str
    trimmed: str

    @classmethod
    def from_quote(cls, quote: str) -> "PreparedQuote":
        text = normalize_quote(quote)
        return cls(raw=quote, text=text, trimmed=_TRAILING_PUNCT_RE.sub("", text).strip())

    @property
    def words(self) -> List[str]:
        words = (word.strip(_WORD_EDGE_PUNCT) for word in self.trimmed.split())
        return [word for word in words if word]


@dataclass(frozen=True)
class QuoteMatch:
    context: str
    similarity: Optional[float] = None

    @property
    def paraphrased(self) -> bool:
        return self.similarity is not None


class QuoteTier(ABC):
    """One matching strategy in the cascade."""

    name = "tier"

    def __init__(self, context_radius: int = 50):
        self.context_radius = context_radius

    @abstractmethod
    def attempt(self, quote: PreparedQuote, source: PreparedSource) -> Optional[QuoteMatch]:
        """Return a match, or None to hand over to the next tier."""

    def _search(self, pattern: str, source: PreparedSource) -> Optional[QuoteMatch]:
        match = re.search(pattern, source.folded)
        if not match:
            return None
        return QuoteMatch(context=source.context(match.start(), match.end(), self.context_radius))


class ExactTier(QuoteTier):
    """Normalized quote found verbatim, starting on a word boundary."""

    name = "exact"

    def attempt(self, quote, source):
        if not quote.text:
            return None
        return self._search(r"(?<!\w)" + re.escape(quote.text), source)


class TrailingPunctuationStrippedTier(QuoteTier):
    name = "trailing_punctuation_stripped"

    def attempt(self, quote, source):
        if not quote.trimmed or quote.trimmed == quote.text:
            return None
        return self._search(r"(?<!\w)" + re.escape(quote.trimmed), source)


class LeadingFillerTier(QuoteTier):
    """
    Quote excerpted mid-sentence: the source may carry a leading relative
    pronoun, article or preposition the quote dropped, and a filler word
    opening the quote may be missing from the source.
    """

    name = "leading_filler"

    _PREFIX = (
        r"(?<!\w)"
        r"(?:(?:" + "|".join(RELATIVE_FILLERS) + r") )?"
        r"(?:(?:" + "|".join(ARTICLE_FILLERS) + r") )?"
        r"(?:(?:" + "|".join(PREPOSITION_FILLERS) + r") )?"
    )

    def attempt(self, quote, source):
        words = quote.trimmed.split(" ")
        while len(words) > 1 and words[0] in LEADING_FILLERS:
            words = words[1:]
        core = " ".join(words)
        if not core:
            return None
        return self._search(self._PREFIX + re.escape(core), source)


class MidWordSubstringTier(QuoteTier):
    """Long quotes may start part-way into a word; no boundary is required."""

    name = "mid_word_substring"

    def __init__(self, context_radius: int = 50, min_length: int = 20):
        super().__init__(context_radius)
        self.min_length = min_length

    def attempt(self, quote, source):
        if len(quote.trimmed) <= self.min_length:
            return None
        index = source.folded.find(quote.trimmed)
        if index < 0:
            return None
        return QuoteMatch(context=source.context(index, index + len(quote.trimmed), self.context_radius))


class TrailingPunctuationTolerantTier(QuoteTier):
    """Quote followed by at most one punctuation mark, then a word break."""

    name = "trailing_punctuation_tolerant"

    def attempt(self, quote, source):
        if not quote.trimmed:
            return None
        return self._search(re.escape(quote.trimmed) + r"[.,;:!?]?(?!\w)", source)


class WordSequenceTier(QuoteTier):
    """
    Every word of the quote, or a simple inflection of it, appears in the
    source in order, not necessarily contiguously.
    """

    name = "word_sequence"

    def attempt(self, quote, source):
        words = quote.words
        if len(words) < 2:
            return None

        cursor = 0
        span_start = len(source.folded)
        span_end = 0

        for word in words:
            located = self._locate(word, source.folded, cursor)
            if located is None:
                # not ahead of the cursor; accept an occurrence anywhere
                located = self._locate(word, source.folded, 0)
            if located is None:
                return None
            start, cursor = located
            span_start = min(span_start, start)
            span_end = max(span_end, cursor)

        return QuoteMatch(context=source.context(span_start, span_end, self.context_radius))

    @staticmethod
    def variations(word: str) -> List[str]:
        candidates = [
            word,
            word + "s",
            word + "ed",
            word + "ing",
            re.sub(r"s$", "", word),
            re.sub(r"ed$", "", word),
            re.sub(r"ing$", "", word),
        ]
        unique: List[str] = []
        for candidate in candidates:
            if candidate and candidate not in unique:
                unique.append(candidate)
        return unique

    def _locate(self, word: str, text: str, start: int) -> Optional[Tuple[int, int]]:
        for variant in self.variations(word):
            match = re.compile(r"(?<!\w)" + re.escape(variant) + r"(?!\w)").search(text, start)
            if match:
                return match.start(), match.end()
        return None


class ParaphraseTier(QuoteTier):
    """Best sentence by word-set Jaccard similarity above ``threshold``."""

    name = "paraphrase"

    def __init__(self, context_radius: int = 50, threshold: float = 0.4):
        super().__init__(context_radius)
        self.threshold = threshold

    def attempt(self, quote, source):
        best: Optional[Tuple[float, int, int]] = None
        for start, end in source.sentences():
            score = jaccard_similarity(quote.text, source.folded[start:end])
            if score > self.threshold and (best is None or score > best[0]):
                best = (score, start, end)

        if best is None:
            return None
        score, start, end = best
        return QuoteMatch(
            context=source.context(start, end, self.context_radius),
            similarity=round(score, 3),
        )


def similarity_words(text: str) -> set:
    words = (word.strip(_WORD_EDGE_PUNCT) for word in text.lower().split())
    return {word for word in words if len(word) > 2}


def jaccard_similarity(text1: str, text2: str) -> float:
    """Word-set Jaccard similarity over words longer than two characters."""
    words1 = similarity_words(text1)
    words2 = similarity_words(text2)
    if not words1 or not words2:
        return 0.0
    return len(words1 & words2) / len(words1 | words2)


def build_tiers(context_radius: int = 50,
                min_mid_word_length: int = 20,
                paraphrase_threshold: float = 0.4) -> Tuple[QuoteTier, ...]:
    """The cascade in its fixed order."""
    return (
        ExactTier(context_radius),
        TrailingPunctuationStrippedTier(context_radius),
        LeadingFillerTier(context_radius),
        MidWordSubstringTier(context_radius, min_length=min_mid_word_length),
        TrailingPunctuationTolerantTier(context_radius),
        WordSequenceTier(context_radius),
        ParaphraseTier(context_radius, threshold=paraphrase_threshold),
    )


DEFAULT_TIERS = build_tiers()


class QuoteVerifier:
    """Runs the tier cascade for each quotation claim."""

    def __init__(self, tiers: Optional[Sequence[QuoteTier]] = None):
        self.tiers = tuple(tiers) if tiers is not None else DEFAULT_TIERS

    def verify(self, claim: QuotationClaim, source: Union[str, PreparedSource]) -> QuoteCheck:
        """
        Check one quotation against the source.

        Args:
            claim: Quotation extracted from the article
            source: Cleaned source text, or a PreparedSource shared across claims

        Returns:
            QuoteCheck with status EXACT, PARAPHRASED or NOT_FOUND
        """
        if isinstance(source, str):
            source = PreparedSource.from_text(source)

        prepared = PreparedQuote.from_quote(claim.quote)
        match, tier_name = self.match(prepared, source)

        if match is None:
            status = QuoteStatus.NOT_FOUND
        elif match.paraphrased:
            status = QuoteStatus.PARAPHRASED
        else:
            status = QuoteStatus.EXACT
        logger.debug(f"Quote {claim.quote[:40]!r}: {status.value} (tier: {tier_name})")

        return QuoteCheck(
            quote=claim.quote,
            found=match is not None,
            article_context=claim.context,
            source_context=match.context if match else None,
            status=status,
            source=claim.origin.value,
            similarity_score=match.similarity if match else None,
        )

    def match(self, quote: PreparedQuote, source: PreparedSource) -> Tuple[Optional[QuoteMatch], Optional[str]]:
        """First successful tier's match and name, or ``(None, None)``."""
        for tier in self.tiers:
            result = tier.attempt(quote, source)
            if result is not None:
                return result, tier.name
        return None, None
