"""Word lists used by the context gates and quote tiers."""

from __future__ import annotations

import re
from typing import Iterable, Pattern

# Words never counted as meaningful context keywords.
STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "from", "as", "is", "was", "are", "were", "be", "been",
    "being", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "must", "can", "this", "that", "these",
    "those", "their", "there", "which", "while", "also", "than", "then",
    "into", "over", "said", "says", "its", "it's",
})

# Price-target and rating language around currency figures.
PRICE_CONTEXT_TERMS = frozenset({
    "price", "target", "pt", "dollar", "dollars", "cost", "value", "estimate",
    "forecast", "rating", "buy", "sell", "hold", "outperform", "underperform",
    "overweight", "underweight", "neutral", "reiterate", "reiterates",
    "maintain", "maintains", "upgrade", "upgrades", "downgrade", "downgrades",
    "raise", "raises", "raised", "cut", "cuts", "boost", "boosts", "hike",
    "hikes", "lower", "lowers", "lowered",
})

# Growth and reporting language around percentages.
PERCENT_CONTEXT_TERMS = frozenset({
    "sales", "revenue", "revenues", "growth", "increase", "increased",
    "decrease", "decreased", "decline", "declined", "change", "margin",
    "margins", "y/y", "yoy", "year-over-year", "quarter", "quarterly", "q1",
    "q2", "q3", "q4", "shipments", "accounts", "representing", "share",
    "stake", "rose", "fell", "grew", "jumped",
})

# "~" or a hedging word in front of a figure.
APPROXIMATION_PREFIX = r"(?:~\s*|(?:approximately|approx\.?|about|around|roughly|nearly)\s+)"

# Leading words a quote may be excerpted without.
RELATIVE_FILLERS = ("which", "that", "who", "what", "where", "when", "why", "how")
ARTICLE_FILLERS = ("a", "an", "the")
PREPOSITION_FILLERS = ("to", "for", "from", "with", "by", "in", "on", "at", "of")
LEADING_FILLERS = frozenset(RELATIVE_FILLERS + ARTICLE_FILLERS + PREPOSITION_FILLERS)


def term_pattern(terms: Iterable[str]) -> Pattern[str]:
    """Whole-word, case-insensitive regex matching any of ``terms``."""

    alternatives = sorted((re.escape(term) for term in terms), key=len, reverse=True)
    return re.compile(r"(?<![\w/-])(?:" + "|".join(alternatives) + r")(?![\w/-])", re.IGNORECASE)


PRICE_CONTEXT_RE = term_pattern(PRICE_CONTEXT_TERMS)
PERCENT_CONTEXT_RE = term_pattern(PERCENT_CONTEXT_TERMS)
APPROXIMATION_IN_ARTICLE_RE = re.compile(
    r"\b(?:approximately|approx\.?|about|around|roughly|nearly)\s*\$?\d", re.IGNORECASE
)
APPROXIMATION_IN_SOURCE_RE = re.compile(r"~\s*\$?\d")
