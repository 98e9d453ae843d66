"""
Context-aware verification of numeric claims.

A digit run alone proves nothing in financial prose, where numbers are
everywhere. A claim only matches when its digits recur in the source with
the same unit and the surrounding text passes a context gate.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from ..core.claims import NumericClaim
from ..core.preprocess import context_window
from ..models import NumberCheck, NumberStatus
from .vocabulary import (
    APPROXIMATION_IN_ARTICLE_RE,
    APPROXIMATION_IN_SOURCE_RE,
    APPROXIMATION_PREFIX,
    PERCENT_CONTEXT_RE,
    PRICE_CONTEXT_RE,
    STOP_WORDS,
    term_pattern,
)

logger = logging.getLogger(__name__)

_BILLION_RE = re.compile(r"\d\s*(?:billion|bn|b)\b", re.IGNORECASE)
_MILLION_RE = re.compile(r"\d\s*(?:million|mn|m)\b", re.IGNORECASE)
_TRILLION_RE = re.compile(r"\d\s*(?:trillion|tn|t)\b", re.IGNORECASE)
_GIGAWATT_RE = re.compile(r"\d\s*(?:gigawatts?|gw)\b", re.IGNORECASE)
_MULTIPLIER_RE = re.compile(r"\dx$", re.IGNORECASE)
_PERIOD_RE = re.compile(r"^(?:20\d{2}|(?:CY|FY|[12]H) ?\d{2})$", re.IGNORECASE)
_PERIOD_PARTS_RE = re.compile(r"^([A-Z0-9]{2})\s?(\d{2})$", re.IGNORECASE)
_EDGE_PUNCT = "'\".,;:!?()[]{}<>*"


@dataclass(frozen=True)
class UnitSignature:
    """Units carried by a numeric claim."""

    percent: bool = False
    currency: bool = False
    billion: bool = False
    million: bool = False
    trillion: bool = False
    gigawatt: bool = False
    multiplier: bool = False
    period: bool = False

    @classmethod
    def classify(cls, value: str) -> "UnitSignature":
        text = value.strip()
        return cls(
            percent="%" in text,
            currency="$" in text,
            billion=bool(_BILLION_RE.search(text)),
            million=bool(_MILLION_RE.search(text)),
            trillion=bool(_TRILLION_RE.search(text)),
            gigawatt=bool(_GIGAWATT_RE.search(text)),
            multiplier=bool(_MULTIPLIER_RE.search(text)),
            period=bool(_PERIOD_RE.match(text)),
        )

    @property
    def has_magnitude(self) -> bool:
        return self.billion or self.million or self.trillion or self.gigawatt

    @property
    def has_unit(self) -> bool:
        """True when the claim names a unit beyond the bare digits."""
        return self.percent or self.has_magnitude or self.multiplier or self.period

    @property
    def primary(self) -> str:
        if self.period:
            return "period"
        if self.percent:
            return "percent"
        if self.multiplier:
            return "multiplier"
        if self.has_magnitude:
            return "magnitude"
        if self.currency:
            return "currency"
        return "bare"


def numeric_part(value: str) -> str:
    """Digits and decimal point of a claim, thousands separators removed."""
    return re.sub(r"[^\d.]", "", value.replace(",", "")).strip(".")


def digits_pattern(numeric: str) -> str:
    """
    Regex for a figure tolerant of thousands separators, guarded so it does
    not match inside a longer number (``35`` never matches ``135`` or ``3.35``).
    """
    integer, _, fraction = numeric.partition(".")
    body = ",?".join(integer)
    if fraction:
        body += r"\." + fraction
    return r"(?<![\d.,])" + body + r"(?!\d)(?![.,]\d)"


def context_keywords(context: str, limit: Optional[int] = None) -> List[str]:
    """Meaningful words of a context window: longer than 3 letters, not stop-words."""
    keywords: List[str] = []
    for token in context.lower().split():
        word = token.strip(_EDGE_PUNCT)
        if len(word) <= 3 or word in STOP_WORDS or not re.search(r"[a-z]", word):
            continue
        if word not in keywords:
            keywords.append(word)
    return keywords[:limit] if limit else keywords


class NumberVerifier:
    """Locates numeric claims in a source document."""

    def __init__(self, source_context_radius: int = 100, max_context_keywords: Optional[int] = None):
        """
        Args:
            source_context_radius: Characters of source kept on each side of a match
            max_context_keywords: Cap on article keywords used by the gate (None for all)
        """
        self.source_context_radius = source_context_radius
        self.max_context_keywords = max_context_keywords

    def verify(self, claim: NumericClaim, source: str) -> NumberCheck:
        """
        Check one claim against the source text.

        Args:
            claim: Numeric claim extracted from the article
            source: Cleaned source document

        Returns:
            NumberCheck with status MATCH or MISSING
        """
        source_context = self.find(claim, source)
        found = source_context is not None
        logger.debug(f"Number {claim.value!r}: {'match' if found else 'missing'}")
        return NumberCheck(
            number=claim.value,
            found=found,
            article_context=claim.context,
            source_context=source_context,
            status=NumberStatus.MATCH if found else NumberStatus.MISSING,
        )

    def find(self, claim: NumericClaim, source: str) -> Optional[str]:
        """Return the accepted source context, or None if the claim is unsupported."""
        numeric = numeric_part(claim.value)
        if not numeric:
            return None

        signature = UnitSignature.classify(claim.value)
        keywords = context_keywords(claim.context, self.max_context_keywords)

        for pattern in self.build_patterns(claim.value, signature):
            for match in pattern.finditer(source):
                source_context = context_window(
                    source, match.start(), match.end(), self.source_context_radius
                )
                if self.passes_gate(signature, numeric, claim.context, source_context, keywords):
                    return source_context
        return None

    def build_patterns(self, value: str, signature: UnitSignature) -> List[Pattern[str]]:
        """Unit-aware patterns in priority order, exact claim text first."""
        numeric = numeric_part(value)
        digits = digits_pattern(numeric)
        patterns = [_exact_pattern(value)]

        if signature.percent:
            patterns.append(re.compile(digits + r"\s*%"))
            patterns.append(re.compile(digits + r"\s+percent\b", re.IGNORECASE))
            patterns.append(re.compile(APPROXIMATION_PREFIX + digits + r"\s*%", re.IGNORECASE))
            patterns.append(re.compile(APPROXIMATION_PREFIX + digits + r"\s+percent\b", re.IGNORECASE))

        if signature.currency:
            # allow trailing text such as "$303 PT" or "$303/PT"
            patterns.append(re.compile(r"\$\s*" + digits + r"(?:\s*[/\s]+[A-Z]+)?"))
            patterns.append(re.compile(r"\$" + digits))
            patterns.append(re.compile(r"~\s*\$\s*" + digits))

        magnitudes = (
            (signature.billion, r"(?:(?i:billion|bn)|B)\b"),
            (signature.million, r"(?:(?i:million|mn)|M)\b"),
            (signature.trillion, r"(?:(?i:trillion|tn)|T)\b"),
            (signature.gigawatt, r"(?i:gigawatts?|gw)\b"),
        )
        for enabled, unit in magnitudes:
            if enabled:
                patterns.append(re.compile(digits + r"\s*" + unit))
                patterns.append(re.compile(r"(?:~\s*|\$\s*)?" + digits + r"\s*" + unit))

        if signature.multiplier:
            patterns.append(re.compile(digits + r"\s?x\b", re.IGNORECASE))

        if signature.period:
            parts = _PERIOD_PARTS_RE.match(value.strip())
            if parts and not parts.group(1).isdigit():
                code = re.escape(parts.group(1)) + r"\s?" + parts.group(2)
            else:
                code = re.escape(value.strip())
            patterns.append(re.compile(r"\b" + code + r"\b", re.IGNORECASE))

        return patterns

    def passes_gate(self,
                    signature: UnitSignature,
                    numeric: str,
                    article_context: str,
                    source_context: str,
                    keywords: List[str]) -> bool:
        """Decide whether a pattern hit in the source refers to the same fact."""
        if signature.currency:
            if re.search(r"\$\s*" + digits_pattern(numeric), source_context):
                return True
            if PRICE_CONTEXT_RE.search(source_context) or PRICE_CONTEXT_RE.search(article_context):
                return True

        required = 1 if signature.has_unit else 2
        if keywords:
            found = {hit.group(0).lower() for hit in term_pattern(keywords).finditer(source_context)}
            if len(found) >= required:
                return True

        if signature.percent:
            if PERCENT_CONTEXT_RE.search(source_context):
                return True
            if APPROXIMATION_IN_ARTICLE_RE.search(article_context) and APPROXIMATION_IN_SOURCE_RE.search(source_context):
                return True

        return False


def _exact_pattern(value: str) -> Pattern[str]:
    text = value.strip()
    body = re.escape(text)
    if text[:1].isdigit():
        body = r"(?<![\d.,])" + body
    if text[-1:].isdigit():
        body += r"(?!\d)(?![.,]\d)"
    return re.compile(body, re.IGNORECASE)
