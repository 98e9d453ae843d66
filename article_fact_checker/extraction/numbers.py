"""
Numeric claim extraction.

Five independent pattern families are run over the tag-stripped article
(currency, percentages, bare magnitudes, multipliers, period codes). All
candidates are collected first; de-duplication is a separate pass.
"""

import logging
import re
from typing import Iterator, List, Optional, Tuple

from ..core.claims import NumericClaim
from ..core.normalize import normalize_number, strip_extraction_artifact
from ..core.preprocess import context_window, strip_html

logger = logging.getLogger(__name__)

_FIGURE = r"\d[\d,]*(?:\.\d+)?"

CURRENCY_PATTERN = re.compile(
    r"\$(?P<low>" + _FIGURE + r")"
    r"(?:\s*[-–]\s*\$?(?P<high>" + _FIGURE + r"))?"
    r"(?:(?P<sep>\s*)(?P<unit>(?i:billion|million|trillion|bn|mn)|B|M|T))?\b"
)
PERCENT_PATTERN = re.compile(r"(?<![\w.])" + _FIGURE + r"\s*%")
MAGNITUDE_PATTERN = re.compile(
    r"\b" + _FIGURE + r"\s+(?:(?i:billion|million|trillion|gigawatts?|bn|mn|gw)|B|M|T)\b"
)
MULTIPLIER_PATTERN = re.compile(r"\b" + _FIGURE + r"x\b", re.IGNORECASE)
PERIOD_PATTERN = re.compile(r"\b(?:20\d{2}|(?:CY|FY|[12]H) ?\d{2})\b", re.IGNORECASE)

# Magnitude spellings that denote the same unit.
_UNIT_SYNONYMS = {
    "b": "billion",
    "bn": "billion",
    "m": "million",
    "mn": "million",
    "t": "trillion",
    "gw": "gigawatt",
    "gigawatts": "gigawatt",
}


class NumberExtractor:
    """
    Extracts numeric claims from an article.

    Families are applied in priority order and the resulting candidates are
    de-duplicated by :func:`deduplicate_numbers`.
    """

    def __init__(self,
                 context_radius: int = 50,
                 same_mention_distance: int = 100,
                 repeat_distance: int = 500):
        """
        Args:
            context_radius: Characters of article text kept on each side of a claim
            same_mention_distance: Identical values closer than this are one mention
            repeat_distance: Same figure repeated closer than this is one claim
        """
        self.context_radius = context_radius
        self.same_mention_distance = same_mention_distance
        self.repeat_distance = repeat_distance

    def extract(self, text: str) -> List[NumericClaim]:
        """
        Extract de-duplicated numeric claims.

        Args:
            text: Article text, possibly containing HTML tags

        Returns:
            Claims in extraction order (family priority, then position)
        """
        candidates = self.extract_candidates(text)
        claims = deduplicate_numbers(
            candidates,
            same_mention_distance=self.same_mention_distance,
            repeat_distance=self.repeat_distance,
        )
        logger.debug(f"Extracted {len(claims)} numeric claims from {len(candidates)} candidates")
        return claims

    def extract_candidates(self, text: str) -> List[NumericClaim]:
        """Run every pattern family and return all raw candidates."""
        clean = strip_html(text)
        candidates: List[NumericClaim] = []
        candidates.extend(self._currency_claims(clean))
        for pattern in (PERCENT_PATTERN, MAGNITUDE_PATTERN, MULTIPLIER_PATTERN, PERIOD_PATTERN):
            for match in pattern.finditer(clean):
                candidates.append(self._claim(clean, match.group(0).strip(), match.start(), match.end()))
        return candidates

    def _currency_claims(self, clean: str) -> Iterator[NumericClaim]:
        for match in CURRENCY_PATTERN.finditer(clean):
            raw = match.group(0)
            cleaned = strip_extraction_artifact(raw).rstrip(",").strip()

            # ", T" style artifacts are not magnitude suffixes
            unit = match.group("unit") if cleaned == raw.strip() else None
            suffix = f"{match.group('sep') or ''}{unit}" if unit else ""

            high = match.group("high")
            if not high:
                yield self._claim(clean, cleaned, match.start(), match.end())
                continue

            low = match.group("low").rstrip(",")
            high = high.rstrip(",")
            yield self._claim(clean, f"${low}{suffix}", match.start(), match.end())
            high_value = f"{high}{suffix}" if unit else f"${high}"
            yield self._claim(clean, high_value, match.start("high"), match.end())

    def _claim(self, clean: str, value: str, start: int, end: int) -> NumericClaim:
        return NumericClaim(
            value=value,
            context=context_window(clean, start, end, self.context_radius),
            position=start,
        )


def figure_key(value: str) -> Tuple[str, str]:
    """Digits plus canonical unit of a numeric value, e.g. ``("73", "billion")``."""

    normalized = normalize_number(value)
    digits = re.sub(r"[^\d.]", "", normalized)
    unit = re.sub(r"[\d.$~\s]", "", normalized)
    return digits, _UNIT_SYNONYMS.get(unit, unit)


def deduplicate_numbers(candidates: List[NumericClaim],
                        same_mention_distance: int = 100,
                        repeat_distance: int = 500) -> List[NumericClaim]:
    """
    Collapse candidates that describe the same mention of a figure.

    - A figure captured with and without ``$`` keeps the ``$`` version,
      which takes the slot of the earlier capture.
    - The same figure repeated within ``repeat_distance`` characters is one claim.
    - Identical normalized values within ``same_mention_distance`` are one claim.

    Claims further apart than that stay distinct; they may be different facts.
    """
    kept: List[Tuple[NumericClaim, str, Tuple[str, str]]] = []

    for candidate in candidates:
        key = normalize_number(candidate.value)
        figure = figure_key(candidate.value)
        has_currency = "$" in key
        replace_at: Optional[int] = None
        duplicate = False

        for index, (existing, existing_key, existing_figure) in enumerate(kept):
            distance = abs(existing.position - candidate.position)
            if figure == existing_figure:
                existing_currency = "$" in existing_key
                if has_currency and not existing_currency:
                    replace_at = index
                    break
                if existing_currency and not has_currency:
                    duplicate = True
                    break
                if distance < repeat_distance:
                    duplicate = True
                    break
            if key == existing_key and distance < same_mention_distance:
                duplicate = True
                break

        if replace_at is not None:
            kept[replace_at] = (candidate, key, figure)
        elif not duplicate:
            kept.append((candidate, key, figure))

    return [claim for claim, _, _ in kept]
