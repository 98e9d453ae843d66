"""Claim records produced by extraction."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ClaimOrigin(str, Enum):
    """Part of the article a quotation was taken from."""

    HEADLINE = "headline"
    BODY = "body"


@dataclass(frozen=True, slots=True)
class NumericClaim:
    value: str
    context: str
    position: int


@dataclass(frozen=True, slots=True)
class QuotationClaim:
    """A quoted span; ``quote`` keeps its enclosing marks."""

    quote: str
    context: str
    position: int
    origin: ClaimOrigin
