"""
Claim extraction from generated articles
"""

from .numbers import NumberExtractor, deduplicate_numbers
from .quotes import QuoteExtractor, deduplicate_quotes

__all__ = ["NumberExtractor", "QuoteExtractor", "deduplicate_numbers", "deduplicate_quotes"]
