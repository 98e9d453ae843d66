"""
Verification of extracted claims against a source document
"""

from .line_compare import LineByLineComparator, LineComparisonConfig
from .numbers import NumberVerifier
from .quotes import QuoteVerifier, build_tiers

__all__ = [
    "LineByLineComparator",
    "LineComparisonConfig",
    "NumberVerifier",
    "QuoteVerifier",
    "build_tiers",
]
