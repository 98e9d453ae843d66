"""Text primitives shared by extraction and verification."""

from .claims import ClaimOrigin, NumericClaim, QuotationClaim
from .normalize import normalize_number, normalize_quote

__all__ = [
    "ClaimOrigin",
    "NumericClaim",
    "QuotationClaim",
    "normalize_number",
    "normalize_quote",
]
