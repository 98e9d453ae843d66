"""
Article Fact Checker

Verifies the numbers and quotations of a generated news article against
the source document it was written from.
"""

__version__ = "0.1.0"

from .models import VerificationReport
from .pipeline import VerificationPipeline

__all__ = ["VerificationPipeline", "VerificationReport", "__version__"]
