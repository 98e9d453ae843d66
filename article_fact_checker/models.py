"""
Data models for verification reports
"""

from enum import Enum
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NumberStatus(str, Enum):
    """Outcome of checking a numeric claim"""
    MATCH = "match"
    MISSING = "missing"


class QuoteStatus(str, Enum):
    """Outcome of checking a quotation"""
    EXACT = "exact"
    PARAPHRASED = "paraphrased"
    NOT_FOUND = "not_found"


class LineStatus(str, Enum):
    """Outcome of comparing one article line with the source"""
    SUPPORTED = "supported"
    PARTIAL = "partial"
    UNSUPPORTED = "unsupported"


class LineMethod(str, Enum):
    """How a line verdict was reached"""
    LEXICAL = "lexical"
    AI = "ai"
    FALLBACK = "fallback"


class ReportModel(BaseModel):
    """Base for report models; serializes with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)


class NumberCheck(ReportModel):
    """
    Verification outcome for one numeric claim.

    ``source_context`` is a verbatim slice of the source after HTML tags are
    stripped and quote entities decoded, not of the raw markup.
    """
    number: str
    found: bool
    article_context: str
    source_context: Optional[str] = None
    status: NumberStatus


class QuoteCheck(ReportModel):
    """
    Verification outcome for one quotation.

    ``source_context`` is taken from the tag-stripped source, like
    :class:`NumberCheck`.
    """
    quote: str
    found: bool
    article_context: str
    source_context: Optional[str] = None
    status: QuoteStatus
    source: str = Field(description="Part of the article the quote came from: headline or body")
    similarity_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class NumberSummary(ReportModel):
    total: int
    matches: int
    missing: int
    match_rate: str


class QuoteSummary(ReportModel):
    total: int
    exact: int
    paraphrased: int
    not_found: int
    exact_rate: str


class NumberSection(ReportModel):
    checks: List[NumberCheck] = Field(default_factory=list)
    summary: NumberSummary


class QuoteSection(ReportModel):
    checks: List[QuoteCheck] = Field(default_factory=list)
    summary: QuoteSummary


class LineCheck(ReportModel):
    """Verdict for one sentence-like unit of the article"""
    index: int
    line: str
    status: LineStatus
    method: LineMethod
    overlap_score: float = Field(ge=0.0, le=1.0)
    source_context: Optional[str] = None
    explanation: Optional[str] = None


class LineSummary(ReportModel):
    total: int
    supported: int
    partial: int
    unsupported: int
    ai_checked: int
    fallback_used: int
    support_rate: str


class LineByLineSection(ReportModel):
    checks: List[LineCheck] = Field(default_factory=list)
    summary: LineSummary
    ai_available: bool = False


class VerificationReport(ReportModel):
    """Complete result of verifying an article against its source"""
    numbers: NumberSection
    quotes: QuoteSection
    line_by_line: Optional[LineByLineSection] = None

    def to_response(self) -> Dict[str, Any]:
        """Wire representation: camelCase keys, unset optionals omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def format_rate(count: int, total: int) -> str:
    """Percentage with one decimal place, ``"0"`` when there is nothing to rate."""
    if total <= 0:
        return "0"
    return f"{count / total * 100:.1f}"
