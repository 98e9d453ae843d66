"""
Main verification pipeline integrating extraction and verification
"""

import asyncio
import logging
import time
from typing import List, Optional

from .core.llm import CompletionClient
from .core.preprocess import clean_document, strip_price_action
from .extraction import NumberExtractor, QuoteExtractor
from .models import (
    NumberCheck,
    NumberSection,
    NumberStatus,
    NumberSummary,
    QuoteCheck,
    QuoteSection,
    QuoteStatus,
    QuoteSummary,
    VerificationReport,
    format_rate,
)
from .utils.config import ConfigManager
from .verification import LineByLineComparator, LineComparisonConfig, NumberVerifier, QuoteVerifier, build_tiers
from .verification.quotes import PreparedSource

logger = logging.getLogger(__name__)


class VerificationPipeline:
    """
    Verifies a generated article against its source document.

    Pipeline flow:
    1. Validation: both texts must be non-empty
    2. Preprocessing: drop the trailing Price Action paragraph, clean the source
    3. Extraction: numeric and quotation claims from the article
    4. Verification: each claim against the source, in extraction order
    5. Optional line-by-line comparison
    6. Return a VerificationReport with summaries
    """

    def __init__(self,
                 number_extractor: Optional[NumberExtractor] = None,
                 quote_extractor: Optional[QuoteExtractor] = None,
                 number_verifier: Optional[NumberVerifier] = None,
                 quote_verifier: Optional[QuoteVerifier] = None,
                 line_comparator: Optional[LineByLineComparator] = None,
                 enable_line_by_line: bool = True):
        """
        Initialize the pipeline; omitted components use their defaults.

        Args:
            line_comparator: Comparator used when line-by-line output is requested
            enable_line_by_line: If False, line-by-line requests are ignored
        """
        self.number_extractor = number_extractor or NumberExtractor()
        self.quote_extractor = quote_extractor or QuoteExtractor()
        self.number_verifier = number_verifier or NumberVerifier()
        self.quote_verifier = quote_verifier or QuoteVerifier()
        self.line_comparator = None
        if enable_line_by_line:
            self.line_comparator = line_comparator or LineByLineComparator()

    @classmethod
    def from_config(cls,
                    config_manager: Optional[ConfigManager] = None,
                    completion_client: Optional[CompletionClient] = None) -> "VerificationPipeline":
        """
        Build a pipeline from configuration.

        Args:
            config_manager: Loaded configuration, defaults if None
            completion_client: Optional AI backend for the line-by-line comparator
        """
        config = config_manager or ConfigManager()
        line_config = LineComparisonConfig(**config.get("line_by_line", {}))

        return cls(
            number_extractor=NumberExtractor(
                context_radius=config.get("extraction.context_radius", 50),
                same_mention_distance=config.get("extraction.dedupe_same_mention_distance", 100),
                repeat_distance=config.get("extraction.dedupe_repeat_distance", 500),
            ),
            quote_extractor=QuoteExtractor(
                headline_context_radius=config.get("extraction.headline_context_radius", 30),
                body_context_radius=config.get("extraction.context_radius", 50),
                min_length=config.get("extraction.min_quote_length", 3),
                max_length=config.get("extraction.max_quote_length", 500),
                filter_fragments=config.get("extraction.filter_quote_fragments", True),
            ),
            number_verifier=NumberVerifier(
                source_context_radius=config.get("numbers.source_context_radius", 100),
                max_context_keywords=config.get("numbers.max_context_keywords"),
            ),
            quote_verifier=QuoteVerifier(build_tiers(
                context_radius=config.get("quotes.context_radius", 50),
                min_mid_word_length=config.get("quotes.min_mid_word_length", 20),
                paraphrase_threshold=config.get("quotes.paraphrase_threshold", 0.4),
            )),
            line_comparator=LineByLineComparator(line_config, completion_client),
            enable_line_by_line=line_config.enabled,
        )

    def verify(self, article: str, source_text: str, line_by_line: bool = False) -> VerificationReport:
        """
        Verify an article against its source.

        Args:
            article: Generated article text, possibly with HTML
            source_text: Source document text
            line_by_line: Also compare every article line with the source

        Returns:
            VerificationReport with number and quote sections

        Raises:
            ValueError: If either text is missing or empty
        """
        if line_by_line:
            return asyncio.run(self.verify_async(article, source_text, line_by_line=True))

        self._validate(article, source_text)
        return self._build_report(article, source_text)

    async def verify_async(self, article: str, source_text: str, line_by_line: bool = False) -> VerificationReport:
        """Async variant of :meth:`verify` for callers that own an event loop."""
        self._validate(article, source_text)
        report = self._build_report(article, source_text)

        if line_by_line:
            if self.line_comparator is None:
                logger.info("Line-by-line comparison requested but disabled in configuration")
            else:
                started = time.monotonic()
                report.line_by_line = await self.line_comparator.compare(article, source_text)
                logger.info(f"Line-by-line comparison finished in {time.monotonic() - started:.2f}s")

        return report

    @staticmethod
    def _validate(article: str, source_text: str) -> None:
        if not isinstance(article, str) or not isinstance(source_text, str):
            raise ValueError("Article and source text are required")
        if not article.strip() or not source_text.strip():
            raise ValueError("Article and source text are required")

    def _build_report(self, article: str, source_text: str) -> VerificationReport:
        started = time.monotonic()
        logger.info(f"Verifying article ({len(article)} chars) against source ({len(source_text)} chars)")

        article_body = strip_price_action(article)
        source_clean = clean_document(source_text)

        # Step 1: Extraction
        numeric_claims = self.number_extractor.extract(article_body)
        quote_claims = self.quote_extractor.extract(article_body)
        logger.debug(f"Extracted {len(numeric_claims)} numbers and {len(quote_claims)} quotes")

        # Step 2: Verification
        number_checks = [self.number_verifier.verify(claim, source_clean) for claim in numeric_claims]
        prepared_source = PreparedSource.from_text(source_clean)
        quote_checks = [self.quote_verifier.verify(claim, prepared_source) for claim in quote_claims]

        report = VerificationReport(
            numbers=NumberSection(checks=number_checks, summary=summarize_numbers(number_checks)),
            quotes=QuoteSection(checks=quote_checks, summary=summarize_quotes(quote_checks)),
        )

        logger.info(
            f"Verified {len(number_checks)} numbers "
            f"({report.numbers.summary.matches} matched) and {len(quote_checks)} quotes "
            f"({report.quotes.summary.exact} exact) in {time.monotonic() - started:.3f}s"
        )
        return report


def summarize_numbers(checks: List[NumberCheck]) -> NumberSummary:
    total = len(checks)
    matches = sum(1 for check in checks if check.status == NumberStatus.MATCH)
    return NumberSummary(
        total=total,
        matches=matches,
        missing=total - matches,
        match_rate=format_rate(matches, total),
    )


def summarize_quotes(checks: List[QuoteCheck]) -> QuoteSummary:
    total = len(checks)
    exact = sum(1 for check in checks if check.status == QuoteStatus.EXACT)
    paraphrased = sum(1 for check in checks if check.status == QuoteStatus.PARAPHRASED)
    return QuoteSummary(
        total=total,
        exact=exact,
        paraphrased=paraphrased,
        not_found=total - exact - paraphrased,
        exact_rate=format_rate(exact, total),
    )
