"""Tests for the quote verification cascade."""

import pytest

from article_fact_checker.core.claims import ClaimOrigin, QuotationClaim
from article_fact_checker.models import QuoteStatus
from article_fact_checker.verification import QuoteVerifier
from article_fact_checker.verification.quotes import (
    DEFAULT_TIERS,
    ExactTier,
    LeadingFillerTier,
    MidWordSubstringTier,
    ParaphraseTier,
    PreparedQuote,
    PreparedSource,
    TrailingPunctuationTolerantTier,
    WordSequenceTier,
    jaccard_similarity,
)


def _claim(quote: str, origin: ClaimOrigin = ClaimOrigin.BODY) -> QuotationClaim:
    return QuotationClaim(quote=quote, context=quote, position=0, origin=origin)


def _attempt(tier, quote: str, source: str):
    return tier.attempt(PreparedQuote.from_quote(quote), PreparedSource.from_text(source))


class TestTiers:
    """Each tier in isolation; a miss is always None."""

    def test_tier_order(self):
        """Tiers run in a fixed order ending with paraphrase."""
        assert [tier.name for tier in DEFAULT_TIERS] == [
            "exact",
            "trailing_punctuation_stripped",
            "leading_filler",
            "mid_word_substring",
            "trailing_punctuation_tolerant",
            "word_sequence",
            "paraphrase",
        ]

    def test_exact_tier_ignores_case_and_whitespace(self):
        """Exact matching ignores case and whitespace runs."""
        match = _attempt(ExactTier(), '"Demand  is strong"', "We think DEMAND is\nstrong today.")
        assert match is not None
        assert not match.paraphrased

    def test_exact_tier_miss(self):
        """A quote absent from the source gives no exact match."""
        assert _attempt(ExactTier(), '"demand is weak"', "Demand is strong.") is None

    def test_leading_filler_dropped_from_quote(self):
        """A leading filler word may be missing from the source."""
        match = _attempt(LeadingFillerTier(), '"the expansion of our platform"',
                         "We announced expansion of our platform today.")
        assert match is not None

    def test_mid_word_substring(self):
        """Long quotes may start inside a source word; short ones may not."""
        tier = MidWordSubstringTier()
        assert _attempt(tier, '"nsformational year for the company"',
                        "It was a transformational year for the company.") is not None
        assert _attempt(tier, '"nsformational"', "transformational") is None

    def test_trailing_punctuation_tolerant(self):
        """Trailing punctuation is tolerated but extra letters are not."""
        tier = TrailingPunctuationTolerantTier()
        assert _attempt(tier, '"strong demand"', "We see strong demand.") is not None
        assert _attempt(tier, '"strong demand"', "We see strong demands") is None

    def test_word_sequence_accepts_inflections(self):
        """Inflected word forms still match in sequence."""
        match = _attempt(WordSequenceTier(), '"we expected strong growth"',
                         "We expect very strong growth next year.")
        assert match is not None

    def test_word_sequence_variations(self):
        """Suffix variations generated for one word."""
        assert WordSequenceTier.variations("expected") == [
            "expected", "expecteds", "expecteded", "expecteding", "expect"
        ]

    def test_paraphrase_reports_similarity(self):
        """Paraphrase matches report their similarity score."""
        match = _attempt(ParaphraseTier(), '"demand for our products remains strong this year"',
                         "Demand for products remained strong during the year. Other stuff here.")
        assert match is not None
        assert match.paraphrased
        assert match.similarity > 0.4

    def test_jaccard_similarity(self):
        """Jaccard similarity of identical, disjoint and empty texts."""
        assert jaccard_similarity("alpha beta gamma", "alpha beta gamma") == 1.0
        assert jaccard_similarity("alpha beta", "delta epsilon") == 0.0
        assert jaccard_similarity("", "alpha") == 0.0


class TestQuoteVerifier:
    """Tests for the full cascade."""

    def test_verbatim_quote_is_exact_with_verbatim_context(self):
        """A verbatim quote is exact with a context copied from the source."""
        source = 'CEO called it "a pivotal quarter   for growth."'
        check = QuoteVerifier().verify(_claim('"a pivotal quarter for growth."'), source)

        assert check.status == QuoteStatus.EXACT
        assert check.found is True
        assert check.source_context in source
        assert check.similarity_score is None

    @pytest.mark.parametrize("quote,tier", [
        ('"nsformational year for the company"', "mid_word_substring"),
        ('"we expected strong growth"', "word_sequence"),
    ])
    def test_first_matching_tier_wins(self, quote, tier):
        """The first tier that matches names the result."""
        source = PreparedSource.from_text(
            "It was a transformational year for the company. We expect very strong growth next year."
        )
        match, name = QuoteVerifier().match(PreparedQuote.from_quote(quote), source)
        assert match is not None
        assert name == tier

    def test_reworded_quote_is_never_not_found(self):
        """A close rewording is reported as paraphrased."""
        check = QuoteVerifier().verify(
            _claim('"demand for our products remains strong this year"'),
            "Demand for products remained strong during the year. Other stuff here.",
        )

        assert check.status == QuoteStatus.PARAPHRASED
        assert check.similarity_score > 0.4

    def test_missing_quote_is_not_found(self):
        """An absent headline quote is not_found with no context."""
        check = QuoteVerifier().verify(
            _claim("'Turnaround Ahead'", ClaimOrigin.HEADLINE),
            "Revenue grew 73% to $450 million for the quarter.",
        )

        assert check.status == QuoteStatus.NOT_FOUND
        assert check.found is False
        assert check.source == "headline"
        assert check.source_context is None
