"""Tests for the end-to-end verification pipeline."""

import pytest

from article_fact_checker import VerificationPipeline
from article_fact_checker.models import format_rate

ARTICLE = (
    "'Turnaround Ahead' — Company Is Trending\n\n"
    "The company posted a 73% increase in revenue to $450 million, beating the "
    "$1 billion target cited in \"a pivotal quarter for growth.\""
)

SOURCE = (
    "Quarterly results: revenue grew 73% to $450 million for the quarter, well below "
    "the $1 billion target set last year. The CEO called it \"a pivotal quarter for growth.\""
)


@pytest.fixture
def pipeline():
    return VerificationPipeline()


class TestEndToEnd:
    """Full article verification scenarios."""

    def test_numbers_match_and_quotes_are_classified(self, pipeline):
        """Numbers match and quotes are classified by origin."""
        report = pipeline.verify(ARTICLE, SOURCE)

        numbers = {check.number: check.status for check in report.numbers.checks}
        assert numbers == {"$450 million": "match", "$1 billion": "match", "73%": "match"}

        quotes = {check.quote: (check.status, check.source) for check in report.quotes.checks}
        assert quotes["'Turnaround Ahead'"] == ("not_found", "headline")
        assert quotes['"a pivotal quarter for growth."'] == ("exact", "body")

        assert report.numbers.summary.match_rate == "100.0"
        assert report.quotes.summary.exact == 1
        assert report.quotes.summary.not_found == 1
        assert report.quotes.summary.exact_rate == "50.0"

    def test_price_action_figures_are_not_claims(self, pipeline):
        """Figures in the Price Action paragraph are not checked."""
        article = ARTICLE + "\n\n<strong>Price Action:</strong> XYZ shares were up 2% at $50 on Monday."
        report = pipeline.verify(article, SOURCE)

        values = [check.number for check in report.numbers.checks]
        assert "2%" not in values
        assert "$50" not in values

    def test_range_produces_two_checks(self, pipeline):
        """A currency range is checked as two figures."""
        article = "Outlook Raised\nThe company guided to $1-1.5 billion in free cash flow."
        source = "Free cash flow guidance: $1 billion to 1.5 billion for the year."
        report = pipeline.verify(article, source)

        assert [check.number for check in report.numbers.checks] == ["$1 billion", "1.5 billion"]
        assert report.numbers.summary.total == 2

    def test_repeated_figure_is_checked_once(self, pipeline):
        """A figure repeated nearby is checked once."""
        article = "Big Quarter\nRevenue hit $37 billion, and the $37 billion mark beat estimates."
        report = pipeline.verify(article, "Revenue of $37 billion beat estimates.")

        assert [check.number for check in report.numbers.checks] == ["$37 billion"]

    def test_empty_claim_sets_have_zero_rates(self, pipeline):
        """With no claims, rates are reported as "0"."""
        report = pipeline.verify("Plain Headline\nNothing measurable here.", "Some source text.")

        assert report.numbers.summary.total == 0
        assert report.numbers.summary.match_rate == "0"
        assert report.quotes.summary.exact_rate == "0"

    def test_html_source_contexts_are_tag_stripped(self, pipeline):
        """Source contexts come from the source with its markup removed."""
        source = "<p>Quarterly results: revenue grew <b>73%</b> to $450 million.</p>"
        report = pipeline.verify(ARTICLE, source)

        contexts = {check.number: check.source_context for check in report.numbers.checks}
        assert "73%" in contexts["73%"]
        assert "<" not in contexts["73%"]

    @pytest.mark.parametrize("article,source", [("", SOURCE), (ARTICLE, "   "), (None, SOURCE)])
    def test_missing_input_raises(self, pipeline, article, source):
        """Missing or blank input raises ValueError."""
        with pytest.raises(ValueError, match="required"):
            pipeline.verify(article, source)


class TestResponseShape:
    """Tests for the camelCase wire format."""

    def test_response_uses_camel_case_and_omits_none(self, pipeline):
        """The response uses camelCase keys and omits empty fields."""
        response = pipeline.verify(ARTICLE, SOURCE).to_response()

        assert set(response) == {"numbers", "quotes"}
        assert set(response["numbers"]["summary"]) == {"total", "matches", "missing", "matchRate"}
        assert set(response["quotes"]["summary"]) == {"total", "exact", "paraphrased", "notFound", "exactRate"}

        headline = next(c for c in response["quotes"]["checks"] if c["source"] == "headline")
        assert "sourceContext" not in headline
        assert "similarityScore" not in headline
        assert "articleContext" in headline

    def test_line_by_line_section(self, pipeline):
        """A line-by-line request adds the lineByLine section."""
        response = pipeline.verify(ARTICLE, SOURCE, line_by_line=True).to_response()

        section = response["lineByLine"]
        assert section["aiAvailable"] is False
        assert section["summary"]["total"] == len(section["checks"])
        assert {"index", "line", "status", "method", "overlapScore"} <= set(section["checks"][0])

    def test_line_by_line_can_be_disabled(self):
        """A disabled comparator ignores line-by-line requests."""
        pipeline = VerificationPipeline(enable_line_by_line=False)
        report = pipeline.verify(ARTICLE, SOURCE, line_by_line=True)
        assert report.line_by_line is None


class TestFormatRate:
    """Tests for summary rate strings."""

    def test_one_decimal_place(self):
        """Rates are formatted with one decimal place."""
        assert format_rate(1, 3) == "33.3"
        assert format_rate(2, 2) == "100.0"

    def test_zero_total(self):
        """A zero total gives the rate "0"."""
        assert format_rate(0, 0) == "0"
