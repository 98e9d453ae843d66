"""Tests for canonical number and quote forms."""

import pytest

from article_fact_checker.core.normalize import (
    collapse_whitespace_with_offsets,
    fold_case,
    normalize_number,
    normalize_quote,
    quote_dedup_key,
    strip_extraction_artifact,
)


class TestNormalizeNumber:
    """Tests for numeric canonicalization."""

    def test_drops_trailing_letter_artifact(self):
        """A trailing ", <letter>" artifact is removed."""
        assert strip_extraction_artifact("$1,450, t") == "$1,450"
        assert normalize_number("$1,450, t") == "$1450"

    def test_collapses_whitespace_and_lowercases(self):
        """Whitespace collapses and letters are lowercased."""
        assert normalize_number("73  Billion") == "73 billion"

    @pytest.mark.parametrize("raw", ["$1,450, t", "73  Billion", "12.5%", "FY 25", "$3.2B"])
    def test_idempotent(self, raw):
        """Normalizing twice gives the same number form."""
        once = normalize_number(raw)
        assert normalize_number(once) == once


class TestNormalizeQuote:
    """Tests for quotation canonicalization."""

    def test_removes_editorial_brackets(self):
        """Bracketed editorial insertions are dropped."""
        assert normalize_quote('"It was [the] best  quarter"') == "it was best quarter"

    def test_strips_curly_and_straight_edge_quotes(self):
        """Edge quote marks of either style are stripped."""
        assert normalize_quote("‘Turnaround Ahead’") == "turnaround ahead"
        assert normalize_quote("'Turnaround Ahead'") == "turnaround ahead"

    def test_keeps_inner_punctuation(self):
        """Punctuation inside the quote is kept."""
        assert normalize_quote('"a pivotal quarter for growth."') == "a pivotal quarter for growth."

    @pytest.mark.parametrize("raw", ['"It was [the] best"', "'Big Bet'", '" spaced   out "'])
    def test_idempotent(self, raw):
        """Normalizing twice gives the same quote form."""
        once = normalize_quote(raw)
        assert normalize_quote(once) == once

    def test_dedup_key_ignores_edge_punctuation(self):
        """Dedup keys ignore case and edge punctuation."""
        assert quote_dedup_key('"Growth is back."') == quote_dedup_key("'Growth Is Back'")


class TestOffsets:
    """Tests for offset-preserving helpers."""

    def test_collapse_maps_back_to_original(self):
        """Collapsed characters map back to their original offsets."""
        text = "  a  b\n\tc "
        collapsed, offsets = collapse_whitespace_with_offsets(text)

        assert collapsed == "a b c"
        assert len(offsets) == len(collapsed)
        assert [text[i] for i in offsets if not text[i].isspace()] == ["a", "b", "c"]

    def test_fold_case_preserves_length(self):
        """Case folding never changes the text length."""
        text = "İstanbul Office ABC"
        folded = fold_case(text)

        assert len(folded) == len(text)
        assert folded.endswith("office abc")
