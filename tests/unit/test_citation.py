"""
Unit Tests for Citation Parsing

Tests best-effort extraction of textbook references.
"""

import pytest

from concept_mapper.core import parse_reference, Citation


class TestParseReference:
    """Test cases for parse_reference."""

    def test_full_reference(self):
        citation = parse_reference("NCERT Class 11 Physics, Chapter 6, Section 6.2, Page 10")

        assert citation.grade == "11"
        assert citation.subject == "Physics"
        assert citation.chapter == "6"
        assert citation.section == "6.2"
        assert citation.page == "10"
        assert citation.original_reference == "NCERT Class 11 Physics, Chapter 6, Section 6.2, Page 10"

    def test_format(self):
        citation = parse_reference("NCERT Class 10 Science, Chapter 3, Page 50, Paragraph 2")

        assert citation.format() == "NCERT, Grade 10 Science, Chapter 3, Section N/A, p. 50"

    def test_missing_parts_fall_back(self):
        citation = parse_reference("NCERT Class 9 Science, Chapter 9")

        assert citation.chapter == "9"
        assert citation.section == "N/A"
        assert citation.page == "N/A"

    def test_trailing_period_on_section(self):
        assert parse_reference("Class 8 Science, Chapter 11, Section 11.3.").section == "11.3"

    @pytest.mark.parametrize("reference", ["", "Chapter: Laws of Motion", "see the textbook"])
    def test_unstructured_reference(self, reference):
        citation = parse_reference(reference)

        assert citation.grade == "N/A"
        assert citation.chapter == "N/A"
        assert citation.page == "N/A"
        assert citation.original_reference == reference

    @pytest.mark.parametrize("reference", [None, 12, ["Class 9"]])
    def test_non_text_never_raises(self, reference):
        citation = parse_reference(reference)

        assert citation.to_dict() == {
            **Citation().to_dict(),
            "original_reference": "" if reference is None else str(reference),
        }
