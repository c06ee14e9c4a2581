"""
Unit tests for src/competence_file/normalizer.py

Tests raw content -> canonical HTML conversion for every input shape,
the degradation chain, and idempotence on canonical output.
"""

import pytest

from src.competence_file.normalizer import (
    ContentNormalizer,
    build_html_from_bold_categories,
    build_html_from_bullets,
    build_html_from_paragraphs,
    normalize_section_html,
    split_bullets,
    to_strong_html,
)


class TestHelpers:
    """Tests for the building blocks."""

    def test_to_strong_html(self):
        assert to_strong_html("a **b** c") == "a <strong>b</strong> c"

    def test_to_strong_html_unmatched(self):
        """Unmatched ** should stay literal."""
        assert to_strong_html("a ** b") == "a ** b"

    def test_split_bullets_drops_empty(self):
        assert split_bullets(" • Alpha •  • Beta ") == ["Alpha", "Beta"]

    def test_bold_categories_none_without_marker(self):
        assert build_html_from_bold_categories("no markers") is None

    def test_bullets_none_without_items(self):
        assert build_html_from_bullets("• •") is None

    def test_paragraphs_single_newline_becomes_break(self):
        assert build_html_from_paragraphs("a\nb") == "<p>a<br/>b</p>"


class TestNormalizeSectionHtml:
    """Tests for normalize_section_html()."""

    def test_category_bullets(self):
        """Should build one heading paragraph and list per category."""
        # Arrange
        raw = "**Skills** • Python • SQL **Tools** • Docker"

        # Act
        html = normalize_section_html(raw, "Technical Skills")

        # Assert
        assert html == (
            "<p><strong>Skills</strong></p><ul><li>Python</li><li>SQL</li></ul>"
            "<p><strong>Tools</strong></p><ul><li>Docker</li></ul>"
        )

    def test_category_bullets_across_lines(self):
        """Newlines around bullets should not create extra items."""
        html = normalize_section_html("**Skills**\n• Python • SQL **Tools**\n• Docker", "")

        assert html == (
            "<p><strong>Skills</strong></p><ul><li>Python</li><li>SQL</li></ul>"
            "<p><strong>Tools</strong></p><ul><li>Docker</li></ul>"
        )

    def test_category_without_items(self):
        """A category with no bullets should still get its heading."""
        assert normalize_section_html("**Empty**", "") == "<p><strong>Empty</strong></p>"

    def test_text_before_first_category_is_dropped(self):
        """Only text following a marker belongs to a category."""
        html = normalize_section_html("Intro **Cloud** • AWS", "")

        assert html == "<p><strong>Cloud</strong></p><ul><li>AWS</li></ul>"

    def test_bullets(self):
        """Should build a single list."""
        html = normalize_section_html("Alpha • Beta • Gamma", "Skills")

        assert html == "<ul><li>Alpha</li><li>Beta</li><li>Gamma</li></ul>"

    def test_any_marker_makes_content_category_shaped(self):
        """Any paired marker makes the content category-shaped."""
        html = normalize_section_html("Plain • has **bold**", "")

        assert html == "<p><strong>bold</strong></p>"

    def test_paragraphs(self):
        """Should wrap blank-line separated paragraphs."""
        html = normalize_section_html("Line one.\n\nLine two.", "Summary")

        assert html == "<p>Line one.</p><p>Line two.</p>"

    def test_windows_line_endings(self):
        assert normalize_section_html("One\r\n\r\nTwo", "") == "<p>One</p><p>Two</p>"

    def test_unmatched_markers_are_prose(self):
        assert normalize_section_html("Price ** high", "") == "<p>Price ** high</p>"

    def test_html_is_sanitized_only(self):
        """Existing HTML should pass through the sanitizer untouched otherwise."""
        html = normalize_section_html("<p>Hi<script>alert(1)</script></p>", "")

        assert html == "<p>Hi</p>"

    @pytest.mark.parametrize("raw", [None, "", "   \n  "])
    def test_empty_input(self, raw):
        """Should return empty string for missing or blank content."""
        assert normalize_section_html(raw, "Anything") == ""

    @pytest.mark.parametrize("raw", [
        "**Skills** • Python • SQL **Tools** • Docker",
        "Alpha • Beta • Gamma",
        "Line one.\n\nLine two.",
        "a\nb",
        "<p>Hi<script>x</script></p>",
        "Fish & chips",
    ])
    def test_idempotent(self, raw):
        """Normalizing canonical output again should not change it."""
        once = normalize_section_html(raw, "")

        assert normalize_section_html(once, "") == once

    def test_output_is_sanitized(self):
        """Markup produced from text should pass the sanitizer too."""
        html = normalize_section_html("Fish & chips", "")

        assert html == "<p>Fish &amp; chips</p>"


class TestContentNormalizer:
    """Tests for the injectable wrapper."""

    def test_uses_injected_sanitizer(self):
        """Should apply the given sanitizer to the built HTML."""
        normalizer = ContentNormalizer(sanitize=lambda html: html + "<!-- s -->")

        assert normalizer.normalize("Hello") == "<p>Hello</p><!-- s -->"

    def test_default_sanitizer(self):
        assert ContentNormalizer().normalize("Alpha • Beta") == "<ul><li>Alpha</li><li>Beta</li></ul>"
