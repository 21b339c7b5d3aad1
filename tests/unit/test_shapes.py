"""Unit tests for the shapes module."""

import pytest

from flowsmith.shapes import (
    ArrowKind,
    arrow_glyph,
    classify_arrow,
    delimiters_for_shape,
    is_known_shape,
    match_arrow,
    resolve_shape_alias,
    shape_alias,
    shape_for_delimiters,
)


class TestShapeTables:
    """Tests for shape delimiter lookups."""

    def test_delimiters_to_shape(self):
        """Test that delimiter pairs map to their shape."""
        assert shape_for_delimiters("((", "))") == "circle"
        assert shape_for_delimiters("{", "}") == "diamond"
        assert shape_for_delimiters("[/", "\\]") == "trapezoid"

    def test_unknown_delimiters(self):
        """Test that an unknown pair gives None."""
        assert shape_for_delimiters("<", ">") is None

    def test_shape_to_delimiters(self):
        """Test the canonical spelling of classic shapes."""
        assert delimiters_for_shape("stadium") == ("([", "])")
        assert delimiters_for_shape("cylinder") == ("[(", ")]")

    def test_extended_shape_has_no_delimiters(self):
        """Test that annotation-only shapes have no bracket spelling."""
        assert delimiters_for_shape("document") is None

    def test_resolve_alias(self):
        """Test resolving annotation aliases, case-insensitively."""
        assert resolve_shape_alias("doc") == "document"
        assert resolve_shape_alias("DB") == "cylinder"
        assert resolve_shape_alias("decision") == "diamond"

    def test_unknown_alias_defaults_to_rect(self):
        """Test that an unknown alias falls back to rect."""
        assert resolve_shape_alias("not-a-shape") == "rect"

    def test_shape_alias_is_first_listed(self):
        """Test the alias written back for an internal shape."""
        assert shape_alias("cylinder") == "cyl"
        assert shape_alias("document") == "doc"

    def test_known_shapes(self):
        """Test classic and extended shapes are known."""
        assert is_known_shape("stadium")
        assert is_known_shape("document")
        assert not is_known_shape("doc")


class TestArrowKind:
    """Tests for ArrowKind properties."""

    def test_stroke(self):
        """Test line style per kind."""
        assert ArrowKind.ARROW.stroke == "solid"
        assert ArrowKind.DOTTED_ARROW.stroke == "dotted"
        assert ArrowKind.THICK.stroke == "thick"
        assert ArrowKind.INVISIBLE.stroke == "invisible"

    def test_heads(self):
        """Test head markers at both ends."""
        assert ArrowKind.ARROW.head_end == "arrow"
        assert ArrowKind.ARROW.head_start is None
        assert ArrowKind.CIRCLE.head_end == "circle"
        assert ArrowKind.BIDIRECTIONAL.head_start == "arrow"
        assert ArrowKind.CROSS_BOTH.head_start == "cross"
        assert ArrowKind.OPEN.head_end is None

    def test_from_glyph(self):
        """Test classifying a glyph string."""
        assert ArrowKind.from_glyph("-.->") is ArrowKind.DOTTED_ARROW
        assert ArrowKind.from_glyph("==>") is ArrowKind.THICK_ARROW
        assert ArrowKind.from_glyph("---->") is ArrowKind.ARROW

    def test_from_glyph_rejects_non_arrows(self):
        """Test that text which is not a full glyph gives None."""
        assert ArrowKind.from_glyph("abc") is None
        assert ArrowKind.from_glyph("-->x y") is None


class TestArrowGlyphs:
    """Tests for matching, classifying and spelling arrows."""

    def test_match_arrow_returns_end(self):
        """Test that match_arrow returns the end of the glyph run."""
        assert match_arrow("A --> B", 2) == 5

    def test_match_arrow_no_arrow(self):
        """Test that a non-arrow position gives -1."""
        assert match_arrow("A --> B", 0) == -1
        assert match_arrow("--", 0) == -1

    @pytest.mark.parametrize(
        "raw,kind,minlen",
        [
            ("-->", ArrowKind.ARROW, 1),
            ("---->", ArrowKind.ARROW, 3),
            ("---", ArrowKind.OPEN, 1),
            ("----", ArrowKind.OPEN, 2),
            ("-.->", ArrowKind.DOTTED_ARROW, 1),
            ("-..->", ArrowKind.DOTTED_ARROW, 2),
            ("-.-", ArrowKind.DOTTED, 1),
            ("==>", ArrowKind.THICK_ARROW, 1),
            ("===", ArrowKind.THICK, 1),
            ("--o", ArrowKind.CIRCLE, 1),
            ("--x", ArrowKind.CROSS, 1),
            ("<-->", ArrowKind.BIDIRECTIONAL, 1),
            ("<-.->", ArrowKind.BIDIRECTIONAL_DOTTED, 1),
            ("<==>", ArrowKind.BIDIRECTIONAL_THICK, 1),
            ("o--o", ArrowKind.CIRCLE_BOTH, 1),
            ("x--x", ArrowKind.CROSS_BOTH, 1),
            ("~~~", ArrowKind.INVISIBLE, 1),
        ],
    )
    def test_classify(self, raw, kind, minlen):
        """Test classification of every arrow family."""
        assert classify_arrow(raw) == (kind, minlen)

    def test_glyph_spelling(self):
        """Test spelling stretched arrows."""
        assert arrow_glyph(ArrowKind.ARROW) == "-->"
        assert arrow_glyph(ArrowKind.ARROW, 3) == "---->"
        assert arrow_glyph(ArrowKind.DOTTED_ARROW, 2) == "-..->"
        assert arrow_glyph(ArrowKind.THICK, 1) == "==="
        assert arrow_glyph(ArrowKind.INVISIBLE, 4) == "~~~"

    def test_minlen_never_below_one(self):
        """Test that a zero minlen is treated as one."""
        assert arrow_glyph(ArrowKind.OPEN, 0) == "---"
