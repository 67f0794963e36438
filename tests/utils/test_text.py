# SPDX-License-Identifier: MIT
"""Tests for text utilities."""

from site_importer.utils.text import clean_description, clean_optional, fold_diacritics, slugify


class TestSlugify:
    """Test slug generation."""

    def test_basic(self):
        assert slugify("Stonehenge") == "stonehenge"

    def test_punctuation_collapses_to_single_hyphen(self):
        assert slugify("  Ring of Brodgar -- (Orkney)! ") == "ring-of-brodgar-orkney"

    def test_diacritics_are_folded(self):
        assert slugify("Göbekli Tepe") == "gobekli-tepe"
        assert fold_diacritics("Çatalhöyük") == "Catalhoyuk"

    def test_length_cap_does_not_leave_trailing_hyphen(self):
        slug = slugify("aaaa bbbb", max_length=5)
        assert slug == "aaaa"

    def test_non_latin_yields_empty(self):
        assert slugify("金字塔") == ""
        assert slugify("") == ""


class TestCleaning:
    """Test description and value cleaning."""

    def test_strips_html_and_whitespace(self):
        assert clean_description("<p>Neolithic\n  henge</p>") == "Neolithic henge"

    def test_truncates_long_descriptions(self):
        text = clean_description("x" * 2000, max_length=100)
        assert len(text) == 100
        assert text.endswith("...")

    def test_empty_description_is_none(self):
        assert clean_description("   ") is None
        assert clean_description(None) is None

    def test_clean_optional(self):
        assert clean_optional("  Avebury ") == "Avebury"
        assert clean_optional("") is None
        assert clean_optional(42) is None
