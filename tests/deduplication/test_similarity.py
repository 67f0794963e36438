# SPDX-License-Identifier: MIT
"""Tests for pairwise site similarity."""

import pytest

from site_importer.deduplication.similarity import are_similar, names_similar

# Degrees of latitude per meter (mean earth radius)
DEG_PER_METER = 1 / 111194.9


class TestNamesSimilar:
    """Test the name gate."""

    @pytest.mark.parametrize("a,b", [
        ("Stonehenge", "stonehenge"),
        ("Avebury", "Avebury Henge"),
        ("Ring of Brodgar", "Brodgar Stone Circle"),
    ])
    def test_similar(self, a, b):
        assert names_similar(a, b)

    @pytest.mark.parametrize("a,b", [
        ("Stonehenge", "Carnac Alignment"),
        ("Men an Tol", "Tol Pedn"),
        ("", "Stonehenge"),
    ])
    def test_not_similar(self, a, b):
        assert not names_similar(a, b)

    def test_short_tokens_do_not_count(self):
        assert not names_similar("Cist at Moor", "Moor End Cist", min_token_length=4)
        assert names_similar("Cist at Moor", "Moor End Cist", min_token_length=3)


class TestAreSimilar:
    """Test the combined distance and name gates."""

    def test_within_threshold(self, make_record):
        a = make_record("Stonehenge", lat=51.1788, lng=-1.8262)
        b = make_record("Stonehenge", lat=51.1788 + 50 * DEG_PER_METER, lng=-1.8262)
        assert are_similar(a, b)

    def test_beyond_threshold(self, make_record):
        a = make_record("Stonehenge", lat=51.1788, lng=-1.8262)
        b = make_record("Stonehenge", lat=51.1788 + 150 * DEG_PER_METER, lng=-1.8262)
        assert not are_similar(a, b)

    def test_name_gate_rejects_neighbours(self, make_record):
        a = make_record("Stonehenge", lat=51.1788, lng=-1.8262)
        b = make_record("Carnac Alignment", lat=51.1788 + 10 * DEG_PER_METER, lng=-1.8262)
        assert not are_similar(a, b)

    def test_custom_threshold(self, make_record):
        a = make_record("Stonehenge", lat=51.1788, lng=-1.8262)
        b = make_record("Stonehenge", lat=51.1788 + 150 * DEG_PER_METER, lng=-1.8262)
        assert are_similar(a, b, max_distance_meters=200)
