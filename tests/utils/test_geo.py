# SPDX-License-Identifier: MIT
"""Tests for geographic utilities."""

import math

import pytest

from site_importer.utils.geo import haversine_meters, is_valid_coordinates, parse_wkt_point, to_coordinate


class TestCoordinateValidation:
    """Test coordinate bounds checks."""

    @pytest.mark.parametrize("lat,lon", [(0, 0), (90, 180), (-90, -180), (51.17, -1.83)])
    def test_valid_coordinates(self, lat, lon):
        assert is_valid_coordinates(lat, lon)

    @pytest.mark.parametrize("lat,lon", [(90.1, 0), (-91, 0), (0, 180.5), (0, -181)])
    def test_out_of_range(self, lat, lon):
        assert not is_valid_coordinates(lat, lon)

    def test_to_coordinate_parses_strings(self):
        assert to_coordinate("51.1789") == pytest.approx(51.1789)

    @pytest.mark.parametrize("value", [None, True, "abc", "nan", "inf", float("nan")])
    def test_to_coordinate_rejects_garbage(self, value):
        assert to_coordinate(value) is None


class TestHaversine:
    """Test great-circle distance."""

    def test_same_point_is_zero(self):
        assert haversine_meters(51.0, -1.0, 51.0, -1.0) == 0

    def test_one_degree_of_latitude(self):
        expected = 6371000 * math.radians(1)
        assert haversine_meters(0, 0, 1, 0) == pytest.approx(expected)

    def test_symmetric(self):
        a = haversine_meters(51.4289, -1.8262, 51.4295, -1.8250)
        b = haversine_meters(51.4295, -1.8250, 51.4289, -1.8262)
        assert a == pytest.approx(b)


class TestWKT:
    """Test WKT point parsing."""

    def test_wikidata_literal(self):
        assert parse_wkt_point("Point(-1.826189 51.178844)") == (-1.826189, 51.178844)

    @pytest.mark.parametrize("value", [None, "", "LINESTRING(0 0, 1 1)", "Point(abc def)"])
    def test_unparseable(self, value):
        assert parse_wkt_point(value) == (None, None)
