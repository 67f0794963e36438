# SPDX-License-Identifier: MIT
"""Tests for source record normalization."""

import pytest

from site_importer.ingesters.base import SourceRecord
from site_importer.normalizers import normalize, normalize_all
from site_importer.types import Layer, SourceTag, TrustTier, VerificationStatus


def source_record(**overrides) -> SourceRecord:
    fields = {"source_id": "Q39671", "name": "Stonehenge", "lat": 51.1788, "lon": -1.8262}
    fields.update(overrides)
    return SourceRecord(**fields)


class TestNormalize:
    """Test mapping into the unified schema."""

    def test_basic_mapping(self, fixed_time):
        record = normalize(
            source_record(site_type="stone circle", country="United Kingdom", country_code="GB", wikidata_id="Q39671"),
            SourceTag.WIKIDATA,
            imported_at=fixed_time,
        )

        assert record.id == "wikidata-Q39671"
        assert record.slug == ""
        assert record.category == "site"
        assert record.site_type == "stone circle"
        assert record.coordinates == {"lat": 51.1788, "lng": -1.8262}
        assert record.sources == frozenset({SourceTag.WIKIDATA})
        assert record.country_code == "GB"
        assert record.imported_at == fixed_time

    def test_summary_prefers_cleaned_description(self):
        record = normalize(source_record(description="<b>Prehistoric</b> monument"), SourceTag.WIKIDATA)
        assert record.summary == "Prehistoric monument"

    def test_summary_is_synthesized(self):
        record = normalize(source_record(site_type="dolmen", country="France"), SourceTag.OSM)
        assert record.summary == "Dolmen in France."

        record = normalize(source_record(), SourceTag.OSM)
        assert record.summary == "Archaeological site in unknown location."

    def test_missing_name_is_synthesized(self):
        record = normalize(source_record(name=None, site_type="menhir", source_id="node-5"), SourceTag.OSM)
        assert record.name == "Standing stone (node-5)"

    def test_invalid_coordinates_raise(self):
        with pytest.raises(ValueError):
            normalize(source_record(lat=120.0), SourceTag.OSM)
        with pytest.raises(ValueError):
            normalize(source_record(lon=None), SourceTag.OSM)


class TestHeuristics:
    """Test layer, verification and trust assignment."""

    def test_unesco_is_verified_and_official(self):
        record = normalize(source_record(heritage_status="UNESCO World Heritage Site"), SourceTag.WIKIDATA)
        assert record.verification_status == VerificationStatus.VERIFIED
        assert record.layer == Layer.OFFICIAL
        assert record.trust_tier == TrustTier.PROMOTED

    def test_wikipedia_is_under_review(self):
        record = normalize(source_record(wikipedia_url="https://en.wikipedia.org/wiki/X"), SourceTag.WIKIDATA)
        assert record.verification_status == VerificationStatus.UNDER_REVIEW
        assert record.layer == Layer.COMMUNITY
        assert record.trust_tier == TrustTier.SILVER

    def test_osm_protection_is_under_review(self):
        record = normalize(source_record(heritage_status="National heritage"), SourceTag.OSM)
        assert record.verification_status == VerificationStatus.UNDER_REVIEW
        assert record.layer == Layer.OFFICIAL
        assert record.trust_tier == TrustTier.SILVER

    def test_wikidata_protection_alone_is_not_reviewed(self):
        record = normalize(source_record(heritage_status="scheduled monument"), SourceTag.WIKIDATA)
        assert record.verification_status == VerificationStatus.UNVERIFIED
        assert record.trust_tier == TrustTier.PROMOTED

    def test_bare_osm_record(self):
        record = normalize(source_record(), SourceTag.OSM)
        assert record.verification_status == VerificationStatus.UNVERIFIED
        assert record.layer == Layer.COMMUNITY
        assert record.trust_tier == TrustTier.BRONZE


class TestNormalizeAll:
    """Test batch normalization."""

    def test_drops_out_of_range_records(self, fixed_time):
        records = [
            source_record(source_id="Q1"),
            source_record(source_id="Q2", lat=-95.0),
            source_record(source_id="Q3", lon=181.0),
        ]
        normalized = normalize_all(records, SourceTag.WIKIDATA, imported_at=fixed_time)

        assert [r.id for r in normalized] == ["wikidata-Q1"]
        assert normalized[0].imported_at == fixed_time

    def test_shares_one_timestamp(self):
        normalized = normalize_all([source_record(source_id="Q1"), source_record(source_id="Q2")], SourceTag.WIKIDATA)
        assert normalized[0].imported_at == normalized[1].imported_at
