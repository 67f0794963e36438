# SPDX-License-Identifier: MIT
"""Tests for the output stage."""

import json

from site_importer.output import assign_slugs, calculate_import_stats, export_sites_json, generate_slug
from site_importer.types import SourceTag, VerificationStatus


class TestSlugs:
    """Test slug generation and collision handling."""

    def test_generate_slug(self):
        assert generate_slug("Ring of Brodgar") == "ring-of-brodgar"
        assert len(generate_slug("x" * 300)) == 100
        assert generate_slug("Carnac stones", max_length=6) == "carnac"

    def test_collisions_get_numeric_suffixes(self, make_record):
        records = [
            make_record("Standing Stone", lat=50.0, id="osm-node-1"),
            make_record("Standing Stone", lat=51.0, id="osm-node-2"),
            make_record("standing-stone", lat=52.0, id="osm-node-3"),
        ]

        slugs = [r.slug for r in assign_slugs(records)]

        assert slugs == ["standing-stone", "standing-stone-1", "standing-stone-2"]

    def test_suffix_skips_taken_slugs(self, make_record):
        records = [
            make_record("Dolmen 1", id="osm-node-1"),
            make_record("Dolmen", id="osm-node-2"),
            make_record("Dolmen", id="osm-node-3"),
        ]

        slugs = [r.slug for r in assign_slugs(records)]

        assert slugs == ["dolmen-1", "dolmen", "dolmen-2"]
        assert len(set(slugs)) == len(slugs)

    def test_empty_name_slug_falls_back_to_id(self, make_record):
        [record] = assign_slugs([make_record("金字塔", id="wikidata-Q12345")])
        assert record.slug == "wikidata-q12345"

    def test_input_is_not_modified(self, make_record):
        record = make_record("Avebury")
        assign_slugs([record])
        assert record.slug == ""


class TestImportStats:
    """Test statistics aggregation."""

    def test_counts(self, make_record):
        records = [
            make_record("Avebury", country="United Kingdom", site_type="henge",
                        sources=frozenset({SourceTag.WIKIDATA, SourceTag.OSM}),
                        verification_status=VerificationStatus.UNDER_REVIEW),
            make_record("Carnac", country="France", site_type="stone row"),
            make_record("Unknown Menhir", site_type="standing stone"),
        ]

        stats = calculate_import_stats(records)

        assert stats.total == 3
        assert stats.by_source == {"wikidata": 1, "osm": 3}
        assert stats.by_type == {"henge": 1, "stone row": 1, "standing stone": 1}
        assert stats.by_country == {"United Kingdom": 1, "France": 1, "Unknown": 1}
        assert stats.by_verification == {"under_review": 1, "unverified": 2}

    def test_empty(self):
        stats = calculate_import_stats([])
        assert stats.to_dict() == {
            "total": 0,
            "by_source": {},
            "by_type": {},
            "by_country": {},
            "by_verification": {},
        }


class TestExport:
    """Test the JSON snapshot."""

    def test_export_sites_json(self, make_record, fixed_time, tmp_path):
        records = assign_slugs([make_record("Avebury", source=SourceTag.WIKIDATA)])
        stats = calculate_import_stats(records)
        dest = tmp_path / "out" / "sites.json"

        path = export_sites_json(records, stats, dest, generated_at=fixed_time)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["metadata"]["generated_at"] == fixed_time.isoformat()
        assert data["metadata"]["total_sites"] == 1
        assert data["metadata"]["sources"] == ["wikidata"]
        assert data["stats"]["total"] == 1

        [site] = data["sites"]
        assert site["slug"] == "avebury"
        assert site["coordinates"] == {"lat": records[0].lat, "lng": records[0].lng}
        assert site["sources"] == ["wikidata"]
        assert site["verification_status"] == "unverified"
        assert "lat" not in site
        assert not dest.with_suffix(".json.tmp").exists()
