# SPDX-License-Identifier: MIT
"""Tests for duplicate clustering."""

import pytest

from site_importer.deduplication.clustering import UnionFind, cluster_records, quality_key
from site_importer.types import SourceTag, VerificationStatus

DEG_PER_METER = 1 / 111194.9


@pytest.fixture
def chain(make_record):
    """A~B and B~C by name, A and C share nothing; all within 100 m."""
    return [
        make_record("Carnac Kermario", lat=47.6, lng=-3.07),
        make_record("Kermario Menec", lat=47.6 + 30 * DEG_PER_METER, lng=-3.07),
        make_record("Menec Alignment", lat=47.6 + 60 * DEG_PER_METER, lng=-3.07),
    ]


class TestQualityOrder:
    """Test anchor selection order."""

    def test_wikidata_before_osm(self, make_record):
        osm = make_record("Avebury", source=SourceTag.OSM)
        wikidata = make_record("Avebury", source=SourceTag.WIKIDATA)
        assert quality_key(wikidata) < quality_key(osm)

    def test_verification_breaks_source_ties(self, make_record):
        verified = make_record("A", verification_status=VerificationStatus.VERIFIED)
        unverified = make_record("B")
        assert quality_key(verified) < quality_key(unverified)

    def test_best_anchor_regardless_of_arrival(self, make_record):
        osm = make_record("Avebury", source=SourceTag.OSM)
        wikidata = make_record("Avebury Henge", source=SourceTag.WIKIDATA, lat=osm.lat + 20 * DEG_PER_METER)

        [cluster] = cluster_records([osm, wikidata])

        assert cluster.anchor is wikidata
        assert cluster.members == [osm]


class TestAnchorClustering:
    """Test the greedy anchor strategy."""

    def test_every_record_in_exactly_one_cluster(self, make_record):
        records = [
            make_record("Stonehenge", lat=51.1788, lng=-1.8262),
            make_record("Stonehenge", lat=51.1789, lng=-1.8262, source=SourceTag.WIKIDATA),
            make_record("Avebury", lat=51.4286, lng=-1.8543),
            make_record("Silbury Hill", lat=51.4156, lng=-1.8575),
        ]
        clusters = cluster_records(records, mode="anchor")

        clustered = [record for cluster in clusters for record in cluster.records]
        assert sorted(r.id for r in clustered) == sorted(r.id for r in records)
        assert [len(c) for c in clusters] == [2, 1, 1]

    def test_chain_is_not_followed(self, chain):
        clusters = cluster_records(chain, mode="anchor")

        assert [[r.name for r in c.records] for c in clusters] == [
            ["Carnac Kermario", "Kermario Menec"],
            ["Menec Alignment"],
        ]

    def test_repeated_runs_are_independent(self, chain):
        first = cluster_records(chain)
        second = cluster_records(chain)
        assert [len(c) for c in first] == [len(c) for c in second]

    def test_empty_input(self):
        assert cluster_records([]) == []

    def test_unknown_mode(self, chain):
        with pytest.raises(ValueError):
            cluster_records(chain, mode="kmeans")


class TestUnionFindClustering:
    """Test the connected-components strategy."""

    def test_chain_is_followed(self, chain):
        [cluster] = cluster_records(chain, mode="union_find")

        assert cluster.anchor.name == "Carnac Kermario"
        assert [r.name for r in cluster.members] == ["Kermario Menec", "Menec Alignment"]

    def test_union_find_structure(self):
        uf = UnionFind(4)
        assert uf.union(0, 1)
        assert uf.union(2, 3)
        assert not uf.union(1, 0)
        assert uf.find(0) == uf.find(1)
        assert uf.find(1) != uf.find(2)


class TestClusterProperties:
    """Test distance and name gates at the cluster level."""

    def test_same_name_50_meters_apart_share_a_cluster(self, make_record):
        a = make_record("Stonehenge", lat=51.1788, lng=-1.8262, source=SourceTag.WIKIDATA)
        b = make_record("Stonehenge", lat=51.1788 + 50 * DEG_PER_METER, lng=-1.8262)

        for mode in ("anchor", "union_find"):
            [cluster] = cluster_records([a, b], mode=mode)
            assert cluster.records == [a, b]

    def test_same_name_150_meters_apart_stay_separate(self, make_record):
        a = make_record("Stonehenge", lat=51.1788, lng=-1.8262, source=SourceTag.WIKIDATA)
        b = make_record("Stonehenge", lat=51.1788 + 150 * DEG_PER_METER, lng=-1.8262)

        for mode in ("anchor", "union_find"):
            clusters = cluster_records([a, b], mode=mode)
            assert [c.records for c in clusters] == [[a], [b]]

    def test_different_names_10_meters_apart_stay_separate(self, make_record):
        a = make_record("Stonehenge", lat=51.1788, lng=-1.8262, source=SourceTag.WIKIDATA)
        b = make_record("Carnac Alignment", lat=51.1788 + 10 * DEG_PER_METER, lng=-1.8262)

        for mode in ("anchor", "union_find"):
            clusters = cluster_records([a, b], mode=mode)
            assert [c.records for c in clusters] == [[a], [b]]
