"""
Duplicate clustering over the unified record set.

Two strategies are available:

- "anchor" (default): greedy. Records are visited in quality order; each
  unassigned record becomes an anchor and claims every later unassigned
  record similar to IT. Similarity is never checked between attached members,
  so with A~B, B~C and A≁C the chain is not followed through B.
- "union_find": connected components of the pairwise-similar graph.

Both compare every pair, O(n²). That is fine for a few thousand candidates;
a grid-bucket prefilter on coordinates is the place to optimize beyond that.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from site_importer.config import CLUSTERING_MODES, SOURCE_PRIORITY, settings
from site_importer.deduplication.similarity import are_similar
from site_importer.types import UnifiedSiteRecord

Similarity = Callable[[UnifiedSiteRecord, UnifiedSiteRecord], bool]


@dataclass
class DuplicateCluster:
    """An anchor record plus the records judged to be the same site."""
    anchor: UnifiedSiteRecord
    members: list[UnifiedSiteRecord] = field(default_factory=list)

    @property
    def records(self) -> list[UnifiedSiteRecord]:
        return [self.anchor, *self.members]

    def __len__(self) -> int:
        return 1 + len(self.members)


class UnionFind:
    """Disjoint-set data structure with path compression."""

    def __init__(self, size: int) -> None:
        self.parent = list(range(size))
        self.rank = [0] * size

    def find(self, x: int) -> int:
        """Return canonical parent."""
        if self.parent[x] != x:
            self.parent[x] = self.find(self.parent[x])
        return self.parent[x]

    def union(self, x: int, y: int) -> bool:
        """Union sets containing x and y. Return True if merged."""
        root_x = self.find(x)
        root_y = self.find(y)
        if root_x == root_y:
            return False

        if self.rank[root_x] < self.rank[root_y]:
            root_x, root_y = root_y, root_x
        self.parent[root_y] = root_x
        if self.rank[root_x] == self.rank[root_y]:
            self.rank[root_x] += 1
        return True


def quality_key(record: UnifiedSiteRecord) -> tuple[int, int]:
    """Sort key: best source priority first, then strongest verification."""
    priority = min(SOURCE_PRIORITY.get(source.value, len(SOURCE_PRIORITY) + 1) for source in record.sources)
    return priority, -record.verification_status.rank


def sort_by_quality(records: Sequence[UnifiedSiteRecord]) -> list[UnifiedSiteRecord]:
    """Stable sort; ties keep arrival order."""
    return sorted(records, key=quality_key)


def cluster_records(
    records: Sequence[UnifiedSiteRecord],
    mode: str | None = None,
    similar: Similarity = are_similar,
) -> list[DuplicateCluster]:
    """
    Partition records into duplicate clusters.

    Args:
        records: All unified records of a run, in arrival order
        mode: "anchor" or "union_find" (default from settings)
        similar: Pairwise similarity test

    Returns:
        Clusters in anchor quality order; every record is in exactly one
    """
    mode = mode or settings.importer.clustering_mode
    if mode not in CLUSTERING_MODES:
        raise ValueError(f"Unknown clustering mode: {mode}")

    ordered = sort_by_quality(records)
    if mode == "union_find":
        clusters = _cluster_connected(ordered, similar)
    else:
        clusters = _cluster_anchored(ordered, similar)

    duplicates = sum(len(cluster.members) for cluster in clusters)
    logger.info(f"Clustered {len(ordered):,} records into {len(clusters):,} sites ({duplicates:,} duplicates, mode={mode})")
    return clusters


def _cluster_anchored(ordered: list[UnifiedSiteRecord], similar: Similarity) -> list[DuplicateCluster]:
    clusters = []
    processed: set[int] = set()

    for i, anchor in enumerate(ordered):
        if i in processed:
            continue
        processed.add(i)

        cluster = DuplicateCluster(anchor=anchor)
        for j in range(i + 1, len(ordered)):
            if j in processed:
                continue
            if similar(anchor, ordered[j]):
                cluster.members.append(ordered[j])
                processed.add(j)

        clusters.append(cluster)

    return clusters


def _cluster_connected(ordered: list[UnifiedSiteRecord], similar: Similarity) -> list[DuplicateCluster]:
    uf = UnionFind(len(ordered))
    for i in range(len(ordered)):
        for j in range(i + 1, len(ordered)):
            if similar(ordered[i], ordered[j]):
                uf.union(i, j)

    # Components keyed by root, in order of their best (first) member
    groups: dict[int, list[int]] = {}
    for i in range(len(ordered)):
        groups.setdefault(uf.find(i), []).append(i)

    return [
        DuplicateCluster(anchor=ordered[indices[0]], members=[ordered[i] for i in indices[1:]])
        for indices in groups.values()
    ]
