"""
Deduplication pipeline components.

These modules handle identifying duplicate records from different sources
and merging them into unified site records.
"""

from site_importer.deduplication.clustering import DuplicateCluster, cluster_records, quality_key
from site_importer.deduplication.merge import merge_cluster, merge_records
from site_importer.deduplication.similarity import are_similar, names_similar

__all__ = [
    "DuplicateCluster",
    "cluster_records",
    "quality_key",
    "merge_cluster",
    "merge_records",
    "are_similar",
    "names_similar",
]
