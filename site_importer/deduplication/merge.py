"""
Merge resolver: collapses a duplicate cluster into one record.
"""

from dataclasses import replace

from site_importer.deduplication.clustering import DuplicateCluster
from site_importer.types import UnifiedSiteRecord

# Single-valued references where the first non-empty value wins
FIRST_NON_EMPTY_FIELDS = (
    "wikipedia_url",
    "image_url",
    "wikidata_id",
    "osm_id",
    "country",
    "country_code",
    "heritage_status",
    "inception",
)


def merge_records(primary: UnifiedSiteRecord, secondary: UnifiedSiteRecord) -> UnifiedSiteRecord:
    """
    Merge two records describing the same site into a new record.

    The primary keeps its identity, coordinates, type, layer and trust tier.
    Neither input is modified.
    """
    updates = {
        field_name: getattr(primary, field_name) or getattr(secondary, field_name)
        for field_name in FIRST_NON_EMPTY_FIELDS
    }

    return replace(
        primary,
        # Longer summary is taken as the more informative one
        summary=secondary.summary if len(secondary.summary) > len(primary.summary) else primary.summary,
        sources=primary.sources | secondary.sources,
        verification_status=max(
            (primary.verification_status, secondary.verification_status),
            key=lambda status: status.rank,
        ),
        **updates,
    )


def merge_cluster(cluster: DuplicateCluster) -> UnifiedSiteRecord:
    """Fold every cluster member into the anchor, in cluster order."""
    merged = cluster.anchor
    for member in cluster.members:
        merged = merge_records(merged, member)
    return merged
