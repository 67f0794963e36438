"""
Output stage: slug assignment, import statistics and JSON snapshots.
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger

from site_importer.config import DATA_SOURCES, settings
from site_importer.ingesters.base import atomic_write_json
from site_importer.types import UnifiedSiteRecord, utc_now
from site_importer.utils.text import slugify


def generate_slug(name: str, max_length: int | None = None) -> str:
    """Generate a URL-safe slug from a site name."""
    return slugify(name, max_length=max_length or settings.importer.slug_max_length)


def assign_slugs(records: list[UnifiedSiteRecord], max_length: int | None = None) -> list[UnifiedSiteRecord]:
    """
    Give every record a slug unique within the list.

    Slugs derive from the name; names without usable characters fall back to
    the record id. Collisions get "-1", "-2", ... in list order.

    Returns:
        New records with slug set, in the same order
    """
    assigned: set[str] = set()
    result = []
    collisions = 0

    for record in records:
        base = generate_slug(record.name, max_length) or generate_slug(record.id, max_length)
        slug = base
        counter = 1
        while slug in assigned:
            slug = f"{base}-{counter}"
            counter += 1
        if slug != base:
            collisions += 1

        assigned.add(slug)
        result.append(replace(record, slug=slug))

    if collisions:
        logger.debug(f"Resolved {collisions} slug collisions")
    return result


@dataclass
class ImportStats:
    """Import statistics summary for operators."""
    total: int = 0
    by_source: dict[str, int] = field(default_factory=dict)
    by_type: dict[str, int] = field(default_factory=dict)
    by_country: dict[str, int] = field(default_factory=dict)
    by_verification: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_source": self.by_source,
            "by_type": self.by_type,
            "by_country": self.by_country,
            "by_verification": self.by_verification,
        }


def calculate_import_stats(records: list[UnifiedSiteRecord]) -> ImportStats:
    """Calculate totals by source, site type, country and verification status."""
    by_source: Counter[str] = Counter()
    by_type: Counter[str] = Counter()
    by_country: Counter[str] = Counter()
    by_verification: Counter[str] = Counter()

    for record in records:
        for source in record.sources:
            by_source[source.value] += 1
        by_type[record.site_type] += 1
        by_country[record.country or "Unknown"] += 1
        by_verification[record.verification_status.value] += 1

    return ImportStats(
        total=len(records),
        by_source=dict(by_source),
        by_type=dict(by_type),
        by_country=dict(by_country),
        by_verification=dict(by_verification),
    )


def export_sites_json(
    records: list[UnifiedSiteRecord],
    stats: ImportStats,
    dest_path: Path,
    generated_at: datetime | None = None,
) -> Path:
    """
    Write a snapshot of the merged sites atomically.

    Output format:
        {"sites": [...], "stats": {...}, "metadata": {...}}
    """
    sources = sorted({source.value for record in records for source in record.sources})
    output = {
        "sites": [record.to_dict() for record in records],
        "stats": stats.to_dict(),
        "metadata": {
            "generated_at": (generated_at or utc_now()).isoformat(),
            "total_sites": len(records),
            "sources": sources,
            "attribution": [DATA_SOURCES[s]["attribution"] for s in sources if s in DATA_SOURCES],
        },
    }

    path = atomic_write_json(dest_path, output, indent=2)
    logger.info(f"Saved {len(records):,} sites to {path}")
    return path
