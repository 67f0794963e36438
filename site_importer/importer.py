"""
External site import pipeline.

Fetches candidates from every enabled source concurrently, normalizes them
into UnifiedSiteRecords, collapses duplicates and prepares the output:
slugs, statistics, an upsert batch and an optional JSON snapshot.

Usage:
    from site_importer import PipelineOptions, run
    from site_importer.database import apply_upsert_batch, get_session

    result = run(PipelineOptions(site_types=["stone_circles", "dolmens"]))
    with get_session() as session:
        apply_upsert_batch(session, result.batch)
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import httpx
from loguru import logger

from site_importer.config import CLUSTERING_MODES, OSM_SITE_TYPES
from site_importer.database import UpsertBatch, apply_upsert_batch, build_upsert_batch, get_session
from site_importer.deduplication import cluster_records, merge_cluster
from site_importer.ingesters import BaseSourceAdapter, OverpassAdapter, SourceRecord, WikidataAdapter
from site_importer.normalizers import normalize_all
from site_importer.output import ImportStats, assign_slugs, calculate_import_stats, export_sites_json
from site_importer.types import UnifiedSiteRecord, utc_now
from site_importer.utils.http import HTTPError

# Failures that degrade a single source instead of aborting the run
SOURCE_ERRORS = (HTTPError, httpx.TransportError, ValueError)


@dataclass
class PipelineOptions:
    """Options for a single import run."""
    include_wikidata: bool = True
    include_osm: bool = True
    site_types: list[str] | None = None     # OSM type groups; None fetches everything
    clustering_mode: str | None = None      # defaults to settings.importer.clustering_mode
    output_path: Path | None = None         # JSON snapshot destination
    persist: bool = False                   # apply the upsert batch after the run

    def __post_init__(self):
        if self.site_types is not None:
            unknown = [t for t in self.site_types if t not in OSM_SITE_TYPES]
            if unknown:
                raise ValueError(f"Unknown site types: {unknown} (expected some of {OSM_SITE_TYPES})")
        if self.clustering_mode is not None and self.clustering_mode not in CLUSTERING_MODES:
            raise ValueError(f"Unknown clustering mode: {self.clustering_mode}")


@dataclass
class PipelineResult:
    """Everything a run produced."""
    records: list[UnifiedSiteRecord]
    stats: ImportStats
    batch: UpsertBatch
    started_at: datetime
    completed_at: datetime
    source_counts: dict[str, int] = field(default_factory=dict)
    failed_sources: list[str] = field(default_factory=list)
    duplicates_merged: int = 0
    output_path: Path | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def success(self) -> bool:
        return not self.failed_sources


def build_adapters(
    options: PipelineOptions,
    http_client: httpx.AsyncClient | None = None,
) -> list[BaseSourceAdapter]:
    """Adapters for the enabled sources, in merge order."""
    adapters: list[BaseSourceAdapter] = []
    if options.include_wikidata:
        adapters.append(WikidataAdapter(http_client=http_client))
    if options.include_osm:
        adapters.append(OverpassAdapter(http_client=http_client))
    return adapters


async def fetch_source(adapter: BaseSourceAdapter, options: PipelineOptions) -> list[SourceRecord] | None:
    """
    Fetch one source, degrading failures to None.

    Returns:
        The source's records, or None if the source failed
    """
    try:
        async with adapter:
            if isinstance(adapter, OverpassAdapter) and options.site_types:
                return await adapter.fetch_by_types(options.site_types)
            return await adapter.fetch_candidates()
    except SOURCE_ERRORS as e:
        logger.warning(f"{adapter.source_name} unavailable, continuing without it: {e}")
        return None


async def run_pipeline(
    options: PipelineOptions | None = None,
    http_client: httpx.AsyncClient | None = None,
    adapters: list[BaseSourceAdapter] | None = None,
) -> PipelineResult:
    """
    Run a full import.

    Args:
        options: Run options (defaults fetch every source)
        http_client: Shared client handed to the default adapters
        adapters: Explicit adapters, replacing the defaults

    Returns:
        PipelineResult; if every source failed it holds no records
    """
    options = options or PipelineOptions()
    if adapters is None:
        adapters = build_adapters(options, http_client=http_client)

    started_at = utc_now()
    logger.info(f"Starting site import from {len(adapters)} sources")

    results = await asyncio.gather(*(fetch_source(adapter, options) for adapter in adapters))

    unified: list[UnifiedSiteRecord] = []
    source_counts: dict[str, int] = {}
    failed_sources: list[str] = []

    for adapter, records in zip(adapters, results):
        source = adapter.source_tag
        if records is None:
            failed_sources.append(source.value)
            source_counts[source.value] = 0
            continue
        normalized = normalize_all(records, source, imported_at=started_at)
        source_counts[source.value] = len(normalized)
        unified.extend(normalized)

    clusters = cluster_records(unified, mode=options.clustering_mode)
    merged = assign_slugs([merge_cluster(cluster) for cluster in clusters])
    stats = calculate_import_stats(merged)
    batch = build_upsert_batch(merged)

    completed_at = utc_now()
    result = PipelineResult(
        records=merged,
        stats=stats,
        batch=batch,
        started_at=started_at,
        completed_at=completed_at,
        source_counts=source_counts,
        failed_sources=failed_sources,
        duplicates_merged=len(unified) - len(merged),
    )

    if options.output_path:
        result.output_path = export_sites_json(merged, stats, options.output_path, generated_at=completed_at)

    if options.persist:
        with get_session() as session:
            apply_upsert_batch(session, batch)

    _log_summary(result)
    return result


def run(options: PipelineOptions | None = None) -> PipelineResult:
    """Synchronous wrapper around run_pipeline()."""
    return asyncio.run(run_pipeline(options))


def _log_summary(result: PipelineResult):
    """Log import summary."""
    logger.info("=" * 60)
    logger.info("IMPORT SUMMARY")
    logger.info("=" * 60)

    for source, count in result.source_counts.items():
        if source in result.failed_sources:
            logger.warning(f"  X {source}: failed")
        else:
            logger.info(f"  + {source}: {count:,} records")

    logger.info("-" * 60)
    logger.info(
        f"Total: {result.stats.total:,} sites | Duplicates merged: {result.duplicates_merged:,} | "
        f"Duration: {result.duration_seconds:.1f}s"
    )
