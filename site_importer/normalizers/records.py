"""
Source record normalization.

Maps adapter SourceRecords into the UnifiedSiteRecord schema and assigns the
per-source layer, verification and trust heuristics.
"""

from collections.abc import Iterable
from datetime import datetime

from loguru import logger

from site_importer.ingesters.base import SourceRecord
from site_importer.normalizers.site_type import classify_site_type
from site_importer.types import (
    Layer,
    SourceTag,
    TrustTier,
    UnifiedSiteRecord,
    VerificationStatus,
    utc_now,
)
from site_importer.utils.geo import is_valid_coordinates
from site_importer.utils.text import clean_description

# Designations that count as independent verification on their own
TOP_TIER_DESIGNATIONS = ("unesco", "world heritage")


def is_top_tier_designation(heritage_status: str | None) -> bool:
    if not heritage_status:
        return False
    lowered = heritage_status.lower()
    return any(designation in lowered for designation in TOP_TIER_DESIGNATIONS)


def determine_verification_status(record: SourceRecord, source: SourceTag) -> VerificationStatus:
    """
    Determine verification status based on source data.

    - UNESCO / World Heritage designation: verified
    - Wikipedia article: under review
    - OSM feature carrying any heritage tag: under review
    - Anything else: unverified
    """
    if is_top_tier_designation(record.heritage_status):
        return VerificationStatus.VERIFIED
    if record.wikipedia_url:
        return VerificationStatus.UNDER_REVIEW
    if source == SourceTag.OSM and record.heritage_status:
        return VerificationStatus.UNDER_REVIEW
    return VerificationStatus.UNVERIFIED


def determine_trust_tier(record: SourceRecord, source: SourceTag) -> TrustTier | None:
    """Trust tier from source and heritage metadata."""
    protected = bool(record.heritage_status)
    if source == SourceTag.WIKIDATA:
        return TrustTier.PROMOTED if protected else TrustTier.SILVER
    if source == SourceTag.OSM:
        return TrustTier.SILVER if protected else TrustTier.BRONZE
    return None


def determine_layer(record: SourceRecord) -> Layer:
    return Layer.OFFICIAL if record.heritage_status else Layer.COMMUNITY


def synthesize_summary(site_type: str, country: str | None) -> str:
    """Fallback summary for records without a description."""
    label = site_type[:1].upper() + site_type[1:]
    return f"{label} in {country or 'unknown location'}."


def normalize(
    record: SourceRecord,
    source: SourceTag,
    imported_at: datetime | None = None,
) -> UnifiedSiteRecord:
    """
    Normalize a single source record.

    Args:
        record: Record produced by a source adapter
        source: Source the record came from
        imported_at: Import timestamp (defaults to now, UTC)

    Returns:
        UnifiedSiteRecord with an empty slug

    Raises:
        ValueError: If the record has no usable coordinates
    """
    if record.lat is None or record.lon is None or not is_valid_coordinates(record.lat, record.lon):
        raise ValueError(f"Invalid coordinates for {source.value}:{record.source_id}")

    site_type = classify_site_type(record.site_type)
    summary = clean_description(record.description) or synthesize_summary(site_type, record.country)
    name = (record.name or "").strip() or f"{site_type[:1].upper()}{site_type[1:]} ({record.source_id})"

    return UnifiedSiteRecord(
        id=f"{source.value}-{record.source_id}",
        name=name,
        summary=summary,
        site_type=site_type,
        lat=float(record.lat),
        lng=float(record.lon),
        layer=determine_layer(record),
        verification_status=determine_verification_status(record, source),
        trust_tier=determine_trust_tier(record, source),
        sources=frozenset({source}),
        wikidata_id=record.wikidata_id,
        osm_id=record.osm_id,
        wikipedia_url=record.wikipedia_url,
        image_url=record.image_url,
        country=record.country,
        country_code=record.country_code,
        inception=record.inception,
        heritage_status=record.heritage_status,
        imported_at=imported_at or utc_now(),
    )


def normalize_all(
    records: Iterable[SourceRecord],
    source: SourceTag,
    imported_at: datetime | None = None,
) -> list[UnifiedSiteRecord]:
    """Normalize a source's records, silently dropping out-of-range coordinates."""
    imported_at = imported_at or utc_now()
    normalized = []
    skipped = 0

    for record in records:
        try:
            normalized.append(normalize(record, source, imported_at=imported_at))
        except ValueError:
            skipped += 1

    if skipped:
        logger.debug(f"Skipped {skipped} {source.value} records with invalid coordinates")
    logger.info(f"Normalized {len(normalized):,} {source.value} records")
    return normalized
