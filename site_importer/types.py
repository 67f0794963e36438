"""
Core types for the site importer.

Defines the UnifiedSiteRecord dataclass that every source is normalized into,
plus enums for sources, map layers, verification and trust.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class SourceTag(str, Enum):
    """External sources a record can originate from."""

    WIKIDATA = "wikidata"
    OSM = "osm"
    MANUAL = "manual"


class Layer(str, Enum):
    """Map layer a site is shown on."""

    OFFICIAL = "official"
    COMMUNITY = "community"


class VerificationStatus(str, Enum):
    """How well a site's existence is corroborated."""

    VERIFIED = "verified"
    UNDER_REVIEW = "under_review"
    UNVERIFIED = "unverified"

    @property
    def rank(self) -> int:
        """Strength of the status (higher is stronger)."""
        return VERIFICATION_RANK[self]


VERIFICATION_RANK = {
    VerificationStatus.VERIFIED: 2,
    VerificationStatus.UNDER_REVIEW: 1,
    VerificationStatus.UNVERIFIED: 0,
}


class TrustTier(str, Enum):
    """Coarse community trust ranking."""

    PROMOTED = "promoted"
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UnifiedSiteRecord:
    """
    Canonical site record shared by all sources.

    Records are immutable: merging and slug assignment produce new instances
    via dataclasses.replace().
    """

    # Required fields
    id: str                     # "<source>-<source local id>"
    name: str
    summary: str
    site_type: str
    lat: float
    lng: float
    layer: Layer
    verification_status: VerificationStatus
    trust_tier: TrustTier | None
    sources: frozenset[SourceTag]

    # Assigned at output stage
    slug: str = ""
    category: str = "site"

    # External references
    wikidata_id: str | None = None
    osm_id: str | None = None
    wikipedia_url: str | None = None
    image_url: str | None = None

    # Metadata
    country: str | None = None
    country_code: str | None = None
    inception: str | None = None
    heritage_status: str | None = None

    imported_at: datetime = field(default_factory=utc_now)

    @property
    def coordinates(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON-compatible values."""
        data = asdict(self)
        data["layer"] = self.layer.value
        data["verification_status"] = self.verification_status.value
        data["trust_tier"] = self.trust_tier.value if self.trust_tier else None
        data["sources"] = sorted(source.value for source in self.sources)
        data["coordinates"] = self.coordinates
        data["imported_at"] = self.imported_at.isoformat()
        del data["lat"], data["lng"]
        return data
