"""
Base adapter class for external site sources.

All source-specific adapters should inherit from BaseSourceAdapter and
implement fetch_candidates().
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from site_importer.config import DATA_SOURCES, settings
from site_importer.types import SourceTag
from site_importer.utils.geo import is_valid_coordinates


def atomic_write_json(dest_path: Path, data: Any, indent: int = None) -> Path:
    """
    Write JSON data atomically - only replaces target file on success.

    1. Writes to temp file in same directory
    2. Validates JSON is readable
    3. Renames temp to final (atomic on same filesystem)

    Args:
        dest_path: Final destination path
        data: Data to serialize as JSON
        indent: JSON indent (None for compact)

    Returns:
        Path to written file
    """
    dest_path = Path(dest_path)
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = dest_path.with_suffix(dest_path.suffix + ".tmp")

    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, default=str, ensure_ascii=False, indent=indent)

        with open(temp_path, encoding="utf-8") as f:
            json.load(f)

        temp_path.replace(dest_path)
        return dest_path

    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


@dataclass
class SourceRecord:
    """
    Source-side representation of a candidate site.

    This is the common format all adapters produce; it is discarded once the
    normalizer has turned it into a UnifiedSiteRecord.
    """
    # Required fields
    source_id: str              # ID in the source database (Q-id, "node/123")
    name: str | None
    lat: float | None           # Latitude (WGS84)
    lon: float | None           # Longitude (WGS84)

    # Optional fields
    description: str | None = None
    site_type: str | None = None        # Raw type string, normalized later
    country: str | None = None
    country_code: str | None = None
    inception: str | None = None
    wikipedia_url: str | None = None
    image_url: str | None = None
    heritage_status: str | None = None

    # Cross references
    wikidata_id: str | None = None
    osm_id: str | None = None

    # Full original record for provenance
    raw_data: dict[str, Any] | None = None


class BaseSourceAdapter(ABC):
    """
    Abstract base class for external site sources.

    Subclasses must implement:
    - fetch_candidates(): Fetch every candidate the source offers

    Adapters are async context managers. A shared httpx.AsyncClient can be
    passed in; otherwise the adapter creates and closes its own.
    """

    # Class attributes to be set by subclasses
    source_tag: SourceTag = None
    source_name: str = None
    timeout: float = settings.importer.http_timeout

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        """
        Initialize the adapter.

        Args:
            http_client: Optional shared HTTP client
        """
        if self.source_tag is None:
            raise ValueError("source_tag must be set in subclass")

        self._http_client = http_client
        self._owns_client = http_client is None

        self.source_info = DATA_SOURCES.get(self.source_tag.value, {})
        self.source_name = self.source_name or self.source_info.get("name", self.source_tag.value)

        logger.debug(f"Initialized {self.source_name} adapter")

    async def __aenter__(self):
        if self._owns_client and self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._http_client

    @abstractmethod
    async def fetch_candidates(self) -> list[SourceRecord]:
        """
        Fetch every candidate site the source offers.

        Returns:
            Valid SourceRecords, deduplicated by source id.
        """
        pass

    def validate_record(self, record: SourceRecord) -> list[str]:
        """
        Validate a parsed record.

        Args:
            record: SourceRecord to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not record.source_id:
            errors.append("Missing source_id")
        if not record.name and not record.site_type:
            errors.append("Missing both name and type")

        if record.lat is None or record.lon is None:
            errors.append("Missing coordinates")
        elif not is_valid_coordinates(record.lat, record.lon):
            errors.append(f"Invalid coordinates: {record.lat}, {record.lon}")

        return errors

    def accept(self, records: Iterable[SourceRecord]) -> list[SourceRecord]:
        """Drop invalid records and repeated source ids, keeping first occurrences."""
        accepted = []
        seen = set()
        dropped = 0

        for record in records:
            errors = self.validate_record(record)
            if errors:
                dropped += 1
                logger.debug(f"Dropping {self.source_tag.value}:{record.source_id}: {', '.join(errors)}")
                continue
            if record.source_id in seen:
                continue
            seen.add(record.source_id)
            accepted.append(record)

        if dropped:
            logger.debug(f"{self.source_name}: dropped {dropped} unusable records")
        return accepted
