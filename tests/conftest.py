# SPDX-License-Identifier: MIT
"""Pytest configuration and fixtures for site importer tests."""

import os
from datetime import datetime, timezone

import pytest

# Set test environment variables before importing the package
os.environ.setdefault("DISABLE_LOGGING", "1")
os.environ.setdefault("IMPORTER_HTTP_MAX_RETRIES", "1")

from site_importer.types import (  # noqa: E402
    Layer,
    SourceTag,
    TrustTier,
    UnifiedSiteRecord,
    VerificationStatus,
)

FIXED_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio for async tests."""
    return "asyncio"


@pytest.fixture
def fixed_time() -> datetime:
    return FIXED_TIME


@pytest.fixture
def make_record():
    """Factory for UnifiedSiteRecords with sensible defaults."""

    def _make(
        name: str = "Test Site",
        lat: float = 51.4289,
        lng: float = 1.8262,
        source: SourceTag = SourceTag.OSM,
        **overrides,
    ) -> UnifiedSiteRecord:
        fields = {
            "id": f"{source.value}-{name.lower().replace(' ', '-')}",
            "name": name,
            "summary": "Archaeological site in unknown location.",
            "site_type": "archaeological site",
            "lat": lat,
            "lng": lng,
            "layer": Layer.COMMUNITY,
            "verification_status": VerificationStatus.UNVERIFIED,
            "trust_tier": TrustTier.BRONZE if source == SourceTag.OSM else TrustTier.SILVER,
            "sources": frozenset({source}),
            "imported_at": FIXED_TIME,
        }
        fields.update(overrides)
        return UnifiedSiteRecord(**fields)

    return _make
