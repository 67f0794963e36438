"""
Persistence boundary for merged sites.

Uses SQLAlchemy 2.0. The importer only produces upsert statements keyed by
slug; the table itself is owned by the web application.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import Any, Optional

from loguru import logger
from sqlalchemy import DateTime, Float, String, Text, create_engine
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.sql import Insert

from site_importer.config import settings
from site_importer.types import UnifiedSiteRecord


# =============================================================================
# Database Engine and Session
# =============================================================================

@lru_cache()
def get_engine() -> Engine:
    """Create the engine on first use so importing this module needs no database."""
    return create_engine(
        settings.database.url,
        echo=settings.importer.log_level == "DEBUG",
        pool_pre_ping=True,
        pool_recycle=1800,
    )


@contextmanager
def get_session():
    """Context manager for database sessions."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================================
# Models
# =============================================================================

class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Site(Base):
    """
    A merged external site as stored by the web application.

    Rows are keyed by slug so repeated imports update in place.
    """
    __tablename__ = "sites"
    __table_args__ = {"schema": "megalithic"}

    slug: Mapped[str] = mapped_column(String(120), primary_key=True)

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    site_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="site")
    coordinates: Mapped[dict] = mapped_column(JSONB, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    layer: Mapped[str] = mapped_column(String(20), nullable=False)
    verification_status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    trust_tier: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # External references
    external_id: Mapped[str] = mapped_column(String(100), nullable=False)
    wikidata_id: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, index=True)
    osm_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    wikipedia_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Metadata
    country: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    country_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    inception: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    heritage_status: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    sources: Mapped[list[str]] = mapped_column(ARRAY(String(20)), nullable=False)
    imported_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<Site(slug='{self.slug}', name='{self.name}')>"


# =============================================================================
# Upsert batches
# =============================================================================

def site_row(record: UnifiedSiteRecord) -> dict[str, Any]:
    """Column values for one merged record."""
    if not record.slug:
        raise ValueError(f"Record {record.id} has no slug; assign slugs before serializing")

    return {
        "slug": record.slug,
        "name": record.name,
        "summary": record.summary,
        "site_type": record.site_type,
        "category": record.category,
        "coordinates": record.coordinates,
        "lat": record.lat,
        "lng": record.lng,
        "layer": record.layer.value,
        "verification_status": record.verification_status.value,
        "trust_tier": record.trust_tier.value if record.trust_tier else None,
        "external_id": record.id,
        "wikidata_id": record.wikidata_id,
        "osm_id": record.osm_id,
        "wikipedia_url": record.wikipedia_url,
        "image_url": record.image_url,
        "country": record.country,
        "country_code": record.country_code,
        "inception": record.inception,
        "heritage_status": record.heritage_status,
        "sources": sorted(source.value for source in record.sources),
        "imported_at": record.imported_at,
    }


@dataclass
class UpsertBatch:
    """A complete set of insert-or-update operations keyed by slug."""
    rows: list[dict[str, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def slugs(self) -> list[str]:
        return [row["slug"] for row in self.rows]

    def statement(self) -> Insert:
        """
        INSERT ... ON CONFLICT (slug) DO UPDATE for every row.

        Raises:
            ValueError: For an empty batch (there is nothing to insert)
        """
        if not self.rows:
            raise ValueError("Cannot build an upsert statement for an empty batch")

        stmt = insert(Site).values(self.rows)
        updatable = [column.name for column in Site.__table__.columns if column.name != "slug"]
        return stmt.on_conflict_do_update(
            index_elements=["slug"],
            set_={name: stmt.excluded[name] for name in updatable},
        )


def build_upsert_batch(records: list[UnifiedSiteRecord]) -> UpsertBatch:
    """Serialize merged, slugged records into an upsert batch."""
    return UpsertBatch(rows=[site_row(record) for record in records])


def apply_upsert_batch(session: Session, batch: UpsertBatch) -> int:
    """
    Execute a batch inside the caller's transaction.

    The caller commits (get_session() does so on success), so the batch is
    applied entirely or not at all.

    Returns:
        Number of rows sent
    """
    if not batch.rows:
        logger.info("Upsert batch is empty, nothing to write")
        return 0

    session.execute(batch.statement())
    logger.info(f"Upserted {len(batch):,} sites")
    return len(batch)
