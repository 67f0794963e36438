"""
Configuration management for the megalithic site importer.

Uses pydantic-settings for type-safe configuration with environment variable support.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


CLUSTERING_MODES = ("anchor", "union_find")


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="POSTGRES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user: str = "megalithic"
    password: str = ""  # Required: Set POSTGRES_PASSWORD in .env
    host: str = "localhost"
    port: int = 5432
    db: str = "megalithic"

    @property
    def url(self) -> str:
        """Construct database URL."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.db}"


class ImporterSettings(BaseSettings):
    """External site import settings."""

    model_config = SettingsConfigDict(
        env_prefix="IMPORTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None  # e.g. logs/import.log; stderr only when unset

    # HTTP settings
    http_timeout: int = 30  # seconds
    http_max_retries: int = 3
    http_retry_delay: float = 1.0  # seconds
    user_agent: str = "MegalithicMapper/1.0 (https://github.com/megalithic-mapper; contact@example.com)"

    # Wikidata
    wikidata_endpoint: str = "https://query.wikidata.org/sparql"
    wikidata_timeout: int = 120
    wikidata_query_limit: int = 500
    inception_cutoff_year: int = 1500  # exclude modern structures sharing a category

    # Overpass (tried in order)
    overpass_endpoints: str = (
        "https://overpass-api.de/api/interpreter,"
        "https://overpass.kumi.systems/api/interpreter,"
        "https://maps.mail.ru/osm/tools/overpass/api/interpreter"
    )
    overpass_timeout: int = 180

    # Deduplication
    dedup_distance_meters: float = 100.0
    name_min_token_length: int = 3
    clustering_mode: str = "anchor"

    # Output
    slug_max_length: int = 100

    @field_validator("clustering_mode")
    @classmethod
    def check_clustering_mode(cls, v: str) -> str:
        """Only the greedy anchor and union-find strategies exist."""
        if v not in CLUSTERING_MODES:
            raise ValueError(f"clustering_mode must be one of {CLUSTERING_MODES}, got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def overpass_endpoint_list(self) -> list[str]:
        """Parse Overpass endpoints into an ordered list."""
        return [url.strip() for url in self.overpass_endpoints.split(",") if url.strip()]


class Settings(BaseSettings):
    """Main settings class that combines all settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    importer: ImporterSettings = Field(default_factory=ImporterSettings)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience function for quick access
settings = get_settings()


# =============================================================================
# Data Source Configuration
# =============================================================================

# Priority order for sources (lower = higher priority, picks cluster anchors)
SOURCE_PRIORITY = {
    "wikidata": 1,
    "osm": 2,
    "manual": 3,
}

DATA_SOURCES = {
    "wikidata": {
        "name": "Wikidata",
        "description": "Free knowledge base queried through the Wikidata Query Service",
        "url": "https://www.wikidata.org/",
        "api_url": "https://query.wikidata.org/sparql",
        "license": "CC0",
        "attribution": "Data from Wikidata, CC0",
    },
    "osm": {
        "name": "OpenStreetMap",
        "description": "Historic and megalithic features queried through the Overpass API",
        "url": "https://www.openstreetmap.org/",
        "api_url": "https://overpass-api.de/api/interpreter",
        "license": "ODbL",
        "attribution": "© OpenStreetMap contributors, ODbL",
    },
}

# Site type groups that can scope the OSM fetch
OSM_SITE_TYPES = [
    "stone_circles",
    "standing_stones",
    "dolmens",
    "pyramids",
    "tumuli",
]
