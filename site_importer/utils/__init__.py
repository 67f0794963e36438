"""Utility modules for the site importer."""

from site_importer.utils.geo import (
    haversine_meters,
    is_valid_coordinates,
    parse_wkt_point,
    to_coordinate,
)
from site_importer.utils.http import HTTPError, RateLimitError, fetch_with_retry, send_request
from site_importer.utils.logging import setup_logging
from site_importer.utils.text import (
    clean_description,
    clean_optional,
    fold_diacritics,
    slugify,
)

__all__ = [
    # HTTP utilities
    "HTTPError",
    "RateLimitError",
    "fetch_with_retry",
    "send_request",
    # Logging
    "setup_logging",
    # Geographic utilities
    "is_valid_coordinates",
    "haversine_meters",
    "parse_wkt_point",
    "to_coordinate",
    # Text utilities
    "clean_description",
    "clean_optional",
    "fold_diacritics",
    "slugify",
]
