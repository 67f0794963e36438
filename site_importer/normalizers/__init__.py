"""
Data normalization utilities.

These modules handle converting source-specific records into the unified
site schema.
"""

from .records import normalize, normalize_all
from .site_type import SITE_TYPES, classify_site_type

__all__ = [
    'normalize',
    'normalize_all',
    'classify_site_type',
    'SITE_TYPES',
]
