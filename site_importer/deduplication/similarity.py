"""
Pairwise similarity test for unified site records.

Two records describe the same site when they lie within a fixed distance of
each other AND their names agree. Distance is a hard gate, not a weight.
"""

from site_importer.config import settings
from site_importer.types import UnifiedSiteRecord
from site_importer.utils.geo import haversine_meters


def distance_meters(a: UnifiedSiteRecord, b: UnifiedSiteRecord) -> float:
    return haversine_meters(a.lat, a.lng, b.lat, b.lng)


def significant_tokens(name: str, min_token_length: int) -> set[str]:
    """Whitespace tokens longer than min_token_length characters."""
    return {token for token in name.split() if len(token) > min_token_length}


def names_similar(name1: str, name2: str, min_token_length: int | None = None) -> bool:
    """
    Check if two site names plausibly refer to the same place.

    - Case-folded exact match
    - Either name contains the other
    - At least one shared token longer than min_token_length characters
    """
    if min_token_length is None:
        min_token_length = settings.importer.name_min_token_length

    name1 = name1.casefold().strip()
    name2 = name2.casefold().strip()
    if not name1 or not name2:
        return False

    if name1 == name2:
        return True
    if name1 in name2 or name2 in name1:
        return True

    tokens1 = significant_tokens(name1, min_token_length)
    tokens2 = significant_tokens(name2, min_token_length)
    return bool(tokens1 & tokens2)


def are_similar(
    a: UnifiedSiteRecord,
    b: UnifiedSiteRecord,
    max_distance_meters: float | None = None,
    min_token_length: int | None = None,
) -> bool:
    """
    Check if two records are likely the same site.

    Args:
        a, b: Records to compare
        max_distance_meters: Distance gate (default from settings, 100 m)
        min_token_length: Shared tokens must be longer than this

    Returns:
        True if within the distance gate and the names agree
    """
    if max_distance_meters is None:
        max_distance_meters = settings.importer.dedup_distance_meters

    if distance_meters(a, b) > max_distance_meters:
        return False

    return names_similar(a.name, b.name, min_token_length=min_token_length)
