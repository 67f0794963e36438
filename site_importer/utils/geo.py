"""Geographic utility functions for the site importer."""

import math

EARTH_RADIUS_METERS = 6371000


def is_valid_coordinates(lat: float, lon: float) -> bool:
    """Check if latitude and longitude are valid.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Returns:
        True if coordinates are valid, False otherwise
    """
    return -90 <= lat <= 90 and -180 <= lon <= 180


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in meters.

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = math.sin(delta_lat / 2) ** 2 + \
        math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def parse_wkt_point(wkt: str) -> tuple[float | None, float | None]:
    """Parse a WKT POINT string into lon, lat coordinates.

    Args:
        wkt: WKT string like "Point(lon lat)" as returned by Wikidata

    Returns:
        Tuple of (longitude, latitude) or (None, None) if parsing fails
    """
    if not wkt or not isinstance(wkt, str):
        return None, None

    wkt = wkt.strip().upper()
    if not wkt.startswith("POINT"):
        return None, None

    try:
        coords_str = wkt.replace("POINT", "").strip().strip("()")
        parts = coords_str.replace(",", " ").split()
        if len(parts) >= 2:
            return float(parts[0]), float(parts[1])
    except (ValueError, IndexError):
        pass

    return None, None


def to_coordinate(value) -> float | None:
    """Convert a raw coordinate value (number or numeric string) to a finite float."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number
