"""
Site type normalization utilities.
"""

from typing import Optional

DEFAULT_SITE_TYPE = "archaeological site"

# Ordered keyword -> category table. The first keyword found in the raw
# string wins, so specific keywords must precede generic ones
# ("megalithic standing stone" is a standing stone, not a megalith).
SITE_TYPE_KEYWORDS = [
    # Megalithic
    ("standing stone", "standing stone"),
    ("menhir", "standing stone"),
    ("monolith", "standing stone"),
    ("stone circle", "stone circle"),
    ("stone ring", "stone circle"),
    ("cromlech", "stone circle"),
    ("stone row", "stone row"),
    ("alignment", "stone row"),
    ("passage grave", "passage grave"),
    ("passage tomb", "passage grave"),
    ("dolmen", "dolmen"),
    ("portal tomb", "dolmen"),
    ("quoit", "dolmen"),
    ("henge", "henge"),
    ("cairn", "cairn"),
    ("tumulus", "tumulus"),
    ("tumuli", "tumulus"),
    ("barrow", "tumulus"),
    ("burial mound", "tumulus"),
    ("kurgan", "tumulus"),

    # Pyramids
    ("pyramid", "pyramid"),

    # Other
    ("megalith", "megalithic monument"),
    ("hillfort", "hillfort"),
    ("hill fort", "hillfort"),
    ("temple", "temple"),
    ("tomb", "tomb"),
    ("ruin", "ruins"),
    ("archaeological site", "archaeological site"),
]

SITE_TYPES = sorted({category for _, category in SITE_TYPE_KEYWORDS} | {DEFAULT_SITE_TYPE})


def classify_site_type(site_type: Optional[str]) -> str:
    """Normalize a raw site type string to the controlled vocabulary.

    Args:
        site_type: Raw site type string from source data ("stone_circle",
            "megalithic standing stone", "Step Pyramid", ...)

    Returns:
        Normalized site type category, "archaeological site" when unmapped
    """
    if not site_type:
        return DEFAULT_SITE_TYPE

    cleaned = " ".join(site_type.replace("_", " ").lower().split())

    for keyword, category in SITE_TYPE_KEYWORDS:
        if keyword in cleaned:
            return category

    return DEFAULT_SITE_TYPE
