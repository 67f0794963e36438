"""Text processing utility functions for the site importer."""

import re
import unicodedata


def fold_diacritics(text: str) -> str:
    """Decompose characters and drop combining marks (Göbekli -> Gobekli)."""
    text = unicodedata.normalize("NFKD", text)
    return "".join(c for c in text if not unicodedata.combining(c))


def slugify(text: str, max_length: int = 100) -> str:
    """Convert text to a URL-safe slug.

    Lowercases, collapses every run of non-alphanumeric characters into a
    single hyphen, trims leading/trailing hyphens and caps the length.

    Args:
        text: Text to slugify
        max_length: Maximum slug length

    Returns:
        Slug string, possibly empty when the text has no ASCII letters or digits
    """
    if not text:
        return ""

    slug = fold_diacritics(text).lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug).strip("-")
    return slug[:max_length].rstrip("-")


def clean_description(description: str | None, max_length: int = 1000) -> str | None:
    """Clean and truncate a description string.

    Args:
        description: Raw description text
        max_length: Maximum length (default 1000 chars)

    Returns:
        Cleaned description or None if empty
    """
    if not description:
        return None

    text = re.sub(r"<[^>]+>", "", description)
    text = re.sub(r"\s+", " ", text).strip()

    if len(text) > max_length:
        text = text[:max_length - 3] + "..."

    return text if text else None


def clean_optional(value) -> str | None:
    """Strip a string value, mapping blanks and non-strings to None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None
