"""
Source adapters for external site data.

Each adapter queries one external provider and parses its native response
into SourceRecords.
"""

from site_importer.ingesters.base import BaseSourceAdapter, SourceRecord
from site_importer.ingesters.osm import AllEndpointsFailedError, OverpassAdapter
from site_importer.ingesters.wikidata import WikidataAdapter

__all__ = [
    "BaseSourceAdapter",
    "SourceRecord",
    "WikidataAdapter",
    "OverpassAdapter",
    "AllEndpointsFailedError",
]
