"""
External site importer.

Pulls megalithic and archaeological sites from Wikidata and OpenStreetMap,
reconciles duplicates across the two sources and prepares slug-keyed upserts
for the site map database.
"""

from site_importer.importer import PipelineOptions, PipelineResult, run, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "PipelineOptions",
    "PipelineResult",
    "run",
    "run_pipeline",
]
