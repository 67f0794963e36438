"""
Wikidata megalithic sites adapter.

Fetches megalithic and archaeological sites from the Wikidata Query Service
using SPARQL queries.

Data source: https://www.wikidata.org/
License: CC0 (Public Domain)
API Key: Not required
"""

import asyncio
from typing import Any

from loguru import logger

from site_importer.config import settings
from site_importer.ingesters.base import BaseSourceAdapter, SourceRecord
from site_importer.types import SourceTag
from site_importer.utils.geo import parse_wkt_point, to_coordinate
from site_importer.utils.http import HTTPError, fetch_with_retry, send_request
from site_importer.utils.text import clean_optional


# Shared projection: every query binds the same variables so one parser fits all
SELECT_CLAUSE = (
    "SELECT DISTINCT ?site ?siteLabel ?siteDescription ?coord ?lat ?lon ?siteTypeLabel "
    "?countryLabel ?countryCode ?inception ?image ?heritageLabel ?article"
)

OPTIONAL_CLAUSES = """
  ?site wdt:P625 ?coord .
  ?site p:P625 ?coordStatement .
  ?coordStatement psv:P625 ?coordNode .
  ?coordNode wikibase:geoLatitude ?lat .
  ?coordNode wikibase:geoLongitude ?lon .

  OPTIONAL {{ ?site wdt:P17 ?country . ?country wdt:P297 ?countryCode . }}
  OPTIONAL {{ ?site wdt:P571 ?inception . }}
  OPTIONAL {{ ?site wdt:P18 ?image . }}
  {heritage_clause}
  OPTIONAL {{
    ?article schema:about ?site ;
             schema:isPartOf <https://en.wikipedia.org/> .
  }}

  FILTER(!BOUND(?inception) || YEAR(?inception) < {cutoff})

  SERVICE wikibase:label {{ bd:serviceParam wikibase:language "[AUTO_LANGUAGE],en" . }}
"""

DEFAULT_HERITAGE_CLAUSE = "OPTIONAL {{ ?site wdt:P1435 ?heritage . }}"


class WikidataAdapter(BaseSourceAdapter):
    """
    Adapter for Wikidata megalithic and archaeological sites.

    Runs several category-scoped SPARQL queries concurrently:
    - Megalithic monuments and archaeological sites (with subclasses)
    - Stone circles, dolmens and menhirs
    - Pyramids (with subclasses)
    - UNESCO World Heritage archaeological sites
    """

    source_tag = SourceTag.WIKIDATA
    source_name = "Wikidata"
    timeout = settings.importer.wikidata_timeout

    # Archaeological types accepted by the broad and scoped queries
    ARCHAEOLOGICAL_TYPES = [
        ("Q1066693", "megalithic monument"),
        ("Q1495447", "stone circle"),
        ("Q179132", "dolmen"),
        ("Q152810", "menhir"),
        ("Q183644", "passage grave"),
        ("Q170519", "cairn"),
        ("Q12518", "pyramid"),
        ("Q839954", "archaeological site"),
    ]

    UNESCO_WORLD_HERITAGE = "Q9259"

    # Category name -> (type pattern, heritage clause, limit multiplier)
    CATEGORIES = {
        "megalithic": (
            "VALUES ?type {{ {types} }}\n  ?site wdt:P31 ?siteType .\n  ?siteType wdt:P279* ?type .",
            None,
            1,
        ),
        "stone_circles": (
            "VALUES ?siteType {{ wd:Q1495447 wd:Q1066693 wd:Q179132 wd:Q152810 }}\n  ?site wdt:P31 ?siteType .",
            None,
            2,
        ),
        "pyramids": (
            "?site wdt:P31 ?siteType .\n  ?siteType wdt:P279* wd:Q12518 .",
            None,
            1,
        ),
        "unesco": (
            "?site wdt:P31 ?siteType .\n  ?siteType wdt:P279* wd:Q839954 .",
            "?site wdt:P1435 ?heritage .\n  FILTER(?heritage = wd:{unesco})",
            1,
        ),
    }

    def __init__(self, http_client=None, endpoint: str | None = None):
        super().__init__(http_client=http_client)
        self.endpoint = endpoint or settings.importer.wikidata_endpoint
        self.cutoff_year = settings.importer.inception_cutoff_year
        self.limit = settings.importer.wikidata_query_limit

    # ===== QUERY BUILDING =====

    def build_query(self, type_pattern: str, scope: str = "", heritage_clause: str | None = None, limit: int | None = None) -> str:
        """Assemble a SELECT query from a type pattern and an optional spatial scope."""
        types = " ".join(f"wd:{type_id}" for type_id, _ in self.ARCHAEOLOGICAL_TYPES)
        type_block = type_pattern.format(types=types)
        heritage = (heritage_clause or DEFAULT_HERITAGE_CLAUSE).format(unesco=self.UNESCO_WORLD_HERITAGE)
        body = OPTIONAL_CLAUSES.format(
            heritage_clause=heritage,
            cutoff=self.cutoff_year,
        )
        return f"{SELECT_CLAUSE}\nWHERE {{\n  {scope}{type_block}\n{body}}}\nLIMIT {limit or self.limit}\n"

    def category_query(self, category: str) -> str:
        if category not in self.CATEGORIES:
            raise ValueError(f"Unknown Wikidata category: {category}")
        type_pattern, heritage_clause, multiplier = self.CATEGORIES[category]
        return self.build_query(type_pattern, heritage_clause=heritage_clause, limit=self.limit * multiplier)

    def bounding_box_query(self, min_lat: float, min_lng: float, max_lat: float, max_lng: float) -> str:
        scope = (
            "SERVICE wikibase:box {\n"
            "    ?site wdt:P625 ?location .\n"
            f'    bd:serviceParam wikibase:cornerSouthWest "Point({min_lng} {min_lat})"^^geo:wktLiteral .\n'
            f'    bd:serviceParam wikibase:cornerNorthEast "Point({max_lng} {max_lat})"^^geo:wktLiteral .\n'
            "  }\n  "
        )
        return self.build_query(self.CATEGORIES["megalithic"][0], scope=scope)

    def nearby_query(self, lat: float, lng: float, radius_meters: float) -> str:
        scope = (
            "SERVICE wikibase:around {\n"
            "    ?site wdt:P625 ?location .\n"
            f'    bd:serviceParam wikibase:center "Point({lng} {lat})"^^geo:wktLiteral .\n'
            f'    bd:serviceParam wikibase:radius "{radius_meters / 1000:g}" .\n'
            "  }\n  "
        )
        return self.build_query(self.CATEGORIES["megalithic"][0], scope=scope)

    def search_query(self, name: str) -> str:
        escaped = name.replace("\\", "\\\\").replace('"', '\\"')
        scope = (
            "SERVICE wikibase:mwapi {\n"
            '    bd:serviceParam wikibase:endpoint "www.wikidata.org" ;\n'
            '                    wikibase:api "EntitySearch" ;\n'
            f'                    mwapi:search "{escaped}" ;\n'
            '                    mwapi:language "en" .\n'
            "    ?site wikibase:apiOutputItem mwapi:item .\n"
            "  }\n  "
        )
        return self.build_query(self.CATEGORIES["megalithic"][0], scope=scope, limit=20)

    # ===== FETCHING =====

    async def fetch_candidates(self) -> list[SourceRecord]:
        """
        Fetch all category queries concurrently and union the results.

        A failing category query does not abort its siblings; the error is
        only raised when every category failed.
        """
        categories = list(self.CATEGORIES)
        logger.info(f"Fetching {len(categories)} Wikidata categories...")

        results = await asyncio.gather(
            *(self.fetch_category(category) for category in categories),
            return_exceptions=True,
        )

        records = []
        errors = []
        for category, result in zip(categories, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                errors.append(result)
                logger.warning(f"Wikidata category {category} failed: {result}")
                continue
            logger.debug(f"  {category}: {len(result):,} records")
            records.extend(result)

        if errors and len(errors) == len(categories):
            raise errors[0]

        records = self.accept(records)
        logger.info(f"Total Wikidata records: {len(records):,}")
        return records

    async def fetch_category(self, category: str) -> list[SourceRecord]:
        """Fetch a single named category (see CATEGORIES)."""
        bindings = await self.execute_sparql(self.category_query(category))
        return self.transform_bindings(bindings)

    async def fetch_in_bounding_box(self, min_lat: float, min_lng: float, max_lat: float, max_lng: float) -> list[SourceRecord]:
        """Fetch archaeological sites inside a bounding box."""
        bindings = await self.execute_sparql(self.bounding_box_query(min_lat, min_lng, max_lat, max_lng))
        return self.transform_bindings(bindings)

    async def fetch_nearby(self, lat: float, lng: float, radius_meters: float = 50000) -> list[SourceRecord]:
        """Fetch archaeological sites within radius_meters of a point."""
        bindings = await self.execute_sparql(self.nearby_query(lat, lng, radius_meters))
        return self.transform_bindings(bindings)

    async def search(self, name: str) -> list[SourceRecord]:
        """
        Search Wikidata for a specific site by name.

        Returns an empty list (with a warning) when the search fails.
        """
        try:
            bindings = await self.execute_sparql(self.search_query(name))
        except (HTTPError, ValueError, OSError) as e:
            logger.warning(f"Wikidata search for {name!r} failed, returning empty results: {e}")
            return []
        return self.transform_bindings(bindings)

    async def execute_sparql(self, query: str) -> list[dict[str, Any]]:
        """
        Execute a SPARQL query against Wikidata.

        Args:
            query: SPARQL query string

        Returns:
            List of result bindings
        """
        headers = {"Accept": "application/sparql-results+json"}
        params = {"query": query, "format": "json"}

        try:
            response = await fetch_with_retry(
                self.http_client,
                self.endpoint,
                headers=headers,
                params=params,
                timeout=self.timeout,
            )
        except HTTPError as e:
            # Long queries overflow the URL; the endpoint accepts the same form via POST
            if e.status_code != 414:
                raise
            response = await send_request(
                self.http_client,
                self.endpoint,
                method="POST",
                headers=headers,
                data=params,
                timeout=self.timeout,
            )

        data = response.json()
        results = data.get("results") if isinstance(data, dict) else None
        bindings = results.get("bindings") if isinstance(results, dict) else None
        if not isinstance(bindings, list):
            raise ValueError("Malformed SPARQL response: missing results.bindings")
        return bindings

    # ===== PARSING =====

    def transform_bindings(self, bindings: list[dict[str, Any]]) -> list[SourceRecord]:
        """Parse bindings, dropping invalid rows and repeated Q-ids."""
        records = []
        for binding in bindings:
            if not isinstance(binding, dict):
                continue
            record = self._parse_binding(binding)
            if record:
                records.append(record)
        return self.accept(records)

    def _parse_binding(self, binding: dict[str, Any]) -> SourceRecord | None:
        """
        Parse a single SPARQL result binding.

        Args:
            binding: SPARQL result binding dict ({var: {"type", "value"}})

        Returns:
            SourceRecord or None if it has no item id
        """
        def value(var: str) -> str | None:
            cell = binding.get(var)
            if isinstance(cell, dict):
                return clean_optional(cell.get("value"))
            return None

        item_uri = value("site") or ""
        item_id = item_uri.rstrip("/").split("/")[-1]
        if not item_id:
            return None

        lat = to_coordinate(value("lat"))
        lon = to_coordinate(value("lon"))
        if lat is None or lon is None:
            # Fall back to the WKT literal "Point(lon lat)"
            lon, lat = parse_wkt_point(value("coord"))

        site_type = value("siteTypeLabel")
        if site_type == item_id or (site_type and _is_qid(site_type)):
            site_type = None

        # Unlabelled items come back with their Q-id as label
        name = value("siteLabel")
        if name == item_id:
            name = f"{site_type} ({item_id})" if site_type else None

        return SourceRecord(
            source_id=item_id,
            name=name,
            lat=lat,
            lon=lon,
            description=value("siteDescription"),
            site_type=site_type,
            country=value("countryLabel"),
            country_code=value("countryCode"),
            inception=value("inception"),
            wikipedia_url=value("article"),
            image_url=value("image"),
            heritage_status=value("heritageLabel"),
            wikidata_id=item_id,
            raw_data={var: cell.get("value") for var, cell in binding.items() if isinstance(cell, dict)},
        )


def _is_qid(text: str) -> bool:
    return len(text) > 1 and text[0] == "Q" and text[1:].isdigit()
