"""
OpenStreetMap megalithic sites adapter.

Queries the Overpass API for archaeological and megalithic features, trying
a list of interchangeable endpoints in order.

Data source: https://www.openstreetmap.org/
License: ODbL (Open Database License)
"""

import asyncio
from typing import Any

import httpx
from loguru import logger

from site_importer.config import OSM_SITE_TYPES, settings
from site_importer.ingesters.base import BaseSourceAdapter, SourceRecord
from site_importer.types import SourceTag
from site_importer.utils.geo import to_coordinate
from site_importer.utils.http import HTTPError, send_request
from site_importer.utils.text import clean_optional


class AllEndpointsFailedError(HTTPError):
    """Raised when every configured Overpass endpoint failed the same query."""

    def __init__(self, message: str, errors: list[Exception]):
        super().__init__(message)
        self.errors = errors


# Tag filters OR'd together by the broad queries; (element types, filter)
MEGALITHIC_FILTERS = [
    ("node,way,relation", '["historic"="archaeological_site"]'),
    ("node,way", '["historic"="megalith"]'),
    ("node,way", '["megalith_type"]'),
    ("node,way", '["historic"="standing_stone"]'),
    ("node,way", '["historic"="stone_circle"]'),
    ("node,way", '["historic"="dolmen"]'),
    ("node,way", '["historic"="tumulus"]'),
    ("node,way", '["historic"="tomb"]'),
    ("node,way", '["historic"="pyramid"]'),
    ("node,way", '["man_made"="pyramid"]'),
    ("node,way", '["historic"="ruins"]["ruins"="ancient"]'),
]

# Smaller filter set for the scoped (bbox / around / area) queries
SCOPED_FILTERS = [
    ("node,way", '["historic"="archaeological_site"]'),
    ("node,way", '["historic"="megalith"]'),
    ("node", '["megalith_type"]'),
    ("node", '["historic"="standing_stone"]'),
    ("node,way", '["historic"="stone_circle"]'),
    ("node", '["historic"="dolmen"]'),
    ("node", '["historic"="tumulus"]'),
    ("node,way", '["historic"="pyramid"]'),
]

SITE_TYPE_FILTERS = {
    "stone_circles": [
        ("node,way,relation", '["historic"="stone_circle"]'),
    ],
    "standing_stones": [
        ("node", '["historic"="standing_stone"]'),
        ("node", '["megalith_type"="menhir"]'),
        ("node", '["historic"="megalith"]["megalith_type"="menhir"]'),
    ],
    "dolmens": [
        ("node,way", '["historic"="dolmen"]'),
        ("node", '["megalith_type"="dolmen"]'),
    ],
    "pyramids": [
        ("node,way", '["historic"="pyramid"]'),
        ("node,way", '["man_made"="pyramid"]'),
    ],
    "tumuli": [
        ("node,way", '["historic"="tumulus"]'),
        ("node,way", '["historic"="tomb"]'),
    ],
}

# OSM heritage=* levels
HERITAGE_LEVELS = {
    "1": "World Heritage Site",
    "2": "National heritage",
    "3": "Regional heritage",
    "4": "Local heritage",
}


class OverpassAdapter(BaseSourceAdapter):
    """
    Adapter for OpenStreetMap historic and megalithic features.

    Every query is tried against each endpoint in order; the next endpoint is
    used on any transport failure, error status or unusable response.
    """

    source_tag = SourceTag.OSM
    source_name = "OpenStreetMap"
    timeout = settings.importer.overpass_timeout

    def __init__(self, http_client=None, endpoints: list[str] | None = None):
        super().__init__(http_client=http_client)
        self.endpoints = endpoints or settings.importer.overpass_endpoint_list
        if not self.endpoints:
            raise ValueError("At least one Overpass endpoint is required")

    # ===== QUERY BUILDING =====

    def build_query(self, filters: list[tuple[str, str]], scope: str = "", timeout: int = 60, header: str = "", output: str = "out center tags;") -> str:
        """Union each filter over its element types, applying an optional scope suffix."""
        lines = []
        for element_types, tag_filter in filters:
            for element_type in element_types.split(","):
                lines.append(f"  {element_type}{tag_filter}{scope};")
        statements = "\n".join(lines)
        return f"[out:json][timeout:{timeout}]{header};\n(\n{statements}\n);\n{output}\n"

    def global_query(self) -> str:
        return self.build_query(MEGALITHIC_FILTERS, timeout=120)

    def bounding_box_query(self, min_lat: float, min_lng: float, max_lat: float, max_lng: float) -> str:
        return self.build_query(SCOPED_FILTERS, header=f"[bbox:{min_lat},{min_lng},{max_lat},{max_lng}]")

    def nearby_query(self, lat: float, lng: float, radius_meters: float) -> str:
        return self.build_query(SCOPED_FILTERS, scope=f"(around:{radius_meters:g},{lat},{lng})")

    def country_query(self, country_code: str) -> str:
        query = self.build_query(SCOPED_FILTERS, scope="(area.searchArea)", timeout=120)
        area = f'area["ISO3166-1"="{country_code.upper()}"]->.searchArea;\n'
        header, _, rest = query.partition("\n")
        return f"{header}\n{area}{rest}"

    def site_type_query(self, site_type: str) -> str:
        if site_type not in SITE_TYPE_FILTERS:
            raise ValueError(f"Unknown site type: {site_type} (expected one of {OSM_SITE_TYPES})")
        return self.build_query(SITE_TYPE_FILTERS[site_type])

    # ===== FETCHING =====

    async def fetch_candidates(self) -> list[SourceRecord]:
        """Fetch all megalithic and archaeological sites."""
        logger.info("Fetching megalithic sites from OSM...")
        records = await self._fetch(self.global_query())
        logger.info(f"Total OSM records: {len(records):,}")
        return records

    async def fetch_in_bounding_box(self, min_lat: float, min_lng: float, max_lat: float, max_lng: float) -> list[SourceRecord]:
        """Fetch sites within a bounding box."""
        return await self._fetch(self.bounding_box_query(min_lat, min_lng, max_lat, max_lng))

    async def fetch_nearby(self, lat: float, lng: float, radius_meters: float = 50000) -> list[SourceRecord]:
        """Fetch sites near a specific location."""
        return await self._fetch(self.nearby_query(lat, lng, radius_meters))

    async def fetch_by_country(self, country_code: str) -> list[SourceRecord]:
        """Fetch sites inside a country (ISO 3166-1 alpha-2 area)."""
        return await self._fetch(self.country_query(country_code))

    async def fetch_by_type(self, site_type: str) -> list[SourceRecord]:
        """Fetch sites of one type group (see OSM_SITE_TYPES)."""
        return await self._fetch(self.site_type_query(site_type))

    async def fetch_by_types(self, site_types: list[str]) -> list[SourceRecord]:
        """
        Fetch several type groups concurrently and union the results.

        Failing groups are logged and skipped; the first error is raised only
        when every group failed.
        """
        for site_type in site_types:
            if site_type not in SITE_TYPE_FILTERS:
                raise ValueError(f"Unknown site type: {site_type} (expected one of {OSM_SITE_TYPES})")

        results = await asyncio.gather(
            *(self.fetch_by_type(site_type) for site_type in site_types),
            return_exceptions=True,
        )

        records = []
        errors = []
        for site_type, result in zip(site_types, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                errors.append(result)
                logger.warning(f"OSM {site_type} query failed: {result}")
                continue
            logger.info(f"Found {len(result):,} {site_type} from OSM")
            records.extend(result)

        if errors and len(errors) == len(site_types):
            raise errors[0]

        return self.accept(records)

    async def count_sites(self) -> int:
        """
        Count megalithic nodes without downloading them.

        Returns 0 when the count query fails.
        """
        query = self.build_query(
            [(element_types, tag_filter) for element_types, tag_filter in SCOPED_FILTERS if "node" in element_types],
            timeout=30,
            output="out count;",
        )
        try:
            elements = await self.execute_overpass(query)
        except HTTPError as e:
            logger.warning(f"OSM count query failed: {e}")
            return 0

        if not elements:
            return 0
        total = (elements[0].get("tags") or {}).get("total", "0")
        try:
            return int(total)
        except (TypeError, ValueError):
            return 0

    async def _fetch(self, query: str) -> list[SourceRecord]:
        elements = await self.execute_overpass(query)
        return self.transform_elements(elements)

    async def execute_overpass(self, query: str) -> list[dict[str, Any]]:
        """
        Execute an Overpass query with endpoint fallback.

        Args:
            query: Overpass QL query

        Returns:
            The response's elements array

        Raises:
            AllEndpointsFailedError: When every endpoint failed
        """
        errors = []

        for endpoint in self.endpoints:
            try:
                response = await send_request(
                    self.http_client,
                    endpoint,
                    method="POST",
                    data={"data": query},
                    timeout=self.timeout,
                )
                data = response.json()
            except (httpx.TransportError, HTTPError, ValueError) as e:
                errors.append(e)
                logger.warning(f"Overpass endpoint {endpoint} failed, trying next... ({e})")
                continue

            elements = data.get("elements") if isinstance(data, dict) else None
            remark = data.get("remark", "") if isinstance(data, dict) else ""
            if isinstance(remark, str) and "error" in remark.lower():
                errors.append(ValueError(remark))
                logger.warning(f"Overpass endpoint {endpoint} reported: {remark[:200]}")
                continue
            if not isinstance(elements, list):
                errors.append(ValueError("Malformed Overpass response: missing elements"))
                logger.warning(f"Overpass endpoint {endpoint} returned no elements array")
                continue

            return elements

        raise AllEndpointsFailedError(
            f"All {len(self.endpoints)} Overpass endpoints failed",
            errors=errors,
        )

    # ===== PARSING =====

    def transform_elements(self, elements: list[dict[str, Any]]) -> list[SourceRecord]:
        """Parse elements, dropping unusable ones and repeated element ids."""
        records = []
        for element in elements:
            record = self._parse_element(element)
            if record:
                records.append(record)
        return self.accept(records)

    def _parse_element(self, element: dict[str, Any]) -> SourceRecord | None:
        """Parse a single Overpass element."""
        if not isinstance(element, dict):
            return None

        elem_type = element.get("type", "")
        elem_id = element.get("id")
        if elem_type not in ("node", "way", "relation") or elem_id is None:
            return None

        tags = element.get("tags")
        if not isinstance(tags, dict):
            tags = {}
        center = element.get("center")
        if not isinstance(center, dict):
            center = {}

        lat = to_coordinate(element.get("lat", center.get("lat")))
        lon = to_coordinate(element.get("lon", center.get("lon")))

        historic = clean_optional(tags.get("historic"))
        site_type = clean_optional(tags.get("megalith_type")) or historic or clean_optional(tags.get("site_type"))

        name = clean_optional(tags.get("name")) or clean_optional(tags.get("name:en"))
        if not name and site_type:
            name = f"{site_type.replace('_', ' ')} (OSM {elem_id})"

        return SourceRecord(
            source_id=f"{elem_type}-{elem_id}",
            name=name,
            lat=lat,
            lon=lon,
            description=clean_optional(tags.get("description")) or clean_optional(tags.get("description:en")),
            site_type=site_type,
            inception=clean_optional(tags.get("start_date")),
            wikipedia_url=_wikipedia_url(tags.get("wikipedia")),
            heritage_status=_heritage_status(tags),
            wikidata_id=clean_optional(tags.get("wikidata")),
            osm_id=f"{elem_type}/{elem_id}",
            raw_data={
                "osm_type": elem_type,
                "osm_id": elem_id,
                "historic": historic,
                "tags": tags,
            },
        )


def _wikipedia_url(value: str | None) -> str | None:
    """Expand an OSM wikipedia tag ("en:Stonehenge") into an article URL."""
    value = clean_optional(value)
    if not value:
        return None
    if value.startswith("http"):
        return value

    lang, sep, title = value.partition(":")
    if not sep or len(lang) > 3:
        lang, title = "en", value
    return f"https://{lang}.wikipedia.org/wiki/{title.strip().replace(' ', '_')}"


def _heritage_status(tags: dict[str, str]) -> str | None:
    """Readable heritage designation from heritage / heritage:operator tags."""
    heritage = clean_optional(tags.get("heritage"))
    if heritage:
        return HERITAGE_LEVELS.get(heritage, heritage)
    return clean_optional(tags.get("heritage:operator"))
