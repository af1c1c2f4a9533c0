"""
Places Service
Place-data provider for question resolution: zone-scoped Overpass searches,
administrative boundaries, the world coastline, nearest-feature lookups and
train-line membership
"""
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from shapely.geometry import Point

from ...config import settings
from ...pipelines.geometry.features import (
    POLYGON_TYPES,
    element_to_point,
    overpass_to_features,
)
from ...pipelines.geometry.geo_utils import geodesic_distance
from ...pipelines.questions.context import MapContext
from ...pipelines.questions.locations import LOCATION_FIRST_TAG
from ...pipelines.questions.schema import APILocation
from ..cache.resolution_cache import ResolutionCache
from ..notifications import NotificationCenter, notification_center
from .client import OverpassClient
from .query_builder import OverpassQueryBuilder

logger = logging.getLogger(__name__)


class SpecificLocation(str, Enum):
    """Brand-specific POIs, matched by their Wikidata id"""

    MCDONALDS = '["brand:wikidata"="Q38076"]'
    SEVEN11 = '["brand:wikidata"="Q259340"]'


class PlacesService:
    """
    Overpass-backed place provider scoped to the current map context.

    Zone searches are cached per query string for the process lifetime.
    """

    def __init__(
        self,
        context: MapContext,
        client: Optional[OverpassClient] = None,
        notifier: Optional[NotificationCenter] = None,
        cache: Optional[ResolutionCache] = None,
    ):
        self.context = context
        self.client = client or OverpassClient()
        self.notifier = notifier or notification_center
        self.cache = cache or ResolutionCache("overpass")
        self._coastline: Optional[Dict[str, Any]] = None

    def _region(self) -> Dict[str, str]:
        if self.context.drawn_polygon:
            coords = OverpassQueryBuilder.polygon_coords(self.context.drawn_polygon)
            if coords:
                return OverpassQueryBuilder.build_region(polygon_coords=coords)
        location = self.context.location
        if location is not None and location.osm_id is not None and location.osm_type == "R":
            return OverpassQueryBuilder.build_region(relation_id=location.osm_id)
        return OverpassQueryBuilder.build_region(bbox=self.context.viewport_bbox())

    async def _fetch(self, query: str) -> Dict[str, Any]:
        return await self.cache.get_or_compute(query, lambda: self.client.query_async(query))

    async def find_places_in_zone(
        self,
        filter_expression: str,
        progress_label: str,
        element_kind: str = "nwr",
        output_mode: str = "center",
        alternatives: Sequence[str] = (),
        timeout: int = 0,
    ) -> Dict[str, Any]:
        """
        Raw Overpass result for every element matching the filter in the zone

        Returns:
            dict: {"elements": [...], "remark": optional server remark}
        """
        query = OverpassQueryBuilder.build_zone_query(
            filter_expression,
            self._region(),
            element_kind=element_kind,
            output_mode=output_mode,
            alternatives=alternatives,
            timeout=timeout,
        )
        if query not in self.cache:
            await self.notifier.info(progress_label)
        data = await self._fetch(query)
        logger.info(f"🔍 {filter_expression}: {len(data.get('elements', []))} elements")
        return data

    async def find_zone_features(
        self,
        filter_expression: str,
        progress_label: str,
        element_kind: str = "nwr",
        output_mode: str = "geom",
        alternatives: Sequence[str] = (),
        timeout: int = 0,
    ) -> Dict[str, Any]:
        """Same search as find_places_in_zone, converted to a GeoJSON FeatureCollection"""
        data = await self.find_places_in_zone(
            filter_expression,
            progress_label,
            element_kind=element_kind,
            output_mode=output_mode,
            alternatives=alternatives,
            timeout=timeout,
        )
        return overpass_to_features(data)

    async def find_admin_boundary(self, lat: float, lng: float, admin_level: int) -> Optional[Dict[str, Any]]:
        """Administrative boundary polygon feature enclosing (lat, lng), or None"""
        query = OverpassQueryBuilder.build_admin_boundary_query(lat, lng, admin_level)
        features = overpass_to_features(await self._fetch(query))["features"]
        for feature in features:
            if feature["geometry"]["type"] in POLYGON_TYPES:
                return feature
        logger.info(f"🗺️ No admin level {admin_level} boundary at ({lat}, {lng})")
        return None

    async def fetch_coastline(self) -> Dict[str, Any]:
        """World coastline line work, loaded once per process"""
        if self._coastline is None:
            source = settings.COASTLINE_SOURCE
            if Path(source).exists():
                with open(source, "r", encoding="utf-8") as f:
                    self._coastline = json.load(f)
            else:
                self._coastline = await self.client.get_json_async(source)
            logger.info(f"🌊 Loaded coastline from {source}")
        return self._coastline

    async def nearest_to_question(self, lat: float, lng: float, location: APILocation) -> Optional[Dict[str, Any]]:
        """
        Nearest feature of a location category to (lat, lng)

        Returns:
            GeoJSON point feature with name, name:en and distanceToPoint (miles),
            or None when nothing is in range
        """
        query = OverpassQueryBuilder.build_nearest_query(
            lat,
            lng,
            LOCATION_FIRST_TAG[location],
            location.value,
            settings.NEAREST_SEARCH_RADIUS_METERS,
        )
        elements = [
            e for e in (await self._fetch(query)).get("elements", [])
            if "center" in e or "lat" in e
        ]
        if not elements:
            return None

        origin = Point(lng, lat)
        ranked = sorted(
            ((geodesic_distance(origin, element_to_point(e), "miles"), e) for e in elements),
            key=lambda pair: pair[0],
        )
        distance, element = ranked[0]
        point = element_to_point(element)
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [point.x, point.y]},
            "properties": {
                **(element.get("tags") or {}),
                "id": f"{element.get('type')}/{element.get('id')}",
                "distanceToPoint": distance,
            },
        }

    async def train_line_node_finder(self, station_id: str) -> List[int]:
        """Node ids on every rail route that serves the station ("node/<id>")"""
        node_id = int(str(station_id).split("/")[-1])
        data = await self._fetch(OverpassQueryBuilder.build_train_line_query(node_id))
        return [e["id"] for e in data.get("elements", []) if e.get("type") == "node"]

    async def find_places_specific(self, location: SpecificLocation) -> Dict[str, Any]:
        """Brand POIs in the zone as a point FeatureCollection"""
        data = await self.find_places_in_zone(
            location.value,
            f"Finding {location.name.lower()} locations...",
        )
        features = [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": list(element_to_point(e).coords[0])},
                "properties": dict(e.get("tags") or {}),
            }
            for e in data.get("elements", [])
            if "center" in e or "lat" in e
        ]
        return {"type": "FeatureCollection", "features": features}
