"""
Shared test doubles for the question tests: GeoJSON builders and an
in-memory stand-in for the place-data provider.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


def point_feature(lng: float, lat: float, **properties: Any) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lng, lat]},
        "properties": properties,
    }


def polygon_feature(coords: List[Tuple[float, float]], **properties: Any) -> Dict[str, Any]:
    ring = [list(c) for c in coords]
    if ring[0] != ring[-1]:
        ring.append(ring[0])
    return {
        "type": "Feature",
        "geometry": {"type": "Polygon", "coordinates": [ring]},
        "properties": properties,
    }


def square(west: float, south: float, east: float, north: float, **properties: Any) -> Dict[str, Any]:
    return polygon_feature([(west, south), (east, south), (east, north), (west, north)], **properties)


def collection(*features: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": list(features)}


def node(osm_id: int, lng: float, lat: float, **tags: Any) -> Dict[str, Any]:
    return {"type": "node", "id": osm_id, "lat": lat, "lon": lng, "tags": tags}


@dataclass
class FakePlaces:
    zone_results: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    feature_results: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    admin_boundary: Optional[Dict[str, Any]] = None
    coastline: Optional[Dict[str, Any]] = None
    nearest: Dict[Tuple[float, float], Dict[str, Any]] = field(default_factory=dict)
    train_line_nodes: List[int] = field(default_factory=list)
    specific: Dict[str, Any] = field(default_factory=lambda: collection())
    calls: List[str] = field(default_factory=list)

    async def find_places_in_zone(
        self,
        filter_expression: str,
        progress_label: str,
        element_kind: str = "nwr",
        output_mode: str = "center",
        alternatives=(),
        timeout: int = 0,
    ) -> Dict[str, Any]:
        self.calls.append(filter_expression)
        return self.zone_results.get(filter_expression, {"elements": []})

    async def find_zone_features(
        self,
        filter_expression: str,
        progress_label: str,
        element_kind: str = "nwr",
        output_mode: str = "geom",
        alternatives=(),
        timeout: int = 0,
    ) -> Dict[str, Any]:
        self.calls.append(filter_expression)
        return self.feature_results.get(filter_expression, collection())

    async def find_admin_boundary(self, lat: float, lng: float, admin_level: int) -> Optional[Dict[str, Any]]:
        self.calls.append(f"admin:{admin_level}")
        return self.admin_boundary

    async def fetch_coastline(self) -> Dict[str, Any]:
        self.calls.append("coastline")
        return self.coastline

    async def nearest_to_question(self, lat: float, lng: float, location) -> Optional[Dict[str, Any]]:
        self.calls.append(f"nearest:{location.value}")
        return self.nearest.get((lat, lng))

    async def train_line_node_finder(self, station_id: str) -> List[int]:
        self.calls.append(f"line:{station_id}")
        return self.train_line_nodes

    async def find_places_specific(self, location) -> Dict[str, Any]:
        self.calls.append(f"specific:{location.name}")
        return self.specific
