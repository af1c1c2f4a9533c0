"""
Map / application context.

Read-only view of the game state the engine consults: the working mask, the
hider's position, the drawn hiding zone or selected place, and the cached
station list. The context fingerprint is folded into every resolution
signature so that changing the zone invalidates earlier cache entries.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from shapely.geometry import box, shape
from shapely.geometry.base import BaseGeometry

from .schema import MatchingQuestion, Question

WORLD_BBOX: Tuple[float, float, float, float] = (-180.0, -90.0, 180.0, 90.0)


@dataclass(frozen=True)
class HiderLocation:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class MapLocation:
    """Coarse viewport: the OSM place the game is played in"""

    name: str
    bbox: Tuple[float, float, float, float]  # (west, south, east, north)
    osm_id: Optional[int] = None
    osm_type: str = "R"


@dataclass
class MapContext:
    mask: Optional[BaseGeometry] = None
    hider: Optional[HiderLocation] = None
    drawn_polygon: Optional[Dict[str, Any]] = None
    location: Optional[MapLocation] = None
    train_stations: List[Dict[str, Any]] = field(default_factory=list)

    def fingerprint(self) -> Any:
        """
        Drawn polygon when present, otherwise the coarse viewport

        Without either, the bbox the viewport falls back to (mask bounds or the
        world) so that a change of envelope still changes every signature.
        """
        if self.drawn_polygon:
            return self.drawn_polygon
        if self.location is not None:
            return asdict(self.location)
        return {"bbox": list(self.viewport_bbox())}

    def viewport_bbox(self) -> Tuple[float, float, float, float]:
        if self.drawn_polygon:
            return _geojson_bounds(self.drawn_polygon)
        if self.location is not None:
            return tuple(self.location.bbox)
        if self.mask is not None and not self.mask.is_empty:
            return tuple(self.mask.bounds)
        return WORLD_BBOX

    def viewport_polygon(self):
        return box(*self.viewport_bbox())


def _geojson_bounds(obj: Dict[str, Any]) -> Tuple[float, float, float, float]:
    if obj.get("type") == "FeatureCollection":
        geoms = [shape(f["geometry"]) for f in obj.get("features", []) if f.get("geometry")]
        bounds = [g.bounds for g in geoms]
        return (
            min(b[0] for b in bounds),
            min(b[1] for b in bounds),
            max(b[2] for b in bounds),
            max(b[3] for b in bounds),
        )
    if obj.get("type") == "Feature":
        return tuple(shape(obj["geometry"]).bounds)
    return tuple(shape(obj).bounds)


def question_signature(question: Question, context: MapContext) -> str:
    """
    Canonical cache key for a question within the current map context.

    Structural: two descriptors with equal resolution-relevant fields map to
    the same string regardless of identity or outcome fields.
    """
    cat = None
    if isinstance(question, MatchingQuestion) and question.cat is not None:
        cat = question.cat.model_dump(by_alias=True)
    return json.dumps(
        {
            "type": question.type.value,
            "lat": question.lat,
            "lng": question.lng,
            "cat": cat,
            "geo": question.geo,
            "entirety": context.fingerprint(),
        },
        sort_keys=True,
        default=str,
    )
