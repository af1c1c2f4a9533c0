"""
Feature Normalizer
Converts raw Overpass elements and GeoJSON payloads into shapely geometries
in a single (lon, lat) convention
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

import geopandas as gpd
import osm2geojson
from shapely.geometry import Point, shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

logger = logging.getLogger(__name__)

POLYGON_TYPES = ("Polygon", "MultiPolygon")


def element_to_point(element: Dict[str, Any]) -> Point:
    """
    Point for a raw element, preferring its center over its direct coordinate

    Ways and relations fetched with `out center` only carry `center`; nodes
    carry `lat`/`lon` directly.
    """
    center = element.get("center")
    if center:
        return Point(center["lon"], center["lat"])
    return Point(element["lon"], element["lat"])


def unique_by_tag(elements: Iterable[Dict[str, Any]], tag: str) -> List[Dict[str, Any]]:
    """Drop elements whose `tag` value was already seen; first occurrence wins"""
    seen = set()
    unique = []
    for element in elements:
        key = (element.get("tags") or {}).get(tag)
        if key in seen:
            continue
        seen.add(key)
        unique.append(element)
    return unique


def elements_to_points(elements: Iterable[Dict[str, Any]], unique_tag: Optional[str] = None) -> List[Point]:
    if unique_tag:
        elements = unique_by_tag(elements, unique_tag)
    return [element_to_point(e) for e in elements]


def overpass_to_features(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Overpass JSON -> GeoJSON FeatureCollection

    OSM tags are flattened into the feature properties and the element id is
    kept as "<type>/<id>" (e.g. "node/123").
    """
    collection = osm2geojson.json2geojson(data)
    features = []
    for feature in collection.get("features", []):
        if not feature.get("geometry"):
            continue
        props = dict(feature.get("properties") or {})
        tags = props.pop("tags", None) or {}
        osm_type = props.get("type")
        osm_id = props.get("id")
        properties = dict(tags)
        if osm_type is not None and osm_id is not None:
            properties["id"] = f"{osm_type}/{osm_id}"
        features.append({
            "type": "Feature",
            "properties": properties,
            "geometry": feature["geometry"],
        })
    logger.debug(f"🧩 Converted {len(features)} Overpass features")
    return {"type": "FeatureCollection", "features": features}


def features_to_frame(collection: Dict[str, Any]) -> gpd.GeoDataFrame:
    """FeatureCollection -> GeoDataFrame in EPSG:4326 (empty frame when there are no features)"""
    features = [f for f in collection.get("features", []) if f.get("geometry")]
    if not features:
        return gpd.GeoDataFrame(geometry=[], crs="EPSG:4326")
    return gpd.GeoDataFrame.from_features(features, crs="EPSG:4326")


def polygon_features(collection: Dict[str, Any]) -> gpd.GeoDataFrame:
    frame = features_to_frame(collection)
    if frame.empty:
        return frame
    return frame[frame.geom_type.isin(POLYGON_TYPES)]


def geometry_from_geojson(obj: Dict[str, Any]) -> BaseGeometry:
    """Geometry, Feature or FeatureCollection -> one shapely geometry"""
    kind = obj.get("type")
    if kind == "FeatureCollection":
        return unary_union([shape(f["geometry"]) for f in obj.get("features", []) if f.get("geometry")])
    if kind == "Feature":
        return shape(obj["geometry"])
    return shape(obj)


def geometries_from_geojson(obj: Dict[str, Any]) -> List[BaseGeometry]:
    """One geometry per feature (a bare geometry or Feature yields a single item)"""
    if obj.get("type") == "FeatureCollection":
        return [shape(f["geometry"]) for f in obj.get("features", []) if f.get("geometry")]
    return [geometry_from_geojson(obj)]


def points_from_geojson(obj: Dict[str, Any]) -> List[Point]:
    points = []
    for geom in geometries_from_geojson(obj):
        if geom.geom_type == "Point":
            points.append(geom)
        elif geom.geom_type == "MultiPoint":
            points.extend(geom.geoms)
    return points
