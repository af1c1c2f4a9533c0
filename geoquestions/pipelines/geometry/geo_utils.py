"""
Geometry Utilities
Polygon algebra, geodesic distances and buffers, and mask operations used by
the question resolvers. Geometries are shapely objects in (lon, lat) order.
"""
import logging
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from geographiclib.geodesic import Geodesic
from pyproj import CRS, Transformer
from shapely.errors import GEOSException
from shapely.geometry import GeometryCollection, LineString, MultiLineString, MultiPoint, MultiPolygon, Point, box
from shapely.geometry.base import BaseGeometry
from shapely.ops import linemerge, polygonize, transform, unary_union
from shapely.validation import make_valid

from ..questions.errors import GeometryOperationFailed

logger = logging.getLogger(__name__)

WORLD_BBOX = (-180.0, -90.0, 180.0, 90.0)

class NoBoundary:
    """Sentinel: no spatial boundary applies, the question holds everywhere"""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_BOUNDARY"


NO_BOUNDARY = NoBoundary()

UNIT_METERS = {
    "meters": 1.0,
    "kilometers": 1000.0,
    "miles": 1609.344,
}

_GEOD = Geodesic.WGS84
_WGS84 = CRS.from_epsg(4326)

# Per-center transformer caches (forward and inverse kept apart)
_to_local_transformers: Dict[Tuple[float, float], Transformer] = {}
_from_local_transformers: Dict[Tuple[float, float], Transformer] = {}


@contextmanager
def geometry_operation(name: str):
    """Re-raise shapely/GEOS failures as GeometryOperationFailed"""
    try:
        yield
    except (GEOSException, ValueError) as e:
        logger.debug(f"📐 {name} failed: {e}")
        raise GeometryOperationFailed(f"{name} failed: {e}") from e


def _to_meters(distance: float, units: str) -> float:
    try:
        return distance * UNIT_METERS[units]
    except KeyError:
        raise ValueError(f"Unsupported distance unit: {units}")


def _local_key(lon: float, lat: float) -> Tuple[float, float]:
    return (round(lon, 6), round(lat, 6))


def _local_crs(lon: float, lat: float) -> CRS:
    # Azimuthal equidistant: distances from the center are true geodesic distances
    return CRS.from_proj4(f"+proj=aeqd +lat_0={lat} +lon_0={lon} +datum=WGS84 +units=m +no_defs")


def to_local(geom: BaseGeometry, lon: float, lat: float) -> BaseGeometry:
    key = _local_key(lon, lat)
    transformer = _to_local_transformers.get(key)
    if transformer is None:
        transformer = Transformer.from_crs(_WGS84, _local_crs(*key), always_xy=True)
        _to_local_transformers[key] = transformer
    return transform(transformer.transform, geom)


def from_local(geom: BaseGeometry, lon: float, lat: float) -> BaseGeometry:
    key = _local_key(lon, lat)
    transformer = _from_local_transformers.get(key)
    if transformer is None:
        transformer = Transformer.from_crs(_local_crs(*key), _WGS84, always_xy=True)
        _from_local_transformers[key] = transformer
    return transform(transformer.transform, geom)


def parts(geom: BaseGeometry) -> List[BaseGeometry]:
    """Flatten multi-geometries and collections into their non-empty parts"""
    if geom is None or geom.is_empty:
        return []
    if hasattr(geom, "geoms"):
        flat = []
        for part in geom.geoms:
            flat.extend(parts(part))
        return flat
    return [geom]


def geodesic_distance(a: Point, b: Point, units: str = "kilometers") -> float:
    meters = _GEOD.Inverse(a.y, a.x, b.y, b.x)["s12"]
    return meters / UNIT_METERS[units]


def point_to_geometry_distance(
    point: Point,
    geom: BaseGeometry,
    units: str = "kilometers",
    signed: bool = False,
) -> float:
    """
    Geodesic distance from point to the nearest part of geom

    With signed=True a point inside a polygonal geom gets the negated distance
    to the polygon's boundary.
    """
    with geometry_operation("point distance"):
        local = to_local(geom, point.x, point.y)
        origin = Point(0.0, 0.0)
        if signed and local.geom_type in ("Polygon", "MultiPolygon") and local.covers(origin):
            meters = -origin.distance(local.boundary)
        else:
            meters = origin.distance(local)
    return meters / UNIT_METERS[units]


def nearest_point(point: Point, candidates: Sequence[Point], units: str = "kilometers") -> Tuple[int, float]:
    """Index of and geodesic distance to the candidate closest to point"""
    if not candidates:
        raise ValueError("No candidates to search")
    best_index, best_distance = 0, float("inf")
    for index, candidate in enumerate(candidates):
        distance = geodesic_distance(point, candidate, units)
        if distance < best_distance:
            best_index, best_distance = index, distance
    return best_index, best_distance


def geodesic_buffer(
    geom: BaseGeometry,
    distance: float,
    units: str = "kilometers",
    steps: int = 8,
) -> BaseGeometry:
    """
    Buffer geom by a geodesic distance

    Each part is buffered in an azimuthal equidistant projection centered on
    that part, so circles around far-apart points stay true circles on the
    ellipsoid. Negative distances shrink polygons.
    """
    meters = _to_meters(distance, units)
    buffered = []
    with geometry_operation("buffer"):
        for part in parts(geom):
            center = part.centroid
            local = to_local(part, center.x, center.y)
            grown = local.buffer(meters, quad_segs=max(1, steps))
            if grown.is_empty:
                continue
            buffered.append(from_local(grown, center.x, center.y))
    return safe_union(buffered)


def safe_union(geoms: Iterable[BaseGeometry]) -> BaseGeometry:
    """Unary union that retries on repaired inputs when GEOS rejects the originals"""
    geoms = [g for g in geoms if g is not None and not g.is_empty]
    if not geoms:
        return MultiPolygon()
    try:
        return unary_union(geoms)
    except GEOSException as e:
        logger.warning(f"⚠️ Union failed ({e}); retrying with repaired geometries")
    with geometry_operation("union"):
        return unary_union([make_valid(g) for g in geoms])


def modify_map_data(mask: BaseGeometry, boundary: BaseGeometry, within: bool) -> BaseGeometry:
    """
    Apply a resolved boundary to the working mask

    within=True keeps the part of the mask inside the boundary, within=False
    removes it. NO_BOUNDARY leaves the mask as it is. The input mask is
    never modified.
    """
    if boundary is NO_BOUNDARY:
        return mask
    if boundary is None:
        raise GeometryOperationFailed("No boundary was resolved for this question")
    with geometry_operation("mask adjustment"):
        if within:
            return mask.intersection(boundary)
        return mask.difference(boundary)


def holed_mask(geom: BaseGeometry) -> BaseGeometry:
    """Complement of geom within the world extent"""
    if geom is None:
        raise GeometryOperationFailed("Cannot invert a missing geometry")
    with geometry_operation("mask inversion"):
        return box(*WORLD_BBOX).difference(geom)


def polygon_to_line(geom: BaseGeometry) -> BaseGeometry:
    """Outline (rings as lines) of a polygonal geometry"""
    if geom is None or geom.is_empty:
        raise GeometryOperationFailed("Nothing to outline")
    with geometry_operation("polygon to line"):
        return geom.boundary


def line_to_polygon(lines: Iterable[BaseGeometry]) -> BaseGeometry:
    """Close line work (e.g. coastline rings) into one polygonal area"""
    segments = []
    for geom in lines:
        segments.extend(p for p in parts(geom) if isinstance(p, LineString))
    with geometry_operation("line to polygon"):
        return unary_union(list(polygonize(segments)))


def bbox_extension(
    bbox: Tuple[float, float, float, float],
    distance: float,
    units: str = "miles",
) -> Tuple[float, float, float, float]:
    """
    Grow bbox so a buffer of `distance` around anything inside it is not cut off

    The bbox polygon is buffered geodesically by |distance|, then each side is
    pushed out again by the original width/height.
    """
    buffered = geodesic_buffer(box(*bbox), abs(distance), units=units)
    west, south, east, north = buffered.bounds if not buffered.is_empty else bbox
    delta_lng = bbox[2] - bbox[0]
    delta_lat = bbox[3] - bbox[1]
    return (
        west - delta_lng,
        south - delta_lat,
        east + delta_lng,
        north + delta_lat,
    )


def _endpoint_key(coord) -> Tuple[float, float]:
    return (round(coord[0], 9), round(coord[1], 9))


def group_objects(lines: Sequence[LineString]) -> List[List[LineString]]:
    """Group line segments into connected components (shared endpoints)"""
    parent = list(range(len(lines)))

    def find(x):
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    def union(a, b):
        ra, rb = find(a), find(b)
        if ra != rb:
            parent[rb] = ra

    owner: Dict[Tuple[float, float], int] = {}
    for index, line in enumerate(lines):
        coords = list(line.coords)
        if not coords:
            continue
        for endpoint in (coords[0], coords[-1]):
            key = _endpoint_key(endpoint)
            if key in owner:
                union(owner[key], index)
            else:
                owner[key] = index

    groups: Dict[int, List[LineString]] = {}
    for index, line in enumerate(lines):
        groups.setdefault(find(index), []).append(line)
    return list(groups.values())


def connect_to_separate_lines(lines: Sequence[LineString]) -> MultiLineString:
    """Join segments that share endpoints into as few lines as possible"""
    if not lines:
        return MultiLineString()
    with geometry_operation("line merge"):
        merged = linemerge(list(lines))
    return MultiLineString([p for p in parts(merged) if isinstance(p, LineString)])


def arc_buffer_to_point(geoms: Sequence[BaseGeometry], lat: float, lng: float, units: str = "miles") -> BaseGeometry:
    """
    Buffer the reference geometry by the question point's distance to it

    The result is the region at least as close to the reference geometry as
    the question point is.
    """
    combined = safe_union(geoms)
    if combined.is_empty:
        return combined
    distance = point_to_geometry_distance(Point(lng, lat), combined, units=units)
    logger.debug(f"📏 Arc buffer distance {distance:.3f} {units}")
    if distance <= 0:
        if combined.geom_type in ("Polygon", "MultiPolygon"):
            return combined
        return GeometryCollection()
    return geodesic_buffer(combined, distance, units=units)


def combine(geoms: Iterable[BaseGeometry]) -> Optional[BaseGeometry]:
    """Merge same-typed geometries into one multi-geometry (no dissolving)"""
    flat = [p for g in geoms for p in parts(g)]
    if not flat:
        return None
    kinds = {p.geom_type for p in flat}
    if kinds == {"Point"}:
        return MultiPoint(flat)
    if kinds == {"LineString"}:
        return MultiLineString(flat)
    if kinds == {"Polygon"}:
        return MultiPolygon(flat)
    return GeometryCollection(flat)
