"""
Voronoi Partitioner
Splits a bounding envelope into one cell per site and finds the cell that
holds a reference point

Cells are computed in the plane on raw (lon, lat) degrees, not on the
sphere. Longitude degrees shrink toward the poles, so at high latitudes the
edges drift from the true equidistant (geodesic) bisectors; cells near the
antimeridian are not wrapped.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from shapely.geometry import MultiPoint, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import voronoi_diagram

from .geo_utils import geometry_operation, parts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoronoiCell:
    site: Point
    polygon: BaseGeometry


def _unique_sites(points: Sequence[Point]) -> List[Point]:
    seen = set()
    sites = []
    for point in points:
        key = (point.x, point.y)
        if key in seen:
            continue
        seen.add(key)
        sites.append(point)
    return sites


def geo_spatial_voronoi(points: Sequence[Point], envelope: Polygon) -> List[VoronoiCell]:
    """
    Tessellate envelope into cells closest to each site

    Cells are clipped to the envelope, so together they cover it exactly and
    only share edges. Sites whose cell falls entirely outside the envelope
    get no cell. Fewer than two distinct sites yield one cell covering the
    whole envelope.
    """
    sites = _unique_sites(points)
    if not sites:
        return []
    if len(sites) == 1:
        return [VoronoiCell(site=sites[0], polygon=envelope)]

    with geometry_operation("voronoi"):
        diagram = voronoi_diagram(MultiPoint(sites), envelope=envelope)
        raw_cells = [g for g in parts(diagram) if g.geom_type == "Polygon"]

        cells = []
        for site in sites:
            # Every raw cell contains its own generating site
            raw = next((c for c in raw_cells if c.covers(site)), None)
            if raw is None:
                logger.debug(f"🔷 No Voronoi cell generated for site {site.wkt}")
                continue
            clipped = raw.intersection(envelope)
            if clipped.is_empty:
                continue
            cells.append(VoronoiCell(site=site, polygon=clipped))

    logger.info(f"🔷 Built {len(cells)} Voronoi cells from {len(sites)} sites")
    return cells


def locate_cell(cells: Sequence[VoronoiCell], point: Point) -> Optional[BaseGeometry]:
    """
    Polygon of the cell containing point

    When floating-point noise leaves the point in no cell (or the point lies
    outside the envelope) the cell of the nearest site is used; by definition
    that is the cell the point belongs to. None only when there are no cells.
    """
    for cell in cells:
        if cell.polygon.covers(point):
            return cell.polygon
    if not cells:
        return None
    nearest = min(cells, key=lambda c: c.site.distance(point))
    logger.debug("🔷 Point outside every cell; using the nearest site's cell")
    return nearest.polygon
