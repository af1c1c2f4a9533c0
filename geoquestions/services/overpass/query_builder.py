"""
Overpass Query Builder
Builds Overpass QL for the place-data lookups the question resolvers need
"""
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# Relation ids map to area ids by this offset
AREA_ID_OFFSET = 3600000000

TRAIN_ROUTES = ("train", "subway", "light_rail", "monorail", "tram")


class OverpassQueryBuilder:
    """
    Builds Overpass QL strings scoped to the current hiding zone
    """

    @staticmethod
    def build_region(
        polygon_coords: Optional[Sequence[Tuple[float, float]]] = None,
        relation_id: Optional[int] = None,
        bbox: Optional[Tuple[float, float, float, float]] = None,
    ) -> Dict[str, str]:
        """
        Build the region clause for zone-scoped queries

        Args:
            polygon_coords: Drawn zone outline as (lon, lat) pairs
            relation_id: OSM relation of the selected place
            bbox: (west, south, east, north) viewport

        Returns:
            dict: {"preamble": statements to run first, "filter": clause appended to each selector}
        """
        if polygon_coords:
            poly = " ".join(f"{lat} {lon}" for lon, lat in polygon_coords)
            return {"preamble": "", "filter": f'(poly:"{poly}")'}
        if relation_id is not None:
            return {
                "preamble": f"area(id:{AREA_ID_OFFSET + relation_id})->.region;",
                "filter": "(area.region)",
            }
        if bbox is not None:
            west, south, east, north = bbox
            return {"preamble": "", "filter": f"({south},{west},{north},{east})"}
        return {"preamble": "", "filter": ""}

    @staticmethod
    def build_zone_query(
        filter_expression: str,
        region: Dict[str, str],
        element_kind: str = "nwr",
        output_mode: str = "center",
        alternatives: Sequence[str] = (),
        timeout: int = 0,
    ) -> str:
        """
        Build a query for every element matching filter_expression (or any
        fallback filter) inside the region
        """
        header = "[out:json]"
        if timeout:
            header += f"[timeout:{timeout}]"
        selectors = "\n".join(
            f"{element_kind}{expression}{region['filter']};"
            for expression in [filter_expression, *alternatives]
        )
        query = f"{header};\n{region['preamble']}\n(\n{selectors}\n);\nout {output_mode};"
        logger.debug(f"🌍 Built zone query for {filter_expression}")
        return query

    @staticmethod
    def build_admin_boundary_query(lat: float, lng: float, admin_level: int) -> str:
        return (
            f"[out:json];\n"
            f"is_in({lat},{lng})->.a;\n"
            f'rel(pivot.a)["boundary"="administrative"]["admin_level"="{admin_level}"];\n'
            f"out geom;"
        )

    @staticmethod
    def build_nearest_query(lat: float, lng: float, tag: str, value: str, radius_meters: int) -> str:
        return (
            f"[out:json];\n"
            f"nwr[{tag}={value}](around:{radius_meters},{lat},{lng});\n"
            f"out center;"
        )

    @staticmethod
    def build_train_line_query(node_id: int) -> str:
        routes = "|".join(TRAIN_ROUTES)
        return (
            f"[out:json];\n"
            f"node({node_id});\n"
            f'rel(bn)["route"~"^({routes})$"];\n'
            f"node(r);\n"
            f"out ids;"
        )

    @staticmethod
    def polygon_coords(drawn_polygon: Dict[str, Any]) -> Optional[Sequence[Tuple[float, float]]]:
        """Exterior ring of the first polygon in a drawn zone (GeoJSON)"""
        geometry = drawn_polygon
        if geometry.get("type") == "FeatureCollection":
            features = geometry.get("features") or []
            if not features:
                return None
            geometry = features[0]
        if geometry.get("type") == "Feature":
            geometry = geometry.get("geometry") or {}
        if geometry.get("type") == "Polygon":
            return [tuple(c[:2]) for c in geometry["coordinates"][0]]
        if geometry.get("type") == "MultiPolygon":
            return [tuple(c[:2]) for c in geometry["coordinates"][0][0]]
        return None
