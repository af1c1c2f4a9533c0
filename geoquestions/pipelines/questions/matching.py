"""
Matching questions ("is the hider in the same ... as me?")

Resolves a matching descriptor into the region whose interior means "same",
applies it to the working mask, derives the hider's answer and exports a
preview outline.
"""
import logging
import re
from typing import Awaitable, Callable, Dict, List, Optional, Union

from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry

from ...config import settings
from ...services.cache.resolution_cache import ResolutionCache
from ...services.notifications import NotificationCenter, notification_center
from ..geometry.features import geometry_from_geojson, points_from_geojson, polygon_features
from ..geometry.geo_utils import (
    NO_BOUNDARY,
    NoBoundary,
    geometry_operation,
    modify_map_data,
    nearest_point,
    polygon_to_line,
    safe_union,
)
from ..geometry.voronoi import geo_spatial_voronoi, locate_cell
from .context import MapContext, question_signature
from .correction import apply_then_test_then_flip
from .errors import NoBoundaryFound, NoEnglishName
from .locations import find_airports, find_full_locations, find_major_cities
from .schema import MatchingQuestion, MatchingType, full_location, plain_location

logger = logging.getLogger(__name__)


Boundary = Union[BaseGeometry, NoBoundary, None]

STATION_TYPES = {
    MatchingType.SAME_FIRST_LETTER_STATION,
    MatchingType.SAME_LENGTH_STATION,
    MatchingType.SAME_TRAIN_LINE,
}

_ASCII_LETTER = re.compile(r"^[a-zA-Z]$")


def english_name(properties: Dict) -> Optional[str]:
    """English name when tagged, otherwise the native name"""
    return properties.get("name:en") or properties.get("name")


def zone_letter(zone: Dict) -> str:
    """
    Upper-case initial used to group zones for letter questions

    Raises:
        NoEnglishName: neither the English nor the native name starts with an ASCII letter
    """
    properties = zone.get("properties") or {}
    name = properties.get("name:en")
    if not name:
        native = properties.get("name") or ""
        if native and _ASCII_LETTER.match(native[0]):
            name = native
    if not name or not _ASCII_LETTER.match(name[0]):
        raise NoEnglishName("No English name found for this zone")
    return name[0].upper()


class MatchingResolver:
    """
    Boundary resolution and answer derivation for matching questions.

    Boundaries are memoized per question signature (subtype, placement,
    category, embedded geometry, map context).
    """

    def __init__(
        self,
        places,
        context: MapContext,
        notifier: Optional[NotificationCenter] = None,
        cache: Optional[ResolutionCache] = None,
    ):
        self.places = places
        self.context = context
        self.notifier = notifier or notification_center
        self.cache = cache or ResolutionCache("matching")
        self._resolvers = self._build_registry()

    def _build_registry(self) -> Dict[MatchingType, Callable[[MatchingQuestion], Awaitable[Boundary]]]:
        registry = {}
        for question_type in MatchingType:
            if plain_location(question_type.value) or question_type in STATION_TYPES:
                registry[question_type] = self._no_boundary
            elif full_location(question_type.value):
                registry[question_type] = self._point_set_cell
        registry.update({
            MatchingType.CUSTOM_ZONE: self._custom_zone,
            MatchingType.ZONE: self._admin_zone,
            MatchingType.LETTER_ZONE: self._letter_zone,
            MatchingType.AIRPORT: self._point_set_cell,
            MatchingType.MAJOR_CITY: self._point_set_cell,
            MatchingType.CUSTOM_POINTS: self._point_set_cell,
        })
        missing = set(MatchingType) - set(registry)
        if missing:
            raise RuntimeError(f"Unhandled matching types: {sorted(t.value for t in missing)}")
        return registry

    async def find_matching_places(self, question: MatchingQuestion) -> List[Point]:
        """Point set whose Voronoi cells partition the zone for this question"""
        if question.type == MatchingType.AIRPORT:
            return await find_airports(self.places)
        if question.type == MatchingType.MAJOR_CITY:
            return await find_major_cities(self.places)
        if question.type == MatchingType.CUSTOM_POINTS:
            return points_from_geojson(question.geo)
        location = full_location(question.type.value)
        if location is not None:
            return await find_full_locations(self.places, self.notifier, location)
        return []

    async def determine_boundary(self, question: MatchingQuestion) -> Boundary:
        """
        Region whose interior means "same" for this question

        Returns:
            A polygonal geometry, NO_BOUNDARY when the question is answered by
            nearest-feature comparison instead, or None when no Voronoi cell
            could be formed

        Raises:
            NoBoundaryFound, NoEnglishName
        """
        key = question_signature(question, self.context)
        resolver = self._resolvers[question.type]
        return await self.cache.get_or_compute(key, lambda: resolver(question))

    async def _no_boundary(self, question: MatchingQuestion) -> Boundary:
        return NO_BOUNDARY

    async def _custom_zone(self, question: MatchingQuestion) -> Boundary:
        with geometry_operation("custom zone"):
            return geometry_from_geojson(question.geo)

    async def _enclosing_zone(self, question: MatchingQuestion) -> Dict:
        zone = await self.places.find_admin_boundary(question.lat, question.lng, question.cat.admin_level)
        if not zone:
            await self.notifier.error("No boundary found for this zone")
            raise NoBoundaryFound("No boundary found")
        return zone

    async def _admin_zone(self, question: MatchingQuestion) -> Boundary:
        zone = await self._enclosing_zone(question)
        with geometry_operation("admin zone"):
            return geometry_from_geojson(zone)

    async def _letter_zone(self, question: MatchingQuestion) -> Boundary:
        zone = await self._enclosing_zone(question)
        try:
            letter = zone_letter(zone)
        except NoEnglishName:
            await self.notifier.error("No English name found for this zone")
            raise

        admin_level = question.cat.admin_level
        # Regex is faster than filtering afterward
        collection = await self.places.find_zone_features(
            f'[admin_level={admin_level}]["name:en"~"^{letter}.+"]',
            f"Finding zones that start with the same letter ({letter})...",
            "relation",
            "geom",
            [f'[admin_level={admin_level}]["name"~"^{letter}.+"]'],
        )
        zones = polygon_features(collection)
        logger.info(f"🔤 {len(zones)} admin level {admin_level} zones start with {letter}")
        if zones.empty:
            return safe_union([])

        # Unioning full-resolution zones is too slow and fragile; the
        # simplified edges are an accepted approximation.
        with geometry_operation("letter zone simplify"):
            simplified = zones.geometry.simplify(
                settings.LETTER_ZONE_SIMPLIFY_TOLERANCE, preserve_topology=True
            )
        return safe_union(list(simplified))

    async def _point_set_cell(self, question: MatchingQuestion) -> Boundary:
        points = await self.find_matching_places(question)
        cells = geo_spatial_voronoi(points, self.context.viewport_polygon())
        cell = locate_cell(cells, Point(question.lng, question.lat))
        if cell is None:
            logger.info(f"🔷 No Voronoi cell for {question.type.value} question")
        return cell

    async def adjust(self, question: MatchingQuestion, mask: Optional[BaseGeometry]) -> Optional[BaseGeometry]:
        """Working mask narrowed by the question's answer (None when there is no mask)"""
        if mask is None:
            return None
        boundary = await self.determine_boundary(question)
        return modify_map_data(mask, boundary, question.same)

    async def hiderify(self, question: MatchingQuestion) -> MatchingQuestion:
        """
        Answer the question from the hider's true position

        Returns the same descriptor; when an answer cannot be computed its
        outcome fields are left as they were.
        """
        hider = self.context.hider
        if hider is None:
            return question

        if plain_location(question.type.value):
            return await self._hiderify_nearest(question)
        if question.type in STATION_TYPES:
            return await self._hiderify_station(question)

        mask = self.context.mask
        if mask is None:
            return question

        await apply_then_test_then_flip(
            question,
            "same",
            lambda m: self.adjust(question, m),
            mask,
            Point(hider.longitude, hider.latitude),
        )
        return question

    async def _hiderify_nearest(self, question: MatchingQuestion) -> MatchingQuestion:
        location = plain_location(question.type.value)
        hider = self.context.hider
        question_nearest = await self.places.nearest_to_question(question.lat, question.lng, location)
        hider_nearest = await self.places.nearest_to_question(hider.latitude, hider.longitude, location)
        if not question_nearest or not hider_nearest:
            return question

        question_name = question_nearest["properties"].get("name")
        hider_name = hider_nearest["properties"].get("name")
        if not question_name or not hider_name:
            return question

        question.same = question_name == hider_name
        return question

    async def _hiderify_station(self, question: MatchingQuestion) -> MatchingQuestion:
        hider = self.context.hider
        stations = (await self.places.find_zone_features(
            "[railway=station]",
            "Finding train stations. This may take a while. Do not press any buttons "
            "while this is processing. Don't worry, it will be cached.",
            "node",
            "geom",
        ))["features"]
        stations = [s for s in stations if s["geometry"]["type"] == "Point"]
        if not stations:
            return question

        points = [Point(s["geometry"]["coordinates"][:2]) for s in stations]
        hider_index, _ = nearest_point(Point(hider.longitude, hider.latitude), points)
        seeker_index, _ = nearest_point(Point(question.lng, question.lat), points)
        hider_station = stations[hider_index]["properties"]
        seeker_station = stations[seeker_index]["properties"]

        if question.type == MatchingType.SAME_TRAIN_LINE:
            nodes = await self.places.train_line_node_finder(seeker_station["id"])
            hider_id = int(hider_station["id"].split("/")[1])
            question.same = hider_id in nodes
            return question

        hider_name = english_name(hider_station)
        seeker_name = english_name(seeker_station)
        if not hider_name or not seeker_name:
            return question

        if question.type == MatchingType.SAME_FIRST_LETTER_STATION:
            question.same = hider_name[0].upper() == seeker_name[0].upper()
        elif question.type == MatchingType.SAME_LENGTH_STATION:
            question.length_comparison = compare_lengths(hider_name, seeker_name)
        return question

    async def planning_polygon(self, question: MatchingQuestion):
        """Outline of the question's boundary for previews, or False when unavailable"""
        try:
            boundary = await self.determine_boundary(question)
            if boundary is NO_BOUNDARY:
                return False
            return polygon_to_line(boundary)
        except Exception as e:
            logger.warning(f"⚠️ No planning polygon for {question.type.value}: {e}")
            return False


def compare_lengths(hider_name: str, seeker_name: str) -> str:
    if len(hider_name) == len(seeker_name):
        return "same"
    if len(hider_name) < len(seeker_name):
        return "shorter"
    return "longer"
