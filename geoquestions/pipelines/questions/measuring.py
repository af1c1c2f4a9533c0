"""
Measuring questions ("is the hider closer to ... than me?")

A measuring boundary is the reference geometry (airports, coastline,
high-speed lines, ...) buffered out to the seeker's own distance from it.
"""
import logging
from functools import lru_cache
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from shapely import wkb
from shapely.geometry import LineString, MultiPolygon, Point, box
from shapely.geometry.base import BaseGeometry

from ...config import settings
from ...services.cache.resolution_cache import ResolutionCache
from ...services.notifications import NotificationCenter, notification_center
from ...services.overpass.places import SpecificLocation
from ..geometry.features import geometries_from_geojson, points_from_geojson
from ..geometry.geo_utils import (
    NO_BOUNDARY,
    NoBoundary,
    arc_buffer_to_point,
    bbox_extension,
    combine,
    connect_to_separate_lines,
    geodesic_buffer,
    geometry_operation,
    group_objects,
    line_to_polygon,
    modify_map_data,
    nearest_point,
    parts,
    point_to_geometry_distance,
    polygon_to_line,
    safe_union,
)
from .context import MapContext, question_signature
from .correction import apply_then_test_then_flip
from .locations import find_airports, find_full_locations, find_major_cities
from .schema import MeasuringQuestion, MeasuringType, full_location, plain_location

logger = logging.getLogger(__name__)

PlaceData = Union[List[BaseGeometry], NoBoundary]

SPECIFIC_LOCATIONS = {
    MeasuringType.MCDONALDS: SpecificLocation.MCDONALDS,
    MeasuringType.SEVEN11: SpecificLocation.SEVEN11,
}


def _combined(points: Sequence[Point]) -> BaseGeometry:
    combined = combine(points)
    return combined if combined is not None else MultiPolygon()


@lru_cache(maxsize=32)
def _high_speed_base(line_wkbs: Tuple[bytes, ...]) -> BaseGeometry:
    lines = [wkb.loads(b) for b in line_wkbs]
    merged = []
    for group in group_objects(lines):
        joined = connect_to_separate_lines(group)
        if not joined.is_empty:
            merged.append(joined)
    with geometry_operation("high-speed simplify"):
        simplified = [m.simplify(settings.HIGHSPEED_SIMPLIFY_TOLERANCE) for m in merged]
    return geodesic_buffer(safe_union(simplified), settings.HIGHSPEED_BUFFER_KM, units="kilometers")


def high_speed_base(lines: Sequence[BaseGeometry]) -> BaseGeometry:
    """
    Single region around every high-speed line

    Segments are grouped into connected chains, each chain is rebuilt as as
    few lines as possible, then simplified, buffered and unioned. Memoized
    per input geometry set.
    """
    segments = [p for line in lines for p in parts(line) if isinstance(p, LineString)]
    return _high_speed_base(tuple(s.wkb for s in segments))


class MeasuringResolver:
    """
    Buffer resolution and answer derivation for measuring questions.

    Buffers are memoized per question signature.
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
        self.cache = cache or ResolutionCache("measuring")
        self._resolvers = self._build_registry()

    def _build_registry(self) -> Dict[MeasuringType, Callable[[MeasuringQuestion], Awaitable[PlaceData]]]:
        registry = {}
        for question_type in MeasuringType:
            if plain_location(question_type.value):
                registry[question_type] = self._no_boundary
            elif full_location(question_type.value):
                registry[question_type] = self._full_locations
        registry.update({
            MeasuringType.HIGHSPEED: self._highspeed,
            MeasuringType.COASTLINE: self._coastline,
            MeasuringType.AIRPORT: self._airports,
            MeasuringType.CITY: self._cities,
            MeasuringType.CUSTOM_MEASURE: self._custom_measure,
            MeasuringType.MCDONALDS: self._no_boundary,
            MeasuringType.SEVEN11: self._no_boundary,
            MeasuringType.RAIL_MEASURE: self._no_boundary,
        })
        missing = set(MeasuringType) - set(registry)
        if missing:
            raise RuntimeError(f"Unhandled measuring types: {sorted(t.value for t in missing)}")
        return registry

    async def determine_boundary(self, question: MeasuringQuestion) -> PlaceData:
        """
        Reference geometries the question measures against

        Returns:
            list of geometries, or NO_BOUNDARY for questions answered by
            nearest-feature comparison
        """
        return await self._resolvers[question.type](question)

    async def _no_boundary(self, question: MeasuringQuestion) -> PlaceData:
        return NO_BOUNDARY

    async def _highspeed(self, question: MeasuringQuestion) -> PlaceData:
        collection = await self.places.find_zone_features(
            "[highspeed=yes]",
            "Finding high-speed lines...",
            "way",
            "geom",
        )
        return [high_speed_base(geometries_from_geojson(collection))]

    async def _coastline(self, question: MeasuringQuestion) -> PlaceData:
        coastline = line_to_polygon(geometries_from_geojson(await self.places.fetch_coastline()))
        distance = point_to_geometry_distance(
            Point(question.lng, question.lat), coastline, units="miles", signed=True
        )
        logger.info(f"🌊 Seeker is {distance:.2f} miles from the coastline")

        bbox = self.context.viewport_bbox()
        with geometry_operation("coastline clip"):
            clipped = coastline.intersection(box(*bbox_extension(bbox, distance)))
        band = geodesic_buffer(clipped, distance, units="miles", steps=settings.COASTLINE_BUFFER_STEPS)
        with geometry_operation("coastline difference"):
            return [box(*bbox).difference(band)]

    async def _airports(self, question: MeasuringQuestion) -> PlaceData:
        return [_combined(await find_airports(self.places))]

    async def _cities(self, question: MeasuringQuestion) -> PlaceData:
        return [_combined(await find_major_cities(self.places))]

    async def _full_locations(self, question: MeasuringQuestion) -> PlaceData:
        location = full_location(question.type.value)
        return [_combined(await find_full_locations(self.places, self.notifier, location))]

    async def _custom_measure(self, question: MeasuringQuestion) -> PlaceData:
        with geometry_operation("custom measure"):
            return [safe_union(geometries_from_geojson(question.geo))]

    async def buffered(self, question: MeasuringQuestion) -> Union[BaseGeometry, NoBoundary, None]:
        """
        Region at least as close to the reference geometry as the seeker
        (memoized). None when there was nothing to measure against.
        """
        key = question_signature(question, self.context)
        return await self.cache.get_or_compute(key, lambda: self._buffer(question))

    async def _buffer(self, question: MeasuringQuestion) -> Union[BaseGeometry, NoBoundary, None]:
        place_data = await self.determine_boundary(question)
        if place_data is NO_BOUNDARY:
            return NO_BOUNDARY
        buffered = arc_buffer_to_point(place_data, question.lat, question.lng)
        if buffered.is_empty:
            logger.info(f"📭 Nothing to measure {question.type.value} against")
            return None
        return buffered

    async def adjust(self, question: MeasuringQuestion, mask: Optional[BaseGeometry]) -> Optional[BaseGeometry]:
        """Working mask narrowed by the question's answer (None when there is no mask)"""
        if mask is None:
            return None
        buffer = await self.buffered(question)
        return modify_map_data(mask, buffer, question.hider_closer)

    async def hiderify(self, question: MeasuringQuestion) -> MeasuringQuestion:
        """
        Answer the question from the hider's true position

        Returns the same descriptor; when an answer cannot be computed its
        outcome fields are left as they were.
        """
        hider = self.context.hider
        if hider is None:
            return question
        hider_point = Point(hider.longitude, hider.latitude)
        seeker_point = Point(question.lng, question.lat)

        location = plain_location(question.type.value)
        if location is not None:
            question_nearest = await self.places.nearest_to_question(question.lat, question.lng, location)
            hider_nearest = await self.places.nearest_to_question(hider.latitude, hider.longitude, location)
            if not question_nearest or not hider_nearest:
                return question
            question.hider_closer = (
                question_nearest["properties"]["distanceToPoint"]
                > hider_nearest["properties"]["distanceToPoint"]
            )
            return question

        if question.type == MeasuringType.RAIL_MEASURE:
            stations = [
                Point(s["geometry"]["coordinates"][:2])
                for s in self.context.train_stations
                if s.get("geometry")
            ]
            if not stations:
                return question
            return self._closer(question, stations, hider_point, seeker_point)

        if question.type in SPECIFIC_LOCATIONS:
            collection = await self.places.find_places_specific(SPECIFIC_LOCATIONS[question.type])
            points = points_from_geojson(collection)
            if not points:
                return question
            return self._closer(question, points, hider_point, seeker_point)

        mask = self.context.mask
        if mask is None:
            return question

        await apply_then_test_then_flip(
            question,
            "hider_closer",
            lambda m: self.adjust(question, m),
            mask,
            hider_point,
        )
        return question

    @staticmethod
    def _closer(question: MeasuringQuestion, points: List[Point], hider: Point, seeker: Point) -> MeasuringQuestion:
        _, seeker_distance = nearest_point(seeker, points, units="miles")
        _, hider_distance = nearest_point(hider, points, units="miles")
        question.hider_closer = hider_distance < seeker_distance
        return question

    async def planning_polygon(self, question: MeasuringQuestion):
        """Outline of the question's buffer for previews, or False when unavailable"""
        try:
            buffer = await self.buffered(question)
            if buffer is NO_BOUNDARY:
                return False
            return polygon_to_line(buffer)
        except Exception as e:
            logger.warning(f"⚠️ No planning polygon for {question.type.value}: {e}")
            return False
