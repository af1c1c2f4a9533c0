"""
Location categories and the point sets behind point-set questions
(airports, major cities, every location of a category in the zone)
"""
import logging
from typing import List

from shapely.geometry import Point

from ...config import settings
from ..geometry.features import elements_to_points
from .errors import ProviderOverflow, ProviderTimeout
from .schema import APILocation

logger = logging.getLogger(__name__)

LOCATION_FIRST_TAG = {
    APILocation.AQUARIUM: "tourism",
    APILocation.ZOO: "tourism",
    APILocation.THEME_PARK: "tourism",
    APILocation.MUSEUM: "tourism",
    APILocation.HOSPITAL: "amenity",
    APILocation.CINEMA: "amenity",
    APILocation.LIBRARY: "amenity",
    APILocation.GOLF_COURSE: "leisure",
    APILocation.CONSULATE: "diplomatic",
    APILocation.PARK: "leisure",
}

_PRETTY_NAMES = {
    APILocation.AQUARIUM: ("Aquarium", "Aquariums"),
    APILocation.ZOO: ("Zoo", "Zoos"),
    APILocation.THEME_PARK: ("Theme Park", "Theme Parks"),
    APILocation.MUSEUM: ("Museum", "Museums"),
    APILocation.HOSPITAL: ("Hospital", "Hospitals"),
    APILocation.CINEMA: ("Movie Theater", "Movie Theaters"),
    APILocation.LIBRARY: ("Library", "Libraries"),
    APILocation.GOLF_COURSE: ("Golf Course", "Golf Courses"),
    APILocation.CONSULATE: ("Foreign Consulate", "Foreign Consulates"),
    APILocation.PARK: ("Park", "Parks"),
}

# Only commercial airports have IATA codes
AIRPORT_FILTER = '["aeroway"="aerodrome"]["iata"]'
# Regex is faster than (if:number(t["population"])>1000000)
MAJOR_CITY_FILTER = '[place=city]["population"~"^[1-9]+[0-9]{6}$"]'
RUNTIME_ERROR_MARKER = "runtime error"


def prettify_location(location: APILocation, plural: bool = False) -> str:
    singular, many = _PRETTY_NAMES[location]
    return many if plural else singular


async def find_airports(places) -> List[Point]:
    data = await places.find_places_in_zone(AIRPORT_FILTER, "Finding airports...")
    return elements_to_points(data.get("elements", []), unique_tag="iata")


async def find_major_cities(places) -> List[Point]:
    data = await places.find_places_in_zone(MAJOR_CITY_FILTER, "Finding cities...")
    return elements_to_points(data.get("elements", []))


def check_safety_gates(data: dict, location: APILocation) -> None:
    """
    Raise when a category search timed out server-side or hit the element cap

    Raises:
        ProviderTimeout: the server remark reports a runtime error
        ProviderOverflow: FULL_LOCATION_ELEMENT_CAP or more elements came back
    """
    name = prettify_location(location, True).lower()
    remark = data.get("remark") or ""
    if remark.startswith(RUNTIME_ERROR_MARKER):
        raise ProviderTimeout(
            f"Error finding {name}. Please enable hiding zone mode and switch to "
            f"the Large Game variation of this question."
        )
    count = len(data.get("elements", []))
    if count >= settings.FULL_LOCATION_ELEMENT_CAP:
        raise ProviderOverflow(
            f"Too many {name} found ({count}). Please enable hiding zone mode and "
            f"switch to the Large Game variation of this question.",
            count,
        )


async def find_full_locations(places, notifier, location: APILocation) -> List[Point]:
    """
    Every location of a category in the zone

    A server-side timeout or an oversized result is reported to the player and
    resolves to an empty set instead of a partial one.
    """
    data = await places.find_places_in_zone(
        f"[{LOCATION_FIRST_TAG[location]}={location.value}]",
        f"Finding {prettify_location(location, True).lower()}...",
        "nwr",
        "center",
        [],
        settings.FULL_LOCATION_TIMEOUT_SECONDS,
    )
    try:
        check_safety_gates(data, location)
    except (ProviderTimeout, ProviderOverflow) as e:
        logger.warning(f"⚠️ {location.value} search aborted: {e}")
        await notifier.error(str(e))
        return []
    return elements_to_points(data.get("elements", []))
