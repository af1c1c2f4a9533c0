"""
Question descriptor models.

A descriptor names exactly one question subtype and carries the outcome
fields the answer deriver writes back (same / hiderCloser /
lengthComparison).
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class APILocation(str, Enum):
    AQUARIUM = "aquarium"
    ZOO = "zoo"
    THEME_PARK = "theme_park"
    MUSEUM = "museum"
    HOSPITAL = "hospital"
    CINEMA = "cinema"
    LIBRARY = "library"
    GOLF_COURSE = "golf_course"
    CONSULATE = "consulate"
    PARK = "park"


class MatchingType(str, Enum):
    ZONE = "zone"
    LETTER_ZONE = "letter-zone"
    CUSTOM_ZONE = "custom-zone"
    AIRPORT = "airport"
    MAJOR_CITY = "major-city"
    CUSTOM_POINTS = "custom-points"
    AQUARIUM_FULL = "aquarium-full"
    ZOO_FULL = "zoo-full"
    THEME_PARK_FULL = "theme_park-full"
    MUSEUM_FULL = "museum-full"
    HOSPITAL_FULL = "hospital-full"
    CINEMA_FULL = "cinema-full"
    LIBRARY_FULL = "library-full"
    GOLF_COURSE_FULL = "golf_course-full"
    CONSULATE_FULL = "consulate-full"
    PARK_FULL = "park-full"
    AQUARIUM = "aquarium"
    ZOO = "zoo"
    THEME_PARK = "theme_park"
    MUSEUM = "museum"
    HOSPITAL = "hospital"
    CINEMA = "cinema"
    LIBRARY = "library"
    GOLF_COURSE = "golf_course"
    CONSULATE = "consulate"
    PARK = "park"
    SAME_FIRST_LETTER_STATION = "same-first-letter-station"
    SAME_LENGTH_STATION = "same-length-station"
    SAME_TRAIN_LINE = "same-train-line"


class MeasuringType(str, Enum):
    HIGHSPEED = "highspeed-measure-shinkansen"
    COASTLINE = "coastline"
    AIRPORT = "airport"
    CITY = "city"
    AQUARIUM_FULL = "aquarium-full"
    ZOO_FULL = "zoo-full"
    THEME_PARK_FULL = "theme_park-full"
    MUSEUM_FULL = "museum-full"
    HOSPITAL_FULL = "hospital-full"
    CINEMA_FULL = "cinema-full"
    LIBRARY_FULL = "library-full"
    GOLF_COURSE_FULL = "golf_course-full"
    CONSULATE_FULL = "consulate-full"
    PARK_FULL = "park-full"
    CUSTOM_MEASURE = "custom-measure"
    AQUARIUM = "aquarium"
    ZOO = "zoo"
    THEME_PARK = "theme_park"
    MUSEUM = "museum"
    HOSPITAL = "hospital"
    CINEMA = "cinema"
    LIBRARY = "library"
    GOLF_COURSE = "golf_course"
    CONSULATE = "consulate"
    PARK = "park"
    MCDONALDS = "mcdonalds"
    SEVEN11 = "seven11"
    RAIL_MEASURE = "rail-measure"


LengthComparison = Literal["shorter", "same", "longer"]

# Subtypes that need an admin level / an embedded geometry
_NEEDS_CATEGORY = {MatchingType.ZONE, MatchingType.LETTER_ZONE}
_NEEDS_GEOMETRY = {
    MatchingType.CUSTOM_ZONE.value,
    MatchingType.CUSTOM_POINTS.value,
    MeasuringType.CUSTOM_MEASURE.value,
}


def full_location(question_type: str) -> Optional[APILocation]:
    """'museum-full' -> APILocation.MUSEUM, anything else -> None"""
    if not question_type.endswith("-full"):
        return None
    return APILocation(question_type[: -len("-full")])


def plain_location(question_type: str) -> Optional[APILocation]:
    """'museum' -> APILocation.MUSEUM, anything else -> None"""
    try:
        return APILocation(question_type)
    except ValueError:
        return None


class ZoneCategory(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    admin_level: int = Field(alias="adminLevel")


class QuestionBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lat: float
    lng: float
    geo: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def check_geometry(self):
        if self.type.value in _NEEDS_GEOMETRY and self.geo is None:
            raise ValueError(f"{self.type.value} questions need an embedded geometry")
        return self


class MatchingQuestion(QuestionBase):
    type: MatchingType
    same: bool = True
    cat: Optional[ZoneCategory] = None
    length_comparison: Optional[LengthComparison] = Field(default=None, alias="lengthComparison")

    @model_validator(mode="after")
    def check_category(self):
        if self.type in _NEEDS_CATEGORY and self.cat is None:
            raise ValueError(f"{self.type.value} questions need an admin level category")
        return self


class MeasuringQuestion(QuestionBase):
    type: MeasuringType
    hider_closer: bool = Field(default=True, alias="hiderCloser")


Question = Union[MatchingQuestion, MeasuringQuestion]
