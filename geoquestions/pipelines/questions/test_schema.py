from __future__ import annotations

import pytest
from pydantic import ValidationError

from .schema import (
    APILocation,
    MatchingQuestion,
    MatchingType,
    MeasuringQuestion,
    MeasuringType,
    full_location,
    plain_location,
)


def test_descriptor_accepts_wire_aliases() -> None:
    question = MatchingQuestion.model_validate(
        {"type": "zone", "lat": 1.0, "lng": 2.0, "cat": {"adminLevel": 4}, "same": False}
    )
    assert question.type is MatchingType.ZONE
    assert question.cat.admin_level == 4
    assert question.same is False

    measuring = MeasuringQuestion.model_validate({"type": "coastline", "lat": 0, "lng": 0, "hiderCloser": False})
    assert measuring.hider_closer is False


def test_zone_questions_need_admin_level() -> None:
    with pytest.raises(ValidationError):
        MatchingQuestion(type="letter-zone", lat=0, lng=0)


def test_custom_questions_need_geometry() -> None:
    with pytest.raises(ValidationError):
        MatchingQuestion(type="custom-zone", lat=0, lng=0)
    with pytest.raises(ValidationError):
        MeasuringQuestion(type="custom-measure", lat=0, lng=0)


def test_unknown_subtype_is_rejected() -> None:
    with pytest.raises(ValidationError):
        MeasuringQuestion(type="same-train-line", lat=0, lng=0)


def test_location_helpers() -> None:
    assert full_location(MatchingType.MUSEUM_FULL.value) is APILocation.MUSEUM
    assert full_location(MeasuringType.MUSEUM.value) is None
    assert plain_location("golf_course") is APILocation.GOLF_COURSE
    assert plain_location("coastline") is None
