from __future__ import annotations

from shapely.geometry import box

from .context import WORLD_BBOX, MapContext, MapLocation, question_signature
from .conftest import collection, square
from .schema import MatchingQuestion, MeasuringQuestion


def test_signature_ignores_outcome_fields() -> None:
    context = MapContext(location=MapLocation(name="Zone", bbox=(0.0, 0.0, 1.0, 1.0)))
    a = MatchingQuestion(type="zone", lat=1.0, lng=2.0, cat={"adminLevel": 4}, same=True)
    b = MatchingQuestion(type="zone", lat=1.0, lng=2.0, cat={"adminLevel": 4}, same=False)
    assert question_signature(a, context) == question_signature(b, context)


def test_signature_tracks_category_and_context() -> None:
    context = MapContext(location=MapLocation(name="Zone", bbox=(0.0, 0.0, 1.0, 1.0)))
    a = MatchingQuestion(type="zone", lat=1.0, lng=2.0, cat={"adminLevel": 4})
    b = MatchingQuestion(type="zone", lat=1.0, lng=2.0, cat={"adminLevel": 6})
    before = question_signature(a, context)
    assert before != question_signature(b, context)

    context.drawn_polygon = collection(square(0, 0, 1, 1))
    assert question_signature(a, context) != before


def test_viewport_prefers_drawn_polygon_then_location_then_mask() -> None:
    context = MapContext()
    assert context.viewport_bbox() == WORLD_BBOX

    context.mask = box(-5, -5, 5, 5)
    assert context.viewport_bbox() == (-5.0, -5.0, 5.0, 5.0)

    context.location = MapLocation(name="Zone", bbox=(0.0, 0.0, 1.0, 1.0))
    assert context.viewport_bbox() == (0.0, 0.0, 1.0, 1.0)

    context.drawn_polygon = collection(square(2, 2, 3, 4))
    assert context.viewport_bbox() == (2.0, 2.0, 3.0, 4.0)


def test_measuring_signature_has_no_category() -> None:
    context = MapContext()
    question = MeasuringQuestion(type="airport", lat=1.0, lng=2.0)
    assert '"cat": null' in question_signature(question, context)


def test_fingerprint_follows_mask_bounds_without_zone() -> None:
    context = MapContext()
    assert context.fingerprint() == {"bbox": list(WORLD_BBOX)}

    question = MatchingQuestion(type="airport", lat=1.0, lng=2.0)
    before = question_signature(question, context)
    context.mask = box(-5, -5, 5, 5)
    assert context.fingerprint() == {"bbox": [-5.0, -5.0, 5.0, 5.0]}
    assert question_signature(question, context) != before
