from __future__ import annotations

import pytest
from shapely.geometry import LineString, MultiPoint, Point, box

from ..questions.errors import GeometryOperationFailed
from .geo_utils import (
    NO_BOUNDARY,
    arc_buffer_to_point,
    bbox_extension,
    combine,
    connect_to_separate_lines,
    geodesic_buffer,
    geodesic_distance,
    group_objects,
    holed_mask,
    line_to_polygon,
    modify_map_data,
    nearest_point,
    point_to_geometry_distance,
    polygon_to_line,
)

MASK = box(-10, -10, 10, 10)
BOUNDARY = box(0, 0, 20, 20)


def test_modify_map_data_keeps_or_removes_boundary() -> None:
    inside = modify_map_data(MASK, BOUNDARY, True)
    outside = modify_map_data(MASK, BOUNDARY, False)

    assert inside.equals(box(0, 0, 10, 10))
    assert outside.area == pytest.approx(300)
    assert MASK.equals(box(-10, -10, 10, 10))


def test_modify_map_data_without_boundary_returns_mask() -> None:
    assert modify_map_data(MASK, NO_BOUNDARY, True) is MASK
    with pytest.raises(GeometryOperationFailed):
        modify_map_data(MASK, None, True)


def test_holed_mask_is_world_complement() -> None:
    holed = holed_mask(MASK)
    assert not holed.intersects(Point(0, 0))
    assert holed.intersects(Point(50, 50))
    assert holed.area == pytest.approx(360 * 180 - 400)


def test_geodesic_distance_along_equator() -> None:
    # One degree of longitude on the WGS84 equator
    assert geodesic_distance(Point(0, 0), Point(1, 0)) == pytest.approx(111.32, abs=0.01)
    assert geodesic_distance(Point(0, 0), Point(1, 0), units="miles") == pytest.approx(69.17, abs=0.01)


def test_signed_distance_is_negative_inside_polygon() -> None:
    square = box(-1, -1, 1, 1)
    inside = point_to_geometry_distance(Point(0.5, 0), square, signed=True)
    outside = point_to_geometry_distance(Point(2, 0), square, signed=True)

    assert inside == pytest.approx(-55.66, abs=0.2)
    assert outside == pytest.approx(111.32, abs=0.2)
    assert point_to_geometry_distance(Point(0.5, 0), square) == 0


def test_geodesic_buffer_of_point_is_a_true_circle() -> None:
    circle = geodesic_buffer(Point(0, 60), 100, units="kilometers", steps=16)
    # 100 km east at 60N is about 1.79 degrees of longitude
    assert circle.contains(Point(1.7, 60))
    assert not circle.contains(Point(1.9, 60))
    assert circle.contains(Point(0, 60.85))
    assert not circle.contains(Point(0, 61))


def test_bbox_extension_pads_by_distance_and_size() -> None:
    west, south, east, north = bbox_extension((0.0, 0.0, 1.0, 1.0), 69.17, units="miles")
    assert west == pytest.approx(-2.0, abs=0.02)
    assert east == pytest.approx(3.0, abs=0.02)
    assert south < -1.9
    assert north > 2.9


def test_nearest_point_returns_index_and_distance() -> None:
    index, distance = nearest_point(Point(0, 0), [Point(3, 0), Point(1, 0), Point(2, 0)])
    assert index == 1
    assert distance == pytest.approx(111.32, abs=0.01)
    with pytest.raises(ValueError):
        nearest_point(Point(0, 0), [])


def test_connected_segments_group_and_merge() -> None:
    lines = [
        LineString([(0, 0), (1, 0)]),
        LineString([(5, 5), (6, 5)]),
        LineString([(1, 0), (2, 0)]),
    ]
    groups = group_objects(lines)
    assert sorted(len(g) for g in groups) == [1, 2]

    joined = connect_to_separate_lines(next(g for g in groups if len(g) == 2))
    assert len(joined.geoms) == 1
    assert joined.geoms[0].length == pytest.approx(2)


def test_closed_rings_become_polygons() -> None:
    ring = LineString([(0, 0), (4, 0), (4, 4), (0, 4), (0, 0)])
    assert line_to_polygon([ring]).equals(box(0, 0, 4, 4))


def test_arc_buffer_reaches_question_point() -> None:
    sites = MultiPoint([Point(0, 0), Point(10, 0)])
    region = arc_buffer_to_point([sites], lat=0.0, lng=1.0)

    assert region.contains(Point(0.9, 0))
    assert region.contains(Point(10.5, 0))
    assert not region.contains(Point(5, 0))


def test_polygon_to_line_outlines_rings() -> None:
    outline = polygon_to_line(box(0, 0, 1, 1))
    assert outline.geom_type in ("LineString", "LinearRing", "MultiLineString")
    assert outline.length == pytest.approx(4)
    with pytest.raises(GeometryOperationFailed):
        polygon_to_line(None)


def test_combine_keeps_parts_without_dissolving() -> None:
    combined = combine([Point(0, 0), MultiPoint([(1, 1), (2, 2)])])
    assert combined.geom_type == "MultiPoint"
    assert len(combined.geoms) == 3

    overlapping = combine([box(0, 0, 2, 2), box(1, 1, 3, 3)])
    assert overlapping.geom_type == "MultiPolygon"
    assert len(overlapping.geoms) == 2

    assert combine([]) is None
