from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pytest

from ...pipelines.questions.context import MapContext, MapLocation
from ...pipelines.questions.schema import APILocation
from ..notifications import NotificationCenter
from .places import PlacesService, SpecificLocation


@dataclass
class FakeClient:
    responses: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    queries: List[str] = field(default_factory=list)

    async def query_async(self, query: str) -> Dict[str, Any]:
        self.queries.append(query)
        for marker, response in self.responses.items():
            if marker in query:
                return response
        return {"elements": []}


def _service(client: FakeClient, **context_kwargs) -> PlacesService:
    context = MapContext(**context_kwargs)
    return PlacesService(context, client=client, notifier=NotificationCenter())


def test_zone_searches_are_cached_per_query() -> None:
    client = FakeClient(responses={"railway": {"elements": [{"type": "node", "id": 1, "lat": 0, "lon": 0}]}})
    service = _service(client, location=MapLocation(name="Zone", bbox=(0.0, 0.0, 1.0, 1.0)))

    async def run():
        first = await service.find_places_in_zone("[railway=station]", "Finding stations...", "node")
        second = await service.find_places_in_zone("[railway=station]", "Finding stations...", "node")
        return first, second

    first, second = asyncio.run(run())
    assert first is second
    assert len(client.queries) == 1
    assert "(0.0,0.0,1.0,1.0)" in client.queries[0]
    assert [n.message for n in service.notifier.recent] == ["Finding stations..."]


def test_zone_search_scopes_to_selected_relation() -> None:
    client = FakeClient()
    service = _service(client, location=MapLocation(name="Japan", bbox=(120.0, 20.0, 150.0, 46.0), osm_id=382313))

    asyncio.run(service.find_places_in_zone("[highspeed=yes]", "Finding high-speed lines...", "way", "geom"))
    assert "area(id:3600382313)->.region;" in client.queries[0]
    assert "way[highspeed=yes](area.region);" in client.queries[0]


def test_missing_admin_boundary_is_none() -> None:
    service = _service(FakeClient())
    assert asyncio.run(service.find_admin_boundary(0.0, 0.0, 2)) is None


def test_nearest_to_question_picks_closest_element() -> None:
    client = FakeClient(responses={
        "around:": {
            "elements": [
                {"type": "way", "id": 7, "center": {"lat": 0.0, "lon": 1.0}, "tags": {"name": "Far Museum"}},
                {"type": "node", "id": 8, "lat": 0.0, "lon": 0.1, "tags": {"name": "Near Museum"}},
            ]
        }
    })
    service = _service(client)

    nearest = asyncio.run(service.nearest_to_question(0.0, 0.0, APILocation.MUSEUM))
    assert nearest["properties"]["name"] == "Near Museum"
    assert nearest["properties"]["id"] == "node/8"
    assert nearest["properties"]["distanceToPoint"] == pytest.approx(6.9, abs=0.1)
    assert "tourism=museum" in client.queries[0]


def test_train_line_nodes_are_node_ids() -> None:
    client = FakeClient(responses={"rel(bn)": {"elements": [
        {"type": "node", "id": 11},
        {"type": "node", "id": 12},
        {"type": "way", "id": 13},
    ]}})
    service = _service(client)

    assert asyncio.run(service.train_line_node_finder("node/10")) == [11, 12]
    assert "node(10);" in client.queries[0]


def test_specific_places_become_points() -> None:
    client = FakeClient(responses={"Q38076": {"elements": [
        {"type": "node", "id": 1, "lat": 1.0, "lon": 2.0, "tags": {"brand": "McDonald's"}},
    ]}})
    service = _service(client)

    result = asyncio.run(service.find_places_specific(SpecificLocation.MCDONALDS))
    assert result["features"][0]["geometry"]["coordinates"] == [2.0, 1.0]
