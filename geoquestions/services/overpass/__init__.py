"""
Overpass Services Module
Place-data provider backed by the Overpass API
"""
from .client import OverpassClient
from .query_builder import OverpassQueryBuilder
from .places import PlacesService, SpecificLocation

__all__ = [
    "OverpassClient",
    "OverpassQueryBuilder",
    "PlacesService",
    "SpecificLocation",
]
