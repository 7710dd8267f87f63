"""
Core simulation records: points, stores, origins, routes and the walking residents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .markers import Marker


Point = Tuple[float, float]  # (lon, lat)
Route = List[Point]

DEFAULT_STORE_CAPACITY = 100


def is_valid_route(route: Optional[Route]) -> bool:
    """A route needs at least two points before a marker can walk it."""
    return route is not None and len(route) >= 2


def direct_route(start: Point, end: Point) -> Route:
    """Straight two-point path used whenever real directions are unavailable."""
    return [tuple(start), tuple(end)]


@dataclass(frozen=True)
class Store:
    store_id: str
    location: Point
    capacity: int = DEFAULT_STORE_CAPACITY
    properties: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def lon(self) -> float:
        return self.location[0]

    @property
    def lat(self) -> float:
        return self.location[1]


@dataclass(frozen=True)
class Origin:
    origin_id: str
    location: Point
    population: Optional[float] = None


@dataclass
class PersonEntity:
    person_id: str
    home: Point
    target_store: Point
    route: Route
    marker: Optional[Marker] = None
    progress: float = 0.0
    is_returning: bool = False
    origin_id: Optional[str] = None

    def directional_route(self) -> Route:
        """Route in the direction currently walked (home->store or store->home)."""
        if self.is_returning:
            return list(reversed(self.route))
        return self.route

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.person_id,
            "origin_id": self.origin_id,
            "home_lon": self.home[0],
            "home_lat": self.home[1],
            "store_lon": self.target_store[0],
            "store_lat": self.target_store[1],
            "route_points": len(self.route),
            "progress": self.progress,
            "is_returning": self.is_returning,
        }
