"""
Route memoization keyed by (start, end) point pairs.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from ..simulation.entities import Point, Route


RouteKey = Tuple[Point, Point]


def _key(start: Point, end: Point) -> RouteKey:
    return ((float(start[0]), float(start[1])), (float(end[0]), float(end[1])))


class RouteCache:
    """Stores every route under its forward key and, reversed, under the reverse key."""

    def __init__(self) -> None:
        self._routes: Dict[RouteKey, Route] = {}

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, key: RouteKey) -> bool:
        return _key(*key) in self._routes

    def get(self, start: Point, end: Point) -> Optional[Route]:
        """Return a copy of the cached route from start to end, if any.

        A reverse-only entry is served reversed.
        """
        route = self._routes.get(_key(start, end))
        if route is not None:
            return list(route)
        reverse = self._routes.get(_key(end, start))
        if reverse is not None:
            return list(reversed(reverse))
        return None

    def put(self, start: Point, end: Point, route: Route) -> None:
        coords = [(float(x), float(y)) for x, y in route]
        self._routes[_key(start, end)] = coords
        self._routes[_key(end, start)] = list(reversed(coords))

    def clear(self) -> None:
        self._routes.clear()
