from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

import httpx
import pytest

from foodsim.routing.cache import RouteCache
from foodsim.simulation.entities import Point, Route, direct_route


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class StubDirections:
    """Directions stand-in returning straight lines unless told otherwise."""

    def __init__(self, route_for: Optional[Callable[[Point, Point], Route]] = None) -> None:
        self.cache = RouteCache()
        self.calls: List[tuple] = []
        self._route_for = route_for

    async def route(self, start: Point, end: Point) -> Route:
        self.calls.append((start, end))
        if self._route_for is not None:
            return self._route_for(start, end)
        return direct_route(start, end)

    def stats(self):
        return {"requests_sent": len(self.calls), "cache_hits": 0, "fallbacks": 0, "cached_routes": 0}


def directions_payload(coords) -> dict:
    return {"routes": [{"geometry": {"type": "LineString", "coordinates": [list(c) for c in coords]}}]}


def walking_transport(calls: List[httpx.Request]) -> httpx.MockTransport:
    """Mock provider answering with a three-point walk through the segment midpoint."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        pair = request.url.path.rsplit("/", 1)[-1]
        (x1, y1), (x2, y2) = [tuple(float(v) for v in p.split(",")) for p in pair.split(";")]
        mid = ((x1 + x2) / 2, (y1 + y2) / 2 + 0.001)
        return httpx.Response(200, json=directions_payload([(x1, y1), mid, (x2, y2)]))

    return httpx.MockTransport(handler)


class YieldingProvider:
    """Async mock provider that suspends mid-request and records issue times and overlap."""

    def __init__(self, clock: FakeClock, status: int = 200) -> None:
        self.clock = clock
        self.status = status
        self.calls: List[httpx.Request] = []
        self.issued_at: List[float] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        self.issued_at.append(self.clock())
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1
        if self.status != 200:
            return httpx.Response(self.status)
        pair = request.url.path.rsplit("/", 1)[-1]
        (x1, y1), (x2, y2) = [tuple(float(v) for v in p.split(",")) for p in pair.split(";")]
        return httpx.Response(200, json=directions_payload([(x1, y1), ((x1 + x2) / 2, y1 + 0.001), (x2, y2)]))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub_directions() -> StubDirections:
    return StubDirections()
