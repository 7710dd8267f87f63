"""
Tests for the cached, paced directions client.
"""

from __future__ import annotations

import asyncio
from typing import List

import httpx
import pytest

from foodsim.config.models import DirectionsSettings
from foodsim.routing.directions import DirectionsClient
from conftest import YieldingProvider, directions_payload, walking_transport


A = (-77.03, 38.90)
B = (-77.02, 38.90)
C = (-77.01, 38.92)


def make_client(transport, clock, **overrides) -> DirectionsClient:
    settings = DirectionsSettings(access_token="test-token", **overrides)
    return DirectionsClient(settings, transport=transport, clock=clock, sleep=clock.sleep)


def sequence_transport(responses: List, calls: List[httpx.Request]) -> httpx.MockTransport:
    """Answer successive requests from a list; exceptions in the list are raised."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        item = responses[min(len(calls), len(responses)) - 1]
        if isinstance(item, Exception):
            raise item
        return item

    return httpx.MockTransport(handler)


def test_successful_route_is_cached_both_directions(fake_clock):
    calls: List[httpx.Request] = []
    client = make_client(walking_transport(calls), fake_clock)

    async def scenario():
        first = await client.route(A, B)
        again = await client.route(A, B)
        backwards = await client.route(B, A)
        return first, again, backwards

    first, again, backwards = asyncio.run(scenario())

    assert len(calls) == 1
    assert len(first) == 3
    assert again == first
    assert backwards == list(reversed(first))
    assert client.cache_hits == 2
    assert client.cache.get(B, A) == list(reversed(first))


def test_request_carries_walking_parameters(fake_clock):
    calls: List[httpx.Request] = []
    client = make_client(walking_transport(calls), fake_clock)
    asyncio.run(client.route(A, B))

    request = calls[0]
    assert request.url.path.endswith("/walking/-77.03,38.9;-77.02,38.9")
    assert request.url.params["geometries"] == "geojson"
    assert request.url.params["overview"] == "full"
    assert request.url.params["access_token"] == "test-token"


def test_outbound_requests_are_paced(fake_clock):
    calls: List[httpx.Request] = []
    client = make_client(walking_transport(calls), fake_clock, min_request_interval_s=0.3)

    async def scenario():
        await client.route(A, B)
        await client.route(A, C)
        await client.route(B, C)

    asyncio.run(scenario())

    assert len(calls) == 3
    assert fake_clock.sleeps == [pytest.approx(0.3), pytest.approx(0.3)]


def test_concurrent_callers_are_serialized(fake_clock):
    provider = YieldingProvider(fake_clock)
    client = make_client(provider.transport(), fake_clock, min_request_interval_s=0.3)

    async def scenario():
        return await asyncio.gather(client.route(A, B), client.route(A, C), client.route(B, C))

    routes = asyncio.run(scenario())

    assert all(len(r) == 3 for r in routes)
    assert len(provider.calls) == 3
    assert provider.max_in_flight == 1
    gaps = [b - a for a, b in zip(provider.issued_at, provider.issued_at[1:])]
    assert all(gap >= 0.3 - 1e-9 for gap in gaps)


def test_rate_limit_stops_requests_already_queued(fake_clock):
    provider = YieldingProvider(fake_clock, status=429)
    client = make_client(provider.transport(), fake_clock, rate_limit_cooldown_s=60.0)

    async def scenario():
        return await asyncio.gather(client.route(A, B), client.route(A, C), client.route(B, C))

    routes = asyncio.run(scenario())

    assert len(provider.calls) == 1
    assert routes == [[A, B], [A, C], [B, C]]
    assert client.fallbacks == 3
    assert client.rate_limited()


def test_rate_limit_twice_yields_direct_routes_without_extra_requests(fake_clock):
    calls: List[httpx.Request] = []
    transport = sequence_transport([httpx.Response(429)], calls)
    client = make_client(transport, fake_clock, rate_limit_cooldown_s=60.0)

    async def scenario():
        return await client.route(A, B), await client.route(A, B)

    first, second = asyncio.run(scenario())

    assert first == [A, B]
    assert second == [A, B]
    assert len(calls) == 1
    assert client.requests_sent == 1
    assert client.rate_limited()
    # Fallback routes are never cached
    assert client.cache.get(A, B) is None


def test_requests_resume_after_cooldown(fake_clock):
    calls: List[httpx.Request] = []
    transport = sequence_transport(
        [httpx.Response(429), httpx.Response(200, json=directions_payload([A, (-77.025, 38.901), B]))],
        calls,
    )
    client = make_client(transport, fake_clock, rate_limit_cooldown_s=60.0)

    assert asyncio.run(client.route(A, B)) == [A, B]
    fake_clock.now += 61.0
    assert not client.rate_limited()
    route = asyncio.run(client.route(A, B))

    assert len(route) == 3
    assert len(calls) == 2


def test_transient_failure_retries_once(fake_clock):
    calls: List[httpx.Request] = []
    transport = sequence_transport(
        [httpx.Response(500), httpx.Response(200, json=directions_payload([A, (-77.025, 38.901), B]))],
        calls,
    )
    client = make_client(transport, fake_clock, retry_backoff_s=1.0)

    route = asyncio.run(client.route(A, B))

    assert len(route) == 3
    assert len(calls) == 2
    assert fake_clock.sleeps == [1.0]
    assert client.cache.get(A, B) == route


def test_persistent_failure_falls_back_to_direct_route(fake_clock):
    calls: List[httpx.Request] = []
    transport = sequence_transport([httpx.ConnectError("network down")], calls)
    client = make_client(transport, fake_clock)

    route = asyncio.run(client.route(A, B))

    assert route == [A, B]
    assert len(calls) == 2
    assert client.fallbacks == 1


def test_malformed_payload_is_treated_as_failure(fake_clock):
    calls: List[httpx.Request] = []
    transport = sequence_transport([httpx.Response(200, json={"routes": []})], calls)
    client = make_client(transport, fake_clock)

    assert asyncio.run(client.route(A, B)) == [A, B]
    assert len(calls) == 2


def test_failed_retry_prefers_previously_cached_route(fake_clock):
    calls: List[httpx.Request] = []
    transport = sequence_transport([httpx.Response(503)], calls)
    client = make_client(transport, fake_clock)
    cached = [A, (-77.025, 38.899), B]

    async def scenario():
        # The route lands in the cache while the first attempt is failing
        original_sleep = client._sleep

        async def sleep_and_fill(seconds):
            client.cache.put(A, B, cached)
            await original_sleep(seconds)

        client._sleep = sleep_and_fill
        return await client.route(A, B)

    assert asyncio.run(scenario()) == cached


def test_stats_report_counters(fake_clock):
    calls: List[httpx.Request] = []
    client = make_client(walking_transport(calls), fake_clock)

    async def scenario():
        await client.route(A, B)
        await client.route(B, A)
        await client.aclose()

    asyncio.run(scenario())
    assert client.stats() == {"requests_sent": 1, "cache_hits": 1, "fallbacks": 0, "cached_routes": 2}
