"""
Walking directions client.

Wraps the Mapbox walking directions endpoint with a route cache, request pacing,
one retry on transient failures and a cool-down after the provider answers 429.
Every failure path resolves to a usable route: the cached one when available,
otherwise a direct two-point line.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ..config.models import DirectionsSettings
from ..logging import get_logger
from ..simulation.entities import Point, Route, direct_route, is_valid_route
from .cache import RouteCache

logger = get_logger(__name__)


class DirectionsError(Exception):
    """A directions request failed in a way worth retrying."""


class RateLimitedError(DirectionsError):
    """The provider answered HTTP 429."""


class CooldownActiveError(RateLimitedError):
    """A queued request found the rate-limit cool-down already running."""


class DirectionsClient:
    def __init__(
        self,
        settings: Optional[DirectionsSettings] = None,
        cache: Optional[RouteCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.settings = settings or DirectionsSettings()
        self.cache = cache if cache is not None else RouteCache()
        self._transport = transport
        self._clock = clock
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None
        self._lock: Optional[asyncio.Lock] = None
        self._last_request_at: Optional[float] = None
        self._cooldown_until: Optional[float] = None
        self._token = self.settings.resolve_token()

        self.requests_sent = 0
        self.cache_hits = 0
        self.fallbacks = 0

        if not self._token:
            logger.warning("No Mapbox access token configured; directions requests will be rejected")

    async def __aenter__(self) -> "DirectionsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.timeout_s, transport=self._transport)
        return self._client

    def rate_limited(self) -> bool:
        return self._cooldown_until is not None and self._clock() < self._cooldown_until

    def stats(self) -> Dict[str, int]:
        return {
            "requests_sent": self.requests_sent,
            "cache_hits": self.cache_hits,
            "fallbacks": self.fallbacks,
            "cached_routes": len(self.cache),
        }

    async def route(self, start: Point, end: Point) -> Route:
        """Return a walking route from start to end. Never raises."""
        cached = self.cache.get(start, end)
        if cached is not None:
            self.cache_hits += 1
            return cached

        if self.rate_limited():
            return self._fallback(start, end, "rate limit cool-down active")

        try:
            return await self._fetch(start, end)
        except RateLimitedError as e:
            return self._fallback(start, end, str(e))
        except DirectionsError as e:
            logger.warning("Directions request failed (%s); retrying in %.1fs", e, self.settings.retry_backoff_s)

        await self._sleep(self.settings.retry_backoff_s)
        if self.rate_limited():
            return self._fallback(start, end, "rate limit cool-down active")
        try:
            return await self._fetch(start, end)
        except RateLimitedError as e:
            return self._fallback(start, end, f"{e} on retry")
        except DirectionsError as e:
            return self._fallback(start, end, f"retry failed: {e}")

    def _start_cooldown(self) -> None:
        self._cooldown_until = self._clock() + self.settings.rate_limit_cooldown_s
        logger.warning(
            "Directions provider rate limited; using direct routes for %.0fs",
            self.settings.rate_limit_cooldown_s,
        )

    def _fallback(self, start: Point, end: Point, reason: str) -> Route:
        self.fallbacks += 1
        cached = self.cache.get(start, end)
        if cached is not None:
            logger.debug("Using cached route for %s -> %s (%s)", start, end, reason)
            return cached
        logger.debug("Using direct route for %s -> %s (%s)", start, end, reason)
        return direct_route(start, end)

    async def _fetch(self, start: Point, end: Point) -> Route:
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            # a 429 may have arrived while this caller waited for the lock
            if self.rate_limited():
                raise CooldownActiveError("cool-down started while queued")
            await self._pace()
            self.requests_sent += 1
            url = f"{self.settings.base_url}/{start[0]},{start[1]};{end[0]},{end[1]}"
            params = {
                "steps": "true",
                "geometries": "geojson",
                "overview": "full",
                "approaches": "curb;curb",
            }
            if self._token:
                params["access_token"] = self._token
            try:
                response = await self._http().get(url, params=params)
            except httpx.HTTPError as e:
                raise DirectionsError(f"transport error: {e}") from e

            if response.status_code == 429:
                self._start_cooldown()
                raise RateLimitedError("HTTP 429")
        if response.status_code >= 400:
            raise DirectionsError(f"HTTP {response.status_code}")

        route = parse_directions_response(response)
        self.cache.put(start, end, route)
        return route

    async def _pace(self) -> None:
        if self._last_request_at is not None:
            wait = self.settings.min_request_interval_s - (self._clock() - self._last_request_at)
            if wait > 0:
                await self._sleep(wait)
        self._last_request_at = self._clock()


def parse_directions_response(response: httpx.Response) -> Route:
    """Extract the first route's GeoJSON coordinates from a directions payload."""
    try:
        payload = response.json()
        coords = payload["routes"][0]["geometry"]["coordinates"]
        route = [(float(c[0]), float(c[1])) for c in coords]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise DirectionsError(f"malformed directions response: {e}") from e
    if not is_valid_route(route):
        raise DirectionsError("directions response has fewer than two points")
    return route
