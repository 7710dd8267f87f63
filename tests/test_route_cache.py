from __future__ import annotations

from foodsim.routing.cache import RouteCache


A = (-77.03, 38.90)
B = (-77.02, 38.91)


def test_put_stores_forward_and_reverse():
    cache = RouteCache()
    route = [A, (-77.025, 38.905), B]
    cache.put(A, B, route)

    assert cache.get(A, B) == route
    assert cache.get(B, A) == list(reversed(route))
    assert (A, B) in cache and (B, A) in cache
    assert len(cache) == 2


def test_get_returns_copy():
    cache = RouteCache()
    cache.put(A, B, [A, B])
    got = cache.get(A, B)
    got.append((0.0, 0.0))
    assert cache.get(A, B) == [A, B]


def test_miss_and_clear():
    cache = RouteCache()
    assert cache.get(A, B) is None
    cache.put(A, B, [A, B])
    cache.clear()
    assert cache.get(B, A) is None
    assert len(cache) == 0


def test_keys_normalize_ints_and_lists():
    cache = RouteCache()
    cache.put((1, 2), (3, 4), [[1, 2], [3, 4]])
    assert cache.get((1.0, 2.0), (3.0, 4.0)) == [(1.0, 2.0), (3.0, 4.0)]
