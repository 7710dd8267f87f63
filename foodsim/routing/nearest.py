"""
Nearest grocery store lookup.

Distances are planar, in degree space, which is adequate at city scale.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import geopandas as gpd
import pandas as pd
from shapely.geometry import Point as ShapelyPoint

from ..simulation.entities import Point, Store


class StoreIndex:
    """Store set with a cached GeoDataFrame for vectorized distance queries."""

    def __init__(self, stores: Sequence[Store] = ()) -> None:
        self.update(stores)

    def update(self, stores: Sequence[Store]) -> None:
        """Replace the indexed store set wholesale."""
        self.stores: List[Store] = list(stores)
        self._by_id: Dict[str, Store] = {s.store_id: s for s in self.stores}
        if self.stores:
            df = pd.DataFrame(
                [(s.store_id, s.lon, s.lat) for s in self.stores],
                columns=["store_id", "x", "y"],
            )
            self._gdf = gpd.GeoDataFrame(df, geometry=gpd.points_from_xy(df.x, df.y))
        else:
            self._gdf = None

    def __len__(self) -> int:
        return len(self.stores)

    def get(self, store_id: str) -> Optional[Store]:
        return self._by_id.get(store_id)

    def nearest(self, point: Point) -> Optional[Store]:
        """Closest store to point; the first one listed wins ties. None when empty."""
        if self._gdf is None:
            return None
        distances = self._gdf.distance(ShapelyPoint(point[0], point[1]))
        return self.stores[int(distances.idxmin())]

    def query_within(self, point: Point, radius_deg: float = 1.5) -> List[Store]:
        """Nearest store as a one-element list, or empty if it lies beyond radius_deg."""
        store = self.nearest(point)
        if store is None:
            return []
        if ShapelyPoint(point).distance(ShapelyPoint(store.location)) > radius_deg:
            return []
        return [store]


def nearest_store(point: Point, stores: Sequence[Store]) -> Optional[Store]:
    return StoreIndex(stores).nearest(point)


def nearest_location(point: Point, stores: Sequence[Store] | StoreIndex) -> Point:
    """Location of the closest store, or the query point itself when there are no stores."""
    index = stores if isinstance(stores, StoreIndex) else StoreIndex(stores)
    store = index.nearest(point)
    if store is None:
        return tuple(point)
    return store.location


def has_assignment(query: Point, location: Point) -> bool:
    """False when nearest_location returned its own query point, i.e. no store was found."""
    return tuple(query) != tuple(location)
