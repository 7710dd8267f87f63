"""
File-backed store catalog.

Stands in for the add/list/clear store endpoints of the map application: stores
dropped onto the map are appended as GeoJSON Point features to a single file,
and the catalog's store set is what a reroute is run against.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..config.loaders import stores_from_features
from ..config.models import Bounds
from ..logging import get_logger
from ..simulation.entities import Store

logger = get_logger(__name__)


def make_store_feature(lat: float, lng: float, name: str = "New Store") -> Dict[str, Any]:
    """GeoJSON feature for a store placed by hand on the map."""
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [float(lng), float(lat)]},
        "properties": {
            "PRESENT24": "Yes",
            "STORENAME": name,
            "ADDRESS": "Added via Drag & Drop",
            "ZIPCODE": 20001,
            "created_at": datetime.now().isoformat(timespec="seconds"),
        },
    }


class StoreCatalog:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return list(data.get("features") or []) if isinstance(data, dict) else []

    def _write(self, features: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump({"type": "FeatureCollection", "features": features}, f, indent=2)

    def add(self, lat: float, lng: float, name: str = "New Store") -> Dict[str, Any]:
        features = self._read()
        feature = make_store_feature(lat, lng, name)
        feature["properties"]["id"] = f"catalog-{len(features) + 1}"
        features.append(feature)
        self._write(features)
        logger.info("Added store %s at (%.5f, %.5f)", feature["properties"]["id"], lng, lat)
        return feature

    def list(self) -> List[Dict[str, Any]]:
        return self._read()

    def clear(self) -> int:
        removed = len(self._read())
        self._write([])
        logger.info("Cleared %d stores from %s", removed, self.path.name)
        return removed

    def stores(self, bounds: Optional[Bounds] = None) -> List[Store]:
        return stores_from_features(self._read(), bounds)
