"""
Simulation Results I/O Module

Writes resident tracks, routes and run summaries for the map viewer.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from foodsim.logging import get_logger
from foodsim.simulation.entities import PersonEntity, Store


logger = get_logger(__name__)


@dataclass
class SimulationResult:
    success: bool = True
    residents: int = 0
    discarded: int = 0
    frames: int = 0
    rerouted: Optional[int] = None
    directions: Dict[str, int] = field(default_factory=dict)
    access: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        raw = asdict(self)
        return {k: v for k, v in raw.items() if v is not None}

    def to_json(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)
        logger.info("Saved simulation result JSON: %s", path)
        return path


def write_tracks_csv(coordinates: List[Dict[str, Any]], path: str | Path) -> Path:
    """Write per-frame marker positions, sorted by resident then time."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(coordinates, columns=["id", "latitude", "longitude", "timestamp", "type"])
    if not df.empty:
        df = df.sort_values(["id", "timestamp"], kind="stable")
    df.to_csv(path, index=False)
    logger.info("Saved %d track points: %s", len(df), path)
    return path


def routes_feature_collection(people: Sequence[PersonEntity], stores: Sequence[Store] = ()) -> Dict[str, Any]:
    features: List[Dict[str, Any]] = []
    for p in people:
        features.append({
            "type": "Feature",
            "geometry": {"type": "LineString", "coordinates": [list(c) for c in p.route]},
            "properties": {"id": p.person_id, "origin_id": p.origin_id, "kind": "route"},
        })
        features.append({
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": list(p.home)},
            "properties": {"id": p.person_id, "origin_id": p.origin_id, "kind": "home"},
        })
    for s in stores:
        features.append({
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": list(s.location)},
            "properties": {"id": s.store_id, "capacity": s.capacity, "kind": "store"},
        })
    return {"type": "FeatureCollection", "features": features}


def write_routes_geojson(people: Sequence[PersonEntity], stores: Sequence[Store], path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(routes_feature_collection(people, stores), f)
    logger.info("Saved routes GeoJSON: %s", path)
    return path
