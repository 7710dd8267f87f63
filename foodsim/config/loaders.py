from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .models import Bounds, SimulationConfig
from ..logging import get_logger
from ..simulation.entities import DEFAULT_STORE_CAPACITY, Origin, Store
from ..utils import parse_lonlat

logger = get_logger(__name__)


class DataLoadError(RuntimeError):
    """Origin or store data could not be loaded; the simulation must not start."""


def load_simulation_config(data_dir: Union[str, Path]) -> SimulationConfig:
    data_path = Path(data_dir)
    candidates = [
        data_path / "config" / "simulation_config.json",
        data_path / "simulation_config.json",
    ]
    for path in candidates:
        if path.exists():
            data = json.loads(path.read_text(encoding="utf-8"))
            return SimulationConfig.from_dict(data)
    logger.info("simulation_config.json not found in %s; using defaults", data_dir)
    return SimulationConfig()


def _read_json(path: Union[str, Path], what: str) -> Any:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise DataLoadError(f"Failed to load {what} from {path}: {e}") from e


def parse_origins(data: Dict[str, Any], bounds: Optional[Bounds] = None) -> List[Origin]:
    """Build origins from a tract-id keyed mapping.

    Each value may be ``{"origin": {"coordinates": [lng, lat]}}`` (the census
    start-point file) or a flat ``{"lng": .., "lat": ..}`` record. An optional
    ``population`` weights the tract when residents are distributed.
    """
    if not isinstance(data, dict):
        raise DataLoadError("Origins must be a JSON object keyed by tract id")

    origins: List[Origin] = []
    for origin_id, record in data.items():
        if not isinstance(record, dict):
            logger.warning("Skipping origin %s: not an object", origin_id)
            continue
        point = parse_lonlat(record["origin"]) if "origin" in record else parse_lonlat(record)
        if point is None:
            logger.warning("Skipping origin %s: missing coordinates", origin_id)
            continue
        if bounds is not None and not bounds.contains(point):
            logger.warning("Skipping origin %s: %s outside bounds", origin_id, point)
            continue
        population = record.get("population")
        try:
            population = float(population) if population is not None else None
        except (TypeError, ValueError):
            population = None
        origins.append(Origin(origin_id=str(origin_id), location=point, population=population))
    return origins


def stores_from_features(features: Iterable[Dict[str, Any]], bounds: Optional[Bounds] = None) -> List[Store]:
    """Convert GeoJSON Point features (file or catalog documents) into stores."""
    stores: List[Store] = []
    for i, feat in enumerate(features):
        if not isinstance(feat, dict):
            continue
        geom = feat.get("geometry") or {}
        if geom.get("type", "Point") != "Point":
            continue
        point = parse_lonlat(geom)
        if point is None:
            continue
        if bounds is not None and not bounds.contains(point):
            logger.debug("Skipping store feature %d outside bounds", i)
            continue
        props = feat.get("properties") or {}
        store_id = props.get("id") or props.get("OBJECTID") or feat.get("_id") or f"store-{i}"
        try:
            capacity = int(props.get("capacity") or DEFAULT_STORE_CAPACITY)
        except (TypeError, ValueError):
            capacity = DEFAULT_STORE_CAPACITY
        stores.append(Store(store_id=str(store_id), location=point, capacity=capacity, properties=dict(props)))
    return stores


def load_origins(path: Union[str, Path], bounds: Optional[Bounds] = None) -> List[Origin]:
    origins = parse_origins(_read_json(path, "origins"), bounds)
    logger.info("Loaded %d origins from %s", len(origins), Path(path).name)
    return origins


def load_stores(path: Union[str, Path], bounds: Optional[Bounds] = None) -> List[Store]:
    gj = _read_json(path, "stores")
    if isinstance(gj, dict):
        features = gj.get("features")
    else:
        features = gj
    if not isinstance(features, list):
        raise DataLoadError(f"{Path(path).name} is not a FeatureCollection")
    stores = stores_from_features(features, bounds)
    logger.info("Loaded %d stores from %s", len(stores), Path(path).name)
    return stores
