from __future__ import annotations

import math
from datetime import datetime
from typing import List, Optional, Sequence, Tuple


def haversine_m(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return 6371000.0 * c


def route_length_m(coords: Sequence[Tuple[float, float]]) -> float:
    """Walking length of a (lon, lat) polyline in meters."""
    total = 0.0
    for i in range(1, len(coords)):
        total += haversine_m(*coords[i - 1], *coords[i])
    return total


def distribute_counts_by_fraction(total: int, fractions: List[float]) -> List[int]:
    """Turn fractional shares into integer counts that sum to total.

    Uses largest-remainder method for stable rounding.
    """
    total = int(total)
    if total <= 0 or not fractions:
        return [0 for _ in fractions]
    # Normalize if the weights don't sum to 1 (raw populations, percentages)
    s = sum(max(0.0, float(x)) for x in fractions)
    if s <= 0:
        return [0 for _ in fractions]
    shares = [max(0.0, float(x)) / s for x in fractions]
    raw = [total * x for x in shares]
    floors = [int(x) for x in raw]
    remainder = total - sum(floors)
    frac_parts = sorted(((i, raw[i] - floors[i]) for i in range(len(raw))), key=lambda t: t[1], reverse=True)
    for i in range(remainder):
        floors[frac_parts[i % len(floors)][0]] += 1
    return floors


def parse_lonlat(value) -> Optional[Tuple[float, float]]:
    """Coerce a [lng, lat] list, {"lng", "lat"} dict or GeoJSON Point into a tuple.

    Returns None when the value does not carry two numeric coordinates.
    """
    if isinstance(value, dict):
        if "coordinates" in value:
            return parse_lonlat(value.get("coordinates"))
        lon = value.get("lng", value.get("lon", value.get("longitude")))
        lat = value.get("lat", value.get("latitude"))
        if lon is None or lat is None:
            return None
        try:
            return (float(lon), float(lat))
        except (TypeError, ValueError):
            return None
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        try:
            return (float(value[0]), float(value[1]))
        except (TypeError, ValueError):
            return None
    return None


def generate_standardized_output_name(num_people: int = 0, num_stores: int = 0, label: Optional[str] = None) -> str:
    """Generate a timestamped output directory name.

    Example: {timestamp}_food_access_{people}_people_{stores}_stores[_label]
    """
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    parts = [ts, "food_access", f"{int(num_people)}_people", f"{int(num_stores)}_stores"]
    if label:
        parts.append(str(label).strip().replace(" ", "_"))
    return "_".join(parts)
