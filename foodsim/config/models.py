from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import inspect
import os


MAPBOX_TOKEN_ENV = "MAPBOX_TOKEN"
MAPBOX_DIRECTIONS_URL = "https://api.mapbox.com/directions/v5/mapbox/walking"

# Fraction of one leg (home->store or store->home) walked per animation frame.
# 0.005 means a leg takes 200 frames regardless of its real length.
DEFAULT_PROGRESS_INCREMENT = 0.005

# Rate-limit policy: an HTTP 429 suspends outbound requests for this many
# seconds; every route asked for in that window is a direct two-point line.
DEFAULT_RATE_LIMIT_COOLDOWN_S = 60.0


@dataclass
class Bounds:
    """Bounding region in lon/lat degrees. Defaults cover the District of Columbia."""
    min_lon: float = -77.12
    min_lat: float = 38.79
    max_lon: float = -76.90
    max_lat: float = 39.00

    def validate(self) -> None:
        if self.min_lon >= self.max_lon or self.min_lat >= self.max_lat:
            raise ValueError("Bounds min values must be below max values")

    def contains(self, point: Tuple[float, float]) -> bool:
        lon, lat = point
        return self.min_lon <= lon <= self.max_lon and self.min_lat <= lat <= self.max_lat


@dataclass
class DirectionsSettings:
    base_url: str = MAPBOX_DIRECTIONS_URL
    access_token: Optional[str] = None
    min_request_interval_s: float = 0.3
    retry_backoff_s: float = 1.0
    rate_limit_cooldown_s: float = DEFAULT_RATE_LIMIT_COOLDOWN_S
    timeout_s: float = 15.0

    def validate(self) -> None:
        if self.min_request_interval_s < 0:
            raise ValueError("min_request_interval_s must be non-negative")
        if self.retry_backoff_s < 0:
            raise ValueError("retry_backoff_s must be non-negative")
        if self.rate_limit_cooldown_s < 0:
            raise ValueError("rate_limit_cooldown_s must be non-negative")
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be positive")

    def resolve_token(self) -> Optional[str]:
        return self.access_token or os.environ.get(MAPBOX_TOKEN_ENV)


@dataclass
class AnimationSettings:
    progress_increment: float = DEFAULT_PROGRESS_INCREMENT
    frame_interval_s: float = 1.0 / 60.0

    def validate(self) -> None:
        if not (0 < self.progress_increment < 1):
            raise ValueError("progress_increment must be within (0, 1)")
        if self.frame_interval_s <= 0:
            raise ValueError("frame_interval_s must be positive")


@dataclass
class SimulationConfig:
    origins_file: str = "start_point.json"
    stores_file: str = "Grocery_Store_Locations.geojson"
    catalog_file: Optional[str] = None
    output_dir: Optional[Path] = None
    log_level: str = "INFO"

    # Jitter homes so residents of the same tract don't overlap exactly
    home_jitter_deg: float = 0.0001
    randomize_start: bool = False
    # When set and origins carry a population, residents are split across tracts by population
    max_people: Optional[int] = None
    random_seed: Optional[int] = None

    bounds: Bounds = field(default_factory=Bounds)
    directions: DirectionsSettings = field(default_factory=DirectionsSettings)
    animation: AnimationSettings = field(default_factory=AnimationSettings)

    def validate(self) -> None:
        if self.home_jitter_deg < 0:
            raise ValueError("home_jitter_deg must be non-negative")
        if self.max_people is not None and self.max_people <= 0:
            raise ValueError("max_people must be positive when set")
        self.bounds.validate()
        self.directions.validate()
        self.animation.validate()

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SimulationConfig":
        sig = inspect.signature(SimulationConfig)
        valid_keys = {p.name for p in sig.parameters.values()}
        nested = {"bounds", "directions", "animation"}

        filtered_data = {k: v for k, v in data.items() if k in valid_keys and k not in nested}
        if filtered_data.get("output_dir") is not None:
            filtered_data["output_dir"] = Path(filtered_data["output_dir"])

        if isinstance(data.get("bounds"), dict):
            filtered_data["bounds"] = _build(Bounds, data["bounds"])
        if isinstance(data.get("directions"), dict):
            filtered_data["directions"] = _build(DirectionsSettings, data["directions"])
        if isinstance(data.get("animation"), dict):
            filtered_data["animation"] = _build(AnimationSettings, data["animation"])

        cfg = SimulationConfig(**filtered_data)
        cfg.validate()
        return cfg


def _build(cls, data: Dict[str, Any]):
    valid_keys = {p.name for p in inspect.signature(cls).parameters.values()}
    return cls(**{k: v for k, v in data.items() if k in valid_keys})
