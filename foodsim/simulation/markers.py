"""
Visual marker sinks.

The simulation core only ever calls ``set_position`` and ``remove`` on a marker.
``TrackMarker`` is the in-process implementation: it records every position it
is given so the run can be exported as a coordinate track for the map viewer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Tuple


class Marker(Protocol):
    def set_position(self, point: Tuple[float, float]) -> None: ...

    def remove(self) -> None: ...


MarkerFactory = Callable[[str, Tuple[float, float]], Marker]


@dataclass
class TrackMarker:
    marker_id: str
    position: Tuple[float, float]
    clock: Optional[Callable[[], float]] = None
    coordinates: List[Dict] = field(default_factory=list)
    removed: bool = False

    def set_position(self, point: Tuple[float, float]) -> None:
        if self.removed:
            return
        self.position = (float(point[0]), float(point[1]))
        self.coordinates.append({
            "id": self.marker_id,
            "longitude": self.position[0],
            "latitude": self.position[1],
            "timestamp": float(self.clock()) if self.clock else float(len(self.coordinates)),
            "type": "resident",
        })

    def remove(self) -> None:
        self.removed = True


@dataclass
class TrackRecorder:
    """Marker factory that keeps every marker it creates, removed ones included."""

    clock: Optional[Callable[[], float]] = None
    markers: Dict[str, TrackMarker] = field(default_factory=dict)

    def __call__(self, marker_id: str, position: Tuple[float, float]) -> TrackMarker:
        marker = TrackMarker(marker_id=marker_id, position=tuple(position), clock=self.clock)
        self.markers[marker_id] = marker
        return marker

    def active(self) -> List[TrackMarker]:
        return [m for m in self.markers.values() if not m.removed]

    def all_coordinates(self) -> List[Dict]:
        rows: List[Dict] = []
        for marker in self.markers.values():
            rows.extend(marker.coordinates)
        return rows
