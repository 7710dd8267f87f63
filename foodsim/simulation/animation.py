"""
Per-frame resident movement.

``tick`` is the state transition: it advances every resident's progress along its
current leg by a fixed increment and places its marker at the new position.
``AnimationDriver`` merely schedules ``tick`` on a SimPy clock, one call per frame.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

import simpy
from shapely.geometry import LineString

from ..config.models import AnimationSettings, DEFAULT_PROGRESS_INCREMENT
from ..logging import get_logger
from .entities import PersonEntity, Point, Route, is_valid_route

logger = get_logger(__name__)

# Float accumulation of the increment may land just short of 1.0 on the last step of a leg
_WRAP_EPSILON = 1e-9


def interpolate_along_route(route: Route, fraction: float) -> Point:
    """Point at ``fraction`` of the route's arc length, walking its segments linearly."""
    if not is_valid_route(route):
        raise ValueError("route needs at least two points")
    line = LineString(route)
    if line.length == 0:
        return tuple(route[0])
    fraction = min(max(fraction, 0.0), 1.0)
    p = line.interpolate(fraction * line.length)
    return (p.x, p.y)


def next_progress(progress: float, is_returning: bool, increment: float) -> Tuple[float, bool]:
    """Advance progress by one increment; reaching the end of a leg wraps to 0 and flips direction."""
    progress += increment
    if progress >= 1.0 - _WRAP_EPSILON:
        return 0.0, not is_returning
    return progress, is_returning


def tick(
    people: Sequence[PersonEntity],
    increment: float = DEFAULT_PROGRESS_INCREMENT,
) -> List[Tuple[PersonEntity, Point]]:
    """Move every routable resident one frame forward and update its marker.

    Residents whose route has fewer than two points (routing pending or failed)
    are left untouched. Returns (person, position) for each resident moved.
    """
    moved: List[Tuple[PersonEntity, Point]] = []
    for person in people:
        if not is_valid_route(person.route):
            continue
        person.progress, person.is_returning = next_progress(person.progress, person.is_returning, increment)
        position = interpolate_along_route(person.directional_route(), person.progress)
        if person.marker is not None:
            person.marker.set_position(position)
        moved.append((person, position))
    return moved


class AnimationDriver:
    """Runs ``tick`` once per frame on a SimPy environment until stopped."""

    def __init__(
        self,
        env: simpy.Environment,
        people: Callable[[], Sequence[PersonEntity]],
        settings: Optional[AnimationSettings] = None,
    ) -> None:
        self.env = env
        self.settings = settings or AnimationSettings()
        self._people = people
        self._process: Optional[simpy.Process] = None
        self.frames = 0

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.is_alive

    def start(self) -> None:
        if self.running:
            return
        self._process = self.env.process(self._frame_loop())
        logger.info(
            "Animation started: increment=%.4f per frame, frame interval=%.4fs",
            self.settings.progress_increment,
            self.settings.frame_interval_s,
        )

    def stop(self) -> None:
        if self._process is None:
            return
        if self._process.is_alive and self.env.active_process is not self._process:
            self._process.interrupt("animation stopped")
        self._process = None
        logger.info("Animation stopped after %d frames", self.frames)

    def step(self) -> List[Tuple[PersonEntity, Point]]:
        moved = tick(self._people(), self.settings.progress_increment)
        self.frames += 1
        return moved

    def _frame_loop(self):  # simpy process
        # a loop retires as soon as it is no longer the driver's current process
        current = self.env.active_process
        try:
            while self._process is current:
                yield self.env.timeout(self.settings.frame_interval_s)
                if self._process is not current:
                    break
                self.step()
        except simpy.Interrupt:
            pass
