"""
Simulation controller: owns the residents, their routes and the frame driver.
"""

from __future__ import annotations

import math
import random
from typing import Any, Dict, List, Optional, Sequence, Tuple

import simpy

from ..config.models import SimulationConfig
from ..logging import get_logger
from ..routing.cache import RouteCache
from ..routing.directions import DirectionsClient
from ..routing.nearest import StoreIndex, has_assignment, nearest_location
from .. import utils
from .animation import AnimationDriver
from .entities import Origin, PersonEntity, Point, Store, is_valid_route
from .markers import MarkerFactory, TrackRecorder

logger = get_logger(__name__)


class SimulationController:
    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        env: Optional[simpy.Environment] = None,
        directions: Optional[DirectionsClient] = None,
        marker_factory: Optional[MarkerFactory] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or SimulationConfig()
        self.env = env or simpy.Environment()
        if directions is None:
            self.cache = RouteCache()
            self.directions = DirectionsClient(self.config.directions, self.cache)
        else:
            self.directions = directions
            self.cache = directions.cache
        self.marker_factory = marker_factory or TrackRecorder(clock=lambda: self.env.now)
        self.rng = rng or random.Random(self.config.random_seed)
        self.people: List[PersonEntity] = []
        self.driver = AnimationDriver(self.env, lambda: self.people, self.config.animation)
        self.active = True
        self.discarded: List[str] = []
        self.discarded_origins: List[str] = []

    def expand_origins(self, origins: Sequence[Origin]) -> List[Tuple[str, Origin]]:
        """One resident per origin, or a population-weighted split of max_people."""
        populations = [o.population for o in origins]
        if self.config.max_people and origins and all(p is not None for p in populations):
            counts = utils.distribute_counts_by_fraction(self.config.max_people, populations)
        else:
            counts = [1] * len(origins)

        residents: List[Tuple[str, Origin]] = []
        for origin, count in zip(origins, counts):
            for k in range(count):
                person_id = f"person-{origin.origin_id}" if count == 1 else f"person-{origin.origin_id}-{k + 1}"
                residents.append((person_id, origin))
        return residents

    def _jitter(self, point: Point) -> Point:
        jitter = self.config.home_jitter_deg
        if jitter <= 0:
            return (point[0], point[1])
        return (
            point[0] + (self.rng.random() - 0.5) * jitter,
            point[1] + (self.rng.random() - 0.5) * jitter,
        )

    def _discard(self, person_id: str, origin: Origin) -> None:
        self.discarded.append(person_id)
        self.discarded_origins.append(origin.origin_id)

    async def initialize(self, origins: Sequence[Origin], stores: Sequence[Store]) -> List[PersonEntity]:
        """Route every resident to its nearest store, one directions request at a time."""
        if not self.active:
            return []
        index = StoreIndex(stores)
        residents = self.expand_origins(origins)
        logger.info("Initializing %d residents against %d stores", len(residents), len(index))

        people: List[PersonEntity] = []
        for person_id, origin in residents:
            home = self._jitter(origin.location)
            target = nearest_location(home, index)
            if not has_assignment(home, target):
                logger.warning("No store found for %s; skipping", person_id)
                self._discard(person_id, origin)
                continue

            marker = self.marker_factory(person_id, home)
            route = await self.directions.route(home, target)

            if not self.active:
                marker.remove()
                for p in people:
                    if p.marker is not None:
                        p.marker.remove()
                logger.info("Controller torn down during initialization; discarding %d residents", len(people))
                return []

            if not is_valid_route(route):
                marker.remove()
                self._discard(person_id, origin)
                logger.warning("No valid route for %s", person_id)
                continue

            person = PersonEntity(
                person_id=person_id,
                home=home,
                target_store=target,
                route=route,
                marker=marker,
                origin_id=origin.origin_id,
            )
            if self.config.randomize_start:
                person.progress = self.rng.random()
                person.is_returning = self.rng.random() > 0.5
            people.append(person)
            logger.debug("Created resident %s", person_id)

        self.people = people
        logger.info("Created %d active residents (%d discarded)", len(people), len(self.discarded))
        if people:
            self.driver.start()
        return people

    async def reroute(self, new_stores: Sequence[Store]) -> int:
        """Send residents to a newly available store when it is strictly closer than their current one.

        Returns the number of residents whose target changed. A failed route
        request keeps the resident's previous route.
        """
        index = StoreIndex(new_stores)
        changed = 0
        for person in list(self.people):
            if not self.active:
                break
            candidate = index.nearest(person.home)
            if candidate is None:
                continue
            if _planar_distance(person.home, candidate.location) >= _planar_distance(person.home, person.target_store):
                continue

            route = await self.directions.route(person.home, candidate.location)
            if not self.active:
                break

            person.target_store = candidate.location
            person.progress = 0.0
            person.is_returning = False
            changed += 1
            if is_valid_route(route):
                person.route = route
            else:
                logger.warning("Reroute for %s failed; keeping previous route", person.person_id)

        logger.info("Rerouted %d of %d residents", changed, len(self.people))
        return changed

    def run_frames(self, frames: int) -> None:
        """Step the SimPy clock until ``frames`` more animation ticks have run."""
        target = self.driver.frames + frames
        while self.driver.running and self.driver.frames < target:
            if self.env.peek() == float("inf"):
                break
            self.env.step()

    def teardown(self) -> None:
        self.active = False
        self.driver.stop()
        for person in self.people:
            if person.marker is not None:
                person.marker.remove()
        logger.info("Simulation torn down; released %d markers", len(self.people))
        self.people = []

    def snapshot(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.people]


def _planar_distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])
