from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import simpy

from ..analysis.access_metrics import summarize_access, summarize_by_origin
from ..config.models import SimulationConfig
from ..data.stores import StoreCatalog
from ..io.results import SimulationResult, write_routes_geojson, write_tracks_csv
from ..logging import get_logger
from ..routing.directions import DirectionsClient
from .controller import SimulationController
from .entities import Origin, Store
from .markers import TrackRecorder


logger = get_logger(__name__)


async def run_food_access_simulation(
    origins: Sequence[Origin],
    stores: Sequence[Store],
    config: Optional[SimulationConfig] = None,
    frames: int = 600,
    catalog: Optional[StoreCatalog] = None,
    directions: Optional[DirectionsClient] = None,
    output_dir: Optional[str | Path] = None,
    create_map: bool = True,
) -> Dict[str, Any]:
    """
    Route residents to their nearest stores and animate them for a number of frames.

    Parameters
    ----------
    origins: sequence of Origin
        Residential sample points, one resident each unless ``max_people`` is configured.
    stores: sequence of Store
        Grocery stores loaded for this run.
    config: SimulationConfig | None
        Simulation parameters; defaults apply when omitted.
    frames: int
        Number of animation frames to run.
    catalog: StoreCatalog | None
        When given and non-empty, residents are rerouted against the existing
        stores plus the catalog stores half-way through the run.
    directions: DirectionsClient | None
        Optional preconfigured client (tests inject a mock transport here).
    output_dir: str | Path | None
        Directory for tracks CSV, routes GeoJSON, summary JSON and map HTML.
    create_map: bool
        Whether to write the folium map.

    Returns
    -------
    dict
        Summary including resident snapshot, access metrics and directions stats.
    """
    cfg = config or SimulationConfig()
    env = simpy.Environment()
    recorder = TrackRecorder(clock=lambda: env.now)
    owns_client = directions is None
    client = directions or DirectionsClient(cfg.directions)
    controller = SimulationController(cfg, env=env, directions=client, marker_factory=recorder)

    try:
        people = await controller.initialize(origins, stores)
        if not people:
            logger.warning("No residents could be routed; nothing to animate")

        rerouted: Optional[int] = None
        first_half = frames // 2 if catalog is not None else frames
        controller.run_frames(first_half)

        all_stores = list(stores)
        if catalog is not None:
            added = catalog.stores(cfg.bounds)
            if added:
                all_stores.extend(added)
                rerouted = await controller.reroute(all_stores)
            controller.run_frames(frames - first_half)

        result = SimulationResult(
            residents=len(controller.people),
            discarded=len(controller.discarded),
            frames=controller.driver.frames,
            rerouted=rerouted,
            directions=client.stats(),
            access=summarize_access(controller.people, controller.discarded),
            metadata={
                "origins": len(origins),
                "stores": len(all_stores),
                "progress_increment": cfg.animation.progress_increment,
                "rate_limit_cooldown_s": cfg.directions.rate_limit_cooldown_s,
            },
        )
        results: Dict[str, Any] = result.to_dict()
        results["people"] = controller.snapshot()

        if output_dir:
            output_path = Path(output_dir)
            output_path.mkdir(parents=True, exist_ok=True)
            write_tracks_csv(recorder.all_coordinates(), output_path / "resident_tracks.csv")
            write_routes_geojson(controller.people, all_stores, output_path / "routes.geojson")
            by_origin = summarize_by_origin(controller.people, controller.discarded_origins)
            by_origin.to_csv(output_path / "access_by_origin.csv", index=False)
            result.to_json(output_path / "simulation_result.json")
            if create_map:
                try:
                    from ..viz.folium_viz import map_routes

                    map_path = output_path / "routes_map.html"
                    map_routes(controller.people, all_stores).save(str(map_path))
                    logger.info("Created routes map: %s", map_path)
                    results["map_path"] = str(map_path)
                except Exception as e:
                    logger.warning("Failed to create routes map: %s", e)
                    results["map_error"] = str(e)
        return results
    finally:
        controller.teardown()
        if owns_client:
            await client.aclose()
