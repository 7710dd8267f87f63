#!/usr/bin/env python3
"""
Food Access Simulation Runner

Thin CLI that loads tract origins and grocery stores, routes one resident per
tract to the nearest store and animates them, then writes tracks and metrics.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from foodsim import utils as sim_utils
from foodsim.config.loaders import load_origins, load_simulation_config, load_stores
from foodsim.data.stores import StoreCatalog
from foodsim.logging import get_logger, init_logging
from foodsim.simulation.orchestration import run_food_access_simulation
from utils import add_data_dir_argument, add_log_level_argument, create_argparse_epilog, resolve_data_dir
from utils.simulation_reporting import handle_simulation_error, log_simulation_results

logger = get_logger(__name__)


def main() -> int:
    examples = [
        "python scripts/sim/run_food_access.py --data-dir data",
        "python scripts/sim/run_food_access.py --frames 1200 --max-people 250",
        "python scripts/sim/run_food_access.py --added-stores data/added_stores.geojson",
    ]
    parser = argparse.ArgumentParser(
        description="Animate DC residents walking to their nearest grocery store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=create_argparse_epilog(examples),
    )
    add_log_level_argument(parser)
    add_data_dir_argument(parser)
    parser.add_argument("--frames", type=int, default=600, help="Animation frames to run (default: 600)")
    parser.add_argument("--max-people", type=int, default=None,
                        help="Split this many residents across tracts by population")
    parser.add_argument("--added-stores", type=str, default=None,
                        help="Store catalog GeoJSON; residents are rerouted against it half-way through")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for home jitter")
    parser.add_argument("--output-dir", type=str, default=None,
                        help="Output directory (default: outputs/<timestamped name>)")
    parser.add_argument("--no-map", action="store_true", help="Skip the folium routes map")
    args = parser.parse_args()

    init_logging(args.log_level)

    try:
        data_dir = resolve_data_dir(args.data_dir)
        cfg = load_simulation_config(data_dir)
        cfg.log_level = args.log_level
        if args.max_people is not None:
            cfg.max_people = args.max_people
        if args.seed is not None:
            cfg.random_seed = args.seed
        cfg.validate()

        origins = load_origins(data_dir / cfg.origins_file, cfg.bounds)
        stores = load_stores(data_dir / cfg.stores_file, cfg.bounds)

        catalog_path = args.added_stores or (str(data_dir / cfg.catalog_file) if cfg.catalog_file else None)
        catalog = StoreCatalog(catalog_path) if catalog_path else None

        output_dir = Path(args.output_dir) if args.output_dir else (
            cfg.output_dir or Path("outputs") / sim_utils.generate_standardized_output_name(
                num_people=cfg.max_people or len(origins), num_stores=len(stores)
            )
        )
        logger.info("Output: %s", output_dir)

        results = asyncio.run(
            run_food_access_simulation(
                origins,
                stores,
                config=cfg,
                frames=args.frames,
                catalog=catalog,
                output_dir=output_dir,
                create_map=not args.no_map,
            )
        )
    except Exception as e:  # noqa: BLE001
        return handle_simulation_error(e)

    log_simulation_results(results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
