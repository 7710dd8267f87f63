"""
Console reporting helpers shared by the simulation CLIs.
"""

from __future__ import annotations

from typing import Any, Dict

from foodsim.config.loaders import DataLoadError
from foodsim.logging import get_logger

logger = get_logger(__name__)


def log_simulation_results(results: Dict[str, Any]) -> None:
    """Log the headline numbers of a food-access run."""
    logger.info("Residents routed: %d (discarded: %d)", results.get("residents", 0), results.get("discarded", 0))
    logger.info("Frames animated: %d", results.get("frames", 0))
    if results.get("rerouted") is not None:
        logger.info("Residents rerouted to new stores: %d", results["rerouted"])
    stats = results.get("directions") or {}
    logger.info(
        "Directions: %d requests, %d cache hits, %d fallbacks",
        stats.get("requests_sent", 0),
        stats.get("cache_hits", 0),
        stats.get("fallbacks", 0),
    )
    for label, value in (results.get("access") or {}).items():
        logger.info("%s: %s", label, value)


def handle_simulation_error(error: Exception) -> int:
    """Log a failed run and return the process exit code."""
    if isinstance(error, DataLoadError):
        logger.error("Loading failed: %s", error)
        logger.error("Make sure the data directory contains the origins and store files")
        return 2
    logger.exception("Simulation error: %s", error)
    return 1
