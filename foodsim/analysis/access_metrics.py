"""
Food-access metrics derived from resident routes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from ..simulation.entities import PersonEntity
from .. import utils


def format_meters(value: Optional[float]) -> str:
    if value is None or pd.isna(value):
        return "0m"
    return f"{round(value)}m"


def resident_distances(people: Sequence[PersonEntity]) -> pd.DataFrame:
    """One row per resident with the walking distance of its route in meters."""
    rows: List[Dict[str, Any]] = []
    for p in people:
        rows.append({
            "person_id": p.person_id,
            "origin_id": p.origin_id,
            "route_points": len(p.route),
            "walk_distance_m": utils.route_length_m(p.route),
            "direct_distance_m": utils.haversine_m(*p.home, *p.target_store),
        })
    return pd.DataFrame(rows, columns=["person_id", "origin_id", "route_points", "walk_distance_m", "direct_distance_m"])


def summarize_by_origin(people: Sequence[PersonEntity], discarded_origins: Sequence[str] = ()) -> pd.DataFrame:
    """Per-tract walking distance statistics plus the residents left without a store or route."""
    columns = ["origin_id", "residents", "unassigned", "mean_walk_m", "min_walk_m", "max_walk_m"]
    df = resident_distances(people)
    unassigned = pd.Series(list(discarded_origins), dtype="object").value_counts()
    if df.empty and unassigned.empty:
        return pd.DataFrame(columns=columns)

    if df.empty:
        summary = pd.DataFrame(columns=["residents", "mean_walk_m", "min_walk_m", "max_walk_m"], dtype="float")
    else:
        grouped = df.groupby("origin_id", dropna=False)["walk_distance_m"]
        summary = grouped.agg(residents="count", mean_walk_m="mean", min_walk_m="min", max_walk_m="max")
    summary = summary.reindex(summary.index.union(unassigned.index))
    summary["residents"] = summary["residents"].fillna(0).astype(int)
    summary["unassigned"] = unassigned.reindex(summary.index).fillna(0).astype(int)
    summary.index.name = "origin_id"
    return summary.reset_index()[columns]


def summarize_access(people: Sequence[PersonEntity], discarded: Sequence[str] = ()) -> Dict[str, Any]:
    """Headline access metrics for a simulation run."""
    df = resident_distances(people)
    if df.empty:
        return {
            "Residents": 0,
            "Unassigned": len(discarded),
            "Avg Walk": format_meters(None),
            "Median Walk": format_meters(None),
            "Max Walk": format_meters(None),
        }
    return {
        "Residents": int(len(df)),
        "Unassigned": len(discarded),
        "Avg Walk": format_meters(df["walk_distance_m"].mean()),
        "Median Walk": format_meters(df["walk_distance_m"].median()),
        "Max Walk": format_meters(df["walk_distance_m"].max()),
    }
