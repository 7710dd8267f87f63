"""
Folium visualization helper for resident routes and grocery stores (static, for review).
"""

from __future__ import annotations

from typing import Sequence, Tuple

import folium

from foodsim.simulation.entities import PersonEntity, Store

DC_CENTER: Tuple[float, float] = (38.9072, -77.0369)  # (lat, lon)


def map_routes(people: Sequence[PersonEntity], stores: Sequence[Store], zoom_start: int = 12) -> folium.Map:
    m = folium.Map(location=list(DC_CENTER), zoom_start=zoom_start, control_scale=True)

    store_layer = folium.FeatureGroup(name="stores")
    for s in stores:
        name = s.properties.get("STORENAME", s.store_id)
        folium.CircleMarker(
            location=(s.lat, s.lon), radius=5, color="#c0392b", fill=True, tooltip=str(name)
        ).add_to(store_layer)
    store_layer.add_to(m)

    route_layer = folium.FeatureGroup(name="residents")
    for p in people:
        folium.PolyLine([(c[1], c[0]) for c in p.route], weight=2, opacity=0.6, tooltip=p.person_id).add_to(
            route_layer
        )
        folium.CircleMarker(
            location=(p.home[1], p.home[0]), radius=3, color="#2ecc71", fill=True
        ).add_to(route_layer)
    route_layer.add_to(m)

    folium.LayerControl().add_to(m)
    return m
