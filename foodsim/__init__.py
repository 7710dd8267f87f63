"""Lightweight package initializer for foodsim.

Avoid importing heavy submodules at import time so that geopandas and folium
are only loaded when a caller actually needs them.
"""

__all__ = []
