from __future__ import annotations

import json

import pytest

from foodsim.config.loaders import DataLoadError, load_origins, load_simulation_config, load_stores, parse_origins
from foodsim.config.models import DEFAULT_PROGRESS_INCREMENT, Bounds, SimulationConfig


def test_config_defaults_when_file_missing(tmp_path):
    cfg = load_simulation_config(tmp_path)
    assert cfg.animation.progress_increment == DEFAULT_PROGRESS_INCREMENT
    assert cfg.directions.rate_limit_cooldown_s == 60.0
    assert cfg.directions.min_request_interval_s == 0.3


def test_config_from_nested_file(tmp_path):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "simulation_config.json").write_text(json.dumps({
        "origins_file": "tracts.json",
        "home_jitter_deg": 0.0,
        "unknown_key": 1,
        "directions": {"min_request_interval_s": 0.5, "access_token": "abc"},
        "animation": {"progress_increment": 0.01},
        "bounds": {"min_lon": -78, "min_lat": 38, "max_lon": -76, "max_lat": 40},
    }))

    cfg = load_simulation_config(tmp_path)

    assert cfg.origins_file == "tracts.json"
    assert cfg.home_jitter_deg == 0.0
    assert cfg.directions.min_request_interval_s == 0.5
    assert cfg.directions.resolve_token() == "abc"
    assert cfg.animation.progress_increment == 0.01
    assert cfg.bounds.contains((-77.5, 39.5))


def test_token_from_environment(monkeypatch):
    monkeypatch.setenv("MAPBOX_TOKEN", "from-env")
    assert SimulationConfig().directions.resolve_token() == "from-env"


@pytest.mark.parametrize("data", [
    {"animation": {"progress_increment": 0}},
    {"animation": {"progress_increment": 1.5}},
    {"directions": {"min_request_interval_s": -1}},
    {"bounds": {"min_lon": 0, "max_lon": -1}},
    {"max_people": 0},
])
def test_invalid_config_values_are_rejected(data):
    with pytest.raises(ValueError):
        SimulationConfig.from_dict(data)


def test_parse_origins_supports_both_record_shapes():
    origins = parse_origins({
        "T1": {"lng": -77.03, "lat": 38.90},
        "T2": {"origin": {"type": "Point", "coordinates": [-77.01, 38.92]}, "population": "1200"},
        "T3": {"origin": {"type": "Point"}},
        "T4": "not a record",
    })

    assert [o.origin_id for o in origins] == ["T1", "T2"]
    assert origins[0].location == (-77.03, 38.90)
    assert origins[1].population == 1200.0


def test_origins_outside_bounds_are_dropped():
    origins = parse_origins({"in": {"lng": -77.03, "lat": 38.90}, "out": {"lng": -80.0, "lat": 38.90}}, Bounds())
    assert [o.origin_id for o in origins] == ["in"]


def test_missing_or_malformed_files_abort_loading(tmp_path):
    with pytest.raises(DataLoadError):
        load_origins(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(DataLoadError):
        load_stores(bad)

    not_fc = tmp_path / "stores.json"
    not_fc.write_text(json.dumps({"type": "FeatureCollection"}))
    with pytest.raises(DataLoadError):
        load_stores(not_fc)

    with pytest.raises(DataLoadError):
        parse_origins(["T1"])


def test_load_stores_from_feature_collection(tmp_path):
    path = tmp_path / "Grocery_Store_Locations.geojson"
    path.write_text(json.dumps({
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": [-77.02, 38.90]},
             "properties": {"OBJECTID": 7, "STORENAME": "Corner Market"}},
            {"type": "Feature", "geometry": {"type": "Point", "coordinates": [-77.01, 38.91]},
             "properties": {"id": "big", "capacity": 250}},
            {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": []}, "properties": {}},
        ],
    }))

    stores = load_stores(path)

    assert [s.store_id for s in stores] == ["7", "big"]
    assert stores[0].capacity == 100
    assert stores[0].properties["STORENAME"] == "Corner Market"
    assert stores[1].capacity == 250
    assert stores[1].location == (-77.01, 38.91)
