from __future__ import annotations

import json
import logging

import geopandas as gpd
import pandas as pd
import pytest

from quakemap.cleaning import RAW_FILES
from quakemap.main import _year_month_arg, main


@pytest.fixture(autouse=True)
def _close_log_handlers():
    yield
    root = logging.getLogger()
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            root.removeHandler(h)
            h.close()


def _write_raw(raw_dir) -> None:
    (raw_dir / "gdp").mkdir(parents=True)
    pd.DataFrame({
        "magnitude": ["6.0", "3.5"], "tsunami": ["0", "1"], "depth": ["10", "20"],
        "latitude": ["0.5", "0.6"], "longitude": ["0.5", "0.6"],
        "Year": ["2020", "2020"], "Month": ["12", "12"],
    }).to_csv(raw_dir / RAW_FILES["earthquakes"], index=False)
    pd.DataFrame({
        "Country Name": ["United States", "Canada"], "Code": ["USA", "CAN"],
        "2019": ["21,000,000,000,000", "1,700,000,000,000"], "2020": ["20,900,000,000,000", "1,650,000,000,000"],
    }).to_csv(raw_dir / RAW_FILES["gdp_total"], index=False)
    pd.DataFrame({
        "ident": ["AP"], "name": ["Port Null"], "type": ["small_airport"], "iso_country": ["XX"],
        "latitude_deg": ["0.4"], "longitude_deg": ["0.4"],
    }).to_csv(raw_dir / RAW_FILES["airports"], index=False)


def _write_topology(path) -> None:
    topo = {
        "type": "Topology",
        "arcs": [
            [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]],
            [[2, 0], [3, 0], [3, 1], [2, 1], [2, 0]],
            [[-170, -70], [170, -70], [170, -80], [-170, -70]],
        ],
        "objects": {"countries": {"type": "GeometryCollection", "geometries": [
            {"type": "Polygon", "id": "840", "arcs": [[0]], "properties": {"name": "United States of America"}},
            {"type": "Polygon", "id": "124", "arcs": [[1]], "properties": {"name": "Canada"}},
            {"type": "Polygon", "id": "010", "arcs": [[2]], "properties": {"name": "Antarctica"}},
        ]}},
    }
    path.write_text(json.dumps(topo), encoding="utf-8")


def test_full_pipeline(tmp_path) -> None:
    raw_dir = tmp_path / "data" / "raw"
    _write_raw(raw_dir)
    topo = tmp_path / "countries.json"
    _write_topology(topo)
    out = tmp_path / "out"

    results = main(
        run_cleaning=True, run_building=True, run_rendering=True,
        raw_dir=raw_dir,
        intermediate_dir=tmp_path / "data" / "intermediate",
        processed_dir=tmp_path / "data" / "processed",
        topology_path=topo,
        year_month="2020-12",
        output_folder=str(out),
    )

    unified = pd.read_csv(results["build"])
    eq = unified.loc[unified["dataset"] == "earthquake"]
    assert eq["airports_within_100km"].tolist() == [1, 1]

    styles = json.loads((out / "styles_2020.json").read_text(encoding="utf-8"))
    countries = gpd.read_file(out / "choropleth_2020.geojson")
    fid = dict(zip(countries["country_name"], countries["feature_id"].astype(str)))
    assert set(fid) == {"United States of America", "Canada"}
    assert fid["United States of America"] == "840"
    assert styles[fid["United States of America"]]["fillColor"] == "#000051"
    assert styles[fid["Canada"]]["fillColor"] == "#ffffff"
    assert len(styles) == 2
    log_text = (out / "logs" / "pipeline.log").read_text(encoding="utf-8")
    assert "[choropleth] Dec 2020: events shown=" in log_text


def test_missing_unified_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        main(processed_dir=tmp_path / "nothing", topology_path=tmp_path / "t.json", output_folder=str(tmp_path / "o"))


def test_year_argument() -> None:
    assert _year_month_arg("2015") == "2015-12"
    assert _year_month_arg("2015-6") == "2015-06"
