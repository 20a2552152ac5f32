from __future__ import annotations

import pandas as pd
import pytest

from quakemap.ranking import NO_DATA_COLOR
from quakemap.session import MapSession
from quakemap.unify import load_unified_dataset


def _unified() -> pd.DataFrame:
    return pd.DataFrame({
        "dataset": ["earthquake", "earthquake", "earthquake", "airport",
                    "gdp_total", "gdp_total", "gdp_total", "gdp_per_capita"],
        "record_id": ["eq1", "eq2", "eq3", "ap1", "AAA_2010", "BBB_2010", "AAA_2011", "AAA_2010"],
        "country": ["", "", "", "", "Alpha", "Beta", "Alpha", "Alpha"],
        "country_code": ["", "", "", "XX", "AAA", "BBB", "AAA", "AAA"],
        "year": ["2010", "2010", "2011", "", "2010", "2010", "2011", "2010"],
        "month": ["6", "6", "1", "", "", "", "", ""],
        "magnitude": ["6.1", "1.9", "5.0", "", "", "", "", ""],
        "value": ["", "", "", "", "100", "200", "150", "5000"],
        "latitude": ["1", "2", "3", "4", "", "", "", ""],
        "longitude": ["1", "2", "3", "4", "", "", "", ""],
    })


def _features() -> list:
    sq = lambda x: {"type": "Polygon", "coordinates": [[[x, 0], [x + 1, 0], [x + 1, 1], [x, 1], [x, 0]]]}
    return [
        {"id": "A", "properties": {"name": "Alpha"}, "geometry": sq(0)},
        {"id": "B", "properties": {"name": "Beta"}, "geometry": sq(2)},
    ]


@pytest.fixture
def session() -> MapSession:
    return MapSession.build(load_unified_dataset(_unified()), _features())


def test_select_month(session) -> None:
    frame = session.select("2010-06")
    assert frame.year == 2010
    # magnitude 1.9 is filtered out at load
    assert frame.events["record_id"].tolist() == ["eq1"]
    assert frame.infrastructure["airport"]["record_id"].tolist() == ["ap1"]
    assert frame.styles["A"].fill_color == "#ffffff"
    assert frame.styles["B"].fill_color == "#000051"
    assert frame.style_dicts()["A"]["fillOpacity"] == 0.95


def test_same_year_reuses_styles(session) -> None:
    first = session.select("2010-06")
    again = session.select("2010-11")
    assert again.styles is first.styles
    assert again.events.empty


def test_year_change_reranks(session) -> None:
    frame = session.select("2011-01")
    assert frame.events["record_id"].tolist() == ["eq3"]
    assert frame.styles["A"].fill_opacity == 0.95
    assert frame.styles["B"].fill_color == NO_DATA_COLOR


def test_default_selection(session) -> None:
    frame = session.select()
    assert frame.year_month == "2020-12"
    assert all(s.fill_color == NO_DATA_COLOR for s in frame.styles.values())
