from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from quakemap.helpers import haversine_km
from quakemap.models import GeoPoint
from quakemap.proximity import (
    INFRASTRUCTURE_CLASSES, count_within_radius, distance_km, enrich_events,
)


def test_distance_symmetric_and_zero() -> None:
    a = GeoPoint(35.68, 139.69)
    b = GeoPoint(-33.87, 151.21)
    assert distance_km(a, b) == pytest.approx(distance_km(b, a))
    assert distance_km(a, a) == 0.0


def test_one_degree_of_latitude() -> None:
    # 6371 * pi / 180
    assert distance_km(GeoPoint(0, 0), GeoPoint(1, 0)) == pytest.approx(111.195, abs=1e-3)


def test_non_finite_distance_is_inf() -> None:
    assert math.isinf(distance_km(GeoPoint(float("nan"), 0), GeoPoint(0, 0)))
    assert math.isinf(distance_km(GeoPoint(0, 0), GeoPoint(0, float("inf"))))
    d = haversine_km(0.0, 0.0, np.array([0.0, np.nan]), np.array([0.0, 1.0]))
    assert d[0] == 0.0 and np.isinf(d[1])


def test_count_is_monotone_in_radius() -> None:
    origin = GeoPoint(0, 0)
    pts = [GeoPoint(0, 0.5), GeoPoint(0, 1.0), GeoPoint(0, 2.0), GeoPoint(float("nan"), 0)]
    counts = [count_within_radius(origin, pts, r) for r in (0, 50, 60, 120, 250, 1e6)]
    assert counts == sorted(counts)
    assert counts[2] == 1
    assert counts[-1] == 3  # NaN point is never counted


def test_count_accepts_frames_and_arrays() -> None:
    origin = GeoPoint(10, 10)
    df = pd.DataFrame({"latitude": [10.0, 10.5, 40.0], "longitude": [10.0, 10.0, 10.0]})
    arr = df[["latitude", "longitude"]].to_numpy()
    assert count_within_radius(origin, df, 100) == 2
    assert count_within_radius(origin, arr, 100) == 2
    assert count_within_radius(origin, pd.DataFrame(columns=["latitude", "longitude"]), 100) == 0


def test_enrich_events_adds_counts_without_mutating_input() -> None:
    events = pd.DataFrame({
        "event_id": ["a", "b", "c"],
        "latitude": [0.0, 50.0, np.nan],
        "longitude": [0.0, 50.0, 0.0],
    })
    airports = pd.DataFrame({"latitude": [0.0, 0.3, 50.0], "longitude": [0.2, 0.0, 50.1]})
    ports = pd.DataFrame({"latitude": [0.0], "longitude": [3.0]})
    before = events.copy()

    out = enrich_events(events, {"airport": airports, "port": ports})

    pd.testing.assert_frame_equal(events, before)
    for col in INFRASTRUCTURE_CLASSES.values():
        assert col in out.columns
    assert out["airports_within_100km"].tolist() == [2, 1, 0]
    assert out["ports_within_100km"].tolist() == [0, 0, 0]
    # classes not supplied count as zero
    assert out["nuclear_plants_within_100km"].tolist() == [0, 0, 0]


def test_enrich_events_empty_frame() -> None:
    out = enrich_events(pd.DataFrame(columns=["latitude", "longitude"]), {})
    assert out.empty
    assert set(INFRASTRUCTURE_CLASSES.values()) <= set(out.columns)