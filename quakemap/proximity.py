# -*- coding: utf-8 -*-
"""
Infrastructure proximity counts for seismic events.

Exposes:
- distance_km(a, b) -> float          great-circle km, +inf if either point is not finite
- count_within_radius(origin, points, radius_km) -> int
- enrich_events(events, infrastructure, radius_km=100) -> DataFrame
  Adds airports_within_100km, ports_within_100km, powerplants_within_100km,
  nuclear_plants_within_100km to a copy of the events frame.

Brute force O(events x points) per class; fine for <= 1e4 points.
"""
from __future__ import annotations

import logging, time
from typing import Dict, Mapping, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .helpers import haversine_km, PROXIMITY_RADIUS_KM
from .models import GeoPoint

logger = logging.getLogger("quakemap.proximity")

# infrastructure class -> count column on the enriched event
INFRASTRUCTURE_CLASSES: Dict[str, str] = {
    "airport": "airports_within_100km",
    "port": "ports_within_100km",
    "powerplant": "powerplants_within_100km",
    "nuclear_plant": "nuclear_plants_within_100km",
}

PointsLike = Union[Sequence[GeoPoint], pd.DataFrame, np.ndarray]


def _lat_lon_arrays(points: PointsLike) -> Tuple[np.ndarray, np.ndarray]:
    """(lat, lon) float arrays from GeoPoints, a lat/lon frame or an (N, 2) [lat, lon] array."""
    if isinstance(points, pd.DataFrame):
        if points.empty:
            return np.empty(0), np.empty(0)
        lat = pd.to_numeric(points["latitude"], errors="coerce").to_numpy(dtype=float)
        lon = pd.to_numeric(points["longitude"], errors="coerce").to_numpy(dtype=float)
        return lat, lon
    if isinstance(points, np.ndarray):
        arr = np.asarray(points, dtype=float).reshape(-1, 2)
        return arr[:, 0], arr[:, 1]
    lat = np.array([_as_float(p.latitude) for p in points], dtype=float)
    lon = np.array([_as_float(p.longitude) for p in points], dtype=float)
    return lat, lon


def _as_float(v) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return float("nan")


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    return float(haversine_km(_as_float(a.latitude), _as_float(a.longitude),
                              _as_float(b.latitude), _as_float(b.longitude)))


def count_within_radius(origin: GeoPoint, points: PointsLike, radius_km: float) -> int:
    lat, lon = _lat_lon_arrays(points)
    if lat.size == 0 or not origin.is_finite:
        return 0
    d = haversine_km(_as_float(origin.latitude), _as_float(origin.longitude), lat, lon)
    return int(np.count_nonzero(np.isfinite(d) & (d <= radius_km)))


def _counts_for_class(ev_lat: np.ndarray, ev_lon: np.ndarray,
                      pts_lat: np.ndarray, pts_lon: np.ndarray,
                      radius_km: float, chunk: int = 512) -> np.ndarray:
    """Per-event counts, processed in event chunks to bound the distance matrix size."""
    out = np.zeros(ev_lat.shape[0], dtype=np.int64)
    if pts_lat.size == 0 or ev_lat.size == 0:
        return out
    for i0 in range(0, ev_lat.shape[0], chunk):
        i1 = min(i0 + chunk, ev_lat.shape[0])
        d = haversine_km(ev_lat[i0:i1, None], ev_lon[i0:i1, None], pts_lat[None, :], pts_lon[None, :])
        out[i0:i1] = np.count_nonzero(np.isfinite(d) & (d <= radius_km), axis=1)
    return out


def enrich_events(events: pd.DataFrame,
                  infrastructure: Mapping[str, PointsLike],
                  radius_km: float = PROXIMITY_RADIUS_KM) -> pd.DataFrame:
    """
    Return a copy of `events` with one integer count column per infrastructure
    class. Classes missing from `infrastructure` get zero counts. Events with
    non-finite coordinates get zeros everywhere.
    """
    t0 = time.time()
    out = events.copy()
    if out.empty:
        for col in INFRASTRUCTURE_CLASSES.values():
            out[col] = pd.Series(dtype="int64")
        return out

    ev_lat, ev_lon = _lat_lon_arrays(out)
    for cls, col in INFRASTRUCTURE_CLASSES.items():
        pts = infrastructure.get(cls)
        if pts is None:
            out[col] = 0
            continue
        p_lat, p_lon = _lat_lon_arrays(pts)
        out[col] = _counts_for_class(ev_lat, ev_lon, p_lat, p_lon, radius_km)
        logger.info(f"[enrich] {cls}: points={p_lat.size:,} | events with >=1 nearby={int((out[col] > 0).sum()):,}")

    logger.info(f"[enrich] done: events={len(out):,} | radius={radius_km:g} km | elapsed={time.time()-t0:.2f}s")
    return out
