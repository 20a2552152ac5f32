# -*- coding: utf-8 -*-
"""
Antimeridian handling for country rings ([lon, lat] coordinate lists).

A ring is dateline-crossing when it has longitudes below -100 and above +100
and its raw longitude span exceeds 180 degrees. Crossing rings are shifted
into [0, 360) and clamped at 180, which flattens the crossing edge instead of
splitting the polygon. Other rings are wrapped into [-180, 180].
"""
from __future__ import annotations

import math
from typing import List, Optional, Sequence

DATELINE_LON_GUARD = 100.0
# past this a wrapped longitude is float noise; such positions become NaN
MAX_WRAP_LON = 1e9


def _lons(ring: Sequence[Sequence[float]]) -> List[float]:
    return [float(c[0]) for c in ring if math.isfinite(float(c[0]))]


def crosses_dateline(ring: Sequence[Sequence[float]]) -> bool:
    lons = _lons(ring)
    if not lons:
        return False
    has_negative = any(x < -DATELINE_LON_GUARD for x in lons)
    has_positive = any(x > DATELINE_LON_GUARD for x in lons)
    return has_negative and has_positive and (max(lons) - min(lons) > 180.0)


def _wrap_lon(lon: float) -> float:
    if not math.isfinite(lon):
        return lon
    if abs(lon) > MAX_WRAP_LON:
        return math.nan
    if lon > 180.0:
        lon -= 360.0 * math.ceil((lon - 180.0) / 360.0)
    elif lon < -180.0:
        lon += 360.0 * math.ceil((-180.0 - lon) / 360.0)
    return lon


def _shift_and_clamp(lon: float) -> float:
    if lon < 0:
        lon += 360.0
    if lon > 180.0:
        lon = 180.0
    return lon


def normalize_ring(ring: Sequence[Sequence[float]]) -> List[List[float]]:
    """New ring with rewritten longitudes; latitude and extra ordinates untouched."""
    fix = _shift_and_clamp if crosses_dateline(ring) else _wrap_lon
    return [[fix(float(c[0]))] + list(c[1:]) for c in ring]


def normalize_polygon(rings: Sequence[Sequence[Sequence[float]]]) -> List[List[List[float]]]:
    return [normalize_ring(r) for r in rings]


def normalize_geometry(geometry: Optional[dict]) -> Optional[dict]:
    """Normalize every ring of a GeoJSON-like Polygon/MultiPolygon; other types pass through."""
    if not geometry:
        return geometry
    gtype = geometry.get("type")
    coords = geometry.get("coordinates")
    if coords is None:
        return dict(geometry)
    if gtype == "Polygon":
        return {**geometry, "coordinates": normalize_polygon(coords)}
    if gtype == "MultiPolygon":
        return {**geometry, "coordinates": [normalize_polygon(p) for p in coords]}
    return dict(geometry)


def _iter_positions(coords):
    if coords and isinstance(coords[0], (int, float)):
        yield coords
        return
    for c in coords or []:
        yield from _iter_positions(c)


def geometry_lons_valid(geometry: Optional[dict]) -> bool:
    """True when every longitude is finite and inside [-180, 180]."""
    if not geometry or not geometry.get("coordinates"):
        return False
    seen = False
    for pos in _iter_positions(geometry["coordinates"]):
        seen = True
        try:
            lon = float(pos[0])
        except (TypeError, ValueError, IndexError):
            return False
        if not (math.isfinite(lon) and -180.0 <= lon <= 180.0):
            return False
    return seen
