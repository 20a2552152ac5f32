# -*- coding: utf-8 -*-
"""
TopoJSON -> country features.

GDAL's TopoJSON driver exposes every named object of a topology as a layer;
the requested layer is read with geopandas, each ring goes through the
antimeridian normalizer once and Antarctica is dropped.

Exposes:
- list_objects(path) -> list[str]
- load_topology(path, object_name="countries") -> GeoDataFrame (raw coordinates)
- load_country_features(path, object_name="countries") -> list[feature dict]
- get_country_name(properties) -> str
"""
from __future__ import annotations

import logging, time
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
import geopandas as gpd
import pyogrio
from pyogrio.errors import DataSourceError
from shapely.geometry import mapping

from .antimeridian import normalize_geometry

logger = logging.getLogger("quakemap.topology")

# checked in this order
COUNTRY_NAME_KEYS = ("name", "NAME", "NAME_LONG", "NAME_EN", "ADMIN")
EXCLUDED_NAME_FRAGMENTS = ("antarctica", "antartica")
POLYGONAL = ("Polygon", "MultiPolygon")


class TopologyError(ValueError):
    """Topology is missing the requested geometry collection or is malformed."""


def get_country_name(properties: Optional[dict]) -> str:
    if not properties:
        return ""
    for key in COUNTRY_NAME_KEYS:
        v = properties.get(key)
        if v:
            return str(v)
    return ""


def list_objects(path) -> List[str]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Topology not found: {p}")
    try:
        layers = pyogrio.list_layers(p)
    except DataSourceError as e:
        raise TopologyError(f"{p}: not readable as TopoJSON ({e})") from e
    return [str(name) for name in layers[:, 0]] if len(layers) else []


def load_topology(path, object_name: str = "countries") -> gpd.GeoDataFrame:
    """One named object of the topology as a GeoDataFrame, coordinates as stored."""
    names = list_objects(path)
    if object_name not in names:
        raise TopologyError(f"No {object_name!r} object found in TopoJSON. Available objects: {names}")
    return gpd.read_file(path, layer=object_name)


def _properties(row: pd.Series) -> Dict:
    out = {}
    for k, v in row.items():
        if k == "geometry":
            continue
        if v is None or (not isinstance(v, str) and pd.isna(v)):
            continue
        out[k] = v
    return out


def _feature_geometry(geom) -> Optional[dict]:
    if geom is None or geom.is_empty or geom.geom_type not in POLYGONAL:
        return None
    return normalize_geometry(mapping(geom))


def load_country_features(path, object_name: str = "countries") -> List[Dict]:
    """Antimeridian-normalized country features, Antarctica removed."""
    t0 = time.time()
    gdf = load_topology(path, object_name=object_name)
    features = []
    for i, (_, row) in enumerate(gdf.iterrows()):
        props = _properties(row)
        name = get_country_name(props).lower()
        if any(frag in name for frag in EXCLUDED_NAME_FRAGMENTS):
            continue
        features.append({
            "type": "Feature",
            # topology geometry ids come through as an "id" field
            "id": str(props.pop("id")) if "id" in props else i,
            "properties": props,
            "geometry": _feature_geometry(row.geometry),
        })
    logger.info(f"[topology] {object_name}: features={len(features):,} (of {len(gdf):,}) | elapsed={time.time()-t0:.2f}s")
    return features
