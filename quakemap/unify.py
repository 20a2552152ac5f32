# -*- coding: utf-8 -*-
"""
Unified dataset: every cleaned source stacked into one 28-column table with a
`dataset` discriminator, earthquakes enriched with infrastructure proximity
counts.

Exposes:
- load_intermediate(intermediate_dir) -> dict[name, DataFrame]
- build_unified_dataset(frames, radius_km=100) -> DataFrame  (UNIFIED_COLUMNS)
- write_unified(df, path)
- load_unified_dataset(path_or_df) -> UnifiedData            (render-time parse)
"""
from __future__ import annotations

import logging, time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Union

import numpy as np
import pandas as pd

from .helpers import to_numeric, to_text, MAGNITUDE_THRESHOLD, PROXIMITY_RADIUS_KM
from .proximity import enrich_events, INFRASTRUCTURE_CLASSES

UNIFIED_COLUMNS = [
    "dataset",
    "record_id",
    "name",
    "country",
    "country_code",
    "year",
    "month",
    "magnitude",
    "depth_km",
    "tsunami_flag",
    "cdi",
    "mmi",
    "sig",
    "nst",
    "dmin",
    "gap",
    "value",
    "value_type",
    "capacity_mw",
    "primary_fuel",
    "reactors",
    "feature_type",
    "latitude",
    "longitude",
    "airports_within_100km",
    "ports_within_100km",
    "powerplants_within_100km",
    "nuclear_plants_within_100km",
]

NUMERIC_COLUMNS = [
    "year", "month", "magnitude", "depth_km", "tsunami_flag", "cdi", "mmi", "sig", "nst",
    "dmin", "gap", "value", "capacity_mw", "reactors", "latitude", "longitude",
    *INFRASTRUCTURE_CLASSES.values(),
]

POINT_DATASETS = ("earthquake", "airport", "port", "powerplant", "nuclear_plant")

# cleaned file stem -> numeric columns in it
INTERMEDIATE_NUMERIC = {
    "earthquakes": ["magnitude", "depth_km", "latitude", "longitude", "cdi", "mmi", "sig",
                    "nst", "dmin", "gap", "tsunami_flag", "year", "month"],
    "airports": ["latitude", "longitude"],
    "ports": ["latitude", "longitude"],
    "powerplants": ["capacity_mw", "latitude", "longitude"],
    "nuclear_plants": ["reactors", "latitude", "longitude"],
    "gdp_total": ["year", "gdp_usd"],
    "gdp_per_capita": ["year", "gdp_per_capita_usd"],
}


def _read_typed(path: Path, numeric) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False, low_memory=False)
    for c in df.columns:
        df[c] = to_numeric(df[c]) if c in numeric else to_text(df[c])
    return df


def load_intermediate(intermediate_dir) -> Dict[str, pd.DataFrame]:
    """Cleaned tables by name; a missing file yields an empty frame."""
    d = Path(intermediate_dir)
    frames: Dict[str, pd.DataFrame] = {}
    for name, numeric in INTERMEDIATE_NUMERIC.items():
        p = d / f"{name}_clean.csv"
        if not p.exists():
            logging.warning(f"[unify] {p.name} not found; treating {name} as empty")
            frames[name] = pd.DataFrame(columns=numeric)
            continue
        df = _read_typed(p, numeric)
        if "latitude" in df.columns and "longitude" in df.columns:
            df = df.loc[np.isfinite(df["latitude"]) & np.isfinite(df["longitude"])]
        if "year" in df.columns and name.startswith("gdp"):
            value_col = numeric[-1]
            df = df.loc[np.isfinite(df["year"]) & np.isfinite(df[value_col])]
        frames[name] = df.reset_index(drop=True)
    return frames


def _col(df: pd.DataFrame, name: str, default="") -> pd.Series:
    if name in df.columns:
        return df[name]
    return pd.Series([default] * len(df), index=df.index, dtype=object if default == "" else float)


def _block(dataset: str, df: pd.DataFrame, **cols) -> pd.DataFrame:
    """One dataset's rows in the unified schema; unspecified columns left empty."""
    out = pd.DataFrame(index=df.index)
    out["dataset"] = dataset
    for k, v in cols.items():
        out[k] = v
    return out.reindex(columns=UNIFIED_COLUMNS)


def build_unified_dataset(frames: Mapping[str, pd.DataFrame],
                          radius_km: float = PROXIMITY_RADIUS_KM) -> pd.DataFrame:
    t0 = time.time()
    empty = pd.DataFrame()
    eq = frames.get("earthquakes", empty)
    airports = frames.get("airports", empty)
    ports = frames.get("ports", empty)
    plants = frames.get("powerplants", empty)
    nuclear = frames.get("nuclear_plants", empty)
    gdp_total = frames.get("gdp_total", empty)
    gdp_pc = frames.get("gdp_per_capita", empty)

    blocks = []
    if not eq.empty:
        enriched = enrich_events(eq, {
            "airport": airports, "port": ports, "powerplant": plants, "nuclear_plant": nuclear,
        }, radius_km=radius_km)
        blocks.append(_block(
            "earthquake", enriched,
            record_id=_col(enriched, "event_id"),
            **{c: _col(enriched, c, np.nan) for c in
               ("year", "month", "magnitude", "depth_km", "tsunami_flag", "cdi", "mmi", "sig",
                "nst", "dmin", "gap", "latitude", "longitude")},
            **{c: enriched[c] for c in INFRASTRUCTURE_CLASSES.values()},
        ))
    if not airports.empty:
        blocks.append(_block(
            "airport", airports,
            record_id=_col(airports, "ident"), name=_col(airports, "name"),
            country=_col(airports, "iso_country"), country_code=_col(airports, "iso_country"),
            feature_type=_col(airports, "type"),
            latitude=airports["latitude"], longitude=airports["longitude"],
        ))
    if not ports.empty:
        blocks.append(_block(
            "port", ports,
            record_id=_col(ports, "index_no"), name=_col(ports, "port_name"),
            country=_col(ports, "country"), country_code=_col(ports, "country"),
            feature_type="port",
            latitude=ports["latitude"], longitude=ports["longitude"],
        ))
    if not plants.empty:
        blocks.append(_block(
            "powerplant", plants,
            record_id=_col(plants, "plant_name"), name=_col(plants, "plant_name"),
            country=_col(plants, "country_name"), country_code=_col(plants, "country_code"),
            capacity_mw=_col(plants, "capacity_mw", np.nan), primary_fuel=_col(plants, "primary_fuel"),
            feature_type=_col(plants, "primary_fuel"),
            latitude=plants["latitude"], longitude=plants["longitude"],
        ))
    if not nuclear.empty:
        blocks.append(_block(
            "nuclear_plant", nuclear,
            record_id=_col(nuclear, "plant"), name=_col(nuclear, "plant"),
            country=_col(nuclear, "country"), country_code=_col(nuclear, "country"),
            reactors=_col(nuclear, "reactors", np.nan), feature_type="nuclear",
            latitude=nuclear["latitude"], longitude=nuclear["longitude"],
        ))
    for dataset, df, value_col, value_type in (
        ("gdp_total", gdp_total, "gdp_usd", "gdp_usd_total"),
        ("gdp_per_capita", gdp_pc, "gdp_per_capita_usd", "gdp_usd_per_capita"),
    ):
        if df.empty:
            continue
        years = df["year"].astype(int)
        blocks.append(_block(
            dataset, df,
            record_id=to_text(df["country_code"]) + "_" + years.astype(str),
            name=_col(df, "country_name"), country=_col(df, "country_name"),
            country_code=_col(df, "country_code"),
            year=years, value=df[value_col], value_type=value_type,
        ))

    if not blocks:
        logging.warning("[unify] no input rows; unified dataset is empty")
        return pd.DataFrame(columns=UNIFIED_COLUMNS)
    unified = pd.concat(blocks, ignore_index=True)
    counts = unified["dataset"].value_counts().to_dict()
    logging.info(f"[unify] rows={len(unified):,} by dataset={counts} | elapsed={time.time()-t0:.2f}s")
    return unified


def write_unified(df: pd.DataFrame, path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    out = df.reindex(columns=UNIFIED_COLUMNS).copy()
    # whole-number columns written without a trailing .0
    for c in ("year", "month", "tsunami_flag", *INFRASTRUCTURE_CLASSES.values()):
        out[c] = pd.to_numeric(out[c], errors="coerce").astype("Int64")
    out.to_csv(p, index=False)
    logging.info(f"[unify] wrote {len(out):,} rows -> {p}")
    return p


# ---------- render-time parse ----------
@dataclass
class UnifiedData:
    """Unified rows split by dataset, parsed and filtered for rendering."""
    frames: Dict[str, pd.DataFrame] = field(default_factory=dict)

    def get(self, dataset: str) -> pd.DataFrame:
        df = self.frames.get(dataset)
        if df is None:
            return pd.DataFrame(columns=UNIFIED_COLUMNS)
        return df

    @property
    def earthquakes(self) -> pd.DataFrame: return self.get("earthquake")
    @property
    def gdp_total(self) -> pd.DataFrame: return self.get("gdp_total")
    @property
    def gdp_per_capita(self) -> pd.DataFrame: return self.get("gdp_per_capita")

    def infrastructure(self) -> Dict[str, pd.DataFrame]:
        return {d: self.get(d) for d in INFRASTRUCTURE_CLASSES}


def parse_unified(raw: pd.DataFrame, magnitude_threshold: float = MAGNITUDE_THRESHOLD) -> pd.DataFrame:
    """
    Typed copy of a unified table: numbers parsed ('' / 'null' / text -> NaN),
    point rows without coordinates dropped, earthquakes at or below the
    magnitude threshold dropped.
    """
    df = raw.reindex(columns=UNIFIED_COLUMNS).copy()
    for c in UNIFIED_COLUMNS:
        df[c] = to_numeric(df[c]) if c in NUMERIC_COLUMNS else to_text(df[c])

    is_point = df["dataset"].isin(POINT_DATASETS)
    has_coords = np.isfinite(df["latitude"]) & np.isfinite(df["longitude"])
    is_eq = df["dataset"] == "earthquake"
    weak = is_eq & ~(np.isfinite(df["magnitude"]) & (df["magnitude"] > magnitude_threshold))
    keep = ~(is_point & ~has_coords) & ~weak
    dropped = int((~keep).sum())
    if dropped:
        logging.info(f"[unify] parse dropped {dropped:,} rows (no coordinates or magnitude <= {magnitude_threshold})")
    return df.loc[keep].reset_index(drop=True)


def load_unified_dataset(source: Union[str, Path, pd.DataFrame],
                         magnitude_threshold: float = MAGNITUDE_THRESHOLD) -> UnifiedData:
    if isinstance(source, pd.DataFrame):
        raw = source.astype(object)
    else:
        raw = pd.read_csv(Path(source), dtype=str, keep_default_na=False, low_memory=False)
    parsed = parse_unified(raw, magnitude_threshold=magnitude_threshold)
    frames = {name: g.reset_index(drop=True) for name, g in parsed.groupby("dataset", sort=False)}
    logging.info(f"[unify] loaded unified dataset: " + ", ".join(f"{k}={len(v):,}" for k, v in frames.items()))
    return UnifiedData(frames=frames)
