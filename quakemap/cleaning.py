# -*- coding: utf-8 -*-
"""
Raw CSV -> intermediate CSV cleaning for every source dataset.

Each cleaner reads the raw export as strings, resolves its columns (exact
header first, then case/punctuation-insensitive), parses numbers with
"absent means NaN" semantics and drops rows that cannot be placed on the map.

CLI:
python -m quakemap.cleaning --raw-dir data/raw --out-dir data/intermediate
"""
from __future__ import annotations

import os, re, logging, argparse, time
from pathlib import Path
from typing import Callable, Dict, Optional

import numpy as np
import pandas as pd

from .helpers import _find_col, _require_col, to_numeric, to_text, MIN_CLEAN_MAGNITUDE, data_path

# raw file name per dataset (relative to the raw dir)
RAW_FILES: Dict[str, str] = {
    "earthquakes": "earthquake_data_tsunami.csv",
    "gdp_total": os.path.join("gdp", "gdp.csv"),
    "gdp_per_capita": os.path.join("gdp", "gdp_per_capita.csv"),
    "airports": "airports .csv",
    "ports": "World_Port_Index.csv",
    "powerplants": "powerplants (global) - global_power_plants.csv",
    "nuclear_plants": "energy-pop-exposure-nuclear-plants-locations_plants.csv",
}

YEAR_COL_PATTERN = r"^\d{4}$"


def read_raw_csv(path) -> pd.DataFrame:
    """All fields as stripped strings; empty cells stay ''."""
    df = pd.read_csv(Path(path), dtype=str, keep_default_na=False, low_memory=False)
    df.columns = [str(c).strip() for c in df.columns]
    return df


def _text(df: pd.DataFrame, *names: str) -> pd.Series:
    c = _find_col(df, *names)
    return to_text(df[c]) if c else pd.Series([""] * len(df), index=df.index, dtype=object)


def _num(df: pd.DataFrame, *names: str) -> pd.Series:
    c = _find_col(df, *names)
    return to_numeric(df[c]) if c else pd.Series(np.nan, index=df.index, dtype=float)


def _with_coords(out: pd.DataFrame, label: str) -> pd.DataFrame:
    m = np.isfinite(out["latitude"]) & np.isfinite(out["longitude"])
    dropped = int((~m).sum())
    if dropped:
        logging.info(f"[clean] {label}: dropped {dropped:,} rows without usable coordinates")
    return out.loc[m].reset_index(drop=True)


# ---------- per-dataset cleaners ----------
def clean_earthquakes(df: pd.DataFrame) -> pd.DataFrame:
    lat_col = _require_col(df, "earthquakes", "latitude", "lat")
    lon_col = _require_col(df, "earthquakes", "longitude", "lon")
    mag_col = _require_col(df, "earthquakes", "magnitude", "mag")

    magnitude = to_numeric(df[mag_col])
    year_raw = _text(df, "Year", "year")
    month_raw = _text(df, "Month", "month")
    tsunami_raw = _text(df, "tsunami")

    out = pd.DataFrame({
        "event_id": "eq_" + year_raw + "_" + month_raw + "_" + pd.Series(df.index.astype(str), index=df.index),
        "magnitude": magnitude,
        "depth_km": _num(df, "depth", "depth_km"),
        "latitude": to_numeric(df[lat_col]),
        "longitude": to_numeric(df[lon_col]),
        "cdi": _num(df, "cdi"),
        "mmi": _num(df, "mmi"),
        "sig": _num(df, "sig"),
        "nst": _num(df, "nst"),
        "dmin": _num(df, "dmin"),
        "gap": _num(df, "gap"),
        "tsunami_flag": (tsunami_raw == "1").astype(int),
        "year": to_numeric(year_raw),
        "month": to_numeric(month_raw),
    })
    keep = np.isfinite(out["magnitude"]) & (out["magnitude"] >= MIN_CLEAN_MAGNITUDE)
    logging.info(f"[clean] earthquakes: {int(keep.sum()):,}/{len(out):,} rows at magnitude >= {MIN_CLEAN_MAGNITUDE}")
    return _with_coords(out.loc[keep], "earthquakes")


def clean_gdp(df: pd.DataFrame, value_col: str) -> pd.DataFrame:
    """Wide World-Bank style table (one column per year) -> long rows with `value_col`."""
    name_col = _require_col(df, "gdp", "Country Name", "country_name", "country")
    code_col = _require_col(df, "gdp", "Code", "Country Code", "country_code")
    year_cols = [c for c in df.columns if re.match(YEAR_COL_PATTERN, str(c))]
    if not year_cols:
        logging.warning("[clean] gdp: no 4-digit year columns found")
        return pd.DataFrame(columns=["country_name", "country_code", "year", value_col])

    wide = pd.DataFrame({
        "country_name": to_text(df[name_col]),
        "country_code": to_text(df[code_col]),
    })
    for c in year_cols:
        wide[c] = to_numeric(df[c], strip_commas=True)

    long = wide.melt(id_vars=["country_name", "country_code"], value_vars=year_cols,
                     var_name="year", value_name=value_col)
    long = long.loc[np.isfinite(long[value_col])].copy()
    long["year"] = long["year"].astype(int)
    # row-major order: all years of a country before the next country
    long["_row"] = long.index % len(wide) if len(wide) else 0
    long = long.sort_values(["_row", "year"], kind="stable").drop(columns="_row").reset_index(drop=True)
    return long[["country_name", "country_code", "year", value_col]]


def clean_airports(df: pd.DataFrame) -> pd.DataFrame:
    out = pd.DataFrame({
        "ident": _text(df, "ident"),
        "name": _text(df, "name"),
        "type": _text(df, "type"),
        "iso_country": _text(df, "iso_country"),
        "latitude": to_numeric(df[_require_col(df, "airports", "latitude_deg", "latitude")]),
        "longitude": to_numeric(df[_require_col(df, "airports", "longitude_deg", "longitude")]),
    })
    return _with_coords(out, "airports")


def clean_ports(df: pd.DataFrame) -> pd.DataFrame:
    out = pd.DataFrame({
        "index_no": _text(df, "INDEX_NO"),
        "port_name": _text(df, "PORT_NAME"),
        "country": _text(df, "COUNTRY"),
        "latitude": to_numeric(df[_require_col(df, "ports", "LATITUDE", "Y")]),
        "longitude": to_numeric(df[_require_col(df, "ports", "LONGITUDE", "X")]),
    })
    return _with_coords(out, "ports")


def clean_powerplants(df: pd.DataFrame) -> pd.DataFrame:
    out = pd.DataFrame({
        "country_code": _text(df, "country code", "country"),
        "country_name": _text(df, "country_long"),
        "plant_name": _text(df, "name of powerplant", "name"),
        "capacity_mw": _num(df, "capacity in MW", "capacity_mw"),
        "primary_fuel": _text(df, "primary_fuel"),
        "latitude": to_numeric(df[_require_col(df, "powerplants", "latitude")]),
        "longitude": to_numeric(df[_require_col(df, "powerplants", "longitude")]),
    })
    return _with_coords(out, "powerplants")


def clean_nuclear_plants(df: pd.DataFrame) -> pd.DataFrame:
    out = pd.DataFrame({
        "plant": _text(df, "Plant"),
        "country": _text(df, "Country"),
        "reactors": _num(df, "NumReactor"),
        "latitude": to_numeric(df[_require_col(df, "nuclear plants", "Latitude")]),
        "longitude": to_numeric(df[_require_col(df, "nuclear plants", "Longitude")]),
    })
    return _with_coords(out, "nuclear_plants")


CLEANERS: Dict[str, Callable[[pd.DataFrame], pd.DataFrame]] = {
    "earthquakes": clean_earthquakes,
    "gdp_total": lambda df: clean_gdp(df, "gdp_usd"),
    "gdp_per_capita": lambda df: clean_gdp(df, "gdp_per_capita_usd"),
    "airports": clean_airports,
    "ports": clean_ports,
    "powerplants": clean_powerplants,
    "nuclear_plants": clean_nuclear_plants,
}


def clean_all(raw_dir, intermediate_dir) -> Dict[str, Optional[Path]]:
    """
    Run every cleaner whose raw file exists; write <dataset>_clean.csv.
    Returns dataset -> written path (None when skipped).
    """
    raw_dir, intermediate_dir = Path(raw_dir), Path(intermediate_dir)
    intermediate_dir.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Optional[Path]] = {}
    for name, cleaner in CLEANERS.items():
        src = raw_dir / RAW_FILES[name]
        if not src.exists():
            logging.warning(f"[clean] {name}: raw file not found ({src}); skipping")
            written[name] = None
            continue
        t0 = time.time()
        out = cleaner(read_raw_csv(src))
        if out.empty:
            logging.warning(f"[clean] {name}: no usable rows; nothing written")
            written[name] = None
            continue
        dst = intermediate_dir / f"{name}_clean.csv"
        out.to_csv(dst, index=False)
        written[name] = dst
        logging.info(f"[clean] {name}: wrote {len(out):,} rows -> {dst} | elapsed={time.time()-t0:.2f}s")
    return written


# ---- CLI ----
if __name__ == "__main__":
    from .helpers import setup_logging, output_path
    ap = argparse.ArgumentParser(description="Clean raw source CSVs into data/intermediate")
    ap.add_argument("--raw-dir", type=Path, default=data_path("raw"))
    ap.add_argument("--out-dir", type=Path, default=data_path("intermediate"))
    ap.add_argument("--log-level", choices=["DEBUG","INFO","WARNING","ERROR"], default="INFO")
    args = ap.parse_args()

    setup_logging(str(output_path("")))
    logging.getLogger().setLevel(getattr(logging, args.log_level))
    clean_all(args.raw_dir, args.out_dir)
