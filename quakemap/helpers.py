# ----
# helpers.py (constants, logging, pathing, parsing and distance helpers)
# ----
import os, sys, logging, re, math
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import psutil

# ---- constants ----
EARTH_RADIUS_KM = 6371.0
PROXIMITY_RADIUS_KM = 100.0
MIN_CLEAN_MAGNITUDE = 2.0    # cleaning keeps magnitude >= this
MAGNITUDE_THRESHOLD = 2.0    # render keeps magnitude > this
FIRST_YEAR = 2001
LAST_YEAR = 2020
MAX_EVENTS = 500
MAX_INFRASTRUCTURE = 1000

# ---- logging ----
LOG_FILE = "pipeline.log"

def setup_logging(output_folder: str, level=logging.INFO) -> None:
    """stdout plus <output_folder>/logs/pipeline.log; earlier handlers are replaced."""
    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
        if isinstance(h, logging.FileHandler):
            h.close()

    fmt = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    log_file = Path(output_folder) / 'logs' / LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)

    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_file, encoding='utf-8')):
        handler.setFormatter(fmt)
        handler.setLevel(level)
        root.addHandler(handler)

    logging.info(f"[quakemap] log file: {log_file}")

def log_mem(stage=""):
    rss_mb = psutil.Process(os.getpid()).memory_info().rss / (1024**2)
    logging.info(f"[mem] {stage}: rss={rss_mb:,.0f} MB")

# ---- pathing ----
# raw/, intermediate/, processed/ and world/ live under QUAKEMAP_DATA_DIR (./data if unset)
def data_dir() -> Path:
    return Path(os.getenv("QUAKEMAP_DATA_DIR", "data")).expanduser().resolve()

def data_path(*parts: str) -> Path:
    """data_path("processed", "unified_dataset.csv") -> <data dir>/processed/unified_dataset.csv"""
    return data_dir().joinpath(*parts).resolve()

# styled GeoJSON, style maps and logs; QUAKEMAP_OUTPUT_DIR overrides
def output_dir() -> Path:
    return Path(os.getenv("QUAKEMAP_OUTPUT_DIR", "quakemap_output")).expanduser().resolve()

def output_path(*parts: str) -> Path:
    return output_dir().joinpath(*parts).resolve()

# ---- column / value parsing ----
def _norm_name(s: str) -> str:
    return re.sub(r'[^a-z0-9]+', '', str(s).lower())

def _find_col(df: pd.DataFrame, *names: str) -> str | None:
    """Exact header first, then punctuation/case-insensitive match."""
    for n in names:
        if n in df.columns:
            return n
    targets = [_norm_name(n) for n in names]
    norm_map = {_norm_name(c): c for c in df.columns}
    for t in targets:
        if t in norm_map:
            return norm_map[t]
    return None

def _require_col(df: pd.DataFrame, label: str, *names: str) -> str:
    c = _find_col(df, *names)
    if c is None:
        raise ValueError(f"{label}: missing required column. Tried={names}. Available={list(df.columns)}")
    return c

def parse_number(x) -> Optional[float]:
    """Scalar parse: '', None, NaN, 'null' and non-numeric text are all absent (None)."""
    if x is None:
        return None
    if isinstance(x, str):
        x = x.strip()
        if not x:
            return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None

def to_numeric(series: pd.Series, strip_commas: bool = False) -> pd.Series:
    """Vector parse to float; anything unparseable or non-finite becomes NaN (never 0)."""
    s = series
    if strip_commas:
        s = s.astype(str).str.replace(",", "", regex=False)
    if not pd.api.types.is_numeric_dtype(s):
        s = s.astype(str).str.strip()
    out = pd.to_numeric(s, errors="coerce").astype(float)
    return out.where(np.isfinite(out))

def to_text(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip()

def format_usd(num) -> str:
    if num is None or (isinstance(num, float) and not math.isfinite(num)):
        return "n/a"
    if num >= 1e12: return f"${num / 1e12:.2f}T"
    if num >= 1e9:  return f"${num / 1e9:.2f}B"
    if num >= 1e6:  return f"${num / 1e6:.2f}M"
    return f"${num:,.0f}"

# ---- distance ----
def haversine_km(lat1, lon1, lat2, lon2):
    """
    Vectorized great-circle distance in km on a 6371 km sphere.
    Works for any mix of scalars/vectors by broadcasting all inputs
    to a common shape before masking. Pairs with a non-finite coordinate
    get +inf so they never fall inside any radius.
    """
    R = EARTH_RADIUS_KM
    A1, B1, A2, B2 = np.broadcast_arrays(
        np.asarray(lat1, dtype=float),
        np.asarray(lon1, dtype=float),
        np.asarray(lat2, dtype=float),
        np.asarray(lon2, dtype=float),
    )
    out = np.full(A1.shape, np.inf, dtype=float)

    m = np.isfinite(A1) & np.isfinite(B1) & np.isfinite(A2) & np.isfinite(B2)
    if not np.any(m):
        return out

    p1 = np.radians(A1[m]); p2 = np.radians(A2[m])
    dlat = p2 - p1
    dlon = np.radians(B2[m] - B1[m])

    with np.errstate(invalid="ignore"):
        a = np.sin(dlat/2.0)**2 + np.cos(p1)*np.cos(p2)*np.sin(dlon/2.0)**2
        a = np.clip(a, 0.0, 1.0)
        out[m] = 2 * R * np.arctan2(np.sqrt(a), np.sqrt(1.0 - a))
    return out
