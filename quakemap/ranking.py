# -*- coding: utf-8 -*-
"""
Per-year percentile ranks and the GDP color gradient.

- build_rank_table(records, year) -> RankTable   (value -> rank in [0, 1])
- rank_values(values) -> {value: rank}            ties share their mean position
- color_for_rank(rank) -> "#rrggbb"               16-stop piecewise linear gradient
"""
from __future__ import annotations

import logging, math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .helpers import format_usd

logger = logging.getLogger("quakemap.ranking")

NO_DATA_COLOR = "#d1d5db"

# white -> yellow -> orange -> red -> purple -> blue -> near-black
GDP_GRADIENT: Tuple[Tuple[float, str], ...] = (
    (0.00, "#ffffff"),
    (0.05, "#fff9c4"),
    (0.10, "#fff59d"),
    (0.15, "#ffeb3b"),
    (0.22, "#ffc107"),
    (0.30, "#ff9800"),
    (0.38, "#ff5722"),
    (0.45, "#f44336"),
    (0.52, "#e91e63"),
    (0.60, "#9c27b0"),
    (0.68, "#673ab7"),
    (0.75, "#3f51b5"),
    (0.82, "#2196f3"),
    (0.88, "#1976d2"),
    (0.93, "#0d47a1"),
    (1.00, "#000051"),
)


# ---------- colors ----------
def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    c = color.lstrip("#")
    if len(c) != 6:
        raise ValueError(f"Not a #rrggbb color: {color!r}")
    return int(c[0:2], 16), int(c[2:4], 16), int(c[4:6], 16)


def rgb_to_hex(rgb: Sequence[int]) -> str:
    return "#" + "".join(f"{int(v):02x}" for v in rgb)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def interpolate_color(color1: str, color2: str, factor: float) -> str:
    r1, g1, b1 = hex_to_rgb(color1)
    r2, g2, b2 = hex_to_rgb(color2)
    return rgb_to_hex((
        _round_half_up(r1 + (r2 - r1) * factor),
        _round_half_up(g1 + (g2 - g1) * factor),
        _round_half_up(b1 + (b2 - b1) * factor),
    ))


def color_for_rank(rank: Optional[float], gradient: Sequence[Tuple[float, str]] = GDP_GRADIENT) -> str:
    if rank is None:
        return NO_DATA_COLOR
    try:
        r = float(rank)
    except (TypeError, ValueError):
        return NO_DATA_COLOR
    if not math.isfinite(r):
        return NO_DATA_COLOR

    r = min(max(r, 0.0), 1.0)
    for (pos1, c1), (pos2, c2) in zip(gradient[:-1], gradient[1:]):
        if pos1 <= r <= pos2:
            span = pos2 - pos1
            factor = (r - pos1) / span if span > 0 else 0.0
            return interpolate_color(c1, c2, factor)
    return gradient[-1][1]


# ---------- ranks ----------
def rank_values(values: Iterable) -> Dict[float, float]:
    """
    Percentile rank per distinct finite value: mean of its 0-indexed sorted
    positions over (n - 1), n counting repeats; a single value ranks 0.5.
    """
    arr = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce").astype(float)
    arr = arr[np.isfinite(arr)]
    n = len(arr)
    if n == 0:
        return {}
    if n == 1:
        return {float(arr.iloc[0]): 0.5}
    # pandas "average" rank is 1-based; shift to 0-based positions
    pos = arr.rank(method="average") - 1.0
    by_value = pos.groupby(arr.to_numpy()).first()
    return {float(v): float(p) / (n - 1) for v, p in by_value.items()}


@dataclass
class RankTable:
    year: Optional[int]
    ranks: Dict[float, float] = field(default_factory=dict)
    count: int = 0

    def rank_for(self, value) -> Optional[float]:
        if value is None:
            return None
        try:
            v = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(v):
            return None
        return self.ranks.get(v)

    def color_for(self, value) -> str:
        return color_for_rank(self.rank_for(value))


def build_rank_table(records, year: Optional[int]) -> RankTable:
    """
    Rank table for one year's cross-section.

    `records` is either a frame with `year` and `value` columns (rows of other
    years are ignored) or a plain sequence of values already restricted to the
    year.
    """
    if isinstance(records, pd.DataFrame):
        if records.empty:
            return RankTable(year=year)
        years = pd.to_numeric(records["year"], errors="coerce")
        values = pd.to_numeric(records["value"], errors="coerce")
        if year is not None:
            values = values[years == year]
    else:
        values = pd.to_numeric(pd.Series(list(records), dtype=object), errors="coerce")

    values = values.astype(float)
    values = values[np.isfinite(values)]
    table = RankTable(year=year, ranks=rank_values(values), count=int(len(values)))
    if table.count:
        logger.info(f"[rank] year {year}: {table.count} values, range {format_usd(float(values.min()))} to {format_usd(float(values.max()))}")
    else:
        logger.info(f"[rank] year {year}: no values")
    return table
