# -*- coding: utf-8 -*-
"""
Year-month timeline for the map: which events and infrastructure points are
shown for a selected "YYYY-MM" key.

Earthquakes are bucketed by (year, month) for years >= FIRST_YEAR. Infrastructure
has at most a year: rows of the selected year plus the rows with no year are
shown, each set capped at MAX_INFRASTRUCTURE (nuclear plants are never capped).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .helpers import FIRST_YEAR, LAST_YEAR, MAX_EVENTS, MAX_INFRASTRUCTURE

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# infrastructure classes shown in full regardless of MAX_INFRASTRUCTURE
UNCAPPED_CLASSES = ("nuclear_plant",)


def year_month_key(year: int, month: int) -> str:
    return f"{int(year)}-{int(month):02d}"


def parse_year_month(key: str) -> Tuple[int, int]:
    try:
        y, m = str(key).split("-")
        year, month = int(y), int(m)
    except ValueError:
        raise ValueError(f"Not a YYYY-MM key: {key!r}")
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in {key!r}")
    return year, month


def format_year_month(key: str) -> str:
    """'2020-12' -> 'Dec 2020'"""
    year, month = parse_year_month(key)
    return f"{MONTH_NAMES[month - 1]} {year}"


def all_year_months(first_year: int = FIRST_YEAR, last_year: int = LAST_YEAR) -> List[str]:
    return [year_month_key(y, m) for y in range(first_year, last_year + 1) for m in range(1, 13)]


def default_year_month(keys: Optional[List[str]] = None) -> str:
    keys = all_year_months() if keys is None else keys
    return keys[-1] if keys else year_month_key(LAST_YEAR, 12)


# ---------- grouping ----------
def group_earthquakes_by_year_month(events: pd.DataFrame,
                                    first_year: int = FIRST_YEAR) -> Dict[str, pd.DataFrame]:
    """Key -> events of that month, in input order. Events without a month or before first_year are left out."""
    if events is None or events.empty:
        return {}
    years = pd.to_numeric(events["year"], errors="coerce")
    months = pd.to_numeric(events["month"], errors="coerce")
    m = np.isfinite(years) & np.isfinite(months) & (years >= first_year)
    sel = events.loc[m]
    keys = [year_month_key(y, mo) for y, mo in zip(years[m], months[m])]
    groups: Dict[str, pd.DataFrame] = {}
    for key, g in sel.groupby(pd.Series(keys, index=sel.index), sort=False):
        groups[key] = g
    logging.debug(f"[timeline] earthquakes grouped into {len(groups):,} months ({len(sel):,}/{len(events):,} rows)")
    return groups


@dataclass
class InfrastructureByYear:
    """One infrastructure class split into per-year rows and rows with no year."""
    by_year: Dict[int, pd.DataFrame] = field(default_factory=dict)
    no_year: pd.DataFrame = field(default_factory=pd.DataFrame)

    def for_year(self, year: int, cap: Optional[int] = MAX_INFRASTRUCTURE) -> pd.DataFrame:
        dated = self.by_year.get(int(year))
        parts = []
        for df in (dated, self.no_year):
            if df is None or df.empty:
                continue
            parts.append(df if cap is None else df.head(cap))
        if not parts:
            return self.no_year.iloc[0:0]
        return pd.concat(parts, ignore_index=True)


def split_infrastructure(points: pd.DataFrame, first_year: int = FIRST_YEAR) -> InfrastructureByYear:
    # rows dated before first_year are neither shown per year nor treated as undated
    if points is None or points.empty:
        return InfrastructureByYear(no_year=pd.DataFrame() if points is None else points)
    if "year" not in points.columns:
        return InfrastructureByYear(no_year=points.reset_index(drop=True))
    years = pd.to_numeric(points["year"], errors="coerce")
    dated = np.isfinite(years) & (years >= first_year)
    by_year = {int(y): g.reset_index(drop=True) for y, g in points.loc[dated].groupby(years[dated].astype(int), sort=True)}
    return InfrastructureByYear(by_year=by_year, no_year=points.loc[~np.isfinite(years)].reset_index(drop=True))


@dataclass
class Timeline:
    earthquakes: Dict[str, pd.DataFrame]
    infrastructure: Dict[str, InfrastructureByYear]
    year_months: List[str]

    @property
    def default(self) -> str:
        return default_year_month(self.year_months)

    def events_for(self, key: str, cap: int = MAX_EVENTS) -> pd.DataFrame:
        g = self.earthquakes.get(key)
        if g is None:
            return pd.DataFrame()
        return g.head(cap).reset_index(drop=True)

    def infrastructure_for(self, key: str) -> Dict[str, pd.DataFrame]:
        year, _ = parse_year_month(key)
        return {
            cls: split.for_year(year, cap=None if cls in UNCAPPED_CLASSES else MAX_INFRASTRUCTURE)
            for cls, split in self.infrastructure.items()
        }


def build_timeline(earthquakes: pd.DataFrame, infrastructure: Mapping[str, pd.DataFrame],
                   first_year: int = FIRST_YEAR, last_year: int = LAST_YEAR) -> Timeline:
    tl = Timeline(
        earthquakes=group_earthquakes_by_year_month(earthquakes, first_year=first_year),
        infrastructure={cls: split_infrastructure(df, first_year=first_year) for cls, df in infrastructure.items()},
        year_months=all_year_months(first_year, last_year),
    )
    logging.info(f"[timeline] months={len(tl.year_months)} ({tl.year_months[0]}..{tl.year_months[-1]}) | "
                 f"months with events={len(tl.earthquakes):,}")
    return tl
