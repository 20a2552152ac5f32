# -*- coding: utf-8 -*-
"""
GDP choropleth: country features + per-year rank colors.

Country features come from topology.load_country_features (already
antimeridian-normalized). Codes are resolved once per geometry load; only the
rank table and styles are rebuilt when the year changes.

Exposes:
- build_gdp_lookup(gdp_total, gdp_per_capita) -> {(code, year): GdpFigures}
- build_country_frame(features, alias_table) -> GeoDataFrame
- GdpChoropleth(countries, gdp_total, lookup).styles_for_year(year) -> {feature_id: FeatureStyle}
- make_styler(choropleth) -> Callable[[int], {feature_id: style dict}]
- write_choropleth(gdf, path)
"""
from __future__ import annotations

import logging, time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
import geopandas as gpd
from shapely.geometry import shape
from shapely.validation import explain_validity

from .antimeridian import geometry_lons_valid
from .countries import CountryAliasTable, resolve_many
from .helpers import parse_number
from .models import FeatureStyle, GdpFigures
from .ranking import RankTable, build_rank_table, color_for_rank
from .topology import get_country_name

WGS84 = "EPSG:4326"

FILL_OPACITY_DATA = 0.95
FILL_OPACITY_NO_DATA = 0.2
STROKE_COLOR = "#333"
STROKE_WEIGHT = 0.5

COUNTRY_COLUMNS = ["feature_id", "country_name", "country_code", "geometry"]

GdpLookup = Dict[Tuple[str, int], GdpFigures]


# ---------- GDP lookup ----------
def _series_pairs(df: pd.DataFrame) -> Iterable[Tuple[str, int, float]]:
    if df is None or df.empty:
        return []
    codes = df["country_code"].fillna("").astype(str).str.strip()
    years = pd.to_numeric(df["year"], errors="coerce")
    values = pd.to_numeric(df["value"], errors="coerce")
    m = (codes != "") & np.isfinite(years)
    return zip(codes[m].tolist(), years[m].astype(int).tolist(), values[m].tolist())


def build_gdp_lookup(gdp_total: pd.DataFrame, gdp_per_capita: pd.DataFrame) -> GdpLookup:
    """(code, year) -> figures; a later row for the same key overwrites an earlier one."""
    totals: Dict[Tuple[str, int], float] = {}
    per_cap: Dict[Tuple[str, int], float] = {}
    for code, year, v in _series_pairs(gdp_total):
        totals[(code, year)] = v
    for code, year, v in _series_pairs(gdp_per_capita):
        per_cap[(code, year)] = v

    lookup: GdpLookup = {}
    for key in list(totals) + [k for k in per_cap if k not in totals]:
        lookup[key] = GdpFigures(total=parse_number(totals.get(key)), per_capita=parse_number(per_cap.get(key)))
    logging.info(f"[choropleth] GDP lookup keys={len(lookup):,}")
    return lookup


# ---------- countries ----------
def build_country_frame(features: List[dict], alias_table: CountryAliasTable) -> gpd.GeoDataFrame:
    """
    One row per renderable country: normalized longitudes all inside
    [-180, 180] and a buildable polygonal geometry. Unresolved names keep a
    None code (rendered as no-data).
    """
    recs = []
    skipped = 0
    for i, f in enumerate(features):
        geom = f.get("geometry")
        if not geom or geom.get("type") not in ("Polygon", "MultiPolygon") or not geometry_lons_valid(geom):
            skipped += 1
            continue
        try:
            g = shape(geom)
        except (ValueError, TypeError, IndexError) as e:
            logging.debug(f"[choropleth] feature {f.get('id', i)!r} not buildable: {e}")
            skipped += 1
            continue
        if g.is_empty:
            skipped += 1
            continue
        if not g.is_valid:
            logging.debug(f"[choropleth] feature {f.get('id', i)!r}: {explain_validity(g)}")
        recs.append({
            "feature_id": str(f.get("id", i)),
            "country_name": get_country_name(f.get("properties")),
            "geometry": g,
        })

    if skipped:
        logging.info(f"[choropleth] excluded {skipped:,} features with invalid geometry")
    if not recs:
        return gpd.GeoDataFrame(columns=COUNTRY_COLUMNS, geometry="geometry", crs=WGS84)
    # each distinct name resolved once
    codes = resolve_many({r["country_name"] for r in recs}, alias_table)
    for r in recs:
        r["country_code"] = codes[r["country_name"]]
    gdf = gpd.GeoDataFrame(recs, columns=COUNTRY_COLUMNS, geometry="geometry", crs=WGS84)
    unresolved = int(gdf["country_code"].isna().sum())
    logging.info(f"[choropleth] countries={len(gdf):,} | unresolved names={unresolved:,}")
    return gdf


# ---------- styling ----------
def _has_value(value) -> bool:
    return value is not None and np.isfinite(value)


def style_for_value(value: Optional[float], rank_table: RankTable) -> FeatureStyle:
    rank = rank_table.rank_for(value)
    return FeatureStyle(
        fill_color=color_for_rank(rank),
        fill_opacity=FILL_OPACITY_DATA if _has_value(value) else FILL_OPACITY_NO_DATA,
        stroke_color=STROKE_COLOR,
        stroke_weight=STROKE_WEIGHT,
    )


@dataclass
class GdpChoropleth:
    countries: gpd.GeoDataFrame
    gdp_total: pd.DataFrame
    lookup: GdpLookup
    _rank_cache: Dict[int, RankTable] = field(default_factory=dict, repr=False)

    def rank_table(self, year: int) -> RankTable:
        # one cross-section per year; rebuilt only for a year not seen yet
        if year not in self._rank_cache:
            self._rank_cache[year] = build_rank_table(self.gdp_total, year)
        return self._rank_cache[year]

    def figures(self, code: Optional[str], year: int) -> Optional[GdpFigures]:
        if not isinstance(code, str) or not code:
            return None
        return self.lookup.get((code, int(year)))

    def styles_for_year(self, year: int) -> Dict[str, FeatureStyle]:
        t0 = time.time()
        ranks = self.rank_table(year)
        styles: Dict[str, FeatureStyle] = {}
        with_data = 0
        for fid, code in zip(self.countries["feature_id"], self.countries["country_code"]):
            fig = self.figures(code, year)
            value = fig.total if fig else None
            if _has_value(value):
                with_data += 1
            styles[fid] = style_for_value(value, ranks)
        logging.info(f"[choropleth] year {year}: styled {len(styles):,} countries, {with_data:,} with GDP | elapsed={time.time()-t0:.2f}s")
        return styles

    def styled_frame(self, year: int) -> gpd.GeoDataFrame:
        """Country frame with GDP figures, rank and style columns for one year."""
        ranks = self.rank_table(year)
        out = self.countries.copy()
        figs = [self.figures(c, year) for c in out["country_code"]]
        out["year"] = int(year)
        totals = [f.total if f else None for f in figs]
        out["gdp_total"] = pd.Series(totals, index=out.index, dtype=float)
        out["gdp_per_capita"] = pd.Series([f.per_capita if f else None for f in figs], index=out.index, dtype=float)
        out["rank"] = pd.Series([ranks.rank_for(v) for v in totals], index=out.index, dtype=float)
        styles = [style_for_value(v, ranks) for v in totals]
        out["fill_color"] = [s.fill_color for s in styles]
        out["fill_opacity"] = [s.fill_opacity for s in styles]
        return out


def make_styler(choropleth: GdpChoropleth) -> Callable[[int], Dict[str, dict]]:
    """year -> {feature_id: {fillColor, fillOpacity, strokeColor, strokeWeight}}"""
    def _styles(year: int) -> Dict[str, dict]:
        return {fid: s.as_dict() for fid, s in choropleth.styles_for_year(year).items()}
    return _styles


def write_choropleth(gdf: gpd.GeoDataFrame, path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    if p.exists():
        p.unlink()
    gdf.to_file(p, driver="GeoJSON")
    logging.info(f"[choropleth] wrote {len(gdf):,} features -> {p}")
    return p
