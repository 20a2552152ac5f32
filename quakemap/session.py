# -*- coding: utf-8 -*-
"""
MapSession: the render-time state threaded explicitly through one map view.

Built once from the unified dataset and the country features (geometry,
alias table and GDP lookup are year-independent). `select(year_month)` only
re-runs the per-year ranking when the year actually changes.
"""
from __future__ import annotations

import logging, time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd
import geopandas as gpd

from .choropleth import GdpChoropleth, GdpLookup, build_country_frame, build_gdp_lookup
from .countries import CountryAliasTable, build_alias_table
from .models import FeatureStyle
from .timeline import Timeline, build_timeline, parse_year_month
from .unify import UnifiedData


@dataclass(frozen=True)
class MapFrame:
    """Everything the renderer needs for one selected month."""
    year_month: str
    year: int
    events: pd.DataFrame
    infrastructure: Dict[str, pd.DataFrame]
    styles: Dict[str, FeatureStyle]

    def style_dicts(self) -> Dict[str, dict]:
        return {fid: s.as_dict() for fid, s in self.styles.items()}


@dataclass
class MapSession:
    data: UnifiedData
    countries: gpd.GeoDataFrame
    alias_table: CountryAliasTable
    gdp_lookup: GdpLookup
    timeline: Timeline
    choropleth: GdpChoropleth
    _year: Optional[int] = field(default=None, repr=False)
    _styles: Dict[str, FeatureStyle] = field(default_factory=dict, repr=False)

    @classmethod
    def build(cls, data: UnifiedData, features: List[dict]) -> "MapSession":
        t0 = time.time()
        alias_table = build_alias_table(data.gdp_total, data.gdp_per_capita)
        countries = build_country_frame(features, alias_table)
        lookup = build_gdp_lookup(data.gdp_total, data.gdp_per_capita)
        session = cls(
            data=data,
            countries=countries,
            alias_table=alias_table,
            gdp_lookup=lookup,
            timeline=build_timeline(data.earthquakes, data.infrastructure()),
            choropleth=GdpChoropleth(countries=countries, gdp_total=data.gdp_total, lookup=lookup),
        )
        logging.info(f"[session] ready: countries={len(countries):,} | elapsed={time.time()-t0:.2f}s")
        return session

    @property
    def default_year_month(self) -> str:
        return self.timeline.default

    def styles_for_year(self, year: int) -> Dict[str, FeatureStyle]:
        if self._year != year:
            self._styles = self.choropleth.styles_for_year(year)
            self._year = year
        return self._styles

    def select(self, year_month: Optional[str] = None) -> MapFrame:
        key = year_month or self.default_year_month
        year, _ = parse_year_month(key)
        return MapFrame(
            year_month=key,
            year=year,
            events=self.timeline.events_for(key),
            infrastructure=self.timeline.infrastructure_for(key),
            styles=self.styles_for_year(year),
        )
