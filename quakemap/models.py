"""
Small immutable value types shared across the pipeline.

Tabular data (events, infrastructure, GDP series) stays in pandas frames;
these types cover the scalar contracts: a point, GDP figures and a polygon
style.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    @property
    def is_finite(self) -> bool:
        try:
            return math.isfinite(self.latitude) and math.isfinite(self.longitude)
        except TypeError:
            return False


@dataclass(frozen=True)
class FeatureStyle:
    fill_color: str
    fill_opacity: float
    stroke_color: str = "#333"
    stroke_weight: float = 0.5

    def as_dict(self) -> dict:
        # key names expected by the map renderer
        return {
            "fillColor": self.fill_color,
            "fillOpacity": self.fill_opacity,
            "strokeColor": self.stroke_color,
            "strokeWeight": self.stroke_weight,
        }


@dataclass(frozen=True)
class GdpFigures:
    total: Optional[float] = None
    per_capita: Optional[float] = None
