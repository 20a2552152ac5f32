from __future__ import annotations

import logging
import math

import pandas as pd
import pytest

from quakemap.helpers import (
    _find_col, _require_col, data_path, format_usd, log_mem, output_path, parse_number, setup_logging,
    to_numeric,
)


def test_parse_number_absent_values() -> None:
    assert parse_number("") is None
    assert parse_number("  ") is None
    assert parse_number("null") is None
    assert parse_number(None) is None
    assert parse_number(float("nan")) is None
    assert parse_number("abc") is None
    assert parse_number(" 4.5 ") == 4.5
    assert parse_number(0) == 0.0


def test_to_numeric_never_zero_for_missing() -> None:
    s = to_numeric(pd.Series(["1", "", "null", "x", "inf", " 2 "]))
    assert s.iloc[0] == 1.0 and s.iloc[5] == 2.0
    assert all(math.isnan(v) for v in s.iloc[1:5])
    assert to_numeric(pd.Series(["1,234.5"]), strip_commas=True).iloc[0] == 1234.5


def test_find_col_exact_then_normalized() -> None:
    df = pd.DataFrame(columns=["Latitude_Deg", "lat", "Country Code"])
    assert _find_col(df, "lat") == "lat"
    assert _find_col(df, "latitude deg") == "Latitude_Deg"
    assert _find_col(df, "country_code") == "Country Code"
    assert _find_col(df, "missing") is None
    with pytest.raises(ValueError, match="Tried"):
        _require_col(df, "table", "missing", "absent")


def test_format_usd() -> None:
    assert format_usd(1.234e12) == "$1.23T"
    assert format_usd(4.56e9) == "$4.56B"
    assert format_usd(7.891e6) == "$7.89M"
    assert format_usd(12345) == "$12,345"
    assert format_usd(None) == "n/a"
    assert format_usd(float("nan")) == "n/a"


def test_paths_follow_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("QUAKEMAP_DATA_DIR", str(tmp_path / "d"))
    monkeypatch.setenv("QUAKEMAP_OUTPUT_DIR", str(tmp_path / "o"))
    assert data_path("processed", "unified_dataset.csv") == (tmp_path / "d" / "processed" / "unified_dataset.csv").resolve()
    assert output_path("logs") == (tmp_path / "o" / "logs").resolve()


def test_setup_logging_replaces_handlers(tmp_path) -> None:
    root = logging.getLogger()
    saved, level = list(root.handlers), root.level
    try:
        setup_logging(str(tmp_path / "a"))
        setup_logging(str(tmp_path / "b"))
        files = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
        assert len(files) == 1
        log_mem("after setup")
        text = (tmp_path / "b" / "logs" / "pipeline.log").read_text(encoding="utf-8")
        assert "[mem] after setup: rss=" in text
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            if isinstance(h, logging.FileHandler):
                h.close()
        for h in saved:
            root.addHandler(h)
        root.setLevel(level)
