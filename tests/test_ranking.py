from __future__ import annotations

import pandas as pd

from quakemap.ranking import (
    GDP_GRADIENT, NO_DATA_COLOR, build_rank_table, color_for_rank, interpolate_color, rank_values,
)


def test_ties_share_mean_position() -> None:
    assert rank_values([10, 20, 20, 30]) == {10.0: 0.0, 20.0: 0.5, 30.0: 1.0}


def test_single_value_ranks_half() -> None:
    assert rank_values([42.0]) == {42.0: 0.5}


def test_non_finite_values_ignored() -> None:
    ranks = rank_values([1.0, float("nan"), None, "n/a", 3.0])
    assert ranks == {1.0: 0.0, 3.0: 1.0}
    assert rank_values([]) == {}


def test_rank_table_filters_year() -> None:
    df = pd.DataFrame({
        "year": [2019, 2020, 2020, 2020, 2020, 2021],
        "value": [999.0, 10.0, 20.0, 20.0, 30.0, 5.0],
    })
    table = build_rank_table(df, 2020)
    assert table.count == 4
    assert table.rank_for(20.0) == 0.5
    assert table.rank_for(999.0) is None
    assert table.rank_for(None) is None
    assert table.rank_for(float("nan")) is None


def test_rank_table_from_values() -> None:
    table = build_rank_table([3.0, 1.0, 2.0], 2005)
    assert table.rank_for(2.0) == 0.5
    assert table.color_for(3.0) == GDP_GRADIENT[-1][1]


def test_rank_table_empty_frame() -> None:
    table = build_rank_table(pd.DataFrame(columns=["year", "value"]), 2010)
    assert table.count == 0
    assert table.color_for(1.0) == NO_DATA_COLOR


def test_color_endpoints_and_no_data() -> None:
    assert color_for_rank(0) == GDP_GRADIENT[0][1]
    assert color_for_rank(1) == GDP_GRADIENT[-1][1]
    assert color_for_rank(None) == NO_DATA_COLOR
    assert color_for_rank(float("nan")) == NO_DATA_COLOR
    # clamped
    assert color_for_rank(-3) == GDP_GRADIENT[0][1]
    assert color_for_rank(7) == GDP_GRADIENT[-1][1]


def test_color_on_stop_is_stop_color() -> None:
    for pos, color in GDP_GRADIENT:
        assert color_for_rank(pos) == color


def test_interpolation_rounds_half_up() -> None:
    # 0 -> 255 at 0.5 is 127.5, which rounds up
    assert interpolate_color("#000000", "#ffffff", 0.5) == "#808080"
    assert interpolate_color("#000000", "#ffffff", 0.0) == "#000000"


def test_midpoint_between_first_stops() -> None:
    # halfway between #ffffff and #fff9c4: g=252, b=225.5 -> 226
    assert color_for_rank(0.025) == "#fffce2"


def test_gradient_shape() -> None:
    assert len(GDP_GRADIENT) == 16
    positions = [p for p, _ in GDP_GRADIENT]
    assert positions[0] == 0 and positions[-1] == 1
    assert positions == sorted(positions)
