from __future__ import annotations

import numpy as np
import pytest

from meter_charts.contracts import FilterState, Series
from meter_charts.features.aggregates import (
    aggregate_by_series,
    aggregate_by_time,
    build_time_totals_frame,
    build_totals_frame,
)
from meter_charts.features.labels import format_time_bucket, format_value
from meter_charts.features.matrix import transform

SERIES = (Series("A", "Region A"), Series("B", "Region B"))


def _bundle(range_: tuple[int, int]):
    return transform(
        [[10, 20], [30, 40]],
        ["2024-01", "2024-02"],
        SERIES,
        FilterState(range=range_, selected_series=SERIES),
    )


def test_aggregate_by_series_sums_each_series_in_selection_order() -> None:
    bundle = _bundle((0, 1))
    totals = aggregate_by_series(bundle.filtered, bundle.series)

    assert [(row.key, row.total) for row in totals] == [("A", 40.0), ("B", 60.0)]
    assert totals[0].label == "Region A"


def test_aggregate_by_time_for_single_bucket() -> None:
    bundle = _bundle((0, 0))

    assert aggregate_by_time(bundle.transposed) == [30.0]


def test_series_and_time_totals_agree_on_grand_total() -> None:
    bundle = _bundle((0, 1))

    by_series = sum(row.total for row in aggregate_by_series(bundle.filtered, bundle.series))
    by_time = sum(aggregate_by_time(bundle.transposed))
    assert by_series == by_time == 100.0


def test_aggregate_by_series_pads_series_beyond_matrix_width() -> None:
    totals = aggregate_by_series(np.array([[1.0], [2.0]]), SERIES)

    assert [row.total for row in totals] == [3.0, 0.0]


def test_aggregates_of_empty_selection() -> None:
    assert aggregate_by_series(np.zeros((2, 0)), ()) == []
    assert aggregate_by_time(np.zeros((0, 0))) == []


def test_build_totals_frame_includes_share() -> None:
    bundle = _bundle((0, 1))
    frame = build_totals_frame(bundle.filtered, bundle.series)

    assert list(frame.columns) == ["key", "label", "total", "share"]
    assert frame["share"].tolist() == pytest.approx([0.4, 0.6])


def test_build_totals_frame_with_zero_total_has_zero_share() -> None:
    frame = build_totals_frame(np.zeros((2, 2)), SERIES)

    assert frame["share"].tolist() == [0.0, 0.0]


def test_build_time_totals_frame_aligns_labels() -> None:
    bundle = _bundle((0, 1))
    frame = build_time_totals_frame(bundle.transposed, bundle.time_buckets)

    assert frame.to_dict(orient="records") == [
        {"time_bucket": "2024-01", "total": 30.0},
        {"time_bucket": "2024-02", "total": 70.0},
    ]


def test_format_time_bucket_renders_month_and_two_digit_year() -> None:
    assert format_time_bucket("2024-04") == "Apr-24"
    assert format_time_bucket("2023-12-01") == "Dec-23"
    assert format_time_bucket("total") == "total"


def test_format_value_drops_trailing_zeros() -> None:
    assert format_value(40.0) == "40"
    assert format_value(2.5) == "2.5"
    assert format_value(1.234) == "1.23"
    assert format_value(0) == "0"
