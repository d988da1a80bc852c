from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from meter_charts.contracts import FilterState, Series
from meter_charts.features.matrix import TransformCache, clamp_range, transform

BUCKETS = ["2024-01", "2024-02"]
SERIES = (Series("A"), Series("B"))
MATRIX = [[10, 20], [30, 40]]


def test_transform_full_range_transposes_selected_series() -> None:
    bundle = transform(MATRIX, BUCKETS, SERIES, FilterState(range=(0, 1), selected_series=SERIES))

    assert bundle.time_buckets == ("2024-01", "2024-02")
    assert bundle.series_keys == ("A", "B")
    assert bundle.filtered.tolist() == [[10.0, 20.0], [30.0, 40.0]]
    assert bundle.transposed.tolist() == [[10.0, 30.0], [20.0, 40.0]]
    assert np.array_equal(bundle.transposed.T, bundle.filtered)


def test_transform_single_bucket_range() -> None:
    bundle = transform(MATRIX, BUCKETS, SERIES, FilterState(range=(0, 0), selected_series=SERIES))

    assert bundle.time_buckets == ("2024-01",)
    assert bundle.filtered.tolist() == [[10.0, 20.0]]
    assert bundle.transposed.tolist() == [[10.0], [20.0]]
    assert bundle.range == (0, 0)


def test_log_matrix_is_log1p_of_transposed() -> None:
    bundle = transform(
        [[0, 1], [9, 99]],
        BUCKETS,
        SERIES,
        FilterState(range=(0, 1), selected_series=SERIES),
    )

    assert bundle.log_matrix[0, 0] == 0.0
    assert bundle.log_matrix[1, 1] == pytest.approx(math.log(100.0))
    assert np.allclose(bundle.log_matrix, np.log1p(bundle.transposed))
    # log1p is monotone, so ordering of values is preserved.
    flat_values = bundle.transposed.ravel()
    flat_logs = bundle.log_matrix.ravel()
    assert list(np.argsort(flat_values)) == list(np.argsort(flat_logs))
    assert bundle.max_log == pytest.approx(math.log(100.0))
    assert bundle.max_value == 99.0


def test_transform_follows_selection_order_and_subset() -> None:
    selection = (Series("B"), Series("A"))
    bundle = transform(
        MATRIX,
        BUCKETS,
        SERIES,
        FilterState(range=(0, 1), selected_series=selection),
    )

    assert bundle.series_keys == ("B", "A")
    assert bundle.filtered.tolist() == [[20.0, 10.0], [40.0, 30.0]]

    only_b = transform(
        MATRIX,
        BUCKETS,
        SERIES,
        FilterState(range=(0, 1), selected_series=(Series("B"),)),
    )
    assert only_b.transposed.tolist() == [[20.0, 40.0]]


def test_transform_treats_missing_cells_and_unknown_series_as_zero() -> None:
    selection = (Series("A"), Series("B"), Series("C"))
    bundle = transform(
        [[5], [7, 8]],
        BUCKETS,
        SERIES,
        FilterState(range=(0, 1), selected_series=selection),
    )

    assert bundle.filtered.tolist() == [[5.0, 0.0, 0.0], [7.0, 8.0, 0.0]]
    assert np.all(np.isfinite(bundle.log_matrix))


def test_clamp_range_pulls_bounds_into_the_bucket_sequence() -> None:
    assert clamp_range((-3, 10), 4) == (0, 3)
    assert clamp_range((2, 1), 4) == (2, 2)
    assert clamp_range((5, 9), 4) == (3, 3)
    assert clamp_range((0, 0), 0) is None


def test_transform_clamps_out_of_bounds_range() -> None:
    bundle = transform(MATRIX, BUCKETS, SERIES, FilterState(range=(-5, 99), selected_series=SERIES))

    assert bundle.range == (0, 1)
    assert bundle.time_buckets == ("2024-01", "2024-02")


def test_transform_with_empty_selection_is_empty() -> None:
    bundle = transform(MATRIX, BUCKETS, SERIES, FilterState(range=(0, 1), selected_series=()))

    assert bundle.is_empty
    assert bundle.series == ()
    assert bundle.max_log == 0.0


def test_transform_with_no_time_buckets_is_empty() -> None:
    bundle = transform([], [], SERIES, FilterState(range=(0, 0), selected_series=SERIES))

    assert bundle.is_empty
    assert bundle.time_buckets == ()
    assert bundle.range is None


def test_transform_accepts_dataframe_and_coerces_non_numeric_cells() -> None:
    frame = pd.DataFrame({"A": [10, "n/a"], "B": [20, 40]}, index=BUCKETS)

    bundle = transform(frame, BUCKETS, SERIES, FilterState(range=(0, 1), selected_series=SERIES))

    assert bundle.transposed.tolist() == [[10.0, 0.0], [20.0, 40.0]]


def test_transform_aligns_dataframe_rows_by_time_label() -> None:
    frame = pd.DataFrame({"A": [200.0, 100.0]}, index=["2024-02", "2024-01"])
    series = (Series("A"),)

    bundle = transform(frame, BUCKETS, series, FilterState(range=(0, 0), selected_series=series))

    assert bundle.transposed.tolist() == [[100.0]]


def test_transform_dataframe_missing_time_label_is_zero() -> None:
    frame = pd.DataFrame({"A": [7.0], "B": [9.0]}, index=["2024-02"])

    bundle = transform(frame, BUCKETS, SERIES, FilterState(range=(0, 1), selected_series=SERIES))

    assert bundle.transposed.tolist() == [[0.0, 7.0], [0.0, 9.0]]


def test_transform_dataframe_with_default_index_is_positional() -> None:
    frame = pd.DataFrame({"A": [1, 2], "B": [3, 4]})

    bundle = transform(frame, BUCKETS, SERIES, FilterState(range=(1, 1), selected_series=SERIES))

    assert bundle.transposed.tolist() == [[2.0], [4.0]]


def test_transform_is_idempotent_and_cached() -> None:
    cache = TransformCache()
    state = FilterState(range=(0, 1), selected_series=SERIES)

    first = transform(MATRIX, BUCKETS, SERIES, state, cache=cache)
    second = transform([row[:] for row in MATRIX], list(BUCKETS), SERIES, state, cache=cache)

    assert second is first
    assert len(cache) == 1
    assert not first.transposed.flags.writeable
    with pytest.raises(ValueError):
        first.transposed[0, 0] = 1.0

    uncached = transform(MATRIX, BUCKETS, SERIES, state)
    assert uncached is not first
    assert uncached.content_key == first.content_key
    assert np.array_equal(uncached.log_matrix, first.log_matrix)


def test_transform_cache_evicts_least_recently_used() -> None:
    cache = TransformCache(maxsize=1)
    state = FilterState(range=(0, 1), selected_series=SERIES)

    first = transform(MATRIX, BUCKETS, SERIES, state, cache=cache)
    transform([[1, 2], [3, 4]], BUCKETS, SERIES, state, cache=cache)

    assert len(cache) == 1
    assert cache.get(first.content_key) is None
    with pytest.raises(ValueError):
        TransformCache(maxsize=0)


def test_transform_with_changed_values_builds_a_new_bundle() -> None:
    state = FilterState(range=(0, 1), selected_series=SERIES)
    first = transform(MATRIX, BUCKETS, SERIES, state)
    changed = transform([[10, 20], [30, 41]], BUCKETS, SERIES, state)

    assert changed is not first
    assert changed.transposed[1, 1] == 41.0
