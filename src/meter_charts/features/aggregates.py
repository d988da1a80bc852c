from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from meter_charts.contracts import Series


@dataclass(frozen=True)
class SeriesTotal:
    key: str
    label: str
    total: float


def aggregate_by_series(
    filtered_matrix: np.ndarray,
    selected_series: Sequence[Series],
) -> list[SeriesTotal]:
    """Sum each series over the filtered window, in selection order.

    ``filtered_matrix`` is time x series with columns aligned to
    ``selected_series``; series beyond the matrix width total to 0.
    """
    values = np.asarray(filtered_matrix, dtype=float)
    n_columns = values.shape[1] if values.ndim == 2 else 0
    column_sums = values.sum(axis=0) if n_columns else np.zeros(0, dtype=float)
    return [
        SeriesTotal(
            key=series.key,
            label=series.label,
            total=float(column_sums[index]) if index < n_columns else 0.0,
        )
        for index, series in enumerate(selected_series)
    ]


def aggregate_by_time(transposed: np.ndarray) -> list[float]:
    """Sum every time bucket across series, in filtered time order."""
    values = np.asarray(transposed, dtype=float)
    if values.ndim != 2 or values.shape[1] == 0:
        return []
    return [float(total) for total in values.sum(axis=0)]


def build_totals_frame(
    filtered_matrix: np.ndarray,
    selected_series: Sequence[Series],
) -> pd.DataFrame:
    totals = aggregate_by_series(filtered_matrix, selected_series)
    frame = pd.DataFrame(
        {
            "key": [row.key for row in totals],
            "label": [row.label for row in totals],
            "total": [row.total for row in totals],
        }
    )
    grand_total = float(frame["total"].sum()) if not frame.empty else 0.0
    frame["share"] = (frame["total"] / grand_total) if grand_total > 0 else 0.0
    return frame


def build_time_totals_frame(transposed: np.ndarray, time_buckets: Sequence[str]) -> pd.DataFrame:
    totals = aggregate_by_time(transposed)
    if len(totals) != len(time_buckets):
        totals = (totals + [0.0] * len(time_buckets))[: len(time_buckets)]
    return pd.DataFrame({"time_bucket": list(time_buckets), "total": totals})
