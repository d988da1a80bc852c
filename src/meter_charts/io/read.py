from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from meter_charts.contracts import Series


@dataclass(frozen=True)
class MatrixInput:
    """Wide input table: one row per time bucket, one column per series key."""

    frame: pd.DataFrame
    time_buckets: tuple[str, ...]
    series: tuple[Series, ...]


def load_table(path: Path) -> pd.DataFrame:
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        # utf-8-sig strips BOM-prefixed headers from spreadsheet exports.
        return pd.read_csv(path, encoding="utf-8-sig")
    raise ValueError(f"Unsupported table file type: {path.suffix}")


def matrix_input_from_frame(
    df: pd.DataFrame,
    time_column: str = "month",
    series_labels: dict[str, str] | None = None,
) -> MatrixInput:
    if time_column not in df.columns:
        raise ValueError(f"Input table missing time column: {time_column}")
    working = df.copy()
    working[time_column] = working[time_column].astype(str).str.strip()
    working = working.drop_duplicates(subset=[time_column], keep="first")
    time_buckets = tuple(working[time_column].tolist())

    value_columns = [str(column) for column in working.columns if column != time_column]
    values = working.drop(columns=[time_column])
    values.columns = value_columns
    values = values.apply(pd.to_numeric, errors="coerce").fillna(0.0)
    values.index = list(time_buckets)

    series = tuple(Series.from_key(key, series_labels) for key in value_columns)
    return MatrixInput(frame=values, time_buckets=time_buckets, series=series)


def load_matrix(
    path: Path,
    time_column: str = "month",
    series_labels: dict[str, str] | None = None,
) -> MatrixInput:
    """Load a wide CSV or parquet table; non-numeric cells become 0."""
    return matrix_input_from_frame(
        load_table(path),
        time_column=time_column,
        series_labels=series_labels,
    )
