from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from meter_charts.contracts import Series
from meter_charts.io.read import load_matrix, load_table, matrix_input_from_frame


def test_load_matrix_reads_wide_csv(tmp_path: Path) -> None:
    csv_path = tmp_path / "meters.csv"
    csv_path.write_text(
        "\n".join(
            [
                "\ufeffmonth,north,south",
                "2024-01,10,20",
                "2024-02,30,n/a",
            ]
        ),
        encoding="utf-8",
    )

    loaded = load_matrix(csv_path, series_labels={"north": "North"})

    assert loaded.time_buckets == ("2024-01", "2024-02")
    assert loaded.series == (Series("north", "North"), Series("south", "south"))
    assert loaded.frame.loc["2024-02", "south"] == 0.0
    assert loaded.frame.loc["2024-01", "north"] == 10.0


def test_matrix_input_keeps_first_row_for_repeated_buckets() -> None:
    frame = pd.DataFrame({"period": ["2024-01", "2024-01", "2024-02"], "A": [1, 2, 3]})

    loaded = matrix_input_from_frame(frame, time_column="period")

    assert loaded.time_buckets == ("2024-01", "2024-02")
    assert loaded.frame["A"].tolist() == [1.0, 3.0]


def test_matrix_input_requires_time_column() -> None:
    with pytest.raises(ValueError, match="missing time column"):
        matrix_input_from_frame(pd.DataFrame({"A": [1]}), time_column="month")


def test_load_table_rejects_unknown_suffix(tmp_path: Path) -> None:
    path = tmp_path / "meters.txt"
    path.write_text("month,A\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported table file type"):
        load_table(path)
