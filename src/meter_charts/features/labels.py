from __future__ import annotations

import pandas as pd


def format_time_bucket(label: str) -> str:
    """Render a month bucket such as ``2024-04`` as ``Apr-24``.

    Labels that do not parse as dates are returned unchanged.
    """
    timestamp = pd.to_datetime(str(label), errors="coerce", format="mixed")
    if pd.isna(timestamp):
        return str(label)
    return f"{timestamp.strftime('%b')}-{timestamp.strftime('%y')}"


def format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")
