from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd


def _ensure_parent(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def write_table(df: pd.DataFrame, path: Path, fmt: str = "csv") -> Path:
    """Write a totals table; parquet needs the optional ``pyarrow`` extra."""
    if fmt not in {"csv", "parquet"}:
        raise ValueError(f"Unsupported table format: {fmt}")
    _ensure_parent(path)
    if fmt == "parquet":
        df.to_parquet(path, index=False)
    else:
        df.to_csv(path, index=False)
    return path


def write_payload(data: dict[str, Any], path: Path) -> Path:
    # Payloads are already JSON-safe; a non-finite float raises.
    text = json.dumps(data, indent=2, sort_keys=True, allow_nan=False)
    _ensure_parent(path).write_text(text + "\n", encoding="utf-8")
    return path


def write_svg(markup: str, path: Path) -> Path:
    _ensure_parent(path).write_text(markup, encoding="utf-8")
    return path
