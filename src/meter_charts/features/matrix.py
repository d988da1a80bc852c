from __future__ import annotations

import hashlib
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
import pandas as pd

from meter_charts.contracts import FilterState, Series, unique_series

LOGGER = logging.getLogger(__name__)

BUNDLE_CACHE_SIZE = 32


@dataclass(frozen=True)
class MatrixBundle:
    """Derived matrices for one (matrix, time buckets, filter) combination.

    ``filtered`` is time x series, ``transposed`` and ``log_matrix`` are
    series x time. All arrays are read-only; ``content_key`` identifies the
    input, window and selection the bundle was derived from.
    """

    time_buckets: tuple[str, ...]
    series: tuple[Series, ...]
    filtered: np.ndarray
    transposed: np.ndarray
    log_matrix: np.ndarray
    range: tuple[int, int] | None
    content_key: str = ""

    @property
    def is_empty(self) -> bool:
        return self.transposed.size == 0

    @property
    def series_keys(self) -> tuple[str, ...]:
        return tuple(item.key for item in self.series)

    @property
    def max_log(self) -> float:
        if self.log_matrix.size == 0:
            return 0.0
        return float(np.max(self.log_matrix))

    @property
    def max_value(self) -> float:
        if self.transposed.size == 0:
            return 0.0
        return float(np.max(self.transposed))


def clamp_range(bounds: tuple[int, int], length: int) -> tuple[int, int] | None:
    if length <= 0:
        return None
    last = length - 1
    start = min(max(int(bounds[0]), 0), last)
    end = min(max(int(bounds[1]), 0), last)
    if end < start:
        end = start
    if (start, end) != (int(bounds[0]), int(bounds[1])):
        LOGGER.debug("Clamped range %s to (%d, %d) for %d buckets", bounds, start, end, length)
    return start, end


def _coerce_frame(
    full_matrix: Any,
    time_buckets: Sequence[str],
    series_keys: Sequence[str],
) -> pd.DataFrame:
    """Return a time x series frame with numeric cells and missing cells as 0.

    A DataFrame with a labelled index is aligned to ``time_buckets`` by label;
    one with a default ``RangeIndex`` is taken positionally.
    """
    index = [str(label) for label in time_buckets]
    if isinstance(full_matrix, pd.DataFrame):
        frame = full_matrix.copy()
        frame.columns = [str(column) for column in frame.columns]
        frame = frame.loc[:, ~frame.columns.duplicated()]
        if isinstance(frame.index, pd.RangeIndex):
            frame = frame.iloc[: len(index)].reset_index(drop=True)
            frame = frame.reindex(range(len(index)))
            frame.index = index
        else:
            frame.index = frame.index.astype(str)
            frame = frame.loc[~frame.index.duplicated(keep="first")]
            frame = frame.reindex(index)
    else:
        width = len(series_keys)
        rows: list[list[Any]] = []
        for row_index in range(len(index)):
            row = list(full_matrix[row_index]) if row_index < len(full_matrix) else []
            rows.append((row + [0.0] * width)[:width])
        frame = pd.DataFrame(rows, index=index, columns=[str(key) for key in series_keys])
        frame = frame.loc[:, ~frame.columns.duplicated()]
    for column in frame.columns:
        frame[column] = pd.to_numeric(frame[column], errors="coerce")
    return frame.fillna(0.0)


def _content_key(
    frame: pd.DataFrame,
    series: tuple[Series, ...],
    bounds: tuple[int, int] | None,
) -> str:
    digest = hashlib.sha256()
    digest.update(np.ascontiguousarray(frame.to_numpy(dtype=float)).tobytes())
    digest.update("\x1f".join(frame.index).encode("utf-8"))
    digest.update("\x1f".join(frame.columns).encode("utf-8"))
    series_text = "\x1f".join(f"{item.key}\x1e{item.label}" for item in series)
    digest.update(series_text.encode("utf-8"))
    digest.update(repr(bounds).encode("utf-8"))
    return digest.hexdigest()


def _read_only(values: np.ndarray) -> np.ndarray:
    values.setflags(write=False)
    return values


class TransformCache:
    """Bounded LRU of bundles keyed by content; one per chart instance."""

    def __init__(self, maxsize: int = BUNDLE_CACHE_SIZE) -> None:
        if maxsize < 1:
            raise ValueError("TransformCache maxsize must be at least 1.")
        self.maxsize = maxsize
        self._bundles: OrderedDict[str, MatrixBundle] = OrderedDict()

    def __len__(self) -> int:
        return len(self._bundles)

    def get(self, key: str) -> MatrixBundle | None:
        bundle = self._bundles.get(key)
        if bundle is not None:
            self._bundles.move_to_end(key)
        return bundle

    def put(self, bundle: MatrixBundle) -> None:
        self._bundles[bundle.content_key] = bundle
        self._bundles.move_to_end(bundle.content_key)
        while len(self._bundles) > self.maxsize:
            self._bundles.popitem(last=False)

    def clear(self) -> None:
        self._bundles.clear()


def transform(
    full_matrix: Any,
    time_buckets: Sequence[str],
    series: Sequence[Series],
    filter_state: FilterState,
    *,
    cache: TransformCache | None = None,
) -> MatrixBundle:
    """Filter by time range, select series in filter order, transpose, and log-scale.

    ``full_matrix`` is either a nested sequence indexed ``[time][series]`` in the
    order of ``series`` or a DataFrame with one row per time bucket and one
    column per series key. Selected series absent from the input resolve to a
    column of zeros. With ``cache``, an equal input returns the cached bundle.
    """
    frame = _coerce_frame(full_matrix, time_buckets, [item.key for item in series])
    selected = unique_series(filter_state.selected_series)
    bounds = clamp_range(filter_state.range, len(frame.index))

    content_key = _content_key(frame, selected, bounds)
    if cache is not None:
        cached = cache.get(content_key)
        if cached is not None:
            return cached

    if bounds is None:
        window = frame.iloc[0:0]
    else:
        window = frame.iloc[bounds[0] : bounds[1] + 1]
    selected_keys = [item.key for item in selected]
    window = window.reindex(columns=selected_keys, fill_value=0.0).fillna(0.0)
    if window.empty:
        LOGGER.debug(
            "Empty selection: %d buckets x %d series", len(window.index), len(selected_keys)
        )

    filtered = window.to_numpy(dtype=float, copy=True).reshape(
        len(window.index), len(selected_keys)
    )
    transposed = np.ascontiguousarray(filtered.T)
    log_matrix = np.log1p(np.clip(transposed, 0.0, None))

    bundle = MatrixBundle(
        time_buckets=tuple(window.index),
        series=selected,
        filtered=_read_only(filtered),
        transposed=_read_only(transposed),
        log_matrix=_read_only(log_matrix),
        range=bounds,
        content_key=content_key,
    )
    if cache is not None:
        cache.put(bundle)
    return bundle
