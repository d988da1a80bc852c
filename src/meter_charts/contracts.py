from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Literal

ChartKind = Literal["heatmap", "groupedbar"]
ALLOWED_CHART_KINDS = frozenset({"heatmap", "groupedbar"})


@dataclass(slots=True, frozen=True)
class Series:
    """One tracked quantity (for example a region) plotted across time buckets."""

    key: str
    label: str = ""

    def __post_init__(self) -> None:
        if not str(self.key).strip():
            raise ValueError("Series key must be non-empty.")
        if not self.label:
            object.__setattr__(self, "label", str(self.key))

    @classmethod
    def from_key(cls, key: str, labels: dict[str, str] | None = None) -> Series:
        return cls(key=key, label=(labels or {}).get(key, key))


def unique_series(series: Iterable[Series]) -> tuple[Series, ...]:
    """Drop repeated keys, keeping the first occurrence and the given order."""
    seen: set[str] = set()
    ordered: list[Series] = []
    for item in series:
        if item.key in seen:
            continue
        seen.add(item.key)
        ordered.append(item)
    return tuple(ordered)


@dataclass(slots=True, frozen=True)
class FilterState:
    """Time window and series selection supplied by the host's filter widgets.

    ``range`` is an inclusive pair of bucket indices over the full time-bucket
    sequence. Neither field is validated here: out-of-bounds or inverted ranges
    are clamped when the matrix is filtered.
    """

    range: tuple[int, int]
    selected_series: tuple[Series, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        start, end = self.range
        object.__setattr__(self, "range", (int(start), int(end)))
        object.__setattr__(self, "selected_series", tuple(self.selected_series))

    @property
    def selected_keys(self) -> tuple[str, ...]:
        return tuple(item.key for item in unique_series(self.selected_series))

    @classmethod
    def select_all(cls, series: Iterable[Series], n_buckets: int) -> FilterState:
        return cls(range=(0, max(0, n_buckets - 1)), selected_series=tuple(series))
