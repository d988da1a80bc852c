from __future__ import annotations

import math
from dataclasses import dataclass, field
from functools import cached_property
from typing import Sequence

import matplotlib
import numpy as np
from matplotlib.colors import ListedColormap, Normalize, to_hex
from matplotlib.ticker import MaxNLocator

from meter_charts.contracts import ChartKind

DEFAULT_PADDING: dict[str, float] = {"heatmap": 0.05, "groupedbar": 0.1}
DEFAULT_COLORMAP = "Blues"
DEFAULT_PALETTE_NAME = "tab10"
_QUALITATIVE_SAMPLE_SIZE = 10


@dataclass(frozen=True)
class BandScale:
    """Map discrete labels to equal-width bands within ``extent``.

    ``padding`` is applied both between bands and at the outer edges, as a
    fraction of the step. An empty domain yields zero bandwidth.
    """

    domain: tuple[str, ...]
    extent: tuple[float, float]
    padding: float = 0.0

    @cached_property
    def _index(self) -> dict[str, int]:
        index: dict[str, int] = {}
        for position, label in enumerate(self.domain):
            index.setdefault(label, position)
        return index

    @cached_property
    def step(self) -> float:
        n = len(self.domain)
        if n == 0:
            return 0.0
        start, stop = self.extent
        return (stop - start) / max(1.0, n - self.padding + self.padding * 2.0)

    @cached_property
    def bandwidth(self) -> float:
        return self.step * (1.0 - self.padding)

    @cached_property
    def _offset(self) -> float:
        start, stop = self.extent
        n = len(self.domain)
        return start + (stop - start - self.step * (n - self.padding)) * 0.5

    def __call__(self, label: str) -> float | None:
        position = self._index.get(label)
        if position is None:
            return None
        return self._offset + self.step * position

    def center(self, label: str) -> float | None:
        start = self(label)
        if start is None:
            return None
        return start + self.bandwidth / 2.0

    def subdivide(self, keys: Sequence[str]) -> BandScale:
        """Split one band into contiguous, unpadded sub-bands, one per key."""
        return BandScale(domain=tuple(keys), extent=(0.0, self.bandwidth), padding=0.0)


@dataclass(frozen=True)
class LinearScale:
    domain: tuple[float, float]
    extent: tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.extent
        if d1 == d0:
            return r0
        return r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)

    def ticks(self, count: int = 10) -> list[float]:
        d0, d1 = self.domain
        if d1 == d0:
            return [float(d0)]
        locator = MaxNLocator(nbins=max(1, int(count)), steps=[1, 2, 5, 10])
        tolerance = abs(d1 - d0) * 1e-9
        return [
            float(tick)
            for tick in locator.tick_values(d0, d1)
            if d0 - tolerance <= tick <= d1 + tolerance
        ]

    def nice(self, count: int = 10) -> LinearScale:
        """Extend the domain outward to round tick values."""
        d0, d1 = self.domain
        if d1 == d0:
            return self
        locator = MaxNLocator(nbins=max(1, int(count)), steps=[1, 2, 5, 10])
        locs = locator.tick_values(d0, d1)
        nice_domain = (min(d0, float(locs[0])), max(d1, float(locs[-1])))
        return LinearScale(domain=nice_domain, extent=self.extent)


@dataclass(frozen=True)
class SequentialColorScale:
    """Continuous map from ``[0, domain_max]`` onto a matplotlib colormap."""

    domain_max: float
    colormap: str = DEFAULT_COLORMAP

    @cached_property
    def _cmap(self):
        return matplotlib.colormaps[self.colormap]

    def normalize(self, value: float) -> float:
        if not math.isfinite(value) or self.domain_max <= 0.0:
            return 0.0
        return float(np.clip(Normalize(vmin=0.0, vmax=self.domain_max)(value), 0.0, 1.0))

    def __call__(self, value: float) -> str:
        return to_hex(self._cmap(self.normalize(value)))

    @property
    def min_color(self) -> str:
        return self(0.0)

    @property
    def max_color(self) -> str:
        return to_hex(self._cmap(1.0))


def resolve_palette(
    name: str = DEFAULT_PALETTE_NAME,
    colors: Sequence[str] | None = None,
) -> tuple[str, ...]:
    if colors:
        raw = [to_hex(color) for color in colors]
    else:
        cmap = matplotlib.colormaps[name]
        if isinstance(cmap, ListedColormap):
            raw = [to_hex(color) for color in cmap.colors]
        else:
            raw = [
                to_hex(cmap(position))
                for position in np.linspace(0.0, 1.0, _QUALITATIVE_SAMPLE_SIZE)
            ]
    deduped: list[str] = []
    for color in raw:
        if color not in deduped:
            deduped.append(color)
    return tuple(deduped)


@dataclass(frozen=True)
class OrdinalColorScale:
    """Assign palette colors to keys in domain order, wrapping around the palette."""

    domain: tuple[str, ...]
    palette: tuple[str, ...] = field(default_factory=resolve_palette)

    @cached_property
    def _index(self) -> dict[str, int]:
        index: dict[str, int] = {}
        for key in self.domain:
            index.setdefault(key, len(index))
        return index

    def __call__(self, key: str) -> str:
        position = self._index.get(key, len(self._index))
        return self.palette[position % len(self.palette)]


@dataclass(frozen=True)
class ChartScales:
    kind: ChartKind
    x: BandScale
    y: BandScale | LinearScale
    color: SequentialColorScale
    series_color: OrdinalColorScale
    sub: BandScale | None = None


def build_scales(
    labels_x: Sequence[str],
    labels_y: Sequence[str],
    matrix: np.ndarray,
    plot_width: float,
    plot_height: float,
    *,
    kind: ChartKind = "heatmap",
    padding: float | None = None,
    colormap: str = DEFAULT_COLORMAP,
    palette: Sequence[str] | None = None,
    value_ticks: int = 10,
) -> ChartScales:
    """Build position and color scales for one render.

    ``labels_x`` are time buckets, ``labels_y`` are series keys and ``matrix`` is
    the series x time value matrix. The magnitude color domain is
    ``[0, ln(max + 1)]`` so it lines up with the log matrix.
    """
    values = np.asarray(matrix, dtype=float)
    max_value = float(np.max(values)) if values.size else 0.0
    max_value = max(0.0, max_value) if math.isfinite(max_value) else 0.0
    band_padding = DEFAULT_PADDING[kind] if padding is None else float(padding)
    width = max(0.0, float(plot_width))
    height = max(0.0, float(plot_height))

    x_scale = BandScale(domain=tuple(labels_x), extent=(0.0, width), padding=band_padding)
    color = SequentialColorScale(domain_max=math.log1p(max_value), colormap=colormap)
    series_color = OrdinalColorScale(
        domain=tuple(labels_y),
        palette=tuple(palette) if palette else resolve_palette(),
    )

    if kind == "groupedbar":
        y_scale = LinearScale(domain=(0.0, max_value), extent=(height, 0.0)).nice(value_ticks)
        return ChartScales(
            kind=kind,
            x=x_scale,
            y=y_scale,
            color=color,
            series_color=series_color,
            sub=x_scale.subdivide(labels_y),
        )

    y_scale = BandScale(domain=tuple(labels_y), extent=(0.0, height), padding=band_padding)
    return ChartScales(kind=kind, x=x_scale, y=y_scale, color=color, series_color=series_color)
