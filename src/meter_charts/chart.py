from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from meter_charts.config import AppConfig, GroupedBarConfig, HeatmapConfig, MarginsConfig
from meter_charts.contracts import ChartKind, FilterState, Series
from meter_charts.features.aggregates import SeriesTotal, aggregate_by_series, aggregate_by_time
from meter_charts.features.labels import format_time_bucket
from meter_charts.features.matrix import MatrixBundle, TransformCache, transform
from meter_charts.interaction import InteractionState
from meter_charts.render.compose import (
    GroupedBarOptions,
    HeatmapOptions,
    LabelFormatter,
    compose_grouped_bar,
    compose_heatmap,
    compose_legend,
)
from meter_charts.render.primitives import Layout, LegendSwatch, Margins, Primitive
from meter_charts.scales import ChartScales, build_scales, resolve_palette
from meter_charts.tooltip import (
    AnchorRect,
    Point,
    TooltipContent,
    TooltipState,
    on_hover_enter,
    on_hover_leave,
    on_hover_move,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartScene:
    """Everything the host needs to draw one frame of a chart."""

    kind: ChartKind
    layout: Layout
    primitives: tuple[Primitive, ...]
    legend: tuple[LegendSwatch, ...]
    tooltip: TooltipState | None
    interaction: InteractionState
    time_buckets: tuple[str, ...]
    series: tuple[Series, ...]
    series_totals: tuple[SeriesTotal, ...]
    time_totals: tuple[float, ...]
    color_domain: tuple[float, float]
    color_range: tuple[str, str]

    @property
    def is_empty(self) -> bool:
        return not self.primitives


def _layout(width: float, height: float, margins: MarginsConfig) -> Layout:
    return Layout(
        width=width,
        height=height,
        margins=Margins(
            top=margins.top,
            right=margins.right,
            bottom=margins.bottom,
            left=margins.left,
        ),
    )


class Chart:
    """Chart instance owning its data bundle, interaction state and tooltip.

    ``update`` is called on every render cycle with the current matrix and
    filter state; pointer and legend handlers mutate only interaction and
    tooltip state; ``scene`` redraws from scratch.
    """

    kind: ChartKind

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self.palette = resolve_palette(
            name=self.config.palette.name,
            colors=self.config.palette.colors,
        )
        self.bundle: MatrixBundle | None = None
        self.transform_cache = TransformCache()
        self.interaction = InteractionState()
        self.tooltip: TooltipState | None = None

    @property
    def chart_config(self) -> HeatmapConfig | GroupedBarConfig:
        raise NotImplementedError

    @property
    def time_label_formatter(self) -> LabelFormatter:
        return format_time_bucket if self.config.input.format_time_labels else str

    def update(
        self,
        full_matrix: Any,
        time_buckets: Sequence[str],
        series: Sequence[Series],
        filter_state: FilterState,
    ) -> MatrixBundle:
        bundle = transform(
            full_matrix, time_buckets, series, filter_state, cache=self.transform_cache
        )
        previous = self.bundle
        self.bundle = bundle
        if previous is None:
            self.interaction = InteractionState.initial(
                self.chart_config.initial_highlight, bundle.series_keys
            )
        elif previous.content_key != bundle.content_key:
            self.interaction = self.interaction.reconcile(bundle.series_keys)
            self.tooltip = None
        return bundle

    def _series(self, series_key: str) -> Series | None:
        if self.bundle is None:
            return None
        for series in self.bundle.series:
            if series.key == series_key:
                return series
        return None

    def pointer_enter(
        self,
        series_key: str,
        time_index: int,
        value: float,
        pointer: Point,
        anchor: AnchorRect,
    ) -> TooltipState | None:
        series = self._series(series_key)
        if series is None or self.bundle is None:
            LOGGER.debug("Ignoring pointer enter for unknown series %r", series_key)
            return self.tooltip
        if 0 <= time_index < len(self.bundle.time_buckets):
            time_label = self.bundle.time_buckets[time_index]
        else:
            time_label = ""
        self.interaction = self.interaction.pointer_enter(series_key)
        content = TooltipContent(
            series_key=series.key,
            series_label=series.label,
            time_bucket=self.time_label_formatter(time_label) if time_label else time_label,
            value=float(value),
        )
        self.tooltip = on_hover_enter(pointer, anchor, content)
        return self.tooltip

    def pointer_move(self, pointer: Point, anchor: AnchorRect) -> TooltipState | None:
        self.tooltip = on_hover_move(self.tooltip, pointer, anchor)
        return self.tooltip

    def pointer_leave(self) -> None:
        self.interaction = self.interaction.pointer_leave()
        self.tooltip = on_hover_leave()

    def legend_click(self, series_key: str) -> InteractionState:
        if self._series(series_key) is None:
            LOGGER.debug("Ignoring legend click for unknown series %r", series_key)
            return self.interaction
        self.interaction = self.interaction.toggle_highlight(series_key)
        return self.interaction

    def layout(self) -> Layout:
        cfg = self.chart_config
        return _layout(cfg.width, cfg.height, cfg.margins)

    def scales(self, bundle: MatrixBundle, layout: Layout) -> ChartScales:
        raise NotImplementedError

    def _compose(
        self,
        bundle: MatrixBundle,
        scales: ChartScales,
        layout: Layout,
        time_totals: Sequence[float],
    ) -> tuple[Primitive, ...]:
        raise NotImplementedError

    def scene(self) -> ChartScene:
        if self.bundle is None:
            raise RuntimeError("Chart.update must be called before building a scene.")
        bundle = self.bundle
        # Interaction can only reference series that are still selected.
        self.interaction = self.interaction.reconcile(bundle.series_keys)
        layout = self.layout()
        scales = self.scales(bundle, layout)
        series_totals = tuple(aggregate_by_series(bundle.filtered, bundle.series))
        time_totals = tuple(aggregate_by_time(bundle.transposed))
        primitives = self._compose(bundle, scales, layout, time_totals)
        legend = compose_legend(bundle, scales, self.interaction) if primitives else ()
        return ChartScene(
            kind=self.kind,
            layout=layout,
            primitives=primitives,
            legend=legend,
            tooltip=self.tooltip,
            interaction=self.interaction,
            time_buckets=bundle.time_buckets,
            series=bundle.series,
            series_totals=series_totals,
            time_totals=time_totals,
            color_domain=(0.0, scales.color.domain_max),
            color_range=(scales.color.min_color, scales.color.max_color),
        )

    def state_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "interaction": self.interaction.to_dict(),
            "tooltip": self.tooltip.to_dict() if self.tooltip is not None else None,
        }


class HeatmapChart(Chart):
    kind: ChartKind = "heatmap"

    @property
    def chart_config(self) -> HeatmapConfig:
        return self.config.heatmap

    def scales(self, bundle: MatrixBundle, layout: Layout) -> ChartScales:
        cfg = self.config.heatmap
        return build_scales(
            bundle.time_buckets,
            bundle.series_keys,
            bundle.transposed,
            layout.inner_width,
            layout.inner_height,
            kind="heatmap",
            padding=cfg.padding,
            colormap=cfg.colormap,
            palette=self.palette,
        )

    def _compose(
        self,
        bundle: MatrixBundle,
        scales: ChartScales,
        layout: Layout,
        time_totals: Sequence[float],
    ) -> tuple[Primitive, ...]:
        cfg = self.config.heatmap
        return compose_heatmap(
            bundle,
            scales,
            layout,
            self.interaction,
            time_totals,
            options=HeatmapOptions(
                fill_by_magnitude=cfg.fill_by_magnitude,
                show_cell_values=cfg.show_cell_values,
                show_column_totals=cfg.show_column_totals,
                dimmed_opacity=cfg.dimmed_opacity,
            ),
            time_label_formatter=self.time_label_formatter,
        )


class GroupedBarChart(Chart):
    kind: ChartKind = "groupedbar"

    @property
    def chart_config(self) -> GroupedBarConfig:
        return self.config.grouped_bar

    def scales(self, bundle: MatrixBundle, layout: Layout) -> ChartScales:
        cfg = self.config.grouped_bar
        return build_scales(
            bundle.time_buckets,
            bundle.series_keys,
            bundle.transposed,
            layout.inner_width,
            layout.inner_height,
            kind="groupedbar",
            padding=cfg.padding,
            colormap=self.config.heatmap.colormap,
            palette=self.palette,
            value_ticks=cfg.value_ticks,
        )

    def _compose(
        self,
        bundle: MatrixBundle,
        scales: ChartScales,
        layout: Layout,
        time_totals: Sequence[float],
    ) -> tuple[Primitive, ...]:
        cfg = self.config.grouped_bar
        return compose_grouped_bar(
            bundle,
            scales,
            layout,
            self.interaction,
            options=GroupedBarOptions(
                dimmed_opacity=cfg.dimmed_opacity,
                highlight_color=cfg.highlight_color,
                show_highlight_values=cfg.show_highlight_values,
                value_ticks=cfg.value_ticks,
            ),
            time_label_formatter=self.time_label_formatter,
        )


def build_chart(kind: ChartKind, config: AppConfig | None = None) -> Chart:
    if kind == "heatmap":
        return HeatmapChart(config)
    if kind == "groupedbar":
        return GroupedBarChart(config)
    raise ValueError(f"Unsupported chart kind: {kind}")
