from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from meter_charts.features.labels import format_value
from meter_charts.features.matrix import MatrixBundle
from meter_charts.interaction import InteractionState, emphasis_style
from meter_charts.render.primitives import (
    Layout,
    LegendSwatch,
    LinePrimitive,
    Primitive,
    RectPrimitive,
    TextPrimitive,
)
from meter_charts.scales import BandScale, ChartScales, LinearScale

LabelFormatter = Callable[[str], str]

CELL_STROKE = "white"
X_TICK_OFFSET = 20.0
Y_TICK_OFFSET = 10.0
COLUMN_TOTAL_OFFSET = 10.0
BAR_VALUE_OFFSET = 8.0


@dataclass(frozen=True)
class HeatmapOptions:
    fill_by_magnitude: bool = False
    show_cell_values: bool = True
    show_column_totals: bool = True
    dimmed_opacity: float = 0.3


@dataclass(frozen=True)
class GroupedBarOptions:
    dimmed_opacity: float = 0.3
    highlight_color: str = "black"
    show_highlight_values: bool = True
    value_ticks: int = 10


def _x_tick_labels(
    scale: BandScale,
    layout: Layout,
    time_buckets: Sequence[str],
    formatter: LabelFormatter,
) -> list[TextPrimitive]:
    labels: list[TextPrimitive] = []
    for label in time_buckets:
        center = scale.center(label)
        if center is None:
            continue
        labels.append(
            TextPrimitive(
                x=layout.margins.left + center,
                y=layout.margins.top + layout.inner_height + X_TICK_OFFSET,
                text=formatter(label),
                role="x_tick",
                font_size=12.0,
            )
        )
    return labels


def compose_legend(
    bundle: MatrixBundle,
    scales: ChartScales,
    interaction: InteractionState,
) -> tuple[LegendSwatch, ...]:
    return tuple(
        LegendSwatch(
            series_key=series.key,
            label=series.label,
            color=scales.series_color(series.key),
            index=index,
            active=interaction.highlighted == series.key,
            emphasis=interaction.emphasis(series.key),
        )
        for index, series in enumerate(bundle.series)
    )


def compose_heatmap(
    bundle: MatrixBundle,
    scales: ChartScales,
    layout: Layout,
    interaction: InteractionState,
    time_totals: Sequence[float],
    *,
    options: HeatmapOptions | None = None,
    time_label_formatter: LabelFormatter = str,
) -> tuple[Primitive, ...]:
    """Emit heat-map primitives: column totals, cells, cell values, then axis labels."""
    if bundle.is_empty:
        return ()
    options = options or HeatmapOptions()
    x_scale = scales.x
    y_scale = scales.y
    if not isinstance(y_scale, BandScale):
        raise ValueError("Heat map requires a band scale on the series axis.")
    left = layout.margins.left
    top = layout.margins.top
    primitives: list[Primitive] = []

    if options.show_column_totals:
        for col_index, label in enumerate(bundle.time_buckets):
            center = x_scale.center(label)
            if center is None or col_index >= len(time_totals):
                continue
            primitives.append(
                TextPrimitive(
                    x=left + center,
                    y=top - COLUMN_TOTAL_OFFSET,
                    text=format_value(time_totals[col_index]),
                    role="column_total",
                )
            )

    for row_index, series in enumerate(bundle.series):
        y = y_scale(series.key)
        if y is None:
            continue
        emphasis = interaction.emphasis(series.key)
        style = emphasis_style(
            emphasis,
            dimmed_opacity=options.dimmed_opacity,
            base_stroke=CELL_STROKE,
        )
        identity = scales.series_color(series.key)
        for col_index, label in enumerate(bundle.time_buckets):
            x = x_scale(label)
            if x is None:
                continue
            value = float(bundle.transposed[row_index, col_index])
            magnitude = scales.color(float(bundle.log_matrix[row_index, col_index]))
            primitives.append(
                RectPrimitive(
                    x=left + x,
                    y=top + y,
                    width=x_scale.bandwidth,
                    height=y_scale.bandwidth,
                    fill=magnitude if options.fill_by_magnitude else identity,
                    series_key=series.key,
                    time_index=col_index,
                    value=value,
                    role="cell",
                    emphasis=emphasis,
                    opacity=style.opacity,
                    stroke=style.stroke,
                    stroke_width=style.stroke_width,
                    rx=2.0,
                    magnitude_color=magnitude,
                )
            )
            if options.show_cell_values:
                primitives.append(
                    TextPrimitive(
                        x=left + x + x_scale.bandwidth / 2.0,
                        y=top + y + y_scale.bandwidth / 2.0,
                        text=format_value(value),
                        role="cell_value",
                        baseline="middle",
                        font_size=10.0,
                        fill="white",
                        font_weight="bold",
                    )
                )

    primitives.extend(_x_tick_labels(x_scale, layout, bundle.time_buckets, time_label_formatter))
    for series in bundle.series:
        center = y_scale.center(series.key)
        if center is None:
            continue
        primitives.append(
            TextPrimitive(
                x=left - Y_TICK_OFFSET,
                y=top + center,
                text=series.label,
                role="y_tick",
                anchor="end",
                baseline="middle",
            )
        )
    return tuple(primitives)


def compose_grouped_bar(
    bundle: MatrixBundle,
    scales: ChartScales,
    layout: Layout,
    interaction: InteractionState,
    *,
    options: GroupedBarOptions | None = None,
    time_label_formatter: LabelFormatter = str,
) -> tuple[Primitive, ...]:
    """Emit grouped-bar primitives: gridlines with value ticks, bars, then time labels."""
    if bundle.is_empty:
        return ()
    options = options or GroupedBarOptions()
    x_scale = scales.x
    y_scale = scales.y
    sub_scale = scales.sub
    if not isinstance(y_scale, LinearScale) or sub_scale is None:
        raise ValueError("Grouped bar chart requires a linear value scale and series sub-bands.")
    left = layout.margins.left
    top = layout.margins.top
    baseline = y_scale(0.0)
    primitives: list[Primitive] = []

    for tick in y_scale.ticks(options.value_ticks):
        y = top + y_scale(tick)
        primitives.append(LinePrimitive(x1=left, y1=y, x2=left + layout.inner_width, y2=y))
        primitives.append(
            TextPrimitive(
                x=left - Y_TICK_OFFSET,
                y=y,
                text=format_value(tick),
                role="value_tick",
                anchor="end",
                baseline="middle",
            )
        )

    for row_index, series in enumerate(bundle.series):
        offset = sub_scale(series.key)
        if offset is None:
            continue
        emphasis = interaction.emphasis(series.key)
        is_highlighted = interaction.highlighted == series.key
        style = emphasis_style(
            emphasis,
            dimmed_opacity=options.dimmed_opacity,
            focus_fill=options.highlight_color if is_highlighted else None,
        )
        fill = style.fill_override or scales.series_color(series.key)
        for col_index, label in enumerate(bundle.time_buckets):
            x = x_scale(label)
            if x is None:
                continue
            value = float(bundle.transposed[row_index, col_index])
            y = y_scale(value)
            bar_x = left + x + offset
            primitives.append(
                RectPrimitive(
                    x=bar_x,
                    y=top + y,
                    width=sub_scale.bandwidth,
                    height=max(0.0, baseline - y),
                    fill=fill,
                    series_key=series.key,
                    time_index=col_index,
                    value=value,
                    role="bar",
                    emphasis=emphasis,
                    opacity=style.opacity,
                    stroke=style.stroke,
                    stroke_width=style.stroke_width if style.stroke else 0.0,
                )
            )
            if options.show_highlight_values and is_highlighted:
                primitives.append(
                    TextPrimitive(
                        x=bar_x + sub_scale.bandwidth / 2.0,
                        y=top + y - BAR_VALUE_OFFSET,
                        text=format_value(value),
                        role="bar_value",
                        fill="black",
                        font_weight="bold",
                    )
                )

    primitives.extend(_x_tick_labels(x_scale, layout, bundle.time_buckets, time_label_formatter))
    return tuple(primitives)

