from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from meter_charts.chart import ChartScene
from meter_charts.render.primitives import (
    LinePrimitive,
    RectPrimitive,
    TextPrimitive,
    primitive_to_dict,
)
from meter_charts.tooltip import TOOLTIP_OFFSET

LEGEND_ITEM_WIDTH = 110.0
LEGEND_ROW_HEIGHT = 25.0
LEGEND_GAP = 40.0
TOOLTIP_LINE_HEIGHT = 15.0
TOOLTIP_CHAR_WIDTH = 7.0


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("svg.j2", "html", "xml")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _round(value: float) -> float:
    return round(float(value), 3)


def legend_layout(scene: ChartScene) -> tuple[list[dict[str, Any]], tuple[float, float], float]:
    layout = scene.layout
    origin = (
        layout.margins.left,
        layout.margins.top + layout.inner_height + LEGEND_GAP,
    )
    per_row = max(1, int(max(layout.inner_width, LEGEND_ITEM_WIDTH) // LEGEND_ITEM_WIDTH))
    items: list[dict[str, Any]] = []
    for swatch in scene.legend:
        data = primitive_to_dict(swatch)
        data["x"] = _round((swatch.index % per_row) * LEGEND_ITEM_WIDTH)
        data["y"] = _round((swatch.index // per_row) * LEGEND_ROW_HEIGHT)
        items.append(data)
    rows = (len(scene.legend) + per_row - 1) // per_row
    return items, origin, origin[1] + rows * LEGEND_ROW_HEIGHT


def _tooltip_box(scene: ChartScene) -> dict[str, Any] | None:
    if scene.tooltip is None:
        return None
    lines = scene.tooltip.content.lines()
    longest = max(len(line) for line in lines)
    return {
        "x": _round(scene.tooltip.position.x + TOOLTIP_OFFSET),
        "y": _round(scene.tooltip.position.y + TOOLTIP_OFFSET),
        "width": _round(longest * TOOLTIP_CHAR_WIDTH + 10.0),
        "height": _round(len(lines) * TOOLTIP_LINE_HEIGHT + 8.0),
        "lines": lines,
    }


def render_svg(scene: ChartScene) -> str:
    """Serialize a chart scene, its legend and tooltip overlay to SVG markup."""
    rects: list[dict[str, Any]] = []
    texts: list[dict[str, Any]] = []
    lines: list[dict[str, Any]] = []
    for item in scene.primitives:
        if isinstance(item, RectPrimitive):
            rects.append(primitive_to_dict(item))
        elif isinstance(item, TextPrimitive):
            texts.append(primitive_to_dict(item))
        elif isinstance(item, LinePrimitive):
            lines.append(primitive_to_dict(item))
    legend, legend_origin, legend_bottom = legend_layout(scene)
    height = scene.layout.height
    if legend:
        height = max(height, legend_bottom + 10.0)

    template = _template_env().get_template("chart.svg.j2")
    return template.render(
        kind=scene.kind,
        width=_round(scene.layout.width),
        height=_round(height),
        rects=rects,
        texts=texts,
        lines=lines,
        legend=legend,
        legend_origin=legend_origin,
        tooltip=_tooltip_box(scene),
    )
