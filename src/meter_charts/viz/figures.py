from __future__ import annotations

import logging
from pathlib import Path

from matplotlib.patches import Rectangle

from meter_charts.chart import ChartScene
from meter_charts.render.primitives import LinePrimitive, RectPrimitive, TextPrimitive
from meter_charts.render.svg import legend_layout
from meter_charts.viz.common import new_canvas, save_figure

LOGGER = logging.getLogger(__name__)

# SVG font sizes are pixels; matplotlib wants points at 100 dpi.
_PX_TO_PT = 0.72
_HORIZONTAL_ALIGNMENT = {"start": "left", "middle": "center", "end": "right"}
_VERTICAL_ALIGNMENT = {"auto": "baseline", "middle": "center", "hanging": "top"}


def draw_scene(scene: ChartScene, output_path: Path) -> Path | None:
    """Draw a chart scene to a static image; returns None for an empty scene."""
    if scene.is_empty:
        LOGGER.info("Skipping static %s figure: nothing selected", scene.kind)
        return None

    legend, origin, legend_bottom = legend_layout(scene)
    height = max(scene.layout.height, legend_bottom + 10.0) if legend else scene.layout.height
    fig, ax = new_canvas(scene.layout.width, height)

    for item in scene.primitives:
        if isinstance(item, LinePrimitive):
            ax.plot(
                [item.x1, item.x2],
                [item.y1, item.y2],
                color=item.stroke,
                linewidth=item.stroke_width,
                zorder=1,
            )
        elif isinstance(item, RectPrimitive):
            ax.add_patch(
                Rectangle(
                    (item.x, item.y),
                    item.width,
                    item.height,
                    facecolor=item.fill,
                    edgecolor=item.stroke or "none",
                    linewidth=item.stroke_width if item.stroke else 0.0,
                    alpha=item.opacity,
                    zorder=2,
                )
            )
        elif isinstance(item, TextPrimitive):
            ax.text(
                item.x,
                item.y,
                item.text,
                ha=_HORIZONTAL_ALIGNMENT[item.anchor],
                va=_VERTICAL_ALIGNMENT[item.baseline],
                fontsize=item.font_size * _PX_TO_PT,
                fontweight=item.font_weight,
                color=item.fill,
                zorder=3,
            )

    for swatch in legend:
        x = origin[0] + swatch["x"]
        y = origin[1] + swatch["y"]
        ax.add_patch(Rectangle((x, y), 15.0, 15.0, facecolor=swatch["color"], zorder=2))
        ax.text(
            x + 20.0,
            y + 12.0,
            swatch["label"],
            fontsize=12.0 * _PX_TO_PT,
            fontweight="bold" if swatch["active"] else "normal",
            color="#374151",
            zorder=3,
        )
    return save_figure(fig, output_path)
