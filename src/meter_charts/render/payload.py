from __future__ import annotations

import math
from enum import Enum
from typing import Any

import numpy as np

from meter_charts.chart import ChartScene
from meter_charts.render.primitives import primitive_to_dict

PAYLOAD_VERSION = 1
# Floats are rounded to 1/1000 px in the payload.
FLOAT_DIGITS = 3


def _json_safe(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, np.ndarray):
        return _json_safe(value.tolist())
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (bool, int, str)) or value is None:
        return value
    if isinstance(value, float):
        return round(value, FLOAT_DIGITS) if math.isfinite(value) else None
    return str(value)


def build_chart_payload(scene: ChartScene) -> dict[str, Any]:
    """Flatten a scene into a JSON-safe dict for an overlay or client renderer."""
    layout = scene.layout
    payload = {
        "version": PAYLOAD_VERSION,
        "kind": scene.kind,
        "layout": {
            "width": layout.width,
            "height": layout.height,
            "inner_width": layout.inner_width,
            "inner_height": layout.inner_height,
            "margins": {
                "top": layout.margins.top,
                "right": layout.margins.right,
                "bottom": layout.margins.bottom,
                "left": layout.margins.left,
            },
        },
        "time_buckets": list(scene.time_buckets),
        "series": [{"key": item.key, "label": item.label} for item in scene.series],
        "primitives": [primitive_to_dict(item) for item in scene.primitives],
        "legend": [primitive_to_dict(item) for item in scene.legend],
        "series_totals": [
            {"key": row.key, "label": row.label, "total": row.total}
            for row in scene.series_totals
        ],
        "time_totals": list(scene.time_totals),
        "color": {
            "domain": list(scene.color_domain),
            "range": list(scene.color_range),
        },
        "interaction": scene.interaction.to_dict(),
        "tooltip": scene.tooltip.to_dict() if scene.tooltip is not None else None,
        "is_empty": scene.is_empty,
    }
    return _json_safe(payload)
