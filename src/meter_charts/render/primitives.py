from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal, Union

from meter_charts.interaction import Emphasis

TextAnchor = Literal["start", "middle", "end"]
TextRole = Literal[
    "x_tick",
    "y_tick",
    "value_tick",
    "column_total",
    "cell_value",
    "bar_value",
]


@dataclass(slots=True, frozen=True)
class Margins:
    top: float
    right: float
    bottom: float
    left: float


@dataclass(slots=True, frozen=True)
class Layout:
    width: float
    height: float
    margins: Margins

    @property
    def inner_width(self) -> float:
        return max(0.0, self.width - self.margins.left - self.margins.right)

    @property
    def inner_height(self) -> float:
        return max(0.0, self.height - self.margins.top - self.margins.bottom)


@dataclass(slots=True, frozen=True)
class RectPrimitive:
    x: float
    y: float
    width: float
    height: float
    fill: str
    series_key: str
    time_index: int
    value: float
    role: Literal["cell", "bar"]
    emphasis: Emphasis = Emphasis.NORMAL
    opacity: float = 1.0
    stroke: str | None = None
    stroke_width: float = 1.0
    rx: float = 0.0
    magnitude_color: str | None = None
    kind: Literal["rect"] = "rect"


@dataclass(slots=True, frozen=True)
class TextPrimitive:
    x: float
    y: float
    text: str
    role: TextRole
    anchor: TextAnchor = "middle"
    baseline: Literal["auto", "middle", "hanging"] = "auto"
    font_size: float = 12.0
    fill: str = "#374151"
    font_weight: Literal["normal", "bold"] = "normal"
    kind: Literal["text"] = "text"


@dataclass(slots=True, frozen=True)
class LinePrimitive:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str = "gray"
    stroke_width: float = 0.5
    role: Literal["gridline"] = "gridline"
    kind: Literal["line"] = "line"


@dataclass(slots=True, frozen=True)
class LegendSwatch:
    series_key: str
    label: str
    color: str
    index: int
    active: bool = False
    emphasis: Emphasis = Emphasis.NORMAL
    kind: Literal["legend"] = "legend"


Primitive = Union[RectPrimitive, TextPrimitive, LinePrimitive]


def primitive_to_dict(primitive: Primitive | LegendSwatch) -> dict[str, Any]:
    data = asdict(primitive)
    if "emphasis" in data:
        data["emphasis"] = primitive.emphasis.value
    return data
