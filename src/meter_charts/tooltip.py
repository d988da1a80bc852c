from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from meter_charts.features.labels import format_value

TOOLTIP_OFFSET = 10.0


@dataclass(slots=True, frozen=True)
class Point:
    x: float
    y: float


@dataclass(slots=True, frozen=True)
class AnchorRect:
    """Bounding rectangle of the rendering surface at event time."""

    left: float
    top: float
    width: float = 0.0
    height: float = 0.0


@dataclass(slots=True, frozen=True)
class TooltipContent:
    series_key: str
    series_label: str
    time_bucket: str
    value: float

    def lines(self) -> list[str]:
        return [self.series_label, f"Data points: {format_value(self.value)}", self.time_bucket]


@dataclass(slots=True, frozen=True)
class TooltipState:
    position: Point
    content: TooltipContent

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.position.x,
            "y": self.position.y,
            "series_key": self.content.series_key,
            "series_label": self.content.series_label,
            "time_bucket": self.content.time_bucket,
            "value": self.content.value,
        }


def surface_position(pointer: Point, anchor: AnchorRect) -> Point:
    return Point(x=pointer.x - anchor.left, y=pointer.y - anchor.top)


def on_hover_enter(pointer: Point, anchor: AnchorRect, content: TooltipContent) -> TooltipState:
    return TooltipState(position=surface_position(pointer, anchor), content=content)


def on_hover_move(
    state: TooltipState | None,
    pointer: Point,
    anchor: AnchorRect,
) -> TooltipState | None:
    # Content stays as captured on enter; a move without an enter shows nothing.
    if state is None:
        return None
    return TooltipState(position=surface_position(pointer, anchor), content=state.content)


def on_hover_leave() -> None:
    return None
