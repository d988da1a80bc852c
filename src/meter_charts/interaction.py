from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Literal

LOGGER = logging.getLogger(__name__)

InitialHighlight = Literal["none", "first"]


class Emphasis(str, Enum):
    FULL = "full"
    DIMMED = "dimmed"
    NORMAL = "normal"


@dataclass(slots=True, frozen=True)
class InteractionState:
    """Hover focus and sticky legend highlight for one chart instance.

    ``hovered`` follows the pointer; ``highlighted`` persists until the same
    legend entry is clicked again. Transitions return a new state.
    """

    hovered: str | None = None
    highlighted: str | None = None

    @classmethod
    def initial(cls, policy: InitialHighlight, series_keys: Iterable[str]) -> InteractionState:
        if policy == "first":
            first = next(iter(series_keys), None)
            return cls(highlighted=first)
        return cls()

    def pointer_enter(self, series_key: str) -> InteractionState:
        return InteractionState(hovered=series_key, highlighted=self.highlighted)

    def pointer_leave(self) -> InteractionState:
        return InteractionState(hovered=None, highlighted=self.highlighted)

    def toggle_highlight(self, series_key: str) -> InteractionState:
        if self.highlighted == series_key:
            return InteractionState(hovered=self.hovered, highlighted=None)
        return InteractionState(hovered=self.hovered, highlighted=series_key)

    def reconcile(self, selected_keys: Iterable[str]) -> InteractionState:
        """Reset both fields when either one names a series that is no longer selected."""
        keys = set(selected_keys)
        stale = [
            key for key in (self.hovered, self.highlighted) if key is not None and key not in keys
        ]
        if not stale:
            return self
        LOGGER.debug("Resetting interaction state; stale series keys: %s", stale)
        return InteractionState()

    def emphasis(self, series_key: str) -> Emphasis:
        if self.highlighted is not None:
            return Emphasis.FULL if self.highlighted == series_key else Emphasis.DIMMED
        if self.hovered is not None:
            return Emphasis.FULL if self.hovered == series_key else Emphasis.DIMMED
        return Emphasis.NORMAL

    def to_dict(self) -> dict[str, Any]:
        return {"hovered": self.hovered, "highlighted": self.highlighted}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InteractionState:
        return cls(hovered=data.get("hovered"), highlighted=data.get("highlighted"))


@dataclass(slots=True, frozen=True)
class EmphasisStyle:
    opacity: float
    stroke: str | None
    stroke_width: float
    fill_override: str | None = None


def emphasis_style(
    emphasis: Emphasis,
    *,
    dimmed_opacity: float = 0.3,
    base_stroke: str | None = None,
    focus_stroke: str = "#1f2937",
    focus_fill: str | None = None,
) -> EmphasisStyle:
    if emphasis is Emphasis.FULL:
        return EmphasisStyle(
            opacity=1.0,
            stroke=focus_stroke,
            stroke_width=2.0,
            fill_override=focus_fill,
        )
    if emphasis is Emphasis.DIMMED:
        return EmphasisStyle(opacity=dimmed_opacity, stroke=base_stroke, stroke_width=1.0)
    return EmphasisStyle(opacity=1.0, stroke=base_stroke, stroke_width=1.0)
