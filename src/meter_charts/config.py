from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import matplotlib
import yaml
from matplotlib.colors import is_color_like
from pydantic import BaseModel, ConfigDict, Field, field_validator

InitialHighlight = Literal["none", "first"]


def _known_colormap(name: str) -> str:
    if name not in matplotlib.colormaps:
        raise ValueError(f"Unknown matplotlib colormap: {name}")
    return name


def _color(value: str) -> str:
    if not is_color_like(value):
        raise ValueError(f"Invalid color: {value!r}")
    return value


class MarginsConfig(BaseModel):
    top: float = Field(default=50.0, ge=0.0)
    right: float = Field(default=20.0, ge=0.0)
    bottom: float = Field(default=50.0, ge=0.0)
    left: float = Field(default=100.0, ge=0.0)


class HeatmapConfig(BaseModel):
    width: float = Field(default=800.0, gt=0.0)
    height: float = Field(default=400.0, gt=0.0)
    margins: MarginsConfig = Field(default_factory=MarginsConfig)
    padding: float = Field(default=0.05, ge=0.0, lt=1.0)
    colormap: str = "Blues"
    # Cells are filled with the series identity color unless this is set.
    fill_by_magnitude: bool = False
    show_cell_values: bool = True
    show_column_totals: bool = True
    dimmed_opacity: float = Field(default=0.3, ge=0.0, le=1.0)
    initial_highlight: InitialHighlight = "none"

    @field_validator("colormap")
    @classmethod
    def _known_colormap_name(cls, value: str) -> str:
        return _known_colormap(value)


class GroupedBarConfig(BaseModel):
    width: float = Field(default=800.0, gt=0.0)
    height: float = Field(default=900.0, gt=0.0)
    margins: MarginsConfig = Field(
        default_factory=lambda: MarginsConfig(top=50.0, right=20.0, bottom=180.0, left=50.0)
    )
    padding: float = Field(default=0.1, ge=0.0, lt=1.0)
    value_ticks: int = Field(default=10, ge=1)
    dimmed_opacity: float = Field(default=0.3, ge=0.0, le=1.0)
    highlight_color: str = "black"
    show_highlight_values: bool = True
    initial_highlight: InitialHighlight = "first"

    @field_validator("highlight_color")
    @classmethod
    def _valid_highlight_color(cls, value: str) -> str:
        return _color(value)


class PaletteConfig(BaseModel):
    name: str = "tab10"
    colors: list[str] | None = None

    @field_validator("name")
    @classmethod
    def _known_palette_name(cls, value: str) -> str:
        return _known_colormap(value)

    @field_validator("colors")
    @classmethod
    def _non_empty_colors(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        if not value:
            raise ValueError("palette.colors must contain at least one color when set")
        return [_color(color) for color in value]


class InputConfig(BaseModel):
    time_column: str = "month"
    format_time_labels: bool = False
    series_labels: dict[str, str] = Field(default_factory=dict)


class OutputsConfig(BaseModel):
    figures_format: str = "png"
    tables_format: Literal["csv", "parquet"] = "csv"
    write_svg: bool = True
    write_payload: bool = True
    write_figure: bool = True


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    heatmap: HeatmapConfig = Field(default_factory=HeatmapConfig)
    grouped_bar: GroupedBarConfig = Field(default_factory=GroupedBarConfig)
    palette: PaletteConfig = Field(default_factory=PaletteConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")
CONFIG_ENV_VAR = "METER_CHARTS_CONFIG"


def resolve_config_path(path: Path | None) -> Path | None:
    if path is not None:
        return path
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


def load_config(path: Path | None) -> AppConfig:
    if path is None:
        return AppConfig()
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return AppConfig.model_validate(data)
