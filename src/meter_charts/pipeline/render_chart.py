from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from time import perf_counter
from typing import Sequence

import pandas as pd

from meter_charts.chart import ChartScene, build_chart
from meter_charts.config import AppConfig
from meter_charts.contracts import ChartKind, FilterState, Series
from meter_charts.features.aggregates import build_time_totals_frame, build_totals_frame
from meter_charts.features.matrix import MatrixBundle
from meter_charts.io.read import MatrixInput, load_matrix
from meter_charts.io.write import write_payload, write_svg, write_table
from meter_charts.paths import OutputPaths, build_output_paths
from meter_charts.render.payload import build_chart_payload
from meter_charts.render.svg import render_svg
from meter_charts.viz.figures import draw_scene

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderOutputs:
    scene: ChartScene
    svg_path: Path | None = None
    payload_path: Path | None = None
    figure_path: Path | None = None
    totals_path: Path | None = None
    time_totals_path: Path | None = None


def build_filter_state(
    matrix_input: MatrixInput,
    start: int | None = None,
    end: int | None = None,
    series_keys: Sequence[str] | None = None,
) -> FilterState:
    last = max(0, len(matrix_input.time_buckets) - 1)
    by_key = {series.key: series for series in matrix_input.series}
    if series_keys:
        selected = tuple(by_key.get(key, Series(key=key)) for key in series_keys)
    else:
        selected = matrix_input.series
    return FilterState(
        range=(0 if start is None else start, last if end is None else end),
        selected_series=selected,
    )


def _write_totals(
    bundle: MatrixBundle,
    paths: OutputPaths,
    kind: ChartKind,
    fmt: str,
) -> tuple[Path, Path]:
    totals: pd.DataFrame = build_totals_frame(bundle.filtered, bundle.series)
    time_totals = build_time_totals_frame(bundle.transposed, bundle.time_buckets)
    return (
        write_table(totals, paths.totals_file(kind, "series", fmt), fmt=fmt),
        write_table(time_totals, paths.totals_file(kind, "time", fmt), fmt=fmt),
    )


def render_chart(
    matrix_input: MatrixInput,
    kind: ChartKind,
    out_dir: Path,
    config: AppConfig,
    filter_state: FilterState,
) -> RenderOutputs:
    started = perf_counter()
    paths = build_output_paths(out_dir)
    chart = build_chart(kind, config)
    bundle = chart.update(
        matrix_input.frame,
        matrix_input.time_buckets,
        matrix_input.series,
        filter_state,
    )
    scene = chart.scene()
    scene_ms = round((perf_counter() - started) * 1000.0, 3)

    svg_path: Path | None = None
    if config.outputs.write_svg:
        svg_path = write_svg(render_svg(scene), paths.svg_file(kind))

    payload_path: Path | None = None
    if config.outputs.write_payload:
        payload = build_chart_payload(scene)
        payload["runtime"] = {"scene_build_ms": scene_ms}
        payload_path = write_payload(payload, paths.payload_file(kind))

    figure_path: Path | None = None
    if config.outputs.write_figure:
        figure_file = paths.figure_file(kind, config.outputs.figures_format)
        try:
            figure_path = draw_scene(scene, figure_file)
        except Exception:  # pragma: no cover
            LOGGER.exception("Failed rendering static %s figure", kind)

    totals_path, time_totals_path = _write_totals(
        bundle, paths, kind, config.outputs.tables_format
    )
    LOGGER.info(
        "Rendered %s: %d primitives, %d series x %d buckets in %.1f ms",
        kind,
        len(scene.primitives),
        len(scene.series),
        len(scene.time_buckets),
        (perf_counter() - started) * 1000.0,
    )
    return RenderOutputs(
        scene=scene,
        svg_path=svg_path,
        payload_path=payload_path,
        figure_path=figure_path,
        totals_path=totals_path,
        time_totals_path=time_totals_path,
    )


def run_render(
    csv_path: Path,
    out_dir: Path,
    config: AppConfig,
    kind: ChartKind,
    *,
    start: int | None = None,
    end: int | None = None,
    series_keys: Sequence[str] | None = None,
) -> RenderOutputs:
    matrix_input = load_matrix(
        csv_path,
        time_column=config.input.time_column,
        series_labels=config.input.series_labels,
    )
    filter_state = build_filter_state(matrix_input, start=start, end=end, series_keys=series_keys)
    return render_chart(
        matrix_input=matrix_input,
        kind=kind,
        out_dir=out_dir,
        config=config,
        filter_state=filter_state,
    )
