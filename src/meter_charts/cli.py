from __future__ import annotations

from enum import Enum
from pathlib import Path

import typer
from pydantic import ValidationError

from meter_charts.config import AppConfig, load_config, resolve_config_path
from meter_charts.features.aggregates import aggregate_by_series, aggregate_by_time
from meter_charts.features.labels import format_value
from meter_charts.features.matrix import transform
from meter_charts.io.read import MatrixInput, load_matrix
from meter_charts.logging import configure_logging
from meter_charts.pipeline.render_chart import build_filter_state, render_chart

app = typer.Typer(no_args_is_help=True, add_completion=False)


class ChartChoice(str, Enum):
    heatmap = "heatmap"
    groupedbar = "groupedbar"


def _load_app_config(config_path: Path | None) -> AppConfig:
    try:
        return load_config(resolve_config_path(config_path))
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _load_input(csv: Path, cfg: AppConfig) -> MatrixInput:
    try:
        return load_matrix(
            csv,
            time_column=cfg.input.time_column,
            series_labels=cfg.input.series_labels,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--csv") from exc


def _validate_series(series: list[str], matrix_input: MatrixInput) -> list[str]:
    known = {item.key for item in matrix_input.series}
    unknown = [key for key in series if key not in known]
    if unknown:
        raise typer.BadParameter(
            f"Unknown series key(s): {', '.join(unknown)}. "
            f"Available: {', '.join(sorted(known))}",
            param_hint="--series",
        )
    return series


@app.command()
def render(
    csv: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path | None = typer.Option(
        None,
        exists=True,
        readable=True,
        resolve_path=True,
        help="YAML config. Falls back to METER_CHARTS_CONFIG, then configs/default.yaml.",
    ),
    chart: ChartChoice = typer.Option(ChartChoice.heatmap),
    start: int | None = typer.Option(None, help="First time-bucket index (inclusive)."),
    end: int | None = typer.Option(None, help="Last time-bucket index (inclusive)."),
    series: list[str] = typer.Option(
        [],
        help="Series key to include; repeat to select several. Defaults to all.",
    ),
    log_level: str = typer.Option("INFO"),
) -> None:
    """Render a heat map or grouped bar chart to SVG, PNG and a JSON payload."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    matrix_input = _load_input(csv, cfg)
    series = _validate_series(series, matrix_input)
    filter_state = build_filter_state(matrix_input, start=start, end=end, series_keys=series)
    outputs = render_chart(
        matrix_input=matrix_input,
        kind=chart.value,
        out_dir=out,
        config=cfg,
        filter_state=filter_state,
    )
    typer.echo(f"Rendered {chart.value}: {len(outputs.scene.primitives)} primitives")
    for label, path in (
        ("svg", outputs.svg_path),
        ("payload", outputs.payload_path),
        ("figure", outputs.figure_path),
        ("series_totals", outputs.totals_path),
        ("time_totals", outputs.time_totals_path),
    ):
        if path is not None:
            typer.echo(f"- {label}: {path}")


@app.command()
def summary(
    csv: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    start: int | None = typer.Option(None),
    end: int | None = typer.Option(None),
    series: list[str] = typer.Option([]),
) -> None:
    """Print per-series and per-time-bucket totals for the selected window."""
    configure_logging("WARNING")
    cfg = _load_app_config(config)
    matrix_input = _load_input(csv, cfg)
    series = _validate_series(series, matrix_input)
    filter_state = build_filter_state(matrix_input, start=start, end=end, series_keys=series)
    bundle = transform(
        matrix_input.frame,
        matrix_input.time_buckets,
        matrix_input.series,
        filter_state,
    )
    typer.echo("Series totals")
    for row in aggregate_by_series(bundle.filtered, bundle.series):
        typer.echo(f"- {row.label}: {format_value(row.total)}")
    typer.echo("Time totals")
    for label, total in zip(bundle.time_buckets, aggregate_by_time(bundle.transposed)):
        typer.echo(f"- {label}: {format_value(total)}")


if __name__ == "__main__":
    app()
