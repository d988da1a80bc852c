from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from meter_charts.cli import app


def _write_inputs(tmp_path: Path, config_text: str = "{}\n") -> tuple[Path, Path]:
    csv_path = tmp_path / "meters.csv"
    csv_path.write_text(
        "month,A,B\n2024-01,10,20\n2024-02,30,40\n2024-03,5,5\n",
        encoding="utf-8",
    )
    config_path = tmp_path / "config.yaml"
    config_path.write_text(config_text, encoding="utf-8")
    return csv_path, config_path


def test_cli_help() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    assert "render" in result.stdout
    assert "summary" in result.stdout


def test_render_command_writes_heatmap_outputs(tmp_path: Path) -> None:
    csv_path, config_path = _write_inputs(tmp_path)
    out_dir = tmp_path / "out"

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "render",
            "--csv",
            str(csv_path),
            "--config",
            str(config_path),
            "--out",
            str(out_dir),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Rendered heatmap: 20 primitives" in result.stdout
    assert (out_dir / "svg" / "heatmap.svg").exists()
    assert (out_dir / "payloads" / "heatmap.json").exists()
    assert (out_dir / "figures" / "heatmap.png").exists()
    assert (out_dir / "summary" / "heatmap_series_totals.csv").exists()


def test_render_command_grouped_bar_with_window_and_series(tmp_path: Path) -> None:
    csv_path, config_path = _write_inputs(
        tmp_path,
        "outputs:\n  write_figure: false\n",
    )
    out_dir = tmp_path / "out"

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "render",
            "--csv",
            str(csv_path),
            "--config",
            str(config_path),
            "--out",
            str(out_dir),
            "--chart",
            "groupedbar",
            "--start",
            "1",
            "--end",
            "2",
            "--series",
            "B",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "- figure:" not in result.stdout
    payload = json.loads((out_dir / "payloads" / "groupedbar.json").read_text(encoding="utf-8"))
    assert payload["time_buckets"] == ["2024-02", "2024-03"]
    assert [item["key"] for item in payload["series"]] == ["B"]
    assert payload["interaction"]["highlighted"] == "B"


def test_render_command_rejects_unknown_series(tmp_path: Path) -> None:
    csv_path, config_path = _write_inputs(tmp_path)
    out_dir = tmp_path / "out"

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "render",
            "--csv",
            str(csv_path),
            "--config",
            str(config_path),
            "--out",
            str(out_dir),
            "--series",
            "Z",
        ],
    )

    assert result.exit_code == 2
    assert not (out_dir / "svg" / "heatmap.svg").exists()


def test_render_command_rejects_missing_time_column(tmp_path: Path) -> None:
    csv_path, config_path = _write_inputs(tmp_path, "input:\n  time_column: period\n")

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["render", "--csv", str(csv_path), "--config", str(config_path), "--out", str(tmp_path)],
    )

    assert result.exit_code == 2


def test_summary_command_prints_totals(tmp_path: Path) -> None:
    csv_path, config_path = _write_inputs(tmp_path)

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["summary", "--csv", str(csv_path), "--config", str(config_path)],
    )

    assert result.exit_code == 0, result.output
    assert "Series totals" in result.stdout
    assert "- A: 45" in result.stdout
    assert "- B: 65" in result.stdout
    assert "Time totals" in result.stdout
    assert "- 2024-01: 30" in result.stdout
    assert "- 2024-03: 10" in result.stdout


def test_summary_command_respects_range(tmp_path: Path) -> None:
    csv_path, config_path = _write_inputs(tmp_path)

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "summary",
            "--csv",
            str(csv_path),
            "--config",
            str(config_path),
            "--start",
            "0",
            "--end",
            "0",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "- A: 10" in result.stdout
    assert "- 2024-02" not in result.stdout


def test_render_command_rejects_invalid_config_color(tmp_path: Path) -> None:
    csv_path, config_path = _write_inputs(tmp_path, "palette:\n  colors: ['notacolor']\n")
    out_dir = tmp_path / "out"

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["render", "--csv", str(csv_path), "--config", str(config_path), "--out", str(out_dir)],
    )

    assert result.exit_code == 2
    assert not (out_dir / "svg" / "heatmap.svg").exists()
