from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from meter_charts.contracts import ChartKind


@dataclass(frozen=True)
class OutputPaths:
    """Per-run output layout; one file of each artifact type per chart kind."""

    root: Path
    svg: Path
    figures: Path
    payloads: Path
    summary: Path

    def svg_file(self, kind: ChartKind) -> Path:
        return self.svg / f"{kind}.svg"

    def payload_file(self, kind: ChartKind) -> Path:
        return self.payloads / f"{kind}.json"

    def figure_file(self, kind: ChartKind, fmt: str) -> Path:
        suffix = str(fmt or "").strip().lstrip(".") or "png"
        return self.figures / f"{kind}.{suffix}"

    def totals_file(self, kind: ChartKind, axis: str, fmt: str) -> Path:
        return self.summary / f"{kind}_{axis}_totals.{fmt}"


def build_output_paths(out_dir: Path) -> OutputPaths:
    paths = OutputPaths(
        root=out_dir,
        svg=out_dir / "svg",
        figures=out_dir / "figures",
        payloads=out_dir / "payloads",
        summary=out_dir / "summary",
    )
    for directory in (paths.svg, paths.figures, paths.payloads, paths.summary):
        directory.mkdir(parents=True, exist_ok=True)
    return paths
