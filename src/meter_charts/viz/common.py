from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

PIXELS_PER_INCH = 100.0


def new_canvas(width: float, height: float) -> tuple[Figure, plt.Axes]:
    """Figure whose single axes uses surface pixels with the origin at the top left."""
    fig = plt.figure(figsize=(width / PIXELS_PER_INCH, height / PIXELS_PER_INCH))
    ax = fig.add_axes((0.0, 0.0, 1.0, 1.0))
    ax.set_xlim(0.0, width)
    ax.set_ylim(height, 0.0)
    ax.axis("off")
    return fig, ax


def save_figure(fig: Figure, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=PIXELS_PER_INCH)
    plt.close(fig)
    return path
