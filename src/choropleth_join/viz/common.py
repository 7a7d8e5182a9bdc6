from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

MAP_FIGSIZE = (8.6, 5.2)
BOUNDARY_COLOR = "#1b2452"


def save_figure(fig: Figure, path: Path, dpi: int = 150) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=dpi)
    plt.close(fig)
    return path


def strip_map_axes(ax: plt.Axes) -> None:
    ax.set_axis_off()
    ax.set_aspect("equal")
