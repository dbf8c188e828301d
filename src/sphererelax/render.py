"""3-D PNG view of a tile mesh (matplotlib ``Poly3DCollection``, no OpenGL)."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from .mesh import Mesh

PENTAGON_COLOUR = (0.85, 0.33, 0.25)
HEXAGON_COLOUR = (0.35, 0.62, 0.85)


def render_mesh_3d(
    mesh: Mesh,
    out_path: Union[str, Path],
    *,
    title: Optional[str] = None,
    figsize: Tuple[float, float] = (8, 8),
    dpi: int = 120,
    elev: float = 20.0,
    azim: float = -60.0,
) -> Path:
    """Render every tile of *mesh*, pentagons and hexagons in distinct colours.

    Returns the output file path.
    """
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    from mpl_toolkits.mplot3d.art3d import Poly3DCollection

    fig = plt.figure(figsize=figsize, dpi=dpi)
    ax = fig.add_subplot(111, projection="3d")

    polygons = []
    colours = []
    for tile in mesh.tiles:
        if tile.vertex_count() < 3:
            continue
        polygons.append(mesh.positions[list(tile.vertex_ids)])
        colours.append(PENTAGON_COLOUR if tile.is_pentagon else HEXAGON_COLOUR)

    collection = Poly3DCollection(
        polygons,
        facecolors=colours,
        edgecolors=[(0.15, 0.15, 0.15, 0.5)] * len(polygons),
        linewidths=0.3,
    )
    ax.add_collection3d(collection)

    extent = float(np.abs(mesh.positions).max()) * 1.2 if mesh.vertex_count else 1.0
    ax.set_xlim(-extent, extent)
    ax.set_ylim(-extent, extent)
    ax.set_zlim(-extent, extent)
    ax.set_box_aspect([1, 1, 1])
    ax.view_init(elev=elev, azim=azim)
    ax.set_axis_off()
    ax.set_title(
        title or f"{len(mesh.tiles)} tiles ({len(mesh.pentagon_tiles())} pentagons)",
        fontsize=12,
    )

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, bbox_inches="tight")
    plt.close(fig)
    return out
