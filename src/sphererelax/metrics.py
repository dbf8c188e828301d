"""Mesh quality metrics — edge-length spread and mean tile areas.

Empty groups (no edges, no tiles of a type) report ``0.0`` rather than
NaN so that metrics can always be logged and compared.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Sequence

import numpy as np

from .mesh import Mesh


@dataclass(frozen=True)
class RelaxationMetrics:
    edge_min: float = 0.0
    edge_max: float = 0.0
    edge_mean: float = 0.0
    edge_std_dev: float = 0.0
    pentagon_area_mean: float = 0.0
    hexagon_area_mean: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    def summary_lines(self) -> list[str]:
        return [
            f"Edge length min={self.edge_min:.6f} max={self.edge_max:.6f} "
            f"mean={self.edge_mean:.6f} std={self.edge_std_dev:.6f}",
            f"Pentagon area mean={self.pentagon_area_mean:.6f}, "
            f"Hex area mean={self.hexagon_area_mean:.6f}",
        ]


def edge_lengths(positions: np.ndarray, edge_array: np.ndarray) -> np.ndarray:
    """Euclidean length of every ``(a, b)`` row in *edge_array*."""
    if len(edge_array) == 0:
        return np.zeros(0, dtype=np.float64)
    delta = positions[edge_array[:, 1]] - positions[edge_array[:, 0]]
    return np.linalg.norm(delta, axis=1)


def polygon_area(points: np.ndarray) -> float:
    """Unsigned triangle-fan area of a polygon ring.

    Sums ``|(p_i - p_0) × (p_{i+1} - p_0)| / 2`` over the fan from the
    first vertex; exact for planar convex rings and a close approximation
    for relaxed spherical tiles.
    """
    if len(points) < 3:
        return 0.0
    origin = points[0]
    ab = points[1:-1] - origin
    ac = points[2:] - origin
    return float(np.sum(np.linalg.norm(np.cross(ab, ac), axis=1)) * 0.5)


def tile_areas(mesh: Mesh) -> Dict[int, float]:
    return {
        tile.id: polygon_area(mesh.positions[list(tile.vertex_ids)])
        for tile in mesh.tiles
    }


def collect_metrics(mesh: Mesh) -> RelaxationMetrics:
    """Edge statistics (population std-dev) and mean tile areas by type."""
    lengths = edge_lengths(mesh.positions, mesh.edge_array)
    if len(lengths):
        edge_min = float(lengths.min())
        edge_max = float(lengths.max())
        edge_mean = float(lengths.mean())
        edge_std = float(np.sqrt(np.mean((lengths - edge_mean) ** 2)))
    else:
        edge_min = edge_max = edge_mean = edge_std = 0.0

    pent_areas: list[float] = []
    hex_areas: list[float] = []
    for tile in mesh.tiles:
        area = polygon_area(mesh.positions[list(tile.vertex_ids)])
        (pent_areas if tile.is_pentagon else hex_areas).append(area)

    return RelaxationMetrics(
        edge_min=edge_min,
        edge_max=edge_max,
        edge_mean=edge_mean,
        edge_std_dev=edge_std,
        pentagon_area_mean=_mean(pent_areas),
        hexagon_area_mean=_mean(hex_areas),
    )


def _mean(values: Sequence[float]) -> float:
    return float(sum(values) / len(values)) if values else 0.0
