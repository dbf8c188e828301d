"""Force-directed relaxation of a tile mesh on a sphere.

Every iteration moves each free vertex under three forces, all computed
from a read-only snapshot of the previous iteration's positions:

* **Laplacian** — pull towards the mean of the neighbours.
* **Spring** — per-edge pull/push towards the current mean edge length
  (recomputed every iteration, so the mesh regularises against its own
  average rather than a fixed absolute length).
* **Pentagon expansion** — outward push of pentagon ring vertices away
  from their tile centre, offsetting the tendency of pentagons to shrink.

The moved point is projected back onto the sphere.  Pinned vertices are
copied through untouched.

Work is split into contiguous, disjoint vertex chunks handled by a
thread pool scoped to the run; each chunk writes only its own slice of a
fresh buffer, and the buffer is committed after every chunk has finished.
Per-vertex results depend only on the snapshot, so the output is the same
for any thread count.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import numpy as np
import scipy.sparse as sp

from .mesh import Mesh
from .metrics import RelaxationMetrics, collect_metrics, edge_lengths
from .vec3 import EPS, normalize_rows, project_rows

logger = logging.getLogger(__name__)

MetricsCallback = Callable[[int, RelaxationMetrics], None]


def _default_threads() -> int:
    return os.cpu_count() or 1


# ═══════════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RelaxationConfig:
    """All tuneable parameters for one relaxation run.

    Attributes
    ----------
    iterations : int
        Number of relaxation steps (0 = only project onto the sphere).
    radius : float
        Target sphere radius.
    step : float
        Displacement scale applied to the summed forces.
    laplacian_weight : float
        Weight of the neighbour-mean pull.
    spring_weight : float
        Weight of the edge-length spring term.
    pentagon_expand_weight : float
        Length of the outward push given to pentagon ring vertices.
        Exactly 0 disables the term.
    threads : int
        Worker threads; defaults to the CPU count.
    log_every : int
        Log diagnostic metrics every N iterations (<= 0 disables).
    progress_every : int
        Log progress and ETA every N iterations (<= 0 disables).
    """

    iterations: int = 350
    radius: float = 1.0
    step: float = 0.28
    laplacian_weight: float = 0.42
    spring_weight: float = 0.45
    pentagon_expand_weight: float = 0.35
    threads: int = field(default_factory=_default_threads)
    log_every: int = 25
    progress_every: int = 10

    def __post_init__(self) -> None:
        if self.iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {self.iterations}")
        if not self.radius > 0:
            raise ValueError(f"radius must be > 0, got {self.radius}")
        if self.threads < 1:
            raise ValueError(f"threads must be >= 1, got {self.threads}")

    @classmethod
    def for_engine_mesh(cls, **overrides) -> "RelaxationConfig":
        """Preset tuned for engine-exported fan meshes (large radius)."""
        params = dict(
            radius=450.0,
            step=0.24,
            laplacian_weight=0.38,
            spring_weight=0.52,
            pentagon_expand_weight=0.45,
        )
        params.update(overrides)
        return cls(**params)


# ═══════════════════════════════════════════════════════════════════
# Solver
# ═══════════════════════════════════════════════════════════════════

def relax_mesh(
    mesh: Mesh,
    config: RelaxationConfig,
    *,
    on_metrics: Optional[MetricsCallback] = None,
) -> RelaxationMetrics:
    """Relax *mesh* in place and return metrics of the final state.

    *on_metrics* is called with ``(iteration, metrics)`` on the
    ``log_every`` cadence.
    """
    radius = config.radius
    mesh.positions[:] = project_rows(mesh.positions, radius)

    n = mesh.vertex_count
    edge_array = mesh.edge_array
    adjacency = mesh.adjacency
    pent_mask = np.zeros(n, dtype=bool)
    pent_mask[list(mesh.pentagon_vertices)] = True
    chunks = _chunk_bounds(n, config.threads)
    next_positions = np.empty_like(mesh.positions)
    started = time.perf_counter()

    with ThreadPoolExecutor(max_workers=config.threads, thread_name_prefix="relax") as pool:
        for iteration in range(1, config.iterations + 1):
            snapshot = mesh.positions
            target = _mean_edge_length(snapshot, edge_array)
            bias = pentagon_expansion_bias(mesh, config.pentagon_expand_weight)

            def work(bounds: Tuple[int, int]) -> None:
                lo, hi = bounds
                next_positions[lo:hi] = _relax_chunk(
                    adjacency, mesh.pinned, pent_mask, snapshot, bias, target, config, lo, hi,
                )

            # Barrier: map() returns only once every chunk has been written.
            for _ in pool.map(work, chunks):
                pass
            np.copyto(mesh.positions, next_positions)

            if config.log_every > 0 and iteration % config.log_every == 0:
                metrics = collect_metrics(mesh)
                logger.info(
                    "iter %d: edge std=%.6f pent mean=%.6f hex mean=%.6f",
                    iteration, metrics.edge_std_dev,
                    metrics.pentagon_area_mean, metrics.hexagon_area_mean,
                )
                if on_metrics is not None:
                    on_metrics(iteration, metrics)
            if config.progress_every > 0 and iteration % config.progress_every == 0:
                _log_progress(iteration, config.iterations, started)

    return collect_metrics(mesh)


def pentagon_expansion_bias(mesh: Mesh, weight: float) -> np.ndarray:
    """Per-vertex outward push for pentagon ring vertices.

    Each pentagon contributes ``weight · unit(p - centre)`` to every ring
    vertex, where *centre* is the mean of the ring.  All zeros when
    *weight* is exactly 0.
    """
    bias = np.zeros_like(mesh.positions)
    if weight == 0.0:
        return bias
    for tile in mesh.pentagon_tiles():
        ring = list(tile.vertex_ids)
        if not ring:
            continue
        points = mesh.positions[ring]
        radial = normalize_rows(points - points.mean(axis=0)) * weight
        np.add.at(bias, ring, radial)
    return bias


def _relax_chunk(
    adjacency: sp.csr_matrix,
    pinned_mask: np.ndarray,
    pent_mask: np.ndarray,
    snapshot: np.ndarray,
    bias: np.ndarray,
    target: float,
    config: RelaxationConfig,
    lo: int,
    hi: int,
) -> np.ndarray:
    """New positions for vertices ``lo … hi-1`` (reads *snapshot* only)."""
    current = snapshot[lo:hi]
    counts = np.diff(adjacency.indptr[lo:hi + 1])
    cols = adjacency.indices[adjacency.indptr[lo]:adjacency.indptr[hi]]
    rows = np.repeat(np.arange(hi - lo), counts)

    neighbor_sum = adjacency[lo:hi] @ snapshot
    safe_counts = np.maximum(counts, 1)[:, None]
    laplacian = (neighbor_sum / safe_counts - current) * config.laplacian_weight

    delta = snapshot[cols] - current[rows]
    dist = np.linalg.norm(delta, axis=1)
    active = dist > EPS
    coeff = np.zeros_like(dist)
    coeff[active] = (dist[active] - target) / dist[active]
    spring = np.zeros_like(current)
    np.add.at(spring, rows, delta * coeff[:, None])
    spring *= config.spring_weight / safe_counts

    pentagon = np.where(pent_mask[lo:hi, None], bias[lo:hi], 0.0)

    moved = current + (laplacian + spring + pentagon) * config.step
    out = project_rows(moved, config.radius)

    isolated = counts == 0
    if isolated.any():
        out[isolated] = project_rows(current[isolated], config.radius)
    pinned = pinned_mask[lo:hi]
    if pinned.any():
        out[pinned] = current[pinned]
    return out


def _mean_edge_length(positions: np.ndarray, edge_array: np.ndarray) -> float:
    lengths = edge_lengths(positions, edge_array)
    return float(lengths.mean()) if len(lengths) else 0.0


def _chunk_bounds(n: int, parts: int) -> List[Tuple[int, int]]:
    """Split ``range(n)`` into at most *parts* contiguous, non-empty ranges."""
    parts = max(1, min(parts, n))
    edges = np.linspace(0, n, parts + 1).astype(int)
    return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]


def _log_progress(iteration: int, total: int, started: float) -> None:
    progress = 1.0 if total == 0 else iteration / total
    elapsed = time.perf_counter() - started
    eta = 0.0 if progress <= 1e-9 else elapsed * (1.0 - progress) / progress
    logger.info(
        "progress: %d/%d (%.1f%%), elapsed=%.1fs, eta=%.1fs",
        iteration, total, progress * 100.0, elapsed, max(0.0, eta),
    )
