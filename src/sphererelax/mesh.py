from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import scipy.sparse as sp

from .models import Tile

EdgePair = Tuple[int, int]


class Mesh:
    """Fixed-topology spherical tile mesh.

    *positions* is an ``(N, 3)`` float array that the relaxation solver
    rewrites in place; everything else (pinned flags, edges, tiles and the
    neighbour lists derived from the edges) is fixed at construction.

    *vertex_ids* are the external ids used when writing the mesh back to a
    document; they default to ``0 … N-1``.
    """

    def __init__(
        self,
        positions,
        pinned: Optional[Sequence[bool]],
        edges: Iterable[EdgePair],
        tiles: Iterable[Tile],
        vertex_ids: Optional[Sequence[int]] = None,
    ) -> None:
        self.positions: np.ndarray = np.array(positions, dtype=np.float64).reshape(-1, 3)
        n = len(self.positions)

        if pinned is None:
            self.pinned = np.zeros(n, dtype=bool)
        else:
            self.pinned = np.array(pinned, dtype=bool)
        if len(self.pinned) != n:
            raise ValueError(f"pinned has {len(self.pinned)} flags for {n} vertices")

        self.vertex_ids: Tuple[int, ...] = (
            tuple(range(n)) if vertex_ids is None else tuple(vertex_ids)
        )
        if len(self.vertex_ids) != n:
            raise ValueError(f"vertex_ids has {len(self.vertex_ids)} entries for {n} vertices")

        seen: dict[EdgePair, None] = {}
        for a, b in edges:
            if a == b:
                continue
            for idx in (a, b):
                if not 0 <= idx < n:
                    raise ValueError(f"Edge ({a}, {b}) references vertex {idx} outside [0, {n})")
            seen.setdefault((min(a, b), max(a, b)), None)
        self.edges: Tuple[EdgePair, ...] = tuple(seen)

        self.tiles: Tuple[Tile, ...] = tuple(tiles)
        for tile in self.tiles:
            for idx in tile.vertex_ids:
                if not 0 <= idx < n:
                    raise ValueError(f"Tile {tile.id} references vertex {idx} outside [0, {n})")

        neighbor_sets: List[set[int]] = [set() for _ in range(n)]
        for a, b in self.edges:
            neighbor_sets[a].add(b)
            neighbor_sets[b].add(a)
        self.neighbors: Tuple[Tuple[int, ...], ...] = tuple(
            tuple(sorted(s)) for s in neighbor_sets
        )

        pent: set[int] = set()
        for tile in self.tiles:
            if tile.is_pentagon:
                pent.update(tile.vertex_ids)
        self.pentagon_vertices: frozenset[int] = frozenset(pent)

        self._adjacency: Optional[sp.csr_matrix] = None

    # ── Derived structure ───────────────────────────────────────────

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def edge_array(self) -> np.ndarray:
        """Edges as an ``(E, 2)`` integer array."""
        if not self.edges:
            return np.zeros((0, 2), dtype=np.intp)
        return np.array(self.edges, dtype=np.intp)

    @property
    def adjacency(self) -> sp.csr_matrix:
        """Symmetric 0/1 adjacency matrix in CSR form.

        Column indices within each row are sorted, so row *i* lists
        ``neighbors[i]`` in order.
        """
        if self._adjacency is None:
            n = self.vertex_count
            indptr = np.zeros(n + 1, dtype=np.intp)
            indptr[1:] = np.cumsum([len(nbrs) for nbrs in self.neighbors])
            indices = np.fromiter(
                (j for nbrs in self.neighbors for j in nbrs),
                dtype=np.intp,
                count=int(indptr[-1]),
            )
            data = np.ones(len(indices), dtype=np.float64)
            self._adjacency = sp.csr_matrix((data, indices, indptr), shape=(n, n))
        return self._adjacency

    def degrees(self) -> np.ndarray:
        return np.array([len(nbrs) for nbrs in self.neighbors], dtype=np.intp)

    def pentagon_tiles(self) -> List[Tile]:
        return [t for t in self.tiles if t.is_pentagon]

    def hexagon_tiles(self) -> List[Tile]:
        return [t for t in self.tiles if not t.is_pentagon]

    # ── Checks / copies ─────────────────────────────────────────────

    def validate(self, strict: bool = False) -> list[str]:
        errors: list[str] = []
        n = self.vertex_count

        if not np.all(np.isfinite(self.positions)):
            errors.append("Mesh has non-finite vertex positions")

        edge_set = set(self.edges)
        for i, nbrs in enumerate(self.neighbors):
            for j in nbrs:
                if i not in self.neighbors[j]:
                    errors.append(f"Neighbour lists of {i} and {j} are not symmetric")
                if (min(i, j), max(i, j)) not in edge_set:
                    errors.append(f"Neighbour pair ({i}, {j}) has no edge")

        for tile in self.tiles:
            if any(not 0 <= idx < n for idx in tile.vertex_ids):
                errors.append(f"Tile {tile.id} references a vertex outside [0, {n})")
            if strict:
                errors.extend(tile.validate_polygon())
            elif tile.vertex_count() < 3:
                errors.append(f"Tile {tile.id} has only {tile.vertex_count()} vertices")

        return errors

    def copy(self) -> "Mesh":
        return Mesh(
            self.positions.copy(),
            self.pinned.copy(),
            self.edges,
            self.tiles,
            self.vertex_ids,
        )

    def __repr__(self) -> str:
        return (
            f"Mesh(vertices={self.vertex_count}, edges={len(self.edges)}, "
            f"tiles={len(self.tiles)}, pentagons={len(self.pentagon_tiles())})"
        )
