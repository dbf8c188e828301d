"""Mesh builders — explicit tile documents and triangle-fan meshes.

Two independent routes produce a :class:`~mesh.Mesh`:

* :func:`mesh_from_document` resolves an explicit vertex/tile document.
* :func:`mesh_from_fans` infers tiles from a flat triangle list in which
  each tile is encoded as a run of consecutive triangles sharing their
  first index (the fan centre).  Coincident input vertices are merged by
  fixed-precision quantisation before edges are derived.

Neither builder checks manifoldness beyond id/index consistency.  A fan
whose ring does not close is kept with the truncated ring and reported
(or rejected when ``strict=True``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .document import MeshDocument, TileRecord, VertexRecord
from .mesh import Mesh
from .models import Tile, TileType

logger = logging.getLogger(__name__)

# Decimal places used to decide that two input positions are the same vertex.
# Larger values merge less aggressively.
MERGE_DECIMALS = 6


# ═══════════════════════════════════════════════════════════════════
# Explicit document
# ═══════════════════════════════════════════════════════════════════

def mesh_from_document(document: MeshDocument) -> Mesh:
    """Build a mesh from an explicit vertex/tile document.

    Raises :class:`ValueError` if the document has no vertices or tiles,
    repeats a vertex id, or a tile references an unknown vertex id.
    """
    if not document.vertices:
        raise ValueError("Input has no vertices.")
    if not document.tiles:
        raise ValueError("Input has no tiles.")

    id_to_index: Dict[int, int] = {}
    for i, vertex in enumerate(document.vertices):
        if vertex.id in id_to_index:
            raise ValueError(f"Duplicate vertex id: {vertex.id}")
        id_to_index[vertex.id] = i

    positions = np.array([(v.x, v.y, v.z) for v in document.vertices], dtype=np.float64)
    pinned = [v.fixed for v in document.vertices]

    tiles: List[Tile] = []
    edges: List[Tuple[int, int]] = []
    for record in document.tiles:
        ring: List[int] = []
        for vertex_id in record.vertex_ids:
            idx = id_to_index.get(vertex_id)
            if idx is None:
                raise ValueError(f"Unknown vertex id in tile {record.id}: {vertex_id}")
            ring.append(idx)
        tile = Tile(record.id, TileType.parse(record.type), tuple(ring))
        tiles.append(tile)
        edges.extend(tile.ring_edges())

    return Mesh(
        positions, pinned, edges, tiles,
        vertex_ids=[v.id for v in document.vertices],
    )


def mesh_to_document(mesh: Mesh, radius: Optional[float] = None) -> MeshDocument:
    """Write the mesh's current positions back into document form.

    Vertices keep their external ids; tile rings are translated back to
    those ids.
    """
    vertices = [
        VertexRecord(
            id=vid,
            x=float(p[0]),
            y=float(p[1]),
            z=float(p[2]),
            fixed=bool(fixed),
        )
        for vid, p, fixed in zip(mesh.vertex_ids, mesh.positions, mesh.pinned)
    ]
    tiles = [
        TileRecord(
            id=tile.id,
            type=tile.tile_type.value,
            vertex_ids=[mesh.vertex_ids[idx] for idx in tile.vertex_ids],
        )
        for tile in mesh.tiles
    ]
    return MeshDocument(radius=radius, vertices=vertices, tiles=tiles)


# ═══════════════════════════════════════════════════════════════════
# Triangle fans
# ═══════════════════════════════════════════════════════════════════

@dataclass
class Fan:
    """A run of consecutive triangles sharing their first index."""

    center: int
    pairs: List[Tuple[int, int]]
    triangle_indices: List[int]


@dataclass
class FanMeshBuild:
    mesh: Mesh
    original_to_unique: np.ndarray
    truncated_tiles: List[int] = field(default_factory=list)


def quantize_position(point: Sequence[float], decimals: int = MERGE_DECIMALS) -> Tuple[int, int, int]:
    """Integer key for *point* rounded to *decimals* places."""
    scale = 10.0 ** decimals
    x, y, z = point
    return (int(round(x * scale)), int(round(y * scale)), int(round(z * scale)))


def merge_positions(
    positions: np.ndarray,
    decimals: int = MERGE_DECIMALS,
) -> Tuple[np.ndarray, np.ndarray]:
    """Collapse near-coincident positions.

    Returns ``(unique_positions, original_to_unique)``.  Unique vertices
    keep the first-seen position and first-seen order.
    """
    key_to_unique: Dict[Tuple[int, int, int], int] = {}
    first_seen: List[int] = []
    mapping = np.empty(len(positions), dtype=np.intp)
    for i, point in enumerate(positions):
        key = quantize_position(point, decimals)
        idx = key_to_unique.get(key)
        if idx is None:
            idx = len(first_seen)
            key_to_unique[key] = idx
            first_seen.append(i)
        mapping[i] = idx
    return positions[first_seen].copy(), mapping


def group_fans(triangles: Sequence[int]) -> List[Fan]:
    """Split a flat triangle index list into consecutive fans."""
    fans: List[Fan] = []
    count = len(triangles) // 3
    t = 0
    while t < count:
        center = int(triangles[3 * t])
        fan = Fan(center=center, pairs=[], triangle_indices=[])
        while t < count and int(triangles[3 * t]) == center:
            fan.pairs.append((int(triangles[3 * t + 1]), int(triangles[3 * t + 2])))
            fan.triangle_indices.append(t)
            t += 1
        fans.append(fan)
    return fans


def ring_from_fan_pairs(pairs: Sequence[Tuple[int, int]]) -> Tuple[List[int], bool]:
    """Reconstruct a fan's outer ring.

    A triangle ``(center, a, b)`` contributes the directed step ``b → a``.
    The walk starts at the first pair's ``b`` and takes at most
    ``len(pairs)`` steps.  Returns ``(ring, closed)``; *closed* is False
    when the chain breaks or revisits a vertex before returning to the
    start, in which case *ring* holds the vertices walked so far.
    """
    if not pairs:
        return [], False

    next_by_current: Dict[int, int] = {}
    for a, b in pairs:
        next_by_current[b] = a

    start = pairs[0][1]
    ring = [start]
    current = start
    for _ in range(len(pairs)):
        nxt = next_by_current.get(current)
        if nxt is None:
            return ring, False
        if nxt == start:
            return ring, True
        if nxt in ring:
            return ring, False
        ring.append(nxt)
        current = nxt
    return ring, False


def mesh_from_fans(
    positions,
    triangles: Sequence[int],
    decimals: int = MERGE_DECIMALS,
    strict: bool = False,
) -> FanMeshBuild:
    """Build a mesh from triangle fans.

    *positions* is any ``(N, 3)`` array-like; *triangles* a flat index
    list whose length is a multiple of three.  Every triangle side becomes
    an edge (after merging coincident vertices); every fan becomes a tile
    whose ring is walked over the merged indices,
    a pentagon when its ring has five vertices and a hexagon otherwise.

    With ``strict=True`` a fan whose ring does not close raises
    :class:`ValueError`; otherwise the truncated ring is kept and its tile
    id is listed in :attr:`FanMeshBuild.truncated_tiles`.
    """
    points = np.array(positions, dtype=np.float64).reshape(-1, 3)
    if len(points) == 0:
        raise ValueError("Input has no vertices.")
    if len(triangles) % 3 != 0:
        raise ValueError(f"Triangle index count {len(triangles)} is not a multiple of 3")
    n_original = len(points)
    for idx in triangles:
        if not 0 <= int(idx) < n_original:
            raise ValueError(f"Triangle index {idx} outside [0, {n_original})")

    unique, original_to_unique = merge_positions(points, decimals)

    edges: List[Tuple[int, int]] = []
    for t in range(len(triangles) // 3):
        a, b, c = (int(original_to_unique[int(i)]) for i in triangles[3 * t: 3 * t + 3])
        edges.extend(((a, b), (b, c), (c, a)))

    tiles: List[Tile] = []
    truncated: List[int] = []
    for tile_id, fan in enumerate(group_fans(triangles)):
        pairs = [
            (int(original_to_unique[a]), int(original_to_unique[b])) for a, b in fan.pairs
        ]
        ring, closed = ring_from_fan_pairs(pairs)
        if not closed:
            if strict:
                raise ValueError(
                    f"Fan around vertex {fan.center} (tile {tile_id}) does not close"
                )
            truncated.append(tile_id)
        tiles.append(Tile(tile_id, TileType.for_sides(len(ring)), tuple(ring)))

    if truncated:
        logger.warning(
            "%d of %d fans did not close; kept truncated rings for tiles %s",
            len(truncated), len(tiles), truncated[:10],
        )

    mesh = Mesh(unique, None, edges, tiles)
    return FanMeshBuild(mesh=mesh, original_to_unique=original_to_unique, truncated_tiles=truncated)
