"""Icosphere generation — recursive midpoint subdivision of an icosahedron.

The base solid uses the golden-ratio construction: twelve vertices at
``(±1, ±φ, 0)``, ``(0, ±1, ±φ)`` and ``(±φ, 0, ±1)``, all pushed out to
the requested radius.  Each refinement pass splits every triangle into
four, inserting one vertex per *edge* (not per triangle side), so shared
edges between neighbouring triangles produce a single midpoint:

    V(s) = 12 + 10 · (4^s − 1)
    F(s) = 20 · 4^s

Vertex order is significant downstream: the 12 icosahedron vertices come
first (indices 0…11), followed by midpoints in creation order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .mesh import Mesh
from .vec3 import Vec3, to_array

Face = Tuple[int, int, int]

# Standard icosahedron face table over the construction order above.
ICOSAHEDRON_FACES: Tuple[Face, ...] = (
    (0, 11, 5), (0, 5, 1), (0, 1, 7), (0, 7, 10), (0, 10, 11),
    (1, 5, 9), (5, 11, 4), (11, 10, 2), (10, 7, 6), (7, 1, 8),
    (3, 9, 4), (3, 4, 2), (3, 2, 6), (3, 6, 8), (3, 8, 9),
    (4, 9, 5), (2, 4, 11), (6, 2, 10), (8, 6, 7), (9, 8, 1),
)

ICOSAHEDRON_VERTEX_COUNT = 12


@dataclass
class IcosphereData:
    vertices: List[Vec3]
    faces: List[Face]

    def flat_triangles(self) -> List[int]:
        return [idx for face in self.faces for idx in face]


# ═══════════════════════════════════════════════════════════════════
# Counts
# ═══════════════════════════════════════════════════════════════════

def icosphere_vertex_count(subdivisions: int) -> int:
    if subdivisions < 0:
        raise ValueError("subdivisions must be >= 0")
    return 12 + 10 * (4 ** subdivisions - 1)


def icosphere_face_count(subdivisions: int) -> int:
    if subdivisions < 0:
        raise ValueError("subdivisions must be >= 0")
    return 20 * 4 ** subdivisions


# ═══════════════════════════════════════════════════════════════════
# Generation
# ═══════════════════════════════════════════════════════════════════

def icosahedron_vertices(radius: float = 1.0) -> List[Vec3]:
    """The 12 icosahedron vertices, centred on the origin, at *radius*."""
    phi = (1.0 + math.sqrt(5.0)) / 2.0
    raw = [
        Vec3(-1, phi, 0), Vec3(1, phi, 0), Vec3(-1, -phi, 0), Vec3(1, -phi, 0),
        Vec3(0, -1, phi), Vec3(0, 1, phi), Vec3(0, -1, -phi), Vec3(0, 1, -phi),
        Vec3(phi, 0, -1), Vec3(phi, 0, 1), Vec3(-phi, 0, -1), Vec3(-phi, 0, 1),
    ]
    return [v.normalize().scale(radius) for v in raw]


def generate_icosphere(subdivisions: int, radius: float = 1.0) -> IcosphereData:
    """Build an icosphere with *subdivisions* refinement passes.

    Raises :class:`ValueError` for a negative subdivision count or a
    non-positive radius.
    """
    if subdivisions < 0:
        raise ValueError("subdivisions must be >= 0")
    if radius <= 0:
        raise ValueError(f"radius must be > 0, got {radius}")

    vertices = icosahedron_vertices(radius)
    faces: List[Face] = list(ICOSAHEDRON_FACES)

    for _ in range(subdivisions):
        # Cache lives for one pass: edges of the previous level only.
        cache: Dict[Tuple[int, int], int] = {}
        refined: List[Face] = []
        for a, b, c in faces:
            ab = _midpoint(a, b, vertices, cache, radius)
            bc = _midpoint(b, c, vertices, cache, radius)
            ca = _midpoint(c, a, vertices, cache, radius)
            refined.append((a, ab, ca))
            refined.append((b, bc, ab))
            refined.append((c, ca, bc))
            refined.append((ab, bc, ca))
        faces = refined

    # Remove any accumulated drift.
    vertices = [v.normalize().scale(radius) for v in vertices]
    return IcosphereData(vertices=vertices, faces=faces)


def _midpoint(
    a: int,
    b: int,
    vertices: List[Vec3],
    cache: Dict[Tuple[int, int], int],
    radius: float,
) -> int:
    key = (a, b) if a < b else (b, a)
    cached = cache.get(key)
    if cached is not None:
        return cached
    mid = vertices[a].add(vertices[b]).scale(0.5).normalize().scale(radius)
    idx = len(vertices)
    vertices.append(mid)
    cache[key] = idx
    return idx


def icosphere_mesh(subdivisions: int, radius: float = 1.0) -> Mesh:
    """Icosphere as a relaxable :class:`Mesh`: triangle edges, no tiles."""
    data = generate_icosphere(subdivisions, radius)
    edges = [
        pair
        for a, b, c in data.faces
        for pair in ((a, b), (b, c), (c, a))
    ]
    return Mesh(to_array(data.vertices), None, edges, [])
