"""Full-sphere tile mesh generation — the "soccer-ball" dual of an icosphere.

Every icosphere vertex becomes the centre of one tile whose ring is made
of the centres of the icosphere triangles around it.  The tile is written
as a triangle fan ``(center, ring[i], ring[i+1])`` so the result can be fed
straight to :func:`~builders.mesh_from_fans` or exported as tile tables.

The 12 original icosahedron vertices have five incident triangles and
yield pentagons; every other vertex yields a hexagon:

    tiles      = V(s)                = 12 + 10 · (4^s − 1)
    pentagons  = 12
    vertices   = V(s) + F(s)         = V(s) + 20 · 4^s
    triangles  = 3 · F(s)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from .builders import FanMeshBuild, mesh_from_fans
from .icosphere import generate_icosphere
from .vec3 import EPS, Vec3, to_array


@dataclass
class FullSphereData:
    vertices: List[Vec3]
    triangles: List[int]
    normals: List[Vec3]
    uvs: List[Tuple[float, float]]
    tangents: List[Vec3]

    @property
    def triangle_count(self) -> int:
        return len(self.triangles) // 3


def generate_full_sphere(subdivisions: int, radius: float = 1.0) -> FullSphereData:
    """Build the tile-fan mesh for an icosphere of *subdivisions*."""
    base = generate_icosphere(subdivisions, radius)
    base_vertices = base.vertices
    faces = base.faces
    base_count = len(base_vertices)

    face_centers = [
        base_vertices[a].add(base_vertices[b]).add(base_vertices[c])
        .scale(1.0 / 3.0).normalize().scale(radius)
        for a, b, c in faces
    ]
    vertices = list(base_vertices) + face_centers

    faces_by_vertex: List[List[int]] = [[] for _ in range(base_count)]
    for fi, face in enumerate(faces):
        for vi in face:
            faces_by_vertex[vi].append(fi)

    triangles: List[int] = []
    for vi in range(base_count):
        adjacent = faces_by_vertex[vi]
        if len(adjacent) < 3:
            continue
        ordered = _sort_around(base_vertices[vi], face_centers, adjacent)
        ring = [base_count + fi for fi in ordered]
        for i in range(len(ring)):
            triangles.extend((vi, ring[i], ring[(i + 1) % len(ring)]))

    normals = [p.normalize() for p in vertices]
    uvs = [spherical_uv(n) for n in normals]
    tangents = [default_tangent(n) for n in normals]
    return FullSphereData(vertices, triangles, normals, uvs, tangents)


def full_sphere_mesh(subdivisions: int, radius: float = 1.0) -> FanMeshBuild:
    """Generate the full-sphere fans and build a relaxable mesh from them."""
    data = generate_full_sphere(subdivisions, radius)
    return mesh_from_fans(to_array(data.vertices), data.triangles)


# ═══════════════════════════════════════════════════════════════════
# Per-vertex attributes
# ═══════════════════════════════════════════════════════════════════

def spherical_uv(normal: Vec3) -> Tuple[float, float]:
    y = max(-1.0, min(1.0, normal.y))
    u = math.atan2(normal.z, normal.x) / (2.0 * math.pi) + 0.5
    v = 0.5 - math.asin(y) / math.pi
    return (u, v)


def default_tangent(normal: Vec3) -> Vec3:
    t = Vec3(0.0, 1.0, 0.0).cross(normal)
    if t.length() < EPS:
        t = Vec3(1.0, 0.0, 0.0).cross(normal)
    return t.normalize()


# ═══════════════════════════════════════════════════════════════════
# Angular ordering
# ═══════════════════════════════════════════════════════════════════

def _sort_around(vertex: Vec3, centers: List[Vec3], adjacent: List[int]) -> List[int]:
    """Order face indices by angle about *vertex*'s outward normal."""
    normal = vertex.normalize()
    ref = _project_to_plane(centers[adjacent[0]], normal).normalize()
    if ref.length() < EPS:
        ref = _fallback_tangent(normal)

    def angle(fi: int) -> float:
        projected = _project_to_plane(centers[fi], normal).normalize()
        if projected.length() < EPS:
            projected = ref
        return math.atan2(normal.dot(ref.cross(projected)), ref.dot(projected))

    return sorted(adjacent, key=angle)


def _project_to_plane(point: Vec3, normal: Vec3) -> Vec3:
    return point.subtract(normal.scale(point.dot(normal)))


def _fallback_tangent(normal: Vec3) -> Vec3:
    axis = Vec3(0.0, 1.0, 0.0) if abs(normal.y) < 0.9 else Vec3(1.0, 0.0, 0.0)
    return axis.cross(normal).normalize()
