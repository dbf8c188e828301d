"""SphereRelax — force-directed relaxation of spherical tile meshes.

Public API is organised into layers:

- **Core** — vectors, tiles, mesh container, documents, I/O
- **Building** — icosphere, full tile sphere, document and fan builders
- **Relaxation** — solver configuration, solver, metrics
- **Exchange** — engine fan payloads and tile CSV tables
- **Rendering** — PNG views (requires matplotlib)
"""

# ── Core ────────────────────────────────────────────────────────────
from .vec3 import Vec3, to_array, from_array
from .models import Tile, TileType
from .mesh import Mesh
from .document import MeshDocument, TileRecord, VertexRecord, validate_mesh_payload
from .io import load_json, save_json, load_payload, save_payload

# ── Building ────────────────────────────────────────────────────────
from .icosphere import (
    IcosphereData,
    generate_icosphere,
    icosphere_face_count,
    icosphere_mesh,
    icosphere_vertex_count,
)
from .fullsphere import FullSphereData, generate_full_sphere, full_sphere_mesh
from .builders import (
    FanMeshBuild,
    mesh_from_document,
    mesh_from_fans,
    mesh_to_document,
    ring_from_fan_pairs,
)

# ── Relaxation ──────────────────────────────────────────────────────
from .relaxation import RelaxationConfig, relax_mesh, pentagon_expansion_bias
from .metrics import RelaxationMetrics, collect_metrics

# ── Exchange ────────────────────────────────────────────────────────
from .unreal import is_engine_format, relax_engine_payload
from .tile_export import build_tile_table, export_tile_csvs, export_engine_payload_csvs

# ── Rendering (lazy: matplotlib imported on call) ───────────────────
from .render import render_mesh_3d

__all__ = [
    # Core
    "Vec3",
    "to_array",
    "from_array",
    "Tile",
    "TileType",
    "Mesh",
    "MeshDocument",
    "TileRecord",
    "VertexRecord",
    "validate_mesh_payload",
    "load_json",
    "save_json",
    "load_payload",
    "save_payload",
    # Building
    "IcosphereData",
    "generate_icosphere",
    "icosphere_face_count",
    "icosphere_mesh",
    "icosphere_vertex_count",
    "FullSphereData",
    "generate_full_sphere",
    "full_sphere_mesh",
    "FanMeshBuild",
    "mesh_from_document",
    "mesh_from_fans",
    "mesh_to_document",
    "ring_from_fan_pairs",
    # Relaxation
    "RelaxationConfig",
    "relax_mesh",
    "pentagon_expansion_bias",
    "RelaxationMetrics",
    "collect_metrics",
    # Exchange
    "is_engine_format",
    "relax_engine_payload",
    "build_tile_table",
    "export_tile_csvs",
    "export_engine_payload_csvs",
    # Rendering
    "render_mesh_3d",
]
