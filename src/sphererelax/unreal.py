"""Engine-exported fan meshes with text-encoded vectors.

The payload is a JSON list of objects, each carrying at least::

    "Vertiches": ["(X=1.0,Y=2.0,Z=3.0)", ...]
    "Triangles": [0, 1, 2, ...]

and optionally ``Normals``, ``Tangents``
(``"(TangentX=(X=..,Y=..,Z=..),bFlipTangentY=True)"``) and a UV array under
``UV0``, ``UV`` or ``UVs`` (``"(X=..,Y=..)"``).  The ``Vertiches`` key
spelling is part of the exchange format.

Functions
---------
- :func:`is_engine_format` — detect the payload shape
- :func:`parse_vector3` / :func:`format_vector3` — vector text codec
- :func:`relax_engine_payload` — relax every item and rewrite its arrays
"""

from __future__ import annotations

import copy
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .builders import mesh_from_fans
from .metrics import RelaxationMetrics
from .relaxation import RelaxationConfig, relax_mesh
from .vec3 import Vec3, normalize_rows

logger = logging.getLogger(__name__)

_NUM = r"([-+0-9.Ee]+)"
VECTOR3_PATTERN = re.compile(rf"\(X={_NUM},Y={_NUM},Z={_NUM}\)")
VECTOR2_PATTERN = re.compile(rf"\(X={_NUM},Y={_NUM}\)")
TANGENT_PATTERN = re.compile(
    rf"\(TangentX=\(X={_NUM},Y={_NUM},Z={_NUM}\),bFlipTangentY=(True|False)\)"
)

VERTICES_KEY = "Vertiches"
TRIANGLES_KEY = "Triangles"
UV_KEYS = ("UV0", "UV", "UVs")


@dataclass(frozen=True)
class TangentData:
    tangent: Vec3
    flip_y: bool


# ═══════════════════════════════════════════════════════════════════
# Text codec
# ═══════════════════════════════════════════════════════════════════

def parse_vector3(raw: str) -> Vec3:
    match = VECTOR3_PATTERN.search(str(raw))
    if not match:
        raise ValueError(f"Cannot parse vector3: {raw}")
    return Vec3(float(match.group(1)), float(match.group(2)), float(match.group(3)))


def parse_vector2(raw: str) -> Tuple[float, float]:
    match = VECTOR2_PATTERN.search(str(raw))
    if not match:
        raise ValueError(f"Cannot parse vector2: {raw}")
    return (float(match.group(1)), float(match.group(2)))


def parse_tangent(raw: str) -> Optional[TangentData]:
    """Parse a tangent string; ``None`` when it does not match."""
    match = TANGENT_PATTERN.search(str(raw))
    if not match:
        return None
    return TangentData(
        Vec3(float(match.group(1)), float(match.group(2)), float(match.group(3))),
        match.group(4) == "True",
    )


def format_vector3(v: Vec3) -> str:
    return f"(X={v.x:.6f},Y={v.y:.6f},Z={v.z:.6f})"


def format_vector2(u: float, v: float) -> str:
    return f"(X={u:.6f},Y={v:.6f})"


def format_tangent(tangent: Vec3, flip_y: bool) -> str:
    return (
        f"(TangentX=(X={tangent.x:.6f},Y={tangent.y:.6f},Z={tangent.z:.6f}),"
        f"bFlipTangentY={'True' if flip_y else 'False'})"
    )


# ═══════════════════════════════════════════════════════════════════
# Payload helpers
# ═══════════════════════════════════════════════════════════════════

def is_engine_format(root: Any) -> bool:
    if not isinstance(root, list) or not root:
        return False
    first = root[0]
    return isinstance(first, dict) and VERTICES_KEY in first and TRIANGLES_KEY in first


def required_array(item: Dict[str, Any], key: str) -> List[Any]:
    value = item.get(key)
    if not isinstance(value, list):
        raise ValueError(f"Expected array field: {key}")
    return value


def detect_uv_key(item: Dict[str, Any]) -> Optional[str]:
    for key in UV_KEYS:
        if key in item:
            return key
    return None


def longitude_tangent(normal: Vec3) -> Vec3:
    """Unit tangent along the line of latitude, orthogonal to *normal*."""
    lon = math.atan2(normal.z, normal.x)
    t = Vec3(-math.sin(lon), 0.0, math.cos(lon))
    ortho = t.subtract(normal.scale(t.dot(normal)))
    if ortho.length() < 1e-9:
        ortho = Vec3(0.0, 0.0, 1.0).subtract(normal.scale(normal.z))
        if ortho.length() < 1e-9:
            ortho = Vec3(1.0, 0.0, 0.0)
    return ortho.scale(1.0 / ortho.length())


def engine_uv(normal: Vec3) -> Tuple[float, float]:
    u = 0.5 + math.atan2(normal.z, normal.x) / (2.0 * math.pi)
    if u < 0.0:
        u += 1.0
    if u > 1.0:
        u -= 1.0
    v = 0.5 - math.asin(max(-1.0, min(1.0, normal.y))) / math.pi
    return (u, v)


# ═══════════════════════════════════════════════════════════════════
# Relaxation
# ═══════════════════════════════════════════════════════════════════

def relax_engine_payload(
    root: List[Any],
    config: RelaxationConfig,
    *,
    emit_uv: bool = False,
) -> Tuple[List[Any], RelaxationMetrics]:
    """Relax every fan mesh in an engine payload.

    Returns ``(payload, metrics)`` where *payload* is a rewritten deep
    copy of *root* and *metrics* are those of the last processed item
    (all zero when no item was processed).  Positions of merged duplicate
    vertices are written back to every original vertex.
    """
    if not is_engine_format(root):
        raise ValueError("Input is not engine format (expected array with Vertiches/Triangles).")

    out = copy.deepcopy(root)
    last_metrics: Optional[RelaxationMetrics] = None

    for index, item in enumerate(out):
        if not isinstance(item, dict):
            continue
        raw_vertices = required_array(item, VERTICES_KEY)
        triangles = [int(t) for t in required_array(item, TRIANGLES_KEY)]
        raw_tangents = item.get("Tangents")
        tangents = (
            [parse_tangent(t) for t in raw_tangents]
            if isinstance(raw_tangents, list) else []
        )

        positions = np.array([parse_vector3(v).as_tuple() for v in raw_vertices], dtype=np.float64)
        built = mesh_from_fans(positions, triangles)
        logger.info(
            "item %d: %d vertices (%d unique), %d tiles",
            index, len(positions), built.mesh.vertex_count, len(built.mesh.tiles),
        )
        last_metrics = relax_mesh(built.mesh, config)

        relaxed = built.mesh.positions[built.original_to_unique]
        normals = normalize_rows(relaxed)

        out_vertices: List[str] = []
        out_normals: List[str] = []
        out_tangents: List[str] = []
        out_uvs: List[str] = []
        for i in range(len(relaxed)):
            p = Vec3(*(float(c) for c in relaxed[i]))
            n = Vec3(*(float(c) for c in normals[i]))
            tangent = tangents[i] if i < len(tangents) else None
            flip = tangent.flip_y if tangent is not None else True
            out_vertices.append(format_vector3(p))
            out_normals.append(format_vector3(n))
            out_tangents.append(format_tangent(longitude_tangent(n), flip))
            out_uvs.append(format_vector2(*engine_uv(n)))

        item[VERTICES_KEY] = out_vertices
        item["Normals"] = out_normals
        uv_key = detect_uv_key(item)
        if emit_uv or uv_key is not None:
            item[uv_key or UV_KEYS[0]] = out_uvs
        item["Tangents"] = out_tangents

    return out, last_metrics if last_metrics is not None else RelaxationMetrics()
