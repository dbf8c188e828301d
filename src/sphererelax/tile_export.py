"""Tile table export — per-tile CSV dumps of a triangle-fan mesh.

Each fan (run of triangles sharing a first index) is one tile.  The
export writes ten tables next to an output *prefix*:

``<prefix>_tiles.csv``                  id, type, centre vertex, counts
``<prefix>_tile_centers.csv``           centre vertex position
``<prefix>_tile_vertices.csv``          ring vertex indices in order
``<prefix>_tile_vertex_positions.csv``  ring positions
``<prefix>_tile_vertex_normals.csv``    ring normals
``<prefix>_tile_vertex_uv.csv``         ring UVs (blank when unknown)
``<prefix>_tile_vertex_tangents.csv``   ring tangents (blank when unknown)
``<prefix>_tile_triangles.csv``         triangles of each tile
``<prefix>_triangle_to_tile.csv``       triangle → tile index
``<prefix>_tile_neighbors.csv``         tiles sharing a ring edge

Functions
---------
- :func:`build_tile_table` — group fans into tiles with adjacency
- :func:`export_tile_csvs` — write the ten tables
- :func:`export_engine_payload_csvs` — tables for every engine payload item
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

from .builders import group_fans, quantize_position, ring_from_fan_pairs
from .unreal import (
    TRIANGLES_KEY,
    UV_KEYS,
    VERTICES_KEY,
    TangentData,
    is_engine_format,
    parse_tangent,
    parse_vector2,
    parse_vector3,
    required_array,
)
from .vec3 import Vec3

PathLike = Union[str, Path]


@dataclass
class FanTile:
    tile_id: int
    label: str
    center_vertex: int
    center: Vec3
    ring: List[int]
    triangle_indices: List[int]


@dataclass
class TileTable:
    tiles: List[FanTile]
    triangle_to_tile: List[int]
    neighbors: Dict[int, Set[int]] = field(default_factory=dict)


def build_tile_table(vertices: Sequence[Vec3], triangles: Sequence[int]) -> TileTable:
    """Group fans into tiles and find tiles that share a ring edge.

    Shared edges are matched by quantised endpoint positions so that
    tiles with their own copies of coincident vertices still connect.
    """
    for idx in triangles:
        if not 0 <= int(idx) < len(vertices):
            raise ValueError(f"Triangle index {idx} outside [0, {len(vertices)})")

    tiles: List[FanTile] = []
    triangle_to_tile = [-1] * (len(triangles) // 3)
    for tile_id, fan in enumerate(group_fans(triangles)):
        ring, _ = ring_from_fan_pairs(fan.pairs)
        for t in fan.triangle_indices:
            triangle_to_tile[t] = tile_id
        tiles.append(FanTile(
            tile_id=tile_id,
            label="PENT" if len(ring) == 5 else "HEX",
            center_vertex=fan.center,
            center=vertices[fan.center],
            ring=ring,
            triangle_indices=fan.triangle_indices,
        ))

    edge_to_tiles: Dict[Tuple, List[int]] = {}
    for tile in tiles:
        n = len(tile.ring)
        for k in range(n):
            ka = quantize_position(vertices[tile.ring[k]].as_tuple())
            kb = quantize_position(vertices[tile.ring[(k + 1) % n]].as_tuple())
            key = (ka, kb) if ka <= kb else (kb, ka)
            edge_to_tiles.setdefault(key, []).append(tile.tile_id)

    neighbors: Dict[int, Set[int]] = {tile.tile_id: set() for tile in tiles}
    for tile_ids in edge_to_tiles.values():
        shared = list(dict.fromkeys(tile_ids))
        for i, a in enumerate(shared):
            for b in shared[i + 1:]:
                neighbors[a].add(b)
                neighbors[b].add(a)

    return TileTable(tiles=tiles, triangle_to_tile=triangle_to_tile, neighbors=neighbors)


def export_tile_csvs(
    prefix: PathLike,
    vertices: Sequence[Vec3],
    triangles: Sequence[int],
    normals: Optional[Sequence[Vec3]] = None,
    uvs: Optional[Sequence[Optional[Tuple[float, float]]]] = None,
    tangents: Optional[Sequence[Optional[TangentData]]] = None,
) -> List[Path]:
    """Write all tile tables for one fan mesh; returns the written paths."""
    table = build_tile_table(vertices, triangles)
    prefix = Path(prefix)
    prefix.parent.mkdir(parents=True, exist_ok=True)

    def ring_rows(fn):
        rows = []
        for tile in table.tiles:
            for order, vi in enumerate(tile.ring):
                rows.append([tile.tile_id, order, vi, *fn(vi)])
        return rows

    def normal_of(vi: int) -> List[str]:
        n = normals[vi] if normals is not None and vi < len(normals) else vertices[vi].normalize()
        return [_f(n.x), _f(n.y), _f(n.z)]

    def uv_of(vi: int) -> List[str]:
        uv = uvs[vi] if uvs is not None and vi < len(uvs) else None
        return ["", ""] if uv is None else [_f(uv[0]), _f(uv[1])]

    def tangent_of(vi: int) -> List[str]:
        tan = tangents[vi] if tangents is not None and vi < len(tangents) else None
        if tan is None:
            return ["", "", "", ""]
        t = tan.tangent
        return [_f(t.x), _f(t.y), _f(t.z), "1" if tan.flip_y else "0"]

    tables = {
        "tiles": (
            ["tile_id", "type", "center_vertex", "vertex_count", "triangle_count"],
            [[t.tile_id, t.label, t.center_vertex, len(t.ring), len(t.triangle_indices)]
             for t in table.tiles],
        ),
        "tile_centers": (
            ["tile_id", "center_vertex", "center_x", "center_y", "center_z"],
            [[t.tile_id, t.center_vertex, _f(t.center.x), _f(t.center.y), _f(t.center.z)]
             for t in table.tiles],
        ),
        "tile_vertices": (
            ["tile_id", "vertex_order", "vertex_index"],
            ring_rows(lambda vi: []),
        ),
        "tile_vertex_positions": (
            ["tile_id", "vertex_order", "vertex_index", "x", "y", "z"],
            ring_rows(lambda vi: [_f(vertices[vi].x), _f(vertices[vi].y), _f(vertices[vi].z)]),
        ),
        "tile_vertex_normals": (
            ["tile_id", "vertex_order", "vertex_index", "nx", "ny", "nz"],
            ring_rows(normal_of),
        ),
        "tile_vertex_uv": (
            ["tile_id", "vertex_order", "vertex_index", "u", "v"],
            ring_rows(uv_of),
        ),
        "tile_vertex_tangents": (
            ["tile_id", "vertex_order", "vertex_index",
             "tangent_x", "tangent_y", "tangent_z", "flip_y"],
            ring_rows(tangent_of),
        ),
        "tile_triangles": (
            ["tile_id", "tile_triangle_order", "triangle_index", "v0", "v1", "v2"],
            [[t.tile_id, order, tri, *triangles[3 * tri: 3 * tri + 3]]
             for t in table.tiles for order, tri in enumerate(t.triangle_indices)],
        ),
        "triangle_to_tile": (
            ["triangle_index", "tile_id"],
            [[i, tile_id] for i, tile_id in enumerate(table.triangle_to_tile)],
        ),
        "tile_neighbors": (
            ["tile_id", "neighbor_tile_id"],
            [[t.tile_id, n] for t in table.tiles for n in sorted(table.neighbors[t.tile_id])],
        ),
    }

    written: List[Path] = []
    for name, (header, rows) in tables.items():
        path = prefix.with_name(f"{prefix.name}_{name}.csv")
        with path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh, lineterminator="\n")
            writer.writerow(header)
            writer.writerows(rows)
        written.append(path)
    return written


def export_engine_payload_csvs(root: List[Any], prefix: PathLike) -> List[Path]:
    """Write tile tables for every item of an engine payload.

    Items get an ``_item<i>`` suffix when the payload has more than one.
    """
    if not is_engine_format(root):
        raise ValueError("Input is not engine format (expected array with Vertiches/Triangles).")
    prefix = Path(prefix)
    written: List[Path] = []
    for i, item in enumerate(root):
        if not isinstance(item, dict):
            continue
        suffix = f"_item{i}" if len(root) > 1 else ""
        vertices = [parse_vector3(v) for v in required_array(item, VERTICES_KEY)]
        triangles = [int(t) for t in required_array(item, TRIANGLES_KEY)]
        normals = (
            [parse_vector3(v) for v in item["Normals"]]
            if isinstance(item.get("Normals"), list) else None
        )
        uv_key = next((k for k in UV_KEYS if isinstance(item.get(k), list)), None)
        uvs = [parse_vector2(v) for v in item[uv_key]] if uv_key else None
        tangents = (
            [parse_tangent(t) for t in item["Tangents"]]
            if isinstance(item.get("Tangents"), list) else None
        )
        written.extend(export_tile_csvs(
            prefix.with_name(prefix.name + suffix),
            vertices, triangles, normals, uvs, tangents,
        ))
    return written


def _f(value: float) -> str:
    return f"{value:.9f}"
