"""Explicit mesh documents — the JSON exchange shape for tile meshes.

A document looks like::

    {
      "radius": 1.0,
      "vertices": [{"id": 0, "x": 0.0, "y": 1.0, "z": 0.0, "fixed": false}, ...],
      "tiles": [{"id": 0, "type": "PENTAGON", "vertexIds": [0, 1, 2, 3, 4]}, ...]
    }

``radius`` may be missing, ``null`` or non-positive, all meaning "unset".
Tile ``type`` is parsed leniently (see :meth:`TileType.parse`).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import jsonschema

MESH_DOCUMENT_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Sphere mesh document",
    "type": "object",
    "required": ["vertices", "tiles"],
    "properties": {
        "radius": {"type": ["number", "null"]},
        "vertices": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "x", "y", "z"],
                "properties": {
                    "id": {"type": "integer"},
                    "x": {"type": "number"},
                    "y": {"type": "number"},
                    "z": {"type": "number"},
                    "fixed": {"type": "boolean"},
                },
            },
        },
        "tiles": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["vertexIds"],
                "properties": {
                    "id": {"type": "integer"},
                    "type": {"type": ["string", "null"]},
                    "vertexIds": {"type": "array", "items": {"type": "integer"}},
                },
            },
        },
    },
}


@dataclass
class VertexRecord:
    id: int
    x: float
    y: float
    z: float
    fixed: bool = False

    def to_dict(self) -> dict:
        return {"id": self.id, "x": self.x, "y": self.y, "z": self.z, "fixed": self.fixed}


@dataclass
class TileRecord:
    id: int
    type: Optional[str] = "HEXAGON"
    vertex_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"id": self.id, "type": self.type, "vertexIds": list(self.vertex_ids)}


@dataclass
class MeshDocument:
    radius: Optional[float] = None
    vertices: List[VertexRecord] = field(default_factory=list)
    tiles: List[TileRecord] = field(default_factory=list)

    def effective_radius(self, default: float = 1.0) -> float:
        """The document radius when set and positive, else *default*."""
        if self.radius is not None and self.radius > 0.0:
            return self.radius
        return default

    def to_dict(self) -> dict:
        return {
            "radius": self.radius,
            "vertices": [v.to_dict() for v in self.vertices],
            "tiles": [t.to_dict() for t in self.tiles],
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "MeshDocument":
        radius = payload.get("radius")
        vertices = [
            VertexRecord(
                id=int(v["id"]),
                x=float(v["x"]),
                y=float(v["y"]),
                z=float(v["z"]),
                fixed=bool(v.get("fixed", False)),
            )
            for v in payload.get("vertices") or []
        ]
        tiles = [
            TileRecord(
                id=int(t.get("id", i)),
                type=t.get("type", "HEXAGON"),
                vertex_ids=[int(vid) for vid in t.get("vertexIds", [])],
            )
            for i, t in enumerate(payload.get("tiles") or [])
        ]
        return cls(
            radius=float(radius) if radius is not None else None,
            vertices=vertices,
            tiles=tiles,
        )

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_data: str) -> "MeshDocument":
        return cls.from_dict(json.loads(json_data))


def validate_mesh_payload(payload: Any) -> List[str]:
    """Check *payload* against :data:`MESH_DOCUMENT_SCHEMA`.

    Returns a list of error messages (empty = valid).
    """
    validator = jsonschema.Draft7Validator(MESH_DOCUMENT_SCHEMA)
    errors: List[str] = []
    for error in sorted(validator.iter_errors(payload), key=lambda e: list(e.path)):
        location = "/".join(str(p) for p in error.path) or "<root>"
        errors.append(f"{location}: {error.message}")
    return errors
