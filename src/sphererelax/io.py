from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Union

from .document import MeshDocument, validate_mesh_payload

PathLike = Union[str, Path]


def load_payload(path: PathLike) -> Any:
    """Read any JSON tree (mesh document or engine payload)."""
    return json.loads(Path(path).read_text(encoding="utf-8"))


def save_payload(payload: Any, path: PathLike, indent: int = 2) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(payload, indent=indent), encoding="utf-8")
    return out


def load_json(path: PathLike, validate: bool = True) -> MeshDocument:
    """Load a mesh document, optionally checking it against the schema first."""
    payload = load_payload(path)
    if validate:
        errors = validate_mesh_payload(payload)
        if errors:
            raise ValueError(f"Invalid mesh document {path}: " + "; ".join(errors))
    return MeshDocument.from_dict(payload)


def save_json(document: MeshDocument, path: PathLike) -> Path:
    return save_payload(document.to_dict(), path)
