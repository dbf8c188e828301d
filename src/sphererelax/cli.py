"""Sphere relaxation command-line interface."""

from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from .io import load_payload, save_json, save_payload

if TYPE_CHECKING:
    from .relaxation import RelaxationConfig
    from .vec3 import Vec3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sphere tile mesh relaxation CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    relax = sub.add_parser("relax", help="Relax a mesh document or engine fan payload")
    relax.add_argument("--in", dest="input_path", required=True)
    relax.add_argument("--out", dest="output_path", required=True)
    relax.add_argument("--iterations", type=int)
    relax.add_argument("--radius", type=float)
    relax.add_argument("--step", type=float)
    relax.add_argument("--laplacian-weight", type=float)
    relax.add_argument("--spring-weight", type=float)
    relax.add_argument("--pentagon-expand-weight", type=float)
    relax.add_argument("--threads", type=int)
    relax.add_argument("--log-every", type=int)
    relax.add_argument("--progress-every", type=int)
    relax.add_argument("--emit-uv", action="store_true",
                       help="Always write UVs for engine payloads")

    ico = sub.add_parser("icosphere", help="Write icosphere vertices")
    ico.add_argument("--subdivisions", type=int, default=0)
    ico.add_argument("--radius", type=float, default=1.0)
    ico.add_argument("--out", dest="output_path", required=True)
    ico.add_argument("--format", choices=["txt", "csv", "json"],
                     help="Default: from the output extension")

    fullcsv = sub.add_parser("fullcsv", help="Generate a full tile sphere as CSV tables")
    fullcsv.add_argument("--subdivisions", type=int, default=0)
    fullcsv.add_argument("--radius", type=float, default=1.0)
    fullcsv.add_argument("--out", dest="output_prefix", required=True)

    tilecsv = sub.add_parser("tilecsv", help="Export tile CSV tables from an engine payload")
    tilecsv.add_argument("--in", dest="input_path", required=True)
    tilecsv.add_argument("--out", dest="output_prefix", required=True)

    render = sub.add_parser("render", help="Render a mesh document to PNG")
    render.add_argument("--in", dest="input_path", required=True)
    render.add_argument("--out", dest="output_path", required=True)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "relax":
            _cmd_relax(args)
        elif args.command == "icosphere":
            _cmd_icosphere(args)
        elif args.command == "fullcsv":
            _cmd_fullcsv(args)
        elif args.command == "tilecsv":
            _cmd_tilecsv(args)
        elif args.command == "render":
            _cmd_render(args)
    except ValueError as exc:
        print(exc)
        raise SystemExit(1)


def _ensure_output_path(path: Path) -> None:
    if path.is_dir():
        raise ValueError(f"Output path is a directory, expected file: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)


def _config_from_args(args, base: "RelaxationConfig") -> "RelaxationConfig":
    from dataclasses import replace

    overrides = {
        name: getattr(args, name)
        for name in (
            "iterations", "radius", "step", "laplacian_weight", "spring_weight",
            "pentagon_expand_weight", "threads", "log_every", "progress_every",
        )
        if getattr(args, name) is not None
    }
    return replace(base, **overrides)


def _cmd_relax(args) -> None:
    from .builders import mesh_from_document, mesh_to_document
    from .document import MeshDocument, validate_mesh_payload
    from .relaxation import RelaxationConfig, relax_mesh
    from .unreal import is_engine_format, relax_engine_payload

    output = Path(args.output_path)
    _ensure_output_path(output)
    payload = load_payload(args.input_path)

    if is_engine_format(payload):
        config = _config_from_args(args, RelaxationConfig.for_engine_mesh())
        relaxed, metrics = relax_engine_payload(payload, config, emit_uv=args.emit_uv)
        save_payload(relaxed, output)
    else:
        errors = validate_mesh_payload(payload)
        if errors:
            raise ValueError("Invalid mesh document: " + "; ".join(errors))
        document = MeshDocument.from_dict(payload)
        mesh = mesh_from_document(document)
        config = _config_from_args(args, RelaxationConfig(radius=document.effective_radius()))
        metrics = relax_mesh(mesh, config)
        save_json(mesh_to_document(mesh, config.radius), output)

    print(f"Done. Iterations={config.iterations}, radius={config.radius:.6f}")
    for line in metrics.summary_lines():
        print(line)


def _cmd_icosphere(args) -> None:
    from .icosphere import generate_icosphere

    output = Path(args.output_path)
    _ensure_output_path(output)
    fmt = args.format or _format_from_extension(output)
    data = generate_icosphere(args.subdivisions, args.radius)

    if fmt == "json":
        _write_vertices_json(data.vertices, args.radius, output)
    elif fmt == "csv":
        with output.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh, lineterminator="\n")
            writer.writerow(["id", "x", "y", "z"])
            for i, v in enumerate(data.vertices):
                writer.writerow([i, f"{v.x:.9f}", f"{v.y:.9f}", f"{v.z:.9f}"])
    else:
        lines = [f"{v.x:.9f} {v.y:.9f} {v.z:.9f}" for v in data.vertices]
        output.write_text("\n".join(lines) + "\n", encoding="utf-8")

    print(
        f"Done. subdivisions={args.subdivisions}, radius={args.radius:.6f}, "
        f"vertices={len(data.vertices)}, output={output}"
    )


def _cmd_fullcsv(args) -> None:
    from .fullsphere import generate_full_sphere
    from .tile_export import export_tile_csvs
    from .unreal import TangentData

    prefix = Path(args.output_prefix)
    _ensure_output_path(prefix)
    data = generate_full_sphere(args.subdivisions, args.radius)
    export_tile_csvs(
        prefix,
        data.vertices,
        data.triangles,
        data.normals,
        data.uvs,
        tangents=[TangentData(t, False) for t in data.tangents],
    )
    print(
        f"Done. subdivisions={args.subdivisions}, vertices={len(data.vertices)}, "
        f"triangles={data.triangle_count}, output_prefix={prefix}"
    )


def _cmd_tilecsv(args) -> None:
    from .tile_export import export_engine_payload_csvs

    prefix = Path(args.output_prefix)
    _ensure_output_path(prefix)
    written = export_engine_payload_csvs(load_payload(args.input_path), prefix)
    print(f"Done. wrote {len(written)} tables, output_prefix={prefix}")


def _cmd_render(args) -> None:
    from .builders import mesh_from_document
    from .io import load_json
    from .render import render_mesh_3d

    mesh = mesh_from_document(load_json(args.input_path))
    render_mesh_3d(mesh, args.output_path)
    print(f"Saved {args.output_path}")


def _format_from_extension(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return "csv"
    if suffix == ".json":
        return "json"
    return "txt"


def _write_vertices_json(vertices: List["Vec3"], radius: float, output: Path) -> None:
    from .document import MeshDocument, VertexRecord

    document = MeshDocument(
        radius=radius,
        vertices=[VertexRecord(i, v.x, v.y, v.z) for i, v in enumerate(vertices)],
    )
    save_json(document, output)


if __name__ == "__main__":
    main()
