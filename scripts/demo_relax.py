"""Relax a jittered full tile sphere and render before/after views.

Usage::

    python scripts/demo_relax.py [subdivisions] [iterations]
"""

import logging
import sys
from pathlib import Path

import numpy as np

ROOT = Path(__file__).parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from sphererelax.fullsphere import full_sphere_mesh
from sphererelax.metrics import collect_metrics
from sphererelax.relaxation import RelaxationConfig, relax_mesh
from sphererelax.render import render_mesh_3d


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    subdivisions = int(sys.argv[1]) if len(sys.argv) > 1 else 2
    iterations = int(sys.argv[2]) if len(sys.argv) > 2 else 150

    mesh = full_sphere_mesh(subdivisions).mesh
    rng = np.random.default_rng(42)
    mesh.positions += rng.normal(scale=0.02, size=mesh.positions.shape)

    out_dir = ROOT / "exports"
    before = mesh.copy()
    relax_mesh(before, RelaxationConfig(iterations=0))
    print("Before:")
    for line in collect_metrics(before).summary_lines():
        print("  " + line)
    render_mesh_3d(before, out_dir / "relax_before.png", title="Jittered")

    config = RelaxationConfig(
        iterations=iterations, pentagon_expand_weight=0.0, log_every=50, progress_every=50,
    )
    metrics = relax_mesh(mesh, config)
    print("After:")
    for line in metrics.summary_lines():
        print("  " + line)
    render_mesh_3d(mesh, out_dir / "relax_after.png", title=f"Relaxed ({iterations} iterations)")
    print(f"Saved renders to {out_dir}")


if __name__ == "__main__":
    main()
