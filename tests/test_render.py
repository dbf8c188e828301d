"""Tests for the render module (rendering to PNG)."""

import pytest

from sphererelax.fullsphere import full_sphere_mesh
from sphererelax.relaxation import RelaxationConfig, relax_mesh
from sphererelax.render import render_mesh_3d


class TestRenderMesh3D:
    def test_renders_mesh(self, tmp_path):
        mesh = full_sphere_mesh(1).mesh
        out = render_mesh_3d(mesh, tmp_path / "sphere.png", title="Full sphere")
        assert out.exists()
        assert out.stat().st_size > 0

    def test_renders_relaxed_mesh(self, tmp_path):
        mesh = full_sphere_mesh(2).mesh
        relax_mesh(mesh, RelaxationConfig(iterations=5, threads=2, log_every=0, progress_every=0))
        out = render_mesh_3d(mesh, tmp_path / "nested" / "relaxed.png", elev=45, azim=10)
        assert out.exists()

    @pytest.mark.parametrize("dpi", [50, 80])
    def test_dpi(self, tmp_path, dpi):
        out = render_mesh_3d(full_sphere_mesh(0).mesh, tmp_path / f"d{dpi}.png", dpi=dpi)
        assert out.stat().st_size > 0
