"""Tests for the engine fan-payload codec and relaxation."""

import pytest

from sphererelax.fullsphere import generate_full_sphere
from sphererelax.relaxation import RelaxationConfig
from sphererelax.unreal import (
    engine_uv,
    format_tangent,
    format_vector3,
    is_engine_format,
    longitude_tangent,
    parse_tangent,
    parse_vector2,
    parse_vector3,
    relax_engine_payload,
)
from sphererelax.vec3 import Vec3


def _payload(radius=450.0, uv_key=None):
    data = generate_full_sphere(0, radius)
    item = {
        "Vertiches": [format_vector3(v) for v in data.vertices],
        "Triangles": list(data.triangles),
        "Tangents": [format_tangent(t, False) for t in data.tangents],
    }
    if uv_key:
        item[uv_key] = ["(X=0.000000,Y=0.000000)"] * len(data.vertices)
    return [item]


def _config(**kwargs):
    return RelaxationConfig.for_engine_mesh(
        iterations=kwargs.pop("iterations", 10), threads=2, log_every=0, progress_every=0, **kwargs,
    )


class TestCodec:
    def test_parse_vector3(self):
        assert parse_vector3("(X=1.5,Y=-2,Z=3e-2)") == Vec3(1.5, -2.0, 0.03)

    def test_parse_vector2(self):
        assert parse_vector2("(X=0.25,Y=0.75)") == (0.25, 0.75)

    @pytest.mark.parametrize("raw", ["", "(X=1,Y=2)", "1,2,3"])
    def test_parse_vector3_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_vector3(raw)

    def test_parse_tangent(self):
        tangent = parse_tangent("(TangentX=(X=1.0,Y=0.0,Z=0.0),bFlipTangentY=True)")
        assert tangent.tangent == Vec3(1.0, 0.0, 0.0)
        assert tangent.flip_y is True
        assert parse_tangent("garbage") is None

    def test_format(self):
        assert format_vector3(Vec3(1, -2.5, 0)) == "(X=1.000000,Y=-2.500000,Z=0.000000)"
        assert format_tangent(Vec3(0, 0, 1), False) == (
            "(TangentX=(X=0.000000,Y=0.000000,Z=1.000000),bFlipTangentY=False)"
        )

    def test_is_engine_format(self):
        assert is_engine_format(_payload())
        assert not is_engine_format([])
        assert not is_engine_format({"vertices": [], "tiles": []})
        assert not is_engine_format([{"Vertiches": []}])


class TestAttributes:
    @pytest.mark.parametrize("normal", [Vec3(1, 0, 0), Vec3(0, 0, 1), Vec3(0, 1, 0), Vec3(0.6, 0.8, 0)])
    def test_longitude_tangent_orthogonal(self, normal):
        t = longitude_tangent(normal)
        assert t.length() == pytest.approx(1.0)
        assert t.dot(normal) == pytest.approx(0.0, abs=1e-9)

    def test_engine_uv_in_unit_square(self):
        u, v = engine_uv(Vec3(-1.0, 0.0, -1e-9))
        assert 0.0 <= u <= 1.0
        assert v == pytest.approx(0.5)


class TestRelaxEnginePayload:
    def test_rewrites_vertices_on_radius(self):
        payload = _payload()
        relaxed, metrics = relax_engine_payload(payload, _config())
        item = relaxed[0]
        assert len(item["Vertiches"]) == len(payload[0]["Vertiches"])
        for raw in item["Vertiches"]:
            assert parse_vector3(raw).length() == pytest.approx(450.0, abs=1e-3)
        assert len(item["Normals"]) == len(item["Vertiches"])
        assert metrics.pentagon_area_mean > 0.0

    def test_input_is_not_mutated(self):
        payload = _payload()
        original = list(payload[0]["Vertiches"])
        relax_engine_payload(payload, _config())
        assert payload[0]["Vertiches"] == original
        assert "Normals" not in payload[0]

    def test_tangent_flip_preserved(self):
        relaxed, _ = relax_engine_payload(_payload(), _config(iterations=1))
        flips = {parse_tangent(t).flip_y for t in relaxed[0]["Tangents"]}
        assert flips == {False}

    def test_uv_written_only_when_requested_or_present(self):
        relaxed, _ = relax_engine_payload(_payload(), _config(iterations=1))
        assert "UV0" not in relaxed[0]
        relaxed, _ = relax_engine_payload(_payload(), _config(iterations=1), emit_uv=True)
        assert len(relaxed[0]["UV0"]) == len(relaxed[0]["Vertiches"])
        relaxed, _ = relax_engine_payload(_payload(uv_key="UVs"), _config(iterations=1))
        assert "UV0" not in relaxed[0]
        assert relaxed[0]["UVs"][0] != "(X=0.000000,Y=0.000000)"

    def test_duplicated_vertices_move_together(self):
        payload = _payload()
        item = payload[0]
        # Point the first triangle's last corner at a fresh copy of the same position.
        shared = item["Triangles"][2]
        item["Vertiches"].append(item["Vertiches"][shared])
        item["Triangles"][2] = len(item["Vertiches"]) - 1
        relaxed, _ = relax_engine_payload(payload, _config())
        out = relaxed[0]["Vertiches"]
        assert out[-1] == out[shared]
        assert len(out) == len(item["Vertiches"])

    def test_rejects_other_shapes(self):
        with pytest.raises(ValueError):
            relax_engine_payload({"vertices": []}, _config())

    def test_non_object_items_are_skipped(self):
        payload = _payload() + ["not an item"]
        relaxed, metrics = relax_engine_payload(payload, _config(iterations=1))
        assert relaxed[1] == "not an item"
        assert metrics.edge_mean > 0.0
