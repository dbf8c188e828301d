from sphererelax.builders import mesh_to_document
from sphererelax.fullsphere import full_sphere_mesh, generate_full_sphere
from sphererelax.icosphere import generate_icosphere
from sphererelax.relaxation import RelaxationConfig, relax_mesh


def _relaxed_json(threads):
    mesh = full_sphere_mesh(1).mesh
    relax_mesh(mesh, RelaxationConfig(iterations=15, threads=threads, log_every=0, progress_every=0))
    return mesh_to_document(mesh, 1.0).to_json()


def test_icosphere_determinism():
    assert generate_icosphere(3).vertices == generate_icosphere(3).vertices


def test_full_sphere_determinism():
    a = generate_full_sphere(2)
    b = generate_full_sphere(2)
    assert a.triangles == b.triangles
    assert a.vertices == b.vertices


def test_relaxed_document_json_determinism():
    assert _relaxed_json(1) == _relaxed_json(1)


def test_relaxed_document_json_determinism_threads():
    assert _relaxed_json(4) == _relaxed_json(4)
