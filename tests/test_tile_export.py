import csv

import pytest

from sphererelax.fullsphere import generate_full_sphere
from sphererelax.tile_export import build_tile_table, export_engine_payload_csvs, export_tile_csvs
from sphererelax.unreal import format_vector3

TABLES = (
    "tiles",
    "tile_centers",
    "tile_vertices",
    "tile_vertex_positions",
    "tile_vertex_normals",
    "tile_vertex_uv",
    "tile_vertex_tangents",
    "tile_triangles",
    "triangle_to_tile",
    "tile_neighbors",
)


def _rows(path):
    with path.open(newline="", encoding="utf-8") as fh:
        return list(csv.reader(fh))


class TestBuildTileTable:
    def test_dodecahedron_adjacency(self):
        data = generate_full_sphere(0)
        table = build_tile_table(data.vertices, data.triangles)
        assert len(table.tiles) == 12
        assert all(t.label == "PENT" for t in table.tiles)
        assert all(len(table.neighbors[t.tile_id]) == 5 for t in table.tiles)

    def test_triangle_to_tile_covers_every_triangle(self):
        data = generate_full_sphere(1)
        table = build_tile_table(data.vertices, data.triangles)
        assert len(table.triangle_to_tile) == data.triangle_count
        assert -1 not in table.triangle_to_tile
        assert sum(1 for t in table.tiles if t.label == "HEX") == 30

    def test_neighbors_symmetric(self):
        data = generate_full_sphere(1)
        table = build_tile_table(data.vertices, data.triangles)
        for a, nbrs in table.neighbors.items():
            for b in nbrs:
                assert a in table.neighbors[b]

    def test_bad_index_rejected(self):
        data = generate_full_sphere(0)
        with pytest.raises(ValueError):
            build_tile_table(data.vertices, [0, 1, 999])


class TestExportTileCsvs:
    def test_writes_all_tables(self, tmp_path):
        data = generate_full_sphere(0)
        prefix = tmp_path / "out" / "sphere"
        written = export_tile_csvs(prefix, data.vertices, data.triangles, data.normals, data.uvs)
        assert [p.name for p in written] == [f"sphere_{name}.csv" for name in TABLES]
        assert all(p.exists() for p in written)

    def test_table_contents(self, tmp_path):
        data = generate_full_sphere(0)
        prefix = tmp_path / "sphere"
        export_tile_csvs(prefix, data.vertices, data.triangles, data.normals, data.uvs)

        tiles = _rows(tmp_path / "sphere_tiles.csv")
        assert tiles[0] == ["tile_id", "type", "center_vertex", "vertex_count", "triangle_count"]
        assert len(tiles) == 13
        assert tiles[1][1:] == ["PENT", "0", "5", "5"]

        ring = _rows(tmp_path / "sphere_tile_vertices.csv")
        assert len(ring) == 1 + 12 * 5

        tangents = _rows(tmp_path / "sphere_tile_vertex_tangents.csv")
        assert tangents[1][3:] == ["", "", "", ""]

        uv = _rows(tmp_path / "sphere_tile_vertex_uv.csv")
        assert uv[1][3] != ""

        neighbors = _rows(tmp_path / "sphere_tile_neighbors.csv")
        assert len(neighbors) == 1 + 12 * 5


class TestEnginePayloadCsvs:
    def _item(self):
        data = generate_full_sphere(0, 450.0)
        return {
            "Vertiches": [format_vector3(v) for v in data.vertices],
            "Triangles": list(data.triangles),
        }

    def test_single_item_has_no_suffix(self, tmp_path):
        written = export_engine_payload_csvs([self._item()], tmp_path / "mesh")
        assert len(written) == len(TABLES)
        assert (tmp_path / "mesh_tiles.csv").exists()

    def test_multiple_items_are_suffixed(self, tmp_path):
        written = export_engine_payload_csvs([self._item(), self._item()], tmp_path / "mesh")
        assert len(written) == 2 * len(TABLES)
        assert (tmp_path / "mesh_item0_tiles.csv").exists()
        assert (tmp_path / "mesh_item1_tile_neighbors.csv").exists()

    def test_rejects_documents(self, tmp_path):
        with pytest.raises(ValueError):
            export_engine_payload_csvs({"vertices": []}, tmp_path / "mesh")
