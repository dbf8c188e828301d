"""Tests for the Mesh container and tile models."""

import numpy as np
import pytest

from sphererelax.mesh import Mesh
from sphererelax.models import Tile, TileType


def _square():
    positions = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]
    tile = Tile(0, TileType.HEXAGON, (0, 1, 2, 3))
    return Mesh(positions, None, tile.ring_edges(), [tile])


class TestTileType:
    @pytest.mark.parametrize("label, expected", [
        ("PENTAGON", TileType.PENTAGON),
        ("pentagon", TileType.PENTAGON),
        ("  Pent ", TileType.PENTAGON),
        ("HEXAGON", TileType.HEXAGON),
        ("hex", TileType.HEXAGON),
        ("", TileType.HEXAGON),
        (None, TileType.HEXAGON),
        ("triangle", TileType.HEXAGON),
    ])
    def test_parse(self, label, expected):
        assert TileType.parse(label) is expected

    def test_for_sides(self):
        assert TileType.for_sides(5) is TileType.PENTAGON
        assert TileType.for_sides(6) is TileType.HEXAGON
        assert TileType.for_sides(7) is TileType.HEXAGON


class TestTile:
    def test_ring_edges_close(self):
        tile = Tile(1, TileType.PENTAGON, (4, 5, 6, 7, 8))
        assert tile.ring_edges()[-1] == (8, 4)
        assert len(tile.ring_edges()) == 5

    def test_validate_polygon(self):
        assert Tile(0, TileType.HEXAGON, (0, 1, 2)).validate_polygon() == []
        assert Tile(0, TileType.HEXAGON, (0, 1)).validate_polygon()
        assert Tile(0, TileType.HEXAGON, (0, 1, 1)).validate_polygon()


class TestMesh:
    def test_edges_deduplicated(self):
        mesh = Mesh(np.zeros((3, 3)), None, [(0, 1), (1, 0), (1, 2), (2, 2)], [])
        assert mesh.edges == ((0, 1), (1, 2))

    def test_neighbors_are_symmetric_and_sorted(self):
        mesh = _square()
        assert mesh.neighbors[0] == (1, 3)
        assert mesh.neighbors[2] == (1, 3)
        assert mesh.validate() == []

    def test_out_of_range_edge_rejected(self):
        with pytest.raises(ValueError):
            Mesh(np.zeros((2, 3)), None, [(0, 2)], [])

    def test_out_of_range_tile_rejected(self):
        with pytest.raises(ValueError):
            Mesh(np.zeros((2, 3)), None, [], [Tile(0, TileType.HEXAGON, (0, 1, 5))])

    def test_pinned_length_mismatch_rejected(self):
        with pytest.raises(ValueError):
            Mesh(np.zeros((2, 3)), [True], [], [])

    def test_pentagon_vertices(self):
        tiles = [
            Tile(0, TileType.PENTAGON, (0, 1, 2, 3, 4)),
            Tile(1, TileType.HEXAGON, (4, 5, 6, 7, 8, 9)),
        ]
        edges = [e for t in tiles for e in t.ring_edges()]
        mesh = Mesh(np.zeros((10, 3)), None, edges, tiles)
        assert mesh.pentagon_vertices == frozenset(range(5))
        assert len(mesh.pentagon_tiles()) == 1
        assert len(mesh.hexagon_tiles()) == 1

    def test_adjacency_matches_neighbors(self):
        mesh = _square()
        adj = mesh.adjacency
        assert adj.shape == (4, 4)
        for i, nbrs in enumerate(mesh.neighbors):
            row = adj.indices[adj.indptr[i]:adj.indptr[i + 1]]
            assert tuple(row) == nbrs
        assert (adj != adj.T).nnz == 0

    def test_copy_is_independent(self):
        mesh = _square()
        clone = mesh.copy()
        clone.positions[0] = (9, 9, 9)
        assert tuple(mesh.positions[0]) == (0, 0, 0)
        assert clone.edges == mesh.edges

    def test_validate_flags_short_tiles(self):
        mesh = Mesh(np.zeros((2, 3)), None, [(0, 1)], [Tile(0, TileType.HEXAGON, (0, 1))])
        assert any("only 2 vertices" in msg for msg in mesh.validate())
