import math

import numpy as np
import pytest

from sphererelax.mesh import Mesh
from sphererelax.metrics import RelaxationMetrics, collect_metrics, polygon_area
from sphererelax.models import Tile, TileType


def _regular_polygon(sides, radius=1.0):
    return np.array([
        (radius * math.cos(2 * math.pi * k / sides), radius * math.sin(2 * math.pi * k / sides), 0.0)
        for k in range(sides)
    ])


class TestPolygonArea:
    def test_unit_square(self):
        square = np.array([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)], dtype=float)
        assert polygon_area(square) == pytest.approx(1.0)

    def test_orientation_does_not_matter(self):
        hexagon = _regular_polygon(6)
        assert polygon_area(hexagon) == pytest.approx(polygon_area(hexagon[::-1]))

    def test_regular_hexagon(self):
        assert polygon_area(_regular_polygon(6)) == pytest.approx(3 * math.sqrt(3) / 2)

    def test_degenerate(self):
        assert polygon_area(np.zeros((2, 3))) == 0.0


class TestCollectMetrics:
    def test_regular_hexagon_has_zero_spread(self):
        tile = Tile(0, TileType.HEXAGON, tuple(range(6)))
        mesh = Mesh(_regular_polygon(6), None, tile.ring_edges(), [tile])
        metrics = collect_metrics(mesh)
        assert metrics.edge_mean == pytest.approx(1.0)
        assert metrics.edge_min == pytest.approx(1.0)
        assert metrics.edge_max == pytest.approx(1.0)
        assert metrics.edge_std_dev == pytest.approx(0.0, abs=1e-12)
        assert metrics.hexagon_area_mean == pytest.approx(3 * math.sqrt(3) / 2)
        assert metrics.pentagon_area_mean == 0.0

    def test_population_std_dev(self):
        positions = np.array([(0, 0, 0), (1, 0, 0), (0, 3, 0)], dtype=float)
        mesh = Mesh(positions, None, [(0, 1), (0, 2)], [])
        metrics = collect_metrics(mesh)
        # Lengths 1 and 3: mean 2, population std 1.
        assert metrics.edge_mean == pytest.approx(2.0)
        assert metrics.edge_std_dev == pytest.approx(1.0)

    def test_separate_means_by_type(self):
        pent = _regular_polygon(5)
        hexagon = _regular_polygon(6) + np.array([5.0, 0.0, 0.0])
        tiles = [
            Tile(0, TileType.PENTAGON, tuple(range(5))),
            Tile(1, TileType.HEXAGON, tuple(range(5, 11))),
        ]
        edges = [e for t in tiles for e in t.ring_edges()]
        metrics = collect_metrics(Mesh(np.vstack([pent, hexagon]), None, edges, tiles))
        assert metrics.pentagon_area_mean == pytest.approx(polygon_area(pent))
        assert metrics.hexagon_area_mean == pytest.approx(polygon_area(hexagon))

    def test_empty_mesh_reports_zeros(self):
        metrics = collect_metrics(Mesh(np.zeros((3, 3)), None, [], []))
        assert metrics == RelaxationMetrics()

    def test_summary_lines(self):
        lines = RelaxationMetrics(edge_min=1.0).summary_lines()
        assert len(lines) == 2
        assert lines[0].startswith("Edge length min=1.000000")
        assert RelaxationMetrics().as_dict()["hexagon_area_mean"] == 0.0
