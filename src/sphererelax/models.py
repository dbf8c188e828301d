from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TileType(Enum):
    PENTAGON = "PENTAGON"
    HEXAGON = "HEXAGON"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TileType":
        """Map a loosely typed label onto a tile type.

        Anything starting with ``PENT`` (case-insensitive, surrounding
        whitespace ignored) is a pentagon.  Missing or unrecognised labels
        are hexagons.
        """
        if value is None:
            return cls.HEXAGON
        if str(value).strip().upper().startswith("PENT"):
            return cls.PENTAGON
        return cls.HEXAGON

    @classmethod
    def for_sides(cls, sides: int) -> "TileType":
        """Pentagon for a 5-ring, hexagon for everything else."""
        return cls.PENTAGON if sides == 5 else cls.HEXAGON


@dataclass(frozen=True)
class Tile:
    id: int
    tile_type: TileType
    vertex_ids: tuple[int, ...]

    @property
    def is_pentagon(self) -> bool:
        return self.tile_type is TileType.PENTAGON

    def vertex_count(self) -> int:
        return len(self.vertex_ids)

    def ring_edges(self) -> list[tuple[int, int]]:
        """Consecutive ring pairs, closing back to the first vertex."""
        n = len(self.vertex_ids)
        return [(self.vertex_ids[i], self.vertex_ids[(i + 1) % n]) for i in range(n)]

    def validate_polygon(self) -> list[str]:
        errors: list[str] = []
        if self.vertex_count() < 3:
            errors.append(f"Tile {self.id} has only {self.vertex_count()} vertices")
        if len(set(self.vertex_ids)) != self.vertex_count():
            errors.append(f"Tile {self.id} has repeated vertex ids")
        return errors
