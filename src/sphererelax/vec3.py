"""3-D vector value type plus row-wise helpers for ``(N, 3)`` arrays."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

# Lengths below this are treated as zero-length (no normalisation).
EPS = 1e-12


@dataclass(frozen=True)
class Vec3:
    x: float
    y: float
    z: float

    def add(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def subtract(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def scale(self, value: float) -> "Vec3":
        return Vec3(self.x * value, self.y * value, self.z * value)

    def dot(self, other: "Vec3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vec3") -> "Vec3":
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalize(self) -> "Vec3":
        """Unit vector in the same direction, or *self* if degenerate."""
        length = self.length()
        if length < EPS:
            return self
        return self.scale(1.0 / length)

    def distance(self, other: "Vec3") -> float:
        return self.subtract(other).length()

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @classmethod
    def from_iterable(cls, values: Iterable[float]) -> "Vec3":
        x, y, z = values
        return cls(float(x), float(y), float(z))

    __add__ = add
    __sub__ = subtract

    def __mul__(self, value: float) -> "Vec3":
        return self.scale(value)

    __rmul__ = __mul__


ZERO = Vec3(0.0, 0.0, 0.0)


def to_array(points: Iterable[Vec3]) -> np.ndarray:
    """Stack points into an ``(N, 3)`` float64 array."""
    rows = [p.as_tuple() for p in points]
    if not rows:
        return np.zeros((0, 3), dtype=np.float64)
    return np.array(rows, dtype=np.float64)


def from_array(array: np.ndarray) -> list[Vec3]:
    return [Vec3(float(x), float(y), float(z)) for x, y, z in array]


def normalize_rows(array: np.ndarray) -> np.ndarray:
    """Row-wise :meth:`Vec3.normalize` — degenerate rows are returned as-is."""
    lengths = np.linalg.norm(array, axis=1)
    safe = np.where(lengths < EPS, 1.0, lengths)
    return array / safe[:, None]


def project_rows(array: np.ndarray, radius: float) -> np.ndarray:
    """Scale every row onto the sphere of *radius* about the origin."""
    return normalize_rows(array) * radius
