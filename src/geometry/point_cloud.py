"""Point-set container returned by the surface samplers."""

from __future__ import annotations

import copy

import numpy as np


class PointCloud:
    """Points with optional per-point normals and colors.

    Normals/colors count as present only when their length matches ``points``.
    """

    def __init__(self, points=None, normals=None, colors=None):
        self.points = _as_points(points)
        self.normals = _as_points(normals)
        self.colors = _as_points(colors)

    def __len__(self) -> int:
        return len(self.points)

    def __repr__(self) -> str:
        return f"PointCloud with {len(self.points)} points."

    def has_points(self) -> bool:
        return len(self.points) > 0

    def has_normals(self) -> bool:
        return self.has_points() and len(self.normals) == len(self.points)

    def has_colors(self) -> bool:
        return self.has_points() and len(self.colors) == len(self.points)

    def is_empty(self) -> bool:
        return not self.has_points()

    def get_min_bound(self) -> np.ndarray:
        return self.points.min(axis=0) if self.has_points() else np.zeros(3)

    def get_max_bound(self) -> np.ndarray:
        return self.points.max(axis=0) if self.has_points() else np.zeros(3)

    def copy(self) -> "PointCloud":
        return copy.deepcopy(self)


def _as_points(values) -> np.ndarray:
    if values is None:
        return np.zeros((0, 3))
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 3))
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"point arrays must be shaped (N, 3), got {arr.shape}")
    return arr.copy()
