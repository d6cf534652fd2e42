"""
Indexed triangle mesh.

The mesh owns a vertex array, optional per-vertex normals and colors, a
triangle index array, optional per-triangle normals and an optional vertex
adjacency cache. Optional arrays count as present only while their length
matches the array they annotate, so there is no separate flag to keep in sync.
"""

from __future__ import annotations

import copy
from typing import List, Optional, Set

import numpy as np


def _as_vectors(values, dtype=np.float64, name: str = "array") -> np.ndarray:
    if values is None:
        return np.zeros((0, 3), dtype=dtype)
    arr = np.asarray(values, dtype=dtype)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=dtype)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"{name} must be shaped (N, 3), got {arr.shape}")
    return arr.copy()


def _normalize_rows(vectors: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    # zero vectors stay zero
    norms[norms == 0] = 1.0
    return vectors / norms


class TriangleMesh:
    """Mutable indexed triangle mesh.

    Args:
        vertices: (N, 3) vertex positions
        triangles: (M, 3) vertex indices per triangle
        vertex_normals: optional (N, 3) per-vertex normals
        vertex_colors: optional (N, 3) RGB colors in [0, 1]
        triangle_normals: optional (M, 3) per-triangle normals
    """

    def __init__(self, vertices=None, triangles=None, vertex_normals=None,
                 vertex_colors=None, triangle_normals=None):
        self.vertices = _as_vectors(vertices, np.float64, "vertices")
        self.triangles = _as_vectors(triangles, np.int64, "triangles")
        self.vertex_normals = _as_vectors(vertex_normals, np.float64, "vertex_normals")
        self.vertex_colors = _as_vectors(vertex_colors, np.float64, "vertex_colors")
        self.triangle_normals = _as_vectors(triangle_normals, np.float64, "triangle_normals")
        self.adjacency_list: List[Set[int]] = []

    def __repr__(self) -> str:
        return (f"TriangleMesh with {len(self.vertices)} points and "
                f"{len(self.triangles)} triangles.")

    # ------------------------------------------------------------------
    # Presence predicates
    # ------------------------------------------------------------------

    def has_vertices(self) -> bool:
        return len(self.vertices) > 0

    def has_triangles(self) -> bool:
        return self.has_vertices() and len(self.triangles) > 0

    def has_vertex_normals(self) -> bool:
        return self.has_vertices() and len(self.vertex_normals) == len(self.vertices)

    def has_vertex_colors(self) -> bool:
        return self.has_vertices() and len(self.vertex_colors) == len(self.vertices)

    def has_triangle_normals(self) -> bool:
        return self.has_triangles() and len(self.triangle_normals) == len(self.triangles)

    def has_adjacency_list(self) -> bool:
        return self.has_vertices() and len(self.adjacency_list) == len(self.vertices)

    def is_empty(self) -> bool:
        return not self.has_vertices()

    def clear(self) -> "TriangleMesh":
        self.vertices = np.zeros((0, 3))
        self.vertex_normals = np.zeros((0, 3))
        self.vertex_colors = np.zeros((0, 3))
        self.triangles = np.zeros((0, 3), dtype=np.int64)
        self.triangle_normals = np.zeros((0, 3))
        self.adjacency_list = []
        return self

    def copy(self) -> "TriangleMesh":
        return copy.deepcopy(self)

    # ------------------------------------------------------------------
    # Normals and adjacency
    # ------------------------------------------------------------------

    def compute_triangle_normals(self, normalized: bool = True) -> "TriangleMesh":
        """Triangle normal = (v1 - v0) x (v2 - v0), optionally unit length."""
        tris = self.triangles
        v0 = self.vertices[tris[:, 0]]
        v1 = self.vertices[tris[:, 1]]
        v2 = self.vertices[tris[:, 2]]
        normals = np.cross(v1 - v0, v2 - v0).reshape(-1, 3)
        if normalized:
            normals = _normalize_rows(normals)
        self.triangle_normals = normals
        return self

    def compute_vertex_normals(self, normalized: bool = True) -> "TriangleMesh":
        """Accumulate triangle normals into their three vertices.

        Unnormalized triangle normals are computed first when absent, so
        larger triangles contribute proportionally more.
        """
        if not self.has_triangle_normals():
            self.compute_triangle_normals(normalized=False)
        normals = np.zeros((len(self.vertices), 3))
        for k in range(3):
            np.add.at(normals, self.triangles[:, k], self.triangle_normals)
        self.vertex_normals = normals
        if normalized:
            self.normalize_normals()
        return self

    def compute_adjacency_list(self) -> "TriangleMesh":
        """Rebuild the vertex adjacency sets from scratch."""
        adjacency = [set() for _ in range(len(self.vertices))]
        for i, j, k in self.triangles.tolist():
            adjacency[i].update((j, k))
            adjacency[j].update((i, k))
            adjacency[k].update((i, j))
        self.adjacency_list = adjacency
        return self

    def normalize_normals(self) -> "TriangleMesh":
        if len(self.vertex_normals):
            self.vertex_normals = _normalize_rows(self.vertex_normals)
        if len(self.triangle_normals):
            self.triangle_normals = _normalize_rows(self.triangle_normals)
        return self

    def paint_uniform_color(self, color) -> "TriangleMesh":
        color = np.asarray(color, dtype=np.float64).reshape(3)
        self.vertex_colors = np.tile(color, (len(self.vertices), 1))
        return self

    # ------------------------------------------------------------------
    # Bounds and rigid transforms
    # ------------------------------------------------------------------

    def get_min_bound(self) -> np.ndarray:
        if not self.has_vertices():
            return np.zeros(3)
        return self.vertices.min(axis=0)

    def get_max_bound(self) -> np.ndarray:
        if not self.has_vertices():
            return np.zeros(3)
        return self.vertices.max(axis=0)

    def get_center(self) -> np.ndarray:
        if not self.has_vertices():
            return np.zeros(3)
        return self.vertices.mean(axis=0)

    def transform(self, transformation) -> "TriangleMesh":
        """Apply a 4x4 homogeneous transformation to positions and normals."""
        T = np.asarray(transformation, dtype=np.float64)
        if T.shape != (4, 4):
            raise ValueError("transformation must be a 4x4 matrix")
        if len(self.vertices):
            self.vertices = self.vertices @ T[:3, :3].T + T[:3, 3]
        # normals are directions (w = 0), translation does not apply
        if len(self.vertex_normals):
            self.vertex_normals = self.vertex_normals @ T[:3, :3].T
        if len(self.triangle_normals):
            self.triangle_normals = self.triangle_normals @ T[:3, :3].T
        return self

    def translate(self, translation) -> "TriangleMesh":
        self.vertices = self.vertices + np.asarray(translation, dtype=np.float64).reshape(3)
        return self

    def scale(self, scale: float, center: bool = True) -> "TriangleMesh":
        pivot = self.get_center() if center else np.zeros(3)
        self.vertices = (self.vertices - pivot) * scale + pivot
        return self

    def rotate(self, rotation, center: bool = True) -> "TriangleMesh":
        """Rotate by a 3x3 rotation matrix, optionally about the vertex centroid."""
        R = np.asarray(rotation, dtype=np.float64)
        if R.shape != (3, 3):
            raise ValueError("rotation must be a 3x3 matrix")
        pivot = self.get_center() if center else np.zeros(3)
        self.vertices = (self.vertices - pivot) @ R.T + pivot
        if len(self.vertex_normals):
            self.vertex_normals = self.vertex_normals @ R.T
        if len(self.triangle_normals):
            self.triangle_normals = self.triangle_normals @ R.T
        return self

    # ------------------------------------------------------------------
    # Concatenation
    # ------------------------------------------------------------------

    def __iadd__(self, other: "TriangleMesh") -> "TriangleMesh":
        if other.is_empty():
            return self
        was_empty = not self.has_vertices()
        had_triangles = self.has_triangles()
        offset = len(self.vertices)

        if (was_empty or self.has_vertex_normals()) and other.has_vertex_normals():
            self.vertex_normals = np.vstack([self.vertex_normals, other.vertex_normals])
        else:
            self.vertex_normals = np.zeros((0, 3))
        if (was_empty or self.has_vertex_colors()) and other.has_vertex_colors():
            self.vertex_colors = np.vstack([self.vertex_colors, other.vertex_colors])
        else:
            self.vertex_colors = np.zeros((0, 3))
        if (not had_triangles or self.has_triangle_normals()) and other.has_triangle_normals():
            self.triangle_normals = np.vstack([
                self.triangle_normals, other.triangle_normals])
        else:
            self.triangle_normals = np.zeros((0, 3))

        had_adjacency = self.has_adjacency_list()
        self.vertices = np.vstack([self.vertices, other.vertices])
        self.triangles = np.vstack([self.triangles, other.triangles + offset])
        if had_adjacency:
            self.compute_adjacency_list()
        return self

    def __add__(self, other: "TriangleMesh") -> "TriangleMesh":
        result = self.copy()
        result += other
        return result


def create_triangle_mesh(vertices, triangles, vertex_normals: Optional[np.ndarray] = None,
                         vertex_colors: Optional[np.ndarray] = None) -> TriangleMesh:
    """Build a mesh from raw arrays, validating triangle indices."""
    mesh = TriangleMesh(vertices, triangles, vertex_normals=vertex_normals,
                        vertex_colors=vertex_colors)
    if len(mesh.triangles) and (mesh.triangles.min() < 0
                                or mesh.triangles.max() >= len(mesh.vertices)):
        raise ValueError("triangle indices must reference existing vertices")
    return mesh
