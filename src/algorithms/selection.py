"""Extract sub-meshes by vertex selection."""

from __future__ import annotations

import logging
import warnings

import numpy as np

from ..geometry.errors import MeshProcessingWarning
from ..geometry.triangle_mesh import TriangleMesh

logger = logging.getLogger(__name__)


def select_down_sample(mesh: TriangleMesh, indices) -> TriangleMesh:
    """
    New mesh made of the selected vertices and the triangles whose three
    vertices were all selected.

    Vertices keep the order of ``indices`` (repeated indices count once);
    normals and colors are carried over when present.
    """
    indices = np.asarray(indices, dtype=np.int64).reshape(-1)
    if len(indices) and (indices.min() < 0 or indices.max() >= len(mesh.vertices)):
        raise IndexError("vertex index out of range")
    _, first = np.unique(indices, return_index=True)
    indices = indices[np.sort(first)]

    old_to_new = np.full(len(mesh.vertices), -1, dtype=np.int64)
    old_to_new[indices] = np.arange(len(indices))
    mapped = old_to_new[mesh.triangles]
    keep = np.all(mapped >= 0, axis=1)

    result = TriangleMesh(
        mesh.vertices[indices],
        mapped[keep],
        vertex_normals=mesh.vertex_normals[indices] if mesh.has_vertex_normals() else None,
        vertex_colors=mesh.vertex_colors[indices] if mesh.has_vertex_colors() else None,
        triangle_normals=mesh.triangle_normals[keep] if mesh.has_triangle_normals() else None,
    )
    logger.debug("[select_down_sample] kept %d vertices and %d triangles",
                 len(result.vertices), len(result.triangles))
    return result


def crop_triangle_mesh(mesh: TriangleMesh, min_bound, max_bound) -> TriangleMesh:
    """Sub-mesh of the vertices inside the closed box [min_bound, max_bound]."""
    min_bound = np.asarray(min_bound, dtype=np.float64).reshape(3)
    max_bound = np.asarray(max_bound, dtype=np.float64).reshape(3)
    if np.any(min_bound > max_bound):
        warnings.warn("[crop_triangle_mesh] min_bound must be <= max_bound on every axis",
                      MeshProcessingWarning)
        return TriangleMesh()
    inside = np.all((mesh.vertices >= min_bound) & (mesh.vertices <= max_bound), axis=1)
    return select_down_sample(mesh, np.flatnonzero(inside))
