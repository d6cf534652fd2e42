"""
Topology cleanup passes.

Every pass edits the mesh in place, compacts the surviving vertices/triangles
to the front (keeping their relative order), keeps the per-vertex and
per-triangle arrays aligned, and returns how many elements it removed. The
adjacency cache is rebuilt only if it was present and the topology changed.
"""

from __future__ import annotations

import logging

import numpy as np

from .metrics import get_triangle_areas
from .topology import get_edge_to_triangles_map

logger = logging.getLogger(__name__)

# Area marker for triangles scheduled for deletion
_DELETED = -1.0


def _keep_vertices(mesh, keep_idx: np.ndarray, old_to_new: np.ndarray) -> None:
    """Compact vertex arrays to ``keep_idx`` and remap triangle indices."""
    had_normals = mesh.has_vertex_normals()
    had_colors = mesh.has_vertex_colors()
    had_adjacency = mesh.has_adjacency_list()

    mesh.vertices = mesh.vertices[keep_idx]
    if had_normals:
        mesh.vertex_normals = mesh.vertex_normals[keep_idx]
    if had_colors:
        mesh.vertex_colors = mesh.vertex_colors[keep_idx]
    if len(mesh.triangles):
        mesh.triangles = old_to_new[mesh.triangles]
    _refresh_adjacency(mesh, had_adjacency)


def _keep_triangles(mesh, keep_mask: np.ndarray) -> None:
    had_normals = mesh.has_triangle_normals()
    had_adjacency = mesh.has_adjacency_list()

    mesh.triangles = mesh.triangles[keep_mask]
    if had_normals:
        mesh.triangle_normals = mesh.triangle_normals[keep_mask]
    _refresh_adjacency(mesh, had_adjacency)


def _refresh_adjacency(mesh, had_adjacency: bool) -> None:
    if had_adjacency:
        mesh.compute_adjacency_list()


def remove_duplicated_vertices(mesh) -> int:
    """
    Merge vertices with bit-identical coordinates into their first occurrence.

    Returns:
        number of vertices removed
    """
    old_count = len(mesh.vertices)
    if old_count == 0:
        return 0

    _, first, inverse = np.unique(mesh.vertices, axis=0, return_index=True,
                                  return_inverse=True)
    inverse = inverse.reshape(-1)
    # unique sorts by value; rank the groups by first appearance instead
    order = np.argsort(first)
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    old_to_new = rank[inverse]
    keep_idx = first[order]

    removed = old_count - len(keep_idx)
    if removed:
        _keep_vertices(mesh, keep_idx, old_to_new)
    logger.debug("[remove_duplicated_vertices] %d vertices have been removed.", removed)
    return removed


def remove_duplicated_triangles(mesh) -> int:
    """
    Drop triangles that repeat an earlier triangle up to rotation, e.g.
    (0, 1, 2) and (2, 0, 1). Winding matters: (2, 1, 0) faces the other way
    and is kept. The first occurrence is kept as is.

    Returns:
        number of triangles removed
    """
    old_count = len(mesh.triangles)
    if old_count == 0:
        return 0

    # rotate every triangle so its smallest index comes first
    start = np.argmin(mesh.triangles, axis=1)[:, None]
    keys = np.take_along_axis(mesh.triangles, (start + np.arange(3)) % 3, axis=1)
    _, first = np.unique(keys, axis=0, return_index=True)
    keep_mask = np.zeros(old_count, dtype=bool)
    keep_mask[first] = True

    removed = old_count - len(first)
    if removed:
        _keep_triangles(mesh, keep_mask)
    logger.debug("[remove_duplicated_triangles] %d triangles have been removed.", removed)
    return removed


def remove_unreferenced_vertices(mesh) -> int:
    """
    Drop vertices that no triangle references.

    Returns:
        number of vertices removed
    """
    old_count = len(mesh.vertices)
    referenced = np.zeros(old_count, dtype=bool)
    referenced[mesh.triangles.reshape(-1)] = True
    keep_idx = np.flatnonzero(referenced)

    removed = old_count - len(keep_idx)
    if removed:
        old_to_new = np.full(old_count, -1, dtype=np.int64)
        old_to_new[keep_idx] = np.arange(len(keep_idx))
        _keep_vertices(mesh, keep_idx, old_to_new)
    logger.debug("[remove_unreferenced_vertices] %d vertices have been removed.", removed)
    return removed


def remove_degenerate_triangles(mesh) -> int:
    """
    Drop triangles that reference the same vertex more than once.

    Returns:
        number of triangles removed
    """
    tris = mesh.triangles
    keep_mask = ((tris[:, 0] != tris[:, 1]) & (tris[:, 1] != tris[:, 2])
                 & (tris[:, 2] != tris[:, 0]))

    removed = int(len(tris) - keep_mask.sum())
    if removed:
        _keep_triangles(mesh, keep_mask)
    logger.debug("[remove_degenerate_triangles] %d triangles have been removed.", removed)
    return removed


def remove_non_manifold_edges(mesh) -> int:
    """
    Delete triangles until every edge has at most two incident triangles.

    For each edge shared by more than two triangles the smallest ones are
    deleted first. Deleting triangles changes the edge incidences, so the
    edge map is rebuilt and the pass repeated until no edge is over-shared.

    Returns:
        number of triangles removed
    """
    old_count = len(mesh.triangles)
    passes = 0

    while True:
        areas = get_triangle_areas(mesh)
        edges_to_triangles = get_edge_to_triangles_map(mesh)
        is_edge_manifold = True

        for tidxs in edges_to_triangles.values():
            if len(tidxs) <= 2:
                continue
            is_edge_manifold = False

            # triangles already marked through another edge still count as gone
            live = [t for t in tidxs if areas[t] >= 0]
            while len(live) > 2:
                smallest = min(live, key=lambda t: areas[t])
                areas[smallest] = _DELETED
                live = [t for t in live if t != smallest]

        if is_edge_manifold:
            break
        _keep_triangles(mesh, areas >= 0)
        passes += 1

    removed = old_count - len(mesh.triangles)
    logger.debug("[remove_non_manifold_edges] %d triangles have been removed in %d passes.",
                 removed, passes)
    return removed
