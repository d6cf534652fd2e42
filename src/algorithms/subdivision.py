"""
Triangle subdivision: midpoint and Loop (1987).

Both schemes split every triangle into four. Each undirected edge gets one
new vertex shared by the triangles on either side, and the new vertices are
appended after the original ones. Vertex normals and colors are interpolated
with the same weights as the positions.
"""

from __future__ import annotations

import logging
import warnings

import numpy as np

from ..geometry.errors import MeshProcessingWarning
from ..geometry.triangle_mesh import TriangleMesh

logger = logging.getLogger(__name__)


def _channels(mesh):
    names = ["vertices"]
    if mesh.has_vertex_normals():
        names.append("vertex_normals")
    if mesh.has_vertex_colors():
        names.append("vertex_colors")
    return names


def _unique_edges(triangles):
    """
    Returns:
        edges: (E, 2) sorted vertex pairs
        tri_edges: (M, 3) id of edge (t[k], t[k + 1]) in column k
    """
    pairs = np.stack([triangles, np.roll(triangles, -1, axis=1)], axis=2)
    keys = np.sort(pairs, axis=2).reshape(-1, 2)
    edges, inverse = np.unique(keys, axis=0, return_inverse=True)
    return edges, inverse.reshape(-1, 3)


def _split_triangles(triangles, mids):
    v0, v1, v2 = triangles[:, 0], triangles[:, 1], triangles[:, 2]
    m01, m12, m20 = mids[:, 0], mids[:, 1], mids[:, 2]
    # corners keep the parent winding, the center triangle too
    split = np.stack([
        np.stack([v0, m01, m20], axis=1),
        np.stack([v1, m12, m01], axis=1),
        np.stack([v2, m20, m12], axis=1),
        np.stack([m01, m12, m20], axis=1),
    ], axis=1)
    return split.reshape(-1, 3)


def _finish(channels, triangles, had_triangle_normals):
    result = TriangleMesh(channels["vertices"], triangles,
                          vertex_normals=channels.get("vertex_normals"),
                          vertex_colors=channels.get("vertex_colors"))
    if result.has_vertex_normals():
        result.normalize_normals()
    if had_triangle_normals:
        result.compute_triangle_normals()
    return result


def _check_input(mesh, caller):
    if not mesh.has_triangles():
        warnings.warn(f"[{caller}] input mesh has no triangles", MeshProcessingWarning)
        return False
    return True


def subdivide_midpoint(mesh, number_of_iterations=1):
    """
    Split every triangle into four at its edge midpoints.

    Positions, normals and colors of the new vertices are the averages of the
    two edge endpoints. The surface is unchanged.

    Returns:
        new TriangleMesh; the input is not modified
    """
    if not _check_input(mesh, "subdivide_midpoint"):
        return TriangleMesh()

    had_triangle_normals = mesh.has_triangle_normals()
    names = _channels(mesh)
    channels = {name: getattr(mesh, name) for name in names}
    triangles = mesh.triangles

    for _ in range(number_of_iterations):
        edges, tri_edges = _unique_edges(triangles)
        n_verts = len(channels["vertices"])
        for name in names:
            values = channels[name]
            channels[name] = np.vstack([values, values[edges].mean(axis=1)])
        triangles = _split_triangles(triangles, tri_edges + n_verts)

    logger.debug("[subdivide_midpoint] %d -> %d triangles in %d iterations",
                 len(mesh.triangles), len(triangles), number_of_iterations)
    return _finish(channels, triangles, had_triangle_normals)


def _loop_beta(valence):
    """Loop's weight for each of ``valence`` neighbors of an interior vertex."""
    valence = np.maximum(valence, 1)
    inner = 3.0 / 8.0 + 0.25 * np.cos(2.0 * np.pi / valence)
    return (5.0 / 8.0 - inner * inner) / valence


def subdivide_loop(mesh, number_of_iterations=1):
    """
    Loop subdivision.

    Edge points: 3/8 of each endpoint plus 1/8 of each opposite vertex for
    interior edges, the midpoint for boundary edges. Original vertices with
    valence n move to (1 - n * beta) v + beta * sum(neighbors); boundary
    vertices move to 3/4 v + 1/8 of their two boundary neighbors. Vertices
    on more than two boundary edges, or not used by any triangle, stay put.

    Returns:
        new TriangleMesh; the input is not modified
    """
    if not _check_input(mesh, "subdivide_loop"):
        return TriangleMesh()

    had_triangle_normals = mesh.has_triangle_normals()
    names = _channels(mesh)
    channels = {name: getattr(mesh, name) for name in names}
    triangles = mesh.triangles

    for _ in range(number_of_iterations):
        n_verts = len(channels["vertices"])
        edges, tri_edges = _unique_edges(triangles)
        n_edges = len(edges)
        edge_tri_count = np.bincount(tri_edges.reshape(-1), minlength=n_edges)
        interior_edge = edge_tri_count == 2
        boundary_edge = edge_tri_count == 1

        # (t[k], t[k + 1]) sees t[k + 2] across
        opposite = np.roll(triangles, -2, axis=1).reshape(-1)
        valence = np.bincount(edges.reshape(-1), minlength=n_verts)
        boundary_valence = np.bincount(edges[boundary_edge].reshape(-1), minlength=n_verts)
        interior_vertex = (boundary_valence == 0) & (valence > 0)
        boundary_vertex = boundary_valence == 2
        beta = _loop_beta(valence)[:, None]

        for name in names:
            values = channels[name]

            opposite_sum = np.zeros((n_edges, 3))
            np.add.at(opposite_sum, tri_edges.reshape(-1), values[opposite])
            endpoint_sum = values[edges[:, 0]] + values[edges[:, 1]]
            edge_points = 0.5 * endpoint_sum
            edge_points[interior_edge] = (0.375 * endpoint_sum[interior_edge]
                                          + 0.125 * opposite_sum[interior_edge])

            neighbor_sum = np.zeros((n_verts, 3))
            np.add.at(neighbor_sum, edges[:, 0], values[edges[:, 1]])
            np.add.at(neighbor_sum, edges[:, 1], values[edges[:, 0]])
            boundary_sum = np.zeros((n_verts, 3))
            b_edges = edges[boundary_edge]
            np.add.at(boundary_sum, b_edges[:, 0], values[b_edges[:, 1]])
            np.add.at(boundary_sum, b_edges[:, 1], values[b_edges[:, 0]])

            even = values.copy()
            smoothed = (1.0 - valence[:, None] * beta) * values + beta * neighbor_sum
            even[interior_vertex] = smoothed[interior_vertex]
            even[boundary_vertex] = (0.75 * values[boundary_vertex]
                                     + 0.125 * boundary_sum[boundary_vertex])

            channels[name] = np.vstack([even, edge_points])

        triangles = _split_triangles(triangles, tri_edges + n_verts)

    logger.debug("[subdivide_loop] %d -> %d triangles in %d iterations",
                 len(mesh.triangles), len(triangles), number_of_iterations)
    return _finish(channels, triangles, had_triangle_normals)
