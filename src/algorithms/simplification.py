"""
Mesh simplification: quadric edge-collapse decimation and vertex clustering.

Both operations return a new mesh and leave the input untouched.
"""

from __future__ import annotations

import heapq
import logging
import warnings
from enum import Enum

import numpy as np

from ..geometry.errors import MeshProcessingWarning
from ..geometry.triangle_mesh import TriangleMesh
from .cleanup import remove_degenerate_triangles, remove_duplicated_triangles

logger = logging.getLogger(__name__)

# Triangles with a smaller cross product contribute no plane to the quadrics
_DEGENERATE_NORM = 1e-12
# Below this |det| the 3x3 quadric block is treated as singular
_SINGULAR_DET = 1e-10


class SimplificationContraction(Enum):
    """How a vertex cluster is reduced to one position."""
    AVERAGE = "average"
    QUADRIC = "quadric"


def compute_quadric(verts, faces):
    """
    Compute the quadric error matrix Q for each vertex.

    Q is the sum of p p^T over the planes p = [a, b, c, d] (unit normal) of
    the triangles around the vertex, so v^T Q v is the sum of squared
    distances from homogeneous v to those planes.

    Returns:
        (N, 4, 4) quadrics
    """
    verts = np.asarray(verts, dtype=np.float64)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    Q = np.zeros((len(verts), 4, 4))
    if len(faces) == 0:
        return Q

    v0, v1, v2 = verts[faces[:, 0]], verts[faces[:, 1]], verts[faces[:, 2]]
    normal = np.cross(v1 - v0, v2 - v0)
    norm_len = np.linalg.norm(normal, axis=1)
    valid = norm_len >= _DEGENERATE_NORM

    normal = normal[valid] / norm_len[valid, None]
    d = -np.einsum("ij,ij->i", normal, v0[valid])
    planes = np.hstack([normal, d[:, None]])
    Kp = np.einsum("ij,ik->ijk", planes, planes)

    for k in range(3):
        np.add.at(Q, faces[valid, k], Kp)
    return Q


def _quadric_error(Q_bar, v):
    v_hom = np.append(v, 1.0)
    return float(v_hom @ Q_bar @ v_hom)


def _optimal_position(Q_bar):
    """Minimizer of v^T Q v, or None when the 3x3 block is singular."""
    A = Q_bar[:3, :3]
    b = -Q_bar[:3, 3]
    if abs(np.linalg.det(A)) <= _SINGULAR_DET:
        return None
    try:
        return np.linalg.solve(A, b)
    except np.linalg.LinAlgError:
        return None


def edge_collapse_cost(v1_idx, v2_idx, verts, Q):
    """
    Cost of collapsing edge (v1, v2) and the position of the merged vertex.

    The merged vertex goes to the minimizer of the summed quadric. When that
    system is singular the cheapest of v1, v2 and their midpoint is used.

    Returns:
        (cost, new_position)
    """
    Q_bar = Q[v1_idx] + Q[v2_idx]
    v_new = _optimal_position(Q_bar)
    if v_new is None:
        p1, p2 = verts[v1_idx], verts[v2_idx]
        options = (p1, p2, 0.5 * (p1 + p2))
        costs = [_quadric_error(Q_bar, p) for p in options]
        best = int(np.argmin(costs))
        return costs[best], options[best].copy()
    return _quadric_error(Q_bar, v_new), v_new


def _compact(vertices, triangles, live, vertex_normals=None, vertex_colors=None):
    """New mesh from the live triangles, dropping vertices none of them use."""
    triangles = triangles[live]
    used = np.unique(triangles.reshape(-1))
    old_to_new = np.full(len(vertices), -1, dtype=np.int64)
    old_to_new[used] = np.arange(len(used))
    return TriangleMesh(
        vertices[used],
        old_to_new[triangles],
        vertex_normals=None if vertex_normals is None else vertex_normals[used],
        vertex_colors=None if vertex_colors is None else vertex_colors[used],
    )


def simplify_quadric_decimation(mesh, target_number_of_triangles):
    """
    Garland-Heckbert edge-collapse decimation.

    Edges are collapsed cheapest first until at most
    ``target_number_of_triangles`` remain. A collapse that would make the
    surface non-manifold, or flip or flatten a triangle, is skipped, so the
    target is not guaranteed to be reached. Winding is preserved; the merged
    vertex takes the average of the two normals/colors.

    Args:
        mesh: TriangleMesh, not modified
        target_number_of_triangles: stop once this many triangles are left

    Returns:
        new TriangleMesh
    """
    if not mesh.has_triangles():
        warnings.warn("[simplify_quadric_decimation] input mesh has no triangles",
                      MeshProcessingWarning)
        return TriangleMesh()
    if target_number_of_triangles <= 0:
        warnings.warn("[simplify_quadric_decimation] target_number_of_triangles must be "
                      "positive", MeshProcessingWarning)
        return TriangleMesh()

    verts = mesh.vertices.copy()
    faces = mesh.triangles.copy()
    normals = mesh.vertex_normals.copy() if mesh.has_vertex_normals() else None
    colors = mesh.vertex_colors.copy() if mesh.has_vertex_colors() else None
    num_faces = len(faces)

    if target_number_of_triangles >= num_faces:
        return mesh.copy()

    Q = compute_quadric(verts, faces)

    vertex_faces = [set() for _ in range(len(verts))]
    for tidx, face in enumerate(faces.tolist()):
        for v in face:
            vertex_faces[v].add(tidx)
    live = np.ones(num_faces, dtype=bool)
    n_live = num_faces

    def neighbors(v):
        return {int(u) for t in vertex_faces[v] for u in faces[t]} - {v}

    def is_boundary_edge(a, b):
        return len(vertex_faces[a] & vertex_faces[b]) == 1

    def is_boundary_vertex(v):
        return any(is_boundary_edge(v, u) for u in neighbors(v))

    def can_collapse(a, b):
        # link condition: only the triangles on the edge may share a third vertex
        shared = vertex_faces[a] & vertex_faces[b]
        if not shared:
            return False
        opposite = {int(u) for t in shared for u in faces[t]} - {a, b}
        nbs_a, nbs_b = neighbors(a), neighbors(b)
        if nbs_a & nbs_b != opposite:
            return False
        # a tetrahedron or a lone triangle has nothing left to collapse into
        if len((nbs_a | nbs_b) - {a, b}) < 3:
            return False
        # joining two boundary loops through the interior pinches the surface
        if len(shared) == 2 and is_boundary_vertex(a) and is_boundary_vertex(b):
            return False
        return True

    def flips_a_triangle(a, b, new_pos):
        for t in (vertex_faces[a] | vertex_faces[b]) - (vertex_faces[a] & vertex_faces[b]):
            before = verts[faces[t]]
            after = before.copy()
            after[(faces[t] == a) | (faces[t] == b)] = new_pos
            n_before = np.cross(before[1] - before[0], before[2] - before[0])
            n_after = np.cross(after[1] - after[0], after[2] - after[0])
            # zero-area input triangles are left alone; nothing may flip or flatten
            if np.any(n_before) and np.dot(n_before, n_after) <= 0:
                return True
        return False

    # Priority queue: (cost, edge)
    heap = []
    edge_cost_map = {}
    edge_pos_map = {}

    def push_edge(a, b):
        edge = (a, b) if a < b else (b, a)
        cost, new_pos = edge_collapse_cost(edge[0], edge[1], verts, Q)
        edge_cost_map[edge] = cost
        edge_pos_map[edge] = new_pos
        heapq.heappush(heap, (cost, edge))

    edges = np.unique(np.sort(np.concatenate(
        [faces[:, [0, 1]], faces[:, [1, 2]], faces[:, [2, 0]]]), axis=1), axis=0)
    for a, b in edges.tolist():
        push_edge(a, b)

    removed_verts = set()
    collapses = 0
    skipped = 0

    while heap and n_live > target_number_of_triangles:
        cost, edge = heapq.heappop(heap)
        v1, v2 = edge

        # Skip if vertices already removed
        if v1 in removed_verts or v2 in removed_verts:
            continue
        # Skip if cost changed (stale entry)
        if edge_cost_map.get(edge) != cost:
            continue
        if not can_collapse(v1, v2) or flips_a_triangle(v1, v2, edge_pos_map[edge]):
            skipped += 1
            continue

        # Perform collapse: move v1 to optimal position, remove v2
        verts[v1] = edge_pos_map.pop(edge)
        del edge_cost_map[edge]
        Q[v1] = Q[v1] + Q[v2]
        if normals is not None:
            normals[v1] = 0.5 * (normals[v1] + normals[v2])
        if colors is not None:
            colors[v1] = 0.5 * (colors[v1] + colors[v2])
        removed_verts.add(v2)

        for t in vertex_faces[v2]:
            if v1 in faces[t]:
                live[t] = False
                n_live -= 1
                for u in faces[t]:
                    if u != v2:
                        vertex_faces[u].discard(t)
            else:
                faces[t][faces[t] == v2] = v1
                vertex_faces[v1].add(t)
        vertex_faces[v2] = set()
        collapses += 1

        for u in neighbors(v1):
            push_edge(v1, u)

    if normals is not None:
        lengths = np.linalg.norm(normals, axis=1, keepdims=True)
        normals = normals / np.where(lengths == 0, 1.0, lengths)

    result = _compact(verts, faces, live, normals, colors)
    if mesh.has_triangle_normals():
        result.compute_triangle_normals()
    logger.debug("[simplify_quadric_decimation] %d -> %d triangles after %d collapses "
                 "(%d rejected)", num_faces, n_live, collapses, skipped)
    return result


def simplify_vertex_clustering(mesh, voxel_size,
                               contraction=SimplificationContraction.AVERAGE):
    """
    Merge all vertices that fall in the same cubic voxel.

    Voxels are aligned to ``min_bound - voxel_size / 2``. With AVERAGE the
    cluster moves to the mean of its vertices; with QUADRIC it moves to the
    point closest (least squares) to the planes of the triangles around it,
    falling back to the mean where that system is singular. Normals and
    colors are averaged. Triangles that collapse to an edge or a point, and
    repeated triangles, are dropped.

    Args:
        mesh: TriangleMesh, not modified
        voxel_size: edge length of the voxels, must be positive
        contraction: SimplificationContraction

    Returns:
        new TriangleMesh
    """
    contraction = SimplificationContraction(contraction)
    if voxel_size <= 0:
        warnings.warn("[simplify_vertex_clustering] voxel_size must be positive",
                      MeshProcessingWarning)
        return TriangleMesh()
    if not mesh.has_vertices():
        return TriangleMesh()

    voxel_min = mesh.get_min_bound() - 0.5 * voxel_size
    voxel_idx = np.floor((mesh.vertices - voxel_min) / voxel_size).astype(np.int64)
    _, cluster = np.unique(voxel_idx, axis=0, return_inverse=True)
    cluster = cluster.reshape(-1)
    n_clusters = int(cluster.max()) + 1
    counts = np.bincount(cluster, minlength=n_clusters)[:, None]

    def cluster_mean(values):
        sums = np.zeros((n_clusters, values.shape[1]))
        np.add.at(sums, cluster, values)
        return sums / counts

    vertices = cluster_mean(mesh.vertices)
    if contraction is SimplificationContraction.QUADRIC:
        Q = np.zeros((n_clusters, 4, 4))
        np.add.at(Q, cluster, compute_quadric(mesh.vertices, mesh.triangles))
        for c in range(n_clusters):
            v = _optimal_position(Q[c])
            if v is not None:
                vertices[c] = v

    result = TriangleMesh(
        vertices,
        cluster[mesh.triangles] if mesh.has_triangles() else None,
        vertex_normals=cluster_mean(mesh.vertex_normals) if mesh.has_vertex_normals() else None,
        vertex_colors=cluster_mean(mesh.vertex_colors) if mesh.has_vertex_colors() else None,
    )
    if result.has_vertex_normals():
        result.normalize_normals()
    remove_degenerate_triangles(result)
    remove_duplicated_triangles(result)
    if mesh.has_triangle_normals() and result.has_triangles():
        result.compute_triangle_normals()

    logger.debug("[simplify_vertex_clustering] %d -> %d vertices, %d -> %d triangles",
                 len(mesh.vertices), len(result.vertices),
                 len(mesh.triangles), len(result.triangles))
    return result
