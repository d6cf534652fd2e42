import logging
from enum import Enum

import numpy as np
from scipy import sparse

logger = logging.getLogger(__name__)

# Guards the inverse-distance weight when a neighbor coincides with the vertex
_LAPLACIAN_EPS = 1e-12


class FilterScope(Enum):
    """Which per-vertex channels a filter touches."""
    ALL = "all"
    COLOR = "color"
    NORMAL = "normal"
    VERTEX = "vertex"


def _filtered_channels(mesh, scope):
    scope = FilterScope(scope)
    channels = []
    if scope in (FilterScope.ALL, FilterScope.VERTEX):
        channels.append("vertices")
    if scope in (FilterScope.ALL, FilterScope.NORMAL) and mesh.has_vertex_normals():
        channels.append("vertex_normals")
    if scope in (FilterScope.ALL, FilterScope.COLOR) and mesh.has_vertex_colors():
        channels.append("vertex_colors")
    return channels


def build_adjacency_matrix(adjacency_list, num_verts=None):
    """
    Build the 0/1 neighbor matrix A with A[i, j] = 1 iff j is adjacent to i.
    """
    if num_verts is None:
        num_verts = len(adjacency_list)
    counts = np.fromiter((len(nbs) for nbs in adjacency_list), dtype=np.int64,
                         count=len(adjacency_list))
    rows = np.repeat(np.arange(len(adjacency_list)), counts)
    cols = np.fromiter((nb for nbs in adjacency_list for nb in nbs), dtype=np.int64,
                       count=int(counts.sum()))
    data = np.ones(len(rows))
    A = sparse.coo_matrix((data, (rows, cols)), shape=(num_verts, num_verts))
    return A.tocsr()


def _neighbor_matrix(mesh):
    if not mesh.has_adjacency_list():
        mesh.compute_adjacency_list()
    return build_adjacency_matrix(mesh.adjacency_list, len(mesh.vertices))


def filter_sharpen(mesh, number_of_iterations=1, strength=1.0, scope=FilterScope.ALL):
    """
    Push every vertex away from its neighbors: v' = v + s * (v * |N| - sum(N)).

    Args:
        mesh: TriangleMesh, modified in place
        number_of_iterations: number of passes
        strength: sharpening factor s
        scope: FilterScope selecting positions, normals and/or colors

    Returns:
        the same mesh
    """
    channels = _filtered_channels(mesh, scope)
    A = _neighbor_matrix(mesh)
    degrees = np.asarray(A.sum(axis=1)).reshape(-1, 1)

    for _ in range(number_of_iterations):
        for name in channels:
            prev = getattr(mesh, name)
            setattr(mesh, name, prev + strength * (prev * degrees - A @ prev))

    logger.debug("[filter_sharpen] %d iterations on %s", number_of_iterations, channels)
    return mesh


def filter_smooth_simple(mesh, number_of_iterations=1, scope=FilterScope.ALL):
    """
    Replace each value by the unweighted average of itself and its neighbors.
    """
    channels = _filtered_channels(mesh, scope)
    A = _neighbor_matrix(mesh)
    degrees = np.asarray(A.sum(axis=1)).reshape(-1, 1)

    for _ in range(number_of_iterations):
        for name in channels:
            prev = getattr(mesh, name)
            setattr(mesh, name, (prev + A @ prev) / (degrees + 1))

    logger.debug("[filter_smooth_simple] %d iterations on %s", number_of_iterations, channels)
    return mesh


def filter_smooth_laplacian(mesh, number_of_iterations=1, lambda_val=0.5, scope=FilterScope.ALL):
    """
    Inverse-distance weighted Laplacian smoothing.

    Each neighbor n of v gets weight w_n = 1 / (|v - n| + eps), measured on the
    vertex positions at the start of the iteration, and

        v' = v + lambda * (sum(w_n * n) / sum(w_n) - v)

    Vertices without neighbors are left unchanged.

    Args:
        mesh: TriangleMesh, modified in place
        number_of_iterations: number of passes
        lambda_val: step size; negative values inflate (see Taubin)
        scope: FilterScope selecting positions, normals and/or colors

    Returns:
        the same mesh
    """
    channels = _filtered_channels(mesh, scope)
    A = _neighbor_matrix(mesh).tocoo()
    rows, cols = A.row, A.col
    shape = A.shape

    for _ in range(number_of_iterations):
        verts = mesh.vertices
        dist = np.linalg.norm(verts[rows] - verts[cols], axis=1)
        W = sparse.csr_matrix((1.0 / (dist + _LAPLACIAN_EPS), (rows, cols)), shape=shape)
        total = np.asarray(W.sum(axis=1)).reshape(-1, 1)
        isolated = total[:, 0] == 0
        total[isolated] = 1.0

        for name in channels:
            prev = getattr(mesh, name)
            smoothed = prev + lambda_val * ((W @ prev) / total - prev)
            smoothed[isolated] = prev[isolated]
            setattr(mesh, name, smoothed)

    logger.debug("[filter_smooth_laplacian] %d iterations, lambda=%g on %s",
                 number_of_iterations, lambda_val, channels)
    return mesh


def filter_smooth_taubin(mesh, number_of_iterations=1, lambda_val=0.5, mu_val=-0.53,
                         scope=FilterScope.ALL):
    """
    Taubin smoothing: alternate a shrinking Laplacian pass (lambda > 0) with an
    inflating one (mu < 0) so the mesh does not shrink over many iterations.
    """
    for _ in range(number_of_iterations):
        filter_smooth_laplacian(mesh, 1, lambda_val, scope)
        filter_smooth_laplacian(mesh, 1, mu_val, scope)
    return mesh
