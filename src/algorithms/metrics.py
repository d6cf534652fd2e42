import logging

import numpy as np

from ..geometry.convex_hull import compute_convex_hull
from ..geometry.intersection import aabb_intersect, triangle_triangle_intersect

logger = logging.getLogger(__name__)


def compute_triangle_area(p0, p1, p2):
    """Area of the triangle (p0, p1, p2): 0.5 * |(p1 - p0) x (p2 - p0)|."""
    p0 = np.asarray(p0, dtype=np.float64)
    cross = np.cross(np.asarray(p1, dtype=np.float64) - p0, np.asarray(p2, dtype=np.float64) - p0)
    return 0.5 * float(np.linalg.norm(cross))


def compute_triangle_plane(p0, p1, p2):
    """
    Plane (a, b, c, d) through three points with unit normal (a, b, c) and
    a*x + b*y + c*z + d = 0.

    Colinear points have no plane; (0, 0, 0, 0) is returned instead.
    """
    p0 = np.asarray(p0, dtype=np.float64)
    abc = np.cross(np.asarray(p1, dtype=np.float64) - p0, np.asarray(p2, dtype=np.float64) - p0)
    norm = np.linalg.norm(abc)
    if norm == 0:
        return np.zeros(4)
    abc = abc / norm
    return np.append(abc, -abc.dot(p0))


def get_triangle_area(mesh, triangle_idx):
    v0, v1, v2 = mesh.triangles[triangle_idx]
    return compute_triangle_area(mesh.vertices[v0], mesh.vertices[v1], mesh.vertices[v2])


def get_triangle_plane(mesh, triangle_idx):
    v0, v1, v2 = mesh.triangles[triangle_idx]
    return compute_triangle_plane(mesh.vertices[v0], mesh.vertices[v1], mesh.vertices[v2])


def get_triangle_areas(mesh):
    """
    Per-triangle areas, vectorized.

    Returns:
        areas: (M,) float64 array
    """
    tris = mesh.triangles
    if len(tris) == 0:
        return np.zeros(0)
    v0 = mesh.vertices[tris[:, 0]]
    v1 = mesh.vertices[tris[:, 1]]
    v2 = mesh.vertices[tris[:, 2]]
    return 0.5 * np.linalg.norm(np.cross(v1 - v0, v2 - v0), axis=1)


def get_surface_area(mesh):
    """Sum of all triangle areas."""
    return float(get_triangle_areas(mesh).sum())


def get_self_intersecting_triangles(mesh):
    """
    Find pairs of triangles that intersect without sharing a vertex.

    Every pair is a candidate (quadratic in the triangle count); per-triangle
    bounding boxes discard pairs that cannot touch before the exact test runs.

    Returns:
        (K, 2) int array of triangle index pairs (i, j) with i < j
    """
    tris = mesh.triangles
    pairs = []
    if len(tris) < 2:
        return np.zeros((0, 2), dtype=np.int64)

    corners = mesh.vertices[tris]            # (M, 3, 3)
    box_min = corners.min(axis=1)
    box_max = corners.max(axis=1)

    for i in range(len(tris) - 1):
        rest = slice(i + 1, None)
        overlap = (np.all(box_min[rest] <= box_max[i], axis=1)
                   & np.all(box_min[i] <= box_max[rest], axis=1))
        # triangles sharing a vertex are neighbors, not intersections
        shares_vertex = np.isin(tris[rest], tris[i]).any(axis=1)
        for j in np.flatnonzero(overlap & ~shares_vertex) + i + 1:
            if triangle_triangle_intersect(*corners[i], *corners[j]):
                pairs.append((i, int(j)))

    logger.debug("[get_self_intersecting_triangles] %d intersecting pairs", len(pairs))
    return np.array(pairs, dtype=np.int64).reshape(-1, 2)


def is_self_intersecting(mesh):
    return len(get_self_intersecting_triangles(mesh)) > 0


def is_bounding_box_intersecting(mesh, other):
    return aabb_intersect(mesh.get_min_bound(), mesh.get_max_bound(),
                          other.get_min_bound(), other.get_max_bound())


def is_intersecting(mesh, other):
    """
    True if any triangle of ``mesh`` intersects any triangle of ``other``.
    Stops at the first hit.
    """
    if not is_bounding_box_intersecting(mesh, other):
        return False
    corners_p = mesh.vertices[mesh.triangles]
    corners_q = other.vertices[other.triangles]
    for p in corners_p:
        for q in corners_q:
            if triangle_triangle_intersect(*p, *q):
                return True
    return False


def compute_mesh_convex_hull(mesh):
    """Convex hull of the mesh vertices as a new TriangleMesh."""
    return compute_convex_hull(mesh.vertices)
