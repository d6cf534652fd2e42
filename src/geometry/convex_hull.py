import logging
import warnings

import numpy as np
from scipy.spatial import ConvexHull, QhullError

from .errors import MeshProcessingWarning
from .triangle_mesh import TriangleMesh

logger = logging.getLogger(__name__)


def compute_convex_hull(points) -> TriangleMesh:
    """
    Convex hull of a point set as a closed triangle mesh.

    Facets are wound so their normals point out of the hull and only the
    hull vertices are kept.

    Args:
        points: (N, 3) point positions

    Returns:
        TriangleMesh of the hull; empty if the points span no volume
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if len(points) < 4:
        warnings.warn("[compute_convex_hull] need at least 4 points",
                      MeshProcessingWarning)
        return TriangleMesh()
    try:
        hull = ConvexHull(points)
    except QhullError as exc:
        warnings.warn(f"[compute_convex_hull] degenerate point set: {exc}",
                      MeshProcessingWarning)
        return TriangleMesh()

    simplices = hull.simplices.copy()
    v0 = points[simplices[:, 0]]
    normals = np.cross(points[simplices[:, 1]] - v0, points[simplices[:, 2]] - v0)
    # hull.equations carries the outward facet normals
    inward = np.einsum("ij,ij->i", normals, hull.equations[:, :3]) < 0
    simplices[inward] = simplices[inward][:, [0, 2, 1]]

    used, remapped = np.unique(simplices, return_inverse=True)
    triangles = remapped.reshape(-1, 3)
    logger.debug("[compute_convex_hull] %d hull vertices, %d facets", len(used), len(triangles))
    return TriangleMesh(points[used], triangles)
