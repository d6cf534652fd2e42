"""Fixed-point-set radius queries backed by ``scipy.spatial.cKDTree``."""

from typing import Tuple

import numpy as np
from scipy.spatial import cKDTree


class KDTreeIndex:
    """Radius-query index over a fixed (N, 3) point set."""

    def __init__(self, points):
        self.points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        self._tree = cKDTree(self.points)

    def search_radius(self, query, radius: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Find all points within ``radius`` of ``query``.

        Args:
            query: (3,) query position
            radius: search radius (inclusive)

        Returns:
            indices: (K,) point indices in ascending order
            dists2: (K,) squared distances to ``query``
        """
        query = np.asarray(query, dtype=np.float64).reshape(3)
        indices = np.asarray(self._tree.query_ball_point(query, radius), dtype=np.int64)
        indices.sort()
        diff = self.points[indices] - query
        return indices, np.einsum("ij,ij->i", diff, diff)
