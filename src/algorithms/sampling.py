"""
Surface point sampling.

Uniform sampling distributes points over triangles in proportion to their
area. Poisson-disk sampling follows Yuksel's sample elimination ("Sample
Elimination for Generating Poisson Disk Sample Sets", 2015): an oversampled
candidate set is thinned by repeatedly removing the sample whose neighborhood
is most crowded.
"""

from __future__ import annotations

import heapq
import logging
import warnings
from typing import Optional

import numpy as np

from ..geometry.errors import MeshProcessingWarning
from ..geometry.kdtree import KDTreeIndex
from ..geometry.point_cloud import PointCloud
from .metrics import get_triangle_areas

logger = logging.getLogger(__name__)

# Sample elimination constants from the paper
_ALPHA = 8.0
_BETA = 0.5
_GAMMA = 1.5


def _check_sampling_input(mesh, number_of_points, caller):
    if number_of_points <= 0:
        warnings.warn(f"[{caller}] number_of_points <= 0", MeshProcessingWarning)
        return False
    if len(mesh.triangles) == 0:
        warnings.warn(f"[{caller}] input mesh has no triangles", MeshProcessingWarning)
        return False
    return True


def _sample_uniformly(mesh, number_of_points, triangle_areas, surface_area, rng):
    # Cumulative area fraction per triangle; the point budget of triangle t
    # ends at round(cdf[t] * N) (half away from zero).
    cdf = np.minimum(np.cumsum(triangle_areas / surface_area), 1.0)
    cdf[-1] = 1.0
    boundaries = np.floor(cdf * number_of_points + 0.5).astype(np.int64)
    counts = np.diff(boundaries, prepend=0)
    tidx = np.repeat(np.arange(len(mesh.triangles)), counts)

    r1 = np.sqrt(rng.random(number_of_points))
    r2 = rng.random(number_of_points)
    bary = np.stack([1.0 - r1, r1 * (1.0 - r2), r1 * r2], axis=1)[:, :, None]

    corners = mesh.triangles[tidx]
    points = (bary * mesh.vertices[corners]).sum(axis=1)
    normals = colors = None
    if mesh.has_vertex_normals():
        normals = (bary * mesh.vertex_normals[corners]).sum(axis=1)
    if mesh.has_vertex_colors():
        colors = (bary * mesh.vertex_colors[corners]).sum(axis=1)
    return PointCloud(points, normals, colors)


def sample_points_uniformly(mesh, number_of_points=100, seed: Optional[int] = None):
    """
    Sample points uniformly over the mesh surface.

    Args:
        mesh: TriangleMesh to sample
        number_of_points: number of points to generate
        seed: optional seed for reproducible output

    Returns:
        PointCloud with exactly ``number_of_points`` points; normals and colors
        are interpolated when the mesh has vertex normals/colors. Empty (with
        a warning) for invalid input.
    """
    if not _check_sampling_input(mesh, number_of_points, "sample_points_uniformly"):
        return PointCloud()
    triangle_areas = get_triangle_areas(mesh)
    surface_area = float(triangle_areas.sum())
    if surface_area <= 0:
        warnings.warn("[sample_points_uniformly] input mesh has zero surface area",
                      MeshProcessingWarning)
        return PointCloud()
    rng = np.random.default_rng(seed)
    return _sample_uniformly(mesh, int(number_of_points), triangle_areas, surface_area, rng)


def sample_points_poisson_disk(mesh, number_of_points, init_factor=5,
                               pcl: Optional[PointCloud] = None, seed: Optional[int] = None):
    """
    Sample points with blue-noise (Poisson-disk like) spacing.

    Args:
        mesh: TriangleMesh to sample
        number_of_points: number of points to keep
        init_factor: candidates are drawn uniformly as ``init_factor * N``
            points when ``pcl`` is not given
        pcl: optional candidate PointCloud with at least N points; it is
            copied, not modified
        seed: optional seed for the uniform candidate draw

    Returns:
        PointCloud with ``number_of_points`` points, in candidate order.
    """
    caller = "sample_points_poisson_disk"
    if not _check_sampling_input(mesh, number_of_points, caller):
        return PointCloud()
    if pcl is None and init_factor < 1:
        warnings.warn(f"[{caller}] either pass pcl with #points > number_of_points "
                      "or init_factor > 1", MeshProcessingWarning)
        return PointCloud()
    if pcl is not None and len(pcl.points) < number_of_points:
        warnings.warn(f"[{caller}] either pass pcl with #points > number_of_points "
                      "or init_factor > 1", MeshProcessingWarning)
        return PointCloud()

    triangle_areas = get_triangle_areas(mesh)
    surface_area = float(triangle_areas.sum())
    if surface_area <= 0:
        warnings.warn(f"[{caller}] input mesh has zero surface area", MeshProcessingWarning)
        return PointCloud()

    if pcl is None:
        rng = np.random.default_rng(seed)
        candidates = _sample_uniformly(mesh, int(init_factor * number_of_points),
                                       triangle_areas, surface_area, rng)
    else:
        candidates = pcl.copy()

    points = candidates.points
    n_candidates = len(points)
    ratio = number_of_points / n_candidates
    r_max = 2.0 * np.sqrt((surface_area / number_of_points) / (2.0 * np.sqrt(3.0)))
    r_min = r_max * _BETA * (1.0 - ratio ** _GAMMA)

    weights = np.zeros(n_candidates)
    deleted = np.zeros(n_candidates, dtype=bool)
    kdtree = KDTreeIndex(points)

    def compute_point_weight(pidx0):
        nbs, dists2 = kdtree.search_radius(points[pidx0], r_max)
        live = (nbs != pidx0) & ~deleted[nbs]
        d = np.maximum(np.sqrt(dists2[live]), r_min)
        weights[pidx0] = float(np.sum((1.0 - d / r_max) ** _ALPHA))

    # heapq is a min-heap; weights are negated to pop the heaviest first
    queue = []
    for pidx in range(n_candidates):
        compute_point_weight(pidx)
        queue.append((-weights[pidx], pidx))
    heapq.heapify(queue)

    current_number_of_points = n_candidates
    while current_number_of_points > number_of_points:
        neg_weight, pidx = heapq.heappop(queue)

        # Skip stale entries left behind by re-insertion
        if deleted[pidx] or -neg_weight != weights[pidx]:
            continue

        deleted[pidx] = True
        current_number_of_points -= 1

        nbs, _ = kdtree.search_radius(points[pidx], r_max)
        for nb in nbs:
            compute_point_weight(nb)
            heapq.heappush(queue, (-weights[nb], int(nb)))

    keep = ~deleted
    logger.debug("[%s] kept %d of %d candidates (r_max=%.4g, r_min=%.4g)",
                 caller, int(keep.sum()), n_candidates, r_max, r_min)
    return PointCloud(
        points[keep],
        candidates.normals[keep] if candidates.has_normals() else None,
        candidates.colors[keep] if candidates.has_colors() else None,
    )
