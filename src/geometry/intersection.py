"""
Stateless intersection predicates.

Triangle-triangle uses Möller's interval overlap test ("A Fast
Triangle-Triangle Intersection Test", 1997): each triangle is classified
against the other's supporting plane, and for the non-coplanar case the two
intersection intervals on the common line are compared. Coplanar pairs are
projected to 2D and tested for edge crossings and containment. Touching
counts as intersecting; zero-area triangles never intersect anything.
"""

from __future__ import annotations

import numpy as np

# Signed plane distances below this are snapped to zero
_PLANE_EPS = 1e-12


def aabb_intersect(min0, max0, min1, max1) -> bool:
    """Closed axis-aligned boxes overlap (touching counts)."""
    min0, max0 = np.asarray(min0), np.asarray(max0)
    min1, max1 = np.asarray(min1), np.asarray(max1)
    return bool(np.all(min0 <= max1) and np.all(min1 <= max0))


def triangle_triangle_intersect(p0, p1, p2, q0, q1, q2) -> bool:
    """Return True if triangle (p0, p1, p2) and triangle (q0, q1, q2) intersect."""
    P = np.array([p0, p1, p2], dtype=np.float64)
    Q = np.array([q0, q1, q2], dtype=np.float64)

    n_p = np.cross(P[1] - P[0], P[2] - P[0])
    n_q = np.cross(Q[1] - Q[0], Q[2] - Q[0])
    # zero-area triangles have no supporting plane
    if not np.any(n_p) or not np.any(n_q):
        return False

    dist_p = _plane_distances(P, n_q, Q[0])
    if np.all(dist_p > 0) or np.all(dist_p < 0):
        return False

    dist_q = _plane_distances(Q, n_p, P[0])
    if np.all(dist_q > 0) or np.all(dist_q < 0):
        return False

    if not np.any(dist_p) or not np.any(dist_q):
        return _coplanar_intersect(n_p, P, Q)

    # Project onto the dominant axis of the intersection line direction
    direction = np.cross(n_p, n_q)
    if not np.any(direction):
        # parallel planes that are not coplanar were rejected above
        return _coplanar_intersect(n_p, P, Q)
    axis = int(np.argmax(np.abs(direction)))
    lo_p, hi_p = _interval(P[:, axis], dist_p)
    lo_q, hi_q = _interval(Q[:, axis], dist_q)
    return not (hi_p < lo_q or hi_q < lo_p)


def _plane_distances(points: np.ndarray, normal: np.ndarray, origin: np.ndarray) -> np.ndarray:
    dist = (points - origin) @ normal
    dist[np.abs(dist) < _PLANE_EPS] = 0.0
    return dist


def _interval(proj: np.ndarray, dist: np.ndarray):
    """Interval where a triangle crosses the other triangle's plane."""
    d0, d1, d2 = dist
    if d0 * d1 > 0:
        alone = 2
    elif d0 * d2 > 0:
        alone = 1
    elif d1 * d2 > 0 or d0 != 0:
        alone = 0
    elif d1 != 0:
        alone = 1
    else:
        alone = 2
    b, c = [k for k in range(3) if k != alone]
    t1 = proj[alone] + (proj[b] - proj[alone]) * dist[alone] / (dist[alone] - dist[b])
    t2 = proj[alone] + (proj[c] - proj[alone]) * dist[alone] / (dist[alone] - dist[c])
    return min(t1, t2), max(t1, t2)


# ---------------------------------------------------------------------------
# Coplanar case
# ---------------------------------------------------------------------------

def _orient2d(a, b, c) -> float:
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def _on_segment(a, b, c) -> bool:
    """c is collinear with ab; check it lies within the segment's box."""
    return (min(a[0], b[0]) <= c[0] <= max(a[0], b[0])
            and min(a[1], b[1]) <= c[1] <= max(a[1], b[1]))


def _segments_intersect_2d(a, b, c, d) -> bool:
    o1 = _orient2d(a, b, c)
    o2 = _orient2d(a, b, d)
    o3 = _orient2d(c, d, a)
    o4 = _orient2d(c, d, b)
    if o1 * o2 < 0 and o3 * o4 < 0:
        return True
    if o1 == 0 and _on_segment(a, b, c):
        return True
    if o2 == 0 and _on_segment(a, b, d):
        return True
    if o3 == 0 and _on_segment(c, d, a):
        return True
    if o4 == 0 and _on_segment(c, d, b):
        return True
    return False


def _point_in_triangle_2d(p, a, b, c) -> bool:
    s1 = _orient2d(a, b, p)
    s2 = _orient2d(b, c, p)
    s3 = _orient2d(c, a, p)
    has_neg = s1 < 0 or s2 < 0 or s3 < 0
    has_pos = s1 > 0 or s2 > 0 or s3 > 0
    return not (has_neg and has_pos)


def _coplanar_intersect(normal: np.ndarray, P: np.ndarray, Q: np.ndarray) -> bool:
    # drop the coordinate along which the plane normal is largest
    drop = int(np.argmax(np.abs(normal)))
    keep = [k for k in range(3) if k != drop]
    P2 = P[:, keep]
    Q2 = Q[:, keep]

    for i in range(3):
        a, b = P2[i], P2[(i + 1) % 3]
        for j in range(3):
            if _segments_intersect_2d(a, b, Q2[j], Q2[(j + 1) % 3]):
                return True

    # no edge crossings: one triangle may lie entirely inside the other
    if _point_in_triangle_2d(P2[0], *Q2):
        return True
    if _point_in_triangle_2d(Q2[0], *P2):
        return True
    return False
