"""
Edge-graph analysis: manifoldness, Euler characteristic and orientation.

Edges are keyed by the sorted vertex pair ``(min, max)``.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import Callable, Dict, List, Set, Tuple

import numpy as np

logger = logging.getLogger(__name__)

Edge = Tuple[int, int]


def _edge_key(v0: int, v1: int) -> Edge:
    return (v0, v1) if v0 < v1 else (v1, v0)


def get_edge_to_triangles_map(mesh) -> Dict[Edge, List[int]]:
    """Map each undirected edge to its incident triangles, in triangle order."""
    edges = defaultdict(list)
    for tidx, (v0, v1, v2) in enumerate(mesh.triangles.tolist()):
        edges[_edge_key(v0, v1)].append(tidx)
        edges[_edge_key(v1, v2)].append(tidx)
        edges[_edge_key(v2, v0)].append(tidx)
    return dict(edges)


def get_edges(mesh) -> Set[Edge]:
    tris = mesh.triangles
    pairs = np.concatenate([tris[:, [0, 1]], tris[:, [1, 2]], tris[:, [2, 0]]])
    pairs.sort(axis=1)
    return set(map(tuple, pairs.tolist()))


def euler_poincare_characteristic(mesh) -> int:
    """V + F - E."""
    return len(mesh.vertices) + len(mesh.triangles) - len(get_edges(mesh))


def _is_non_manifold_count(count: int, allow_boundary_edges: bool) -> bool:
    if allow_boundary_edges:
        return count < 1 or count > 2
    return count != 2


def get_non_manifold_edges(mesh, allow_boundary_edges=True) -> np.ndarray:
    """
    Edges with more than two incident triangles, or (if boundary edges are not
    allowed) every edge that does not have exactly two.

    Returns:
        (K, 2) int array of sorted vertex pairs, in ascending order
    """
    edges = sorted(edge for edge, tidxs in get_edge_to_triangles_map(mesh).items()
                   if _is_non_manifold_count(len(tidxs), allow_boundary_edges))
    return np.array(edges, dtype=np.int64).reshape(-1, 2)


def is_edge_manifold(mesh, allow_boundary_edges=True) -> bool:
    return not any(_is_non_manifold_count(len(tidxs), allow_boundary_edges)
                   for tidxs in get_edge_to_triangles_map(mesh).values())


def get_non_manifold_vertices(mesh) -> np.ndarray:
    """
    Vertices whose incident triangles do not form a single fan.

    For every vertex the link graph connects the two opposite vertices of each
    incident triangle; the vertex is manifold iff that graph is connected.
    """
    vert_to_triangles = [[] for _ in range(len(mesh.vertices))]
    triangles = mesh.triangles.tolist()
    for tidx, tri in enumerate(triangles):
        for v in set(tri):
            vert_to_triangles[v].append(tidx)

    non_manifold = []
    for vidx, incident in enumerate(vert_to_triangles):
        link = defaultdict(set)
        for tidx in incident:
            others = [v for v in triangles[tidx] if v != vidx]
            if len(others) != 2:
                continue
            a, b = others
            link[a].add(b)
            link[b].add(a)
        if not link:
            continue

        start = next(iter(link))
        visited = {start}
        queue = deque([start])
        while queue:
            vert = queue.popleft()
            for nb in link[vert]:
                if nb not in visited:
                    visited.add(nb)
                    queue.append(nb)
        if len(visited) != len(link):
            non_manifold.append(vidx)

    return np.array(non_manifold, dtype=np.int64)


def is_vertex_manifold(mesh) -> bool:
    return len(get_non_manifold_vertices(mesh)) == 0


# ---------------------------------------------------------------------------
# Orientation
# ---------------------------------------------------------------------------

def _propagate_orientation(triangles: List[List[int]],
                           swap: Callable[[int, int, int], None]) -> bool:
    """
    Breadth-first winding propagation over edge-adjacent triangles.

    The first triangle of every connected component fixes the direction of its
    edges. Each later triangle may be flipped once (two of its vertices
    swapped) to run its shared edges opposite to the directions already
    recorded; if it still reuses a recorded direction the surface cannot be
    oriented consistently.
    """
    edge_to_orientation: Dict[Edge, Edge] = {}
    adjacent_triangles = defaultdict(set)
    for tidx, (v0, v1, v2) in enumerate(triangles):
        adjacent_triangles[_edge_key(v0, v1)].add(tidx)
        adjacent_triangles[_edge_key(v1, v2)].add(tidx)
        adjacent_triangles[_edge_key(v2, v0)].add(tidx)

    def verify_and_add(a: int, b: int) -> bool:
        key = _edge_key(a, b)
        if key in edge_to_orientation:
            return edge_to_orientation[key][0] != a
        edge_to_orientation[key] = (a, b)
        return True

    visited = np.zeros(len(triangles), dtype=bool)
    n_unvisited = len(triangles)
    next_seed = 0
    queue = deque()

    while n_unvisited:
        if queue:
            tidx = queue.popleft()
        else:
            while visited[next_seed]:
                next_seed += 1
            tidx = next_seed
        if visited[tidx]:
            continue
        visited[tidx] = True
        n_unvisited -= 1

        v0, v1, v2 = triangles[tidx]
        key01, key12, key20 = _edge_key(v0, v1), _edge_key(v1, v2), _edge_key(v2, v0)
        known01 = edge_to_orientation.get(key01)
        known12 = edge_to_orientation.get(key12)
        known20 = edge_to_orientation.get(key20)

        if known01 is None and known12 is None and known20 is None:
            edge_to_orientation[key01] = (v0, v1)
            edge_to_orientation[key12] = (v1, v2)
            edge_to_orientation[key20] = (v2, v0)
        else:
            # one flip is allowed
            if known01 is not None and known01[0] == v0:
                v0, v1 = v1, v0
                swap(tidx, 0, 1)
            elif known12 is not None and known12[0] == v1:
                v1, v2 = v2, v1
                swap(tidx, 1, 2)
            elif known20 is not None and known20[0] == v2:
                v2, v0 = v0, v2
                swap(tidx, 2, 0)

            if not (verify_and_add(v0, v1) and verify_and_add(v1, v2)
                    and verify_and_add(v2, v0)):
                logger.debug("[orient] winding conflict at triangle %d", tidx)
                return False

        for key in (key01, key12, key20):
            queue.extend(adjacent_triangles[key])
    return True


def is_orientable(mesh) -> bool:
    """True if all triangles can be wound consistently."""
    return _propagate_orientation(mesh.triangles.tolist(), lambda tidx, i, j: None)


def orient_triangles(mesh) -> bool:
    """
    Rewind triangles so that neighbors traverse shared edges in opposite
    directions.

    The mesh is only modified when the whole surface could be oriented; on
    failure it is left untouched and False is returned. Triangle normals of
    flipped triangles are negated to follow the new winding.
    """
    triangles = mesh.triangles.tolist()
    flipped = set()

    def swap(tidx: int, i: int, j: int) -> None:
        tri = triangles[tidx]
        tri[i], tri[j] = tri[j], tri[i]
        flipped.add(tidx)

    if not _propagate_orientation(triangles, swap):
        return False

    if flipped:
        flipped_idx = np.fromiter(flipped, dtype=np.int64, count=len(flipped))
        if mesh.has_triangle_normals():
            mesh.triangle_normals[flipped_idx] *= -1
        mesh.triangles = np.array(triangles, dtype=np.int64).reshape(-1, 3)
    logger.debug("[orient_triangles] %d triangles flipped", len(flipped))
    return True
