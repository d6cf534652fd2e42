"""Shared mesh builders for the test suite.

All meshes are built inline so the tests stay data-free.
"""

from __future__ import annotations

import os
import sys

import numpy as np
import pytest

# Allow running the tests without installing the package
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.geometry import TriangleMesh  # noqa: E402


def make_unit_cube_mesh() -> TriangleMesh:
    """Closed unit cube: 8 vertices, 12 consistently wound triangles."""
    verts = np.array(
        [
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [1.0, 1.0, 0.0],
            [0.0, 1.0, 0.0],
            [0.0, 0.0, 1.0],
            [1.0, 0.0, 1.0],
            [1.0, 1.0, 1.0],
            [0.0, 1.0, 1.0],
        ]
    )
    faces = np.array(
        [
            # bottom (z=0)
            [0, 1, 2],
            [0, 2, 3],
            # top (z=1)
            [4, 6, 5],
            [4, 7, 6],
            # front (y=0)
            [0, 5, 1],
            [0, 4, 5],
            # back (y=1)
            [3, 2, 6],
            [3, 6, 7],
            # left (x=0)
            [0, 3, 7],
            [0, 7, 4],
            # right (x=1)
            [1, 5, 6],
            [1, 6, 2],
        ]
    )
    return TriangleMesh(verts, faces)


def make_unit_square_mesh() -> TriangleMesh:
    """Unit square in the z=0 plane split into two triangles."""
    verts = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]])
    return TriangleMesh(verts, [[0, 1, 2], [0, 2, 3]])


def make_moebius_mesh(length_split: int = 6) -> TriangleMesh:
    """Möbius band: a strip of quads whose last quad is glued with a half twist."""
    verts = []
    for i in range(length_split):
        angle = 2.0 * np.pi * i / length_split
        radial = np.array([np.cos(angle), np.sin(angle), 0.0])
        # the rung rotates by half a turn around the loop
        rung = 0.3 * (np.cos(angle / 2) * radial + np.sin(angle / 2) * np.array([0.0, 0.0, 1.0]))
        verts.append(radial + rung)   # top rail, index 2i
        verts.append(radial - rung)   # bottom rail, index 2i + 1
    tris = []
    for i in range(length_split - 1):
        t0, b0, t1, b1 = 2 * i, 2 * i + 1, 2 * i + 2, 2 * i + 3
        tris.append([t0, b0, b1])
        tris.append([t0, b1, t1])
    # twisted closing quad: top of the last rung meets the bottom of the first
    t_last, b_last = 2 * (length_split - 1), 2 * (length_split - 1) + 1
    tris.append([t_last, b_last, 0])
    tris.append([t_last, 0, 1])
    return TriangleMesh(np.array(verts), tris)


def directed_edge_conflicts(triangles) -> int:
    """Number of directed edges used by more than one triangle."""
    seen = {}
    for a, b, c in np.asarray(triangles).tolist():
        for edge in ((a, b), (b, c), (c, a)):
            seen[edge] = seen.get(edge, 0) + 1
    return sum(1 for count in seen.values() if count > 1)


@pytest.fixture
def cube():
    return make_unit_cube_mesh()


@pytest.fixture
def square():
    return make_unit_square_mesh()


@pytest.fixture
def moebius():
    return make_moebius_mesh()
