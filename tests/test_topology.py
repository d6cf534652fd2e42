"""Tests for manifold, Euler characteristic and orientation analysis."""

import numpy as np
import numpy.testing as npt

from src.geometry import TriangleMesh
from src.algorithms import (
    euler_poincare_characteristic,
    get_edge_to_triangles_map,
    get_non_manifold_edges,
    get_non_manifold_vertices,
    is_edge_manifold,
    is_orientable,
    is_vertex_manifold,
    orient_triangles,
)

from conftest import directed_edge_conflicts, make_unit_cube_mesh


def _make_bowtie_mesh() -> TriangleMesh:
    """Two triangles touching only at vertex 0."""
    verts = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [1.0, 1.0, 0.0],
        [-1.0, 0.0, 0.0],
        [-1.0, -1.0, 0.0],
    ])
    return TriangleMesh(verts, [[0, 1, 2], [0, 3, 4]])


class TestClosedCube:

    def test_euler_characteristic(self, cube):
        assert euler_poincare_characteristic(cube) == 2

    def test_edge_manifold_without_boundary(self, cube):
        assert is_edge_manifold(cube, allow_boundary_edges=False)
        assert len(get_non_manifold_edges(cube, allow_boundary_edges=False)) == 0

    def test_vertex_manifold(self, cube):
        assert is_vertex_manifold(cube)
        assert get_non_manifold_vertices(cube).shape == (0,)

    def test_orientable(self, cube):
        assert is_orientable(cube)
        assert directed_edge_conflicts(cube.triangles) == 0

    def test_every_edge_has_two_triangles(self, cube):
        edges = get_edge_to_triangles_map(cube)
        assert len(edges) == 18
        assert all(len(tidxs) == 2 for tidxs in edges.values())


def test_boundary_edges(square):
    assert is_edge_manifold(square)
    assert not is_edge_manifold(square, allow_boundary_edges=False)
    npt.assert_array_equal(get_non_manifold_edges(square, allow_boundary_edges=False),
                           [[0, 1], [0, 3], [1, 2], [2, 3]])
    assert euler_poincare_characteristic(square) == 1


def test_bowtie_vertex_is_non_manifold():
    mesh = _make_bowtie_mesh()
    npt.assert_array_equal(get_non_manifold_vertices(mesh), [0])
    assert not is_vertex_manifold(mesh)
    assert is_edge_manifold(mesh)


def test_vertices_without_triangles_are_manifold():
    mesh = TriangleMesh(np.eye(3))
    assert is_vertex_manifold(mesh)


class TestOrientation:

    def test_orient_flipped_cube(self):
        mesh = make_unit_cube_mesh()
        mesh.triangles[[1, 4, 7, 10]] = mesh.triangles[[1, 4, 7, 10]][:, [0, 2, 1]]
        mesh.compute_triangle_normals()
        assert directed_edge_conflicts(mesh.triangles) > 0
        assert is_orientable(mesh)

        assert orient_triangles(mesh)
        assert directed_edge_conflicts(mesh.triangles) == 0
        # normals follow the new winding
        expected = mesh.copy().compute_triangle_normals().triangle_normals
        npt.assert_allclose(mesh.triangle_normals, expected)

    def test_orient_keeps_triangle_vertex_sets(self):
        mesh = make_unit_cube_mesh()
        mesh.triangles[3] = mesh.triangles[3][[1, 0, 2]]
        before = np.sort(mesh.triangles, axis=1)
        assert orient_triangles(mesh)
        npt.assert_array_equal(np.sort(mesh.triangles, axis=1), before)

    def test_consistent_mesh_is_untouched(self, cube):
        before = cube.triangles.copy()
        assert orient_triangles(cube)
        npt.assert_array_equal(cube.triangles, before)

    def test_two_components(self, cube, square):
        mesh = cube + square
        mesh.triangles[13] = mesh.triangles[13][[0, 2, 1]]
        assert orient_triangles(mesh)
        assert directed_edge_conflicts(mesh.triangles) == 0

    def test_moebius_is_not_orientable(self, moebius):
        assert is_edge_manifold(moebius)
        assert not is_orientable(moebius)

    def test_failed_orientation_leaves_mesh_untouched(self, moebius):
        moebius.compute_triangle_normals()
        triangles = moebius.triangles.copy()
        normals = moebius.triangle_normals.copy()
        assert not orient_triangles(moebius)
        npt.assert_array_equal(moebius.triangles, triangles)
        npt.assert_array_equal(moebius.triangle_normals, normals)

    def test_empty_mesh_is_orientable(self):
        assert is_orientable(TriangleMesh())
