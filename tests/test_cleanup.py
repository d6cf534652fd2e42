"""Tests for the topology cleanup passes."""

import logging

import numpy as np
import numpy.testing as npt
import pytest

from src.geometry import TriangleMesh
from src.algorithms import (
    euler_poincare_characteristic,
    get_non_manifold_edges,
    get_surface_area,
    is_edge_manifold,
    remove_degenerate_triangles,
    remove_duplicated_triangles,
    remove_duplicated_vertices,
    remove_non_manifold_edges,
    remove_unreferenced_vertices,
)


def _make_split_square_mesh() -> TriangleMesh:
    """Unit square whose two triangles do not share vertex indices."""
    verts = np.array([
        [0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0],
        [0.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0],
    ])
    colors = np.arange(18, dtype=np.float64).reshape(6, 3) / 18.0
    return TriangleMesh(verts, [[0, 1, 2], [3, 4, 5]], vertex_colors=colors)


def _make_fin_mesh() -> TriangleMesh:
    """Three triangles hinged on edge (0, 1); the one through vertex 4 is smallest."""
    verts = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, -1.0, 0.0],
        [0.0, 0.0, 0.5],
    ])
    return TriangleMesh(verts, [[0, 1, 2], [1, 0, 3], [0, 1, 4]])


def _cleanup_all(mesh):
    return (remove_duplicated_vertices(mesh)
            + remove_duplicated_triangles(mesh)
            + remove_degenerate_triangles(mesh)
            + remove_unreferenced_vertices(mesh))


# ---------------------------------------------------------------------------
# Duplicated vertices
# ---------------------------------------------------------------------------

def test_remove_duplicated_vertices_merges_into_first():
    mesh = _make_split_square_mesh()
    colors = mesh.vertex_colors.copy()
    area = get_surface_area(mesh)

    assert remove_duplicated_vertices(mesh) == 2
    assert len(mesh.vertices) == 4
    npt.assert_array_equal(mesh.triangles, [[0, 1, 2], [0, 2, 3]])
    # the survivors keep their own attributes
    npt.assert_array_equal(mesh.vertex_colors, colors[[0, 1, 2, 5]])
    npt.assert_allclose(get_surface_area(mesh), area)


def test_remove_duplicated_vertices_nothing_to_do(cube):
    before = cube.vertices.copy()
    assert remove_duplicated_vertices(cube) == 0
    npt.assert_array_equal(cube.vertices, before)


def test_remove_duplicated_vertices_on_empty_mesh():
    assert remove_duplicated_vertices(TriangleMesh()) == 0


def test_merging_rebuilds_existing_adjacency():
    mesh = _make_split_square_mesh()
    mesh.compute_adjacency_list()
    remove_duplicated_vertices(mesh)
    assert mesh.has_adjacency_list()
    assert mesh.adjacency_list[0] == {1, 2, 3}


def test_merging_does_not_create_adjacency():
    mesh = _make_split_square_mesh()
    remove_duplicated_vertices(mesh)
    assert not mesh.has_adjacency_list()


# ---------------------------------------------------------------------------
# Duplicated, degenerate triangles and unreferenced vertices
# ---------------------------------------------------------------------------

def test_remove_duplicated_triangles_matches_rotations():
    verts = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
    mesh = TriangleMesh(verts, [[0, 1, 2], [1, 2, 0], [2, 0, 1], [0, 1, 3]])
    mesh.compute_triangle_normals()
    normals = mesh.triangle_normals.copy()

    assert remove_duplicated_triangles(mesh) == 2
    npt.assert_array_equal(mesh.triangles, [[0, 1, 2], [0, 1, 3]])
    npt.assert_allclose(mesh.triangle_normals, normals[[0, 3]])


def test_remove_duplicated_triangles_keeps_opposite_winding():
    verts = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    mesh = TriangleMesh(verts, [[0, 1, 2], [2, 1, 0], [1, 2, 0]])

    # (1, 2, 0) rotates into (0, 1, 2); the back face (2, 1, 0) stays
    assert remove_duplicated_triangles(mesh) == 1
    npt.assert_array_equal(mesh.triangles, [[0, 1, 2], [2, 1, 0]])


def test_remove_degenerate_triangles():
    verts = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    mesh = TriangleMesh(verts, [[0, 1, 2], [0, 0, 1], [2, 1, 2], [1, 1, 1]])
    assert remove_degenerate_triangles(mesh) == 3
    npt.assert_array_equal(mesh.triangles, [[0, 1, 2]])


def test_remove_unreferenced_vertices_keeps_arrays_aligned(square):
    square.vertices = np.vstack([[[9.0, 9.0, 9.0]], square.vertices])
    square.triangles = square.triangles + 1
    square.vertex_colors = np.arange(15, dtype=np.float64).reshape(5, 3)
    square.compute_vertex_normals()

    assert remove_unreferenced_vertices(square) == 1
    assert len(square.vertices) == 4
    npt.assert_array_equal(square.triangles, [[0, 1, 2], [0, 2, 3]])
    npt.assert_array_equal(square.vertex_colors[0], [3.0, 4.0, 5.0])
    assert square.has_vertex_normals()


def test_remove_unreferenced_vertices_without_triangles():
    mesh = TriangleMesh(np.eye(3))
    assert remove_unreferenced_vertices(mesh) == 3
    assert mesh.is_empty()


def test_cleanup_is_idempotent():
    mesh = _make_split_square_mesh()
    mesh.triangles = np.vstack([mesh.triangles, [[0, 0, 1], [5, 4, 3]]])
    mesh.vertices = np.vstack([mesh.vertices, [[3.0, 3.0, 3.0]]])
    mesh.vertex_colors = np.vstack([mesh.vertex_colors, [[0.0, 0.0, 0.0]]])

    assert _cleanup_all(mesh) > 0
    vertices, triangles = mesh.vertices.copy(), mesh.triangles.copy()
    assert _cleanup_all(mesh) == 0
    npt.assert_array_equal(mesh.vertices, vertices)
    npt.assert_array_equal(mesh.triangles, triangles)


def test_cleanup_logs_removal_counts(caplog):
    mesh = _make_split_square_mesh()
    with caplog.at_level(logging.DEBUG, logger="src.algorithms.cleanup"):
        remove_duplicated_vertices(mesh)
    assert "2 vertices have been removed" in caplog.text


# ---------------------------------------------------------------------------
# Non-manifold edges
# ---------------------------------------------------------------------------

def test_fin_edge_is_reported_and_removed():
    mesh = _make_fin_mesh()
    npt.assert_array_equal(get_non_manifold_edges(mesh), [[0, 1]])

    assert remove_non_manifold_edges(mesh) == 1
    # the smallest triangle on the edge goes first
    npt.assert_array_equal(mesh.triangles, [[0, 1, 2], [1, 0, 3]])
    assert len(get_non_manifold_edges(mesh)) == 0
    assert is_edge_manifold(mesh)


def test_remove_non_manifold_edges_keeps_manifold_mesh(cube):
    assert remove_non_manifold_edges(cube) == 0
    assert len(cube.triangles) == 12


def test_remove_non_manifold_edges_with_many_fins():
    # five fins around the same edge: three have to go
    verts = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]]
    tris = []
    for k in range(5):
        angle = 2.0 * np.pi * k / 5
        radius = 1.0 + k
        verts.append([0.5, radius * np.cos(angle), radius * np.sin(angle)])
        tris.append([0, 1, 2 + k])
    mesh = TriangleMesh(np.array(verts), tris)
    mesh.compute_triangle_normals()

    assert remove_non_manifold_edges(mesh) == 3
    # the two largest fins survive, in their original order
    npt.assert_array_equal(mesh.triangles, [[0, 1, 5], [0, 1, 6]])
    assert len(mesh.triangle_normals) == 2
    assert is_edge_manifold(mesh)


def test_merging_soup_matches_indexed_mesh(cube):
    soup = TriangleMesh(cube.vertices[cube.triangles.reshape(-1)],
                        np.arange(36).reshape(12, 3))
    remove_duplicated_vertices(soup)

    assert len(soup.vertices) == 8
    assert euler_poincare_characteristic(soup) == euler_poincare_characteristic(cube)
    assert get_surface_area(soup) == pytest.approx(get_surface_area(cube))

    # same adjacency once vertices are compared by position
    soup.compute_adjacency_list()
    cube.compute_adjacency_list()

    def edges_by_position(mesh):
        return {frozenset((tuple(mesh.vertices[i]), tuple(mesh.vertices[j])))
                for i, nbs in enumerate(mesh.adjacency_list) for j in nbs}

    assert edges_by_position(soup) == edges_by_position(cube)
