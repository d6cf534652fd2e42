"""
Core geometric algorithms for triangle mesh processing.
"""

from .smoothing import (
    FilterScope,
    filter_sharpen,
    filter_smooth_simple,
    filter_smooth_laplacian,
    filter_smooth_taubin,
)
from .cleanup import (
    remove_duplicated_vertices,
    remove_duplicated_triangles,
    remove_unreferenced_vertices,
    remove_degenerate_triangles,
    remove_non_manifold_edges,
)
from .topology import (
    get_edge_to_triangles_map,
    euler_poincare_characteristic,
    get_non_manifold_edges,
    is_edge_manifold,
    get_non_manifold_vertices,
    is_vertex_manifold,
    is_orientable,
    orient_triangles,
)
from .metrics import (
    compute_triangle_area,
    compute_triangle_plane,
    get_triangle_area,
    get_triangle_plane,
    get_triangle_areas,
    get_surface_area,
    get_self_intersecting_triangles,
    is_self_intersecting,
    is_bounding_box_intersecting,
    is_intersecting,
    compute_mesh_convex_hull,
)
from .sampling import sample_points_uniformly, sample_points_poisson_disk
from .selection import select_down_sample, crop_triangle_mesh
from .simplification import (
    SimplificationContraction,
    simplify_quadric_decimation,
    simplify_vertex_clustering,
)
from .subdivision import subdivide_midpoint, subdivide_loop

__all__ = [
    # Filters
    'FilterScope',
    'filter_sharpen',
    'filter_smooth_simple',
    'filter_smooth_laplacian',
    'filter_smooth_taubin',
    # Cleanup
    'remove_duplicated_vertices',
    'remove_duplicated_triangles',
    'remove_unreferenced_vertices',
    'remove_degenerate_triangles',
    'remove_non_manifold_edges',
    # Manifold and orientation analysis
    'get_edge_to_triangles_map',
    'euler_poincare_characteristic',
    'get_non_manifold_edges',
    'is_edge_manifold',
    'get_non_manifold_vertices',
    'is_vertex_manifold',
    'is_orientable',
    'orient_triangles',
    # Geometric queries
    'compute_triangle_area',
    'compute_triangle_plane',
    'get_triangle_area',
    'get_triangle_plane',
    'get_triangle_areas',
    'get_surface_area',
    'get_self_intersecting_triangles',
    'is_self_intersecting',
    'is_bounding_box_intersecting',
    'is_intersecting',
    'compute_mesh_convex_hull',
    # Sampling
    'sample_points_uniformly',
    'sample_points_poisson_disk',
    # Selection
    'select_down_sample',
    'crop_triangle_mesh',
    # Simplification and subdivision
    'SimplificationContraction',
    'simplify_quadric_decimation',
    'simplify_vertex_clustering',
    'subdivide_midpoint',
    'subdivide_loop',
]
