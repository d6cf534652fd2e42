"""
Mesh and point containers plus the geometric primitives the algorithms build on.
"""

from .errors import MeshProcessingWarning
from .triangle_mesh import TriangleMesh, create_triangle_mesh
from .point_cloud import PointCloud
from .kdtree import KDTreeIndex
from .intersection import aabb_intersect, triangle_triangle_intersect
from .convex_hull import compute_convex_hull

__all__ = [
    # Containers
    'TriangleMesh',
    'create_triangle_mesh',
    'PointCloud',
    # Spatial queries and predicates
    'KDTreeIndex',
    'aabb_intersect',
    'triangle_triangle_intersect',
    'compute_convex_hull',
    # Diagnostics
    'MeshProcessingWarning',
]
