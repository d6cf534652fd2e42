"""Warning categories emitted by the mesh processing code."""


class MeshProcessingWarning(UserWarning):
    """Degenerate or insufficient input; the operation returned an empty or unchanged result."""
