"""
Exceptions for structural contract violations.

Geometric edge cases (degenerate or off-screen triangles) are never reported
through these; they are absorbed where they occur.
"""


class InvalidMeshReference(ValueError):
    """A triangle references a vertex index the mesh does not have."""


class OutOfRangeTriangleId(IndexError):
    """A surface property was queried with a triangle id outside its triangulation."""


class UnsupportedValueTypeForInterpolation(TypeError):
    """Values cannot be blended with barycentric weights."""
