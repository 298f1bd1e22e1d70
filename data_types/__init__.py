from .barycentric import BarycentricCoordinates, as_weights
from .errors import InvalidMeshReference, OutOfRangeTriangleId, UnsupportedValueTypeForInterpolation
from .triangle_mesh import TriangleMesh
