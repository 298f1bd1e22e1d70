from .properties import (
    ConstantProperty,
    MappedProperty,
    MeshSurfaceProperty,
    TextureMappedProperty,
    TriangleProperty,
    VertexProperty,
    normalize_vectors,
    stack_values,
    triangle_normal_property,
    vertex_normal_property,
)
from .evaluation import evaluate
