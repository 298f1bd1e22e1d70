"""
Values defined on a triangulated surface, looked up by (triangle id, barycentric coordinates).

There are four ways to attach values to the surface:

    ConstantProperty       one value for the whole mesh
    TriangleProperty       one value per triangle
    VertexProperty         one value per vertex, blended with the barycentric weights
    TextureMappedProperty  UV coordinates per vertex (or per triangle corner) into an image

MappedProperty post-processes the values of any of them.
"""

from abc import ABC, abstractmethod
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from data_types import (
    OutOfRangeTriangleId,
    TriangleMesh,
    UnsupportedValueTypeForInterpolation,
    as_weights,
)
from imaging import PixelImage


# numpy dtype kinds that can be stored in a numeric grid / blended with weights
STORABLE_KINDS = "biufc"
BLENDABLE_KINDS = "iufc"


def _triangles_of(triangulation) -> NDArray[np.int64]:
    if isinstance(triangulation, TriangleMesh):
        return triangulation.triangles
    triangles = np.asarray(triangulation, dtype=np.int64)
    if triangles.size == 0:
        triangles = triangles.reshape(0, 3)
    if triangles.ndim != 2 or triangles.shape[1] != 3:
        raise ValueError(f"Triangulation must be an F x 3 array. Got shape: {triangles.shape}")
    return triangles


def is_numeric(value) -> bool:
    if isinstance(value, (str, bytes)):
        return False
    try:
        return np.asarray(value).dtype.kind in STORABLE_KINDS
    except (TypeError, ValueError):
        return False


def stack_values(values) -> NDArray:
    """Stack N values into a numeric N x ... array, or an N-element object array."""
    values = list(values)
    if values and all(is_numeric(v) for v in values):
        try:
            return np.asarray(values)
        except ValueError:
            pass  # ragged shapes
    stacked = np.empty(len(values), dtype=object)
    for i, value in enumerate(values):
        stacked[i] = value
    return stacked


def _supports_linear_combination(value) -> bool:
    if isinstance(value, (str, bytes)):
        return False
    return hasattr(type(value), "__add__") and hasattr(type(value), "__rmul__")


def _blendable_values(values, what: str):
    """Numeric array, or object array whose elements support w * v and v + v."""
    if all(is_numeric(v) for v in values):
        array = np.asarray(values)
        if array.dtype.kind not in BLENDABLE_KINDS:
            raise UnsupportedValueTypeForInterpolation(
                f"{what} of dtype {array.dtype} cannot be blended with barycentric weights"
            )
        return array.astype(np.float64) if array.dtype.kind in "iu" else array
    for value in values:
        if not _supports_linear_combination(value):
            raise UnsupportedValueTypeForInterpolation(
                f"{what} of type {type(value).__name__} cannot be blended with barycentric weights"
            )
    if values:
        try:
            0.5 * values[0] + 0.5 * values[0]
        except TypeError as e:
            raise UnsupportedValueTypeForInterpolation(
                f"{what} of type {type(values[0]).__name__} cannot be blended with barycentric weights: {e}"
            ) from e
    return stack_values(values)


class MeshSurfaceProperty(ABC):
    """A function (triangle id, barycentric coordinates) -> value on one triangulation."""

    def __init__(self, triangulation):
        self.triangles = _triangles_of(triangulation)

    @property
    def num_triangles(self) -> int:
        return len(self.triangles)

    def _check_triangle_id(self, triangle_id: int):
        if not 0 <= triangle_id < self.num_triangles:
            raise OutOfRangeTriangleId(
                f"Triangle id {triangle_id} out of range [0, {self.num_triangles})"
            )

    def _check_triangle_ids(self, triangle_ids: NDArray[np.int64]):
        bad = (triangle_ids < 0) | (triangle_ids >= self.num_triangles)
        if np.any(bad):
            self._check_triangle_id(int(triangle_ids[np.argmax(bad)]))

    def on_surface(self, triangle_id: int, bcc):
        """Value at a single surface point. `bcc` is BarycentricCoordinates or a length-3 sequence."""
        triangle_id = int(triangle_id)
        self._check_triangle_id(triangle_id)
        return self._value_at(triangle_id, as_weights(bcc))

    def on_surface_batch(self, triangle_ids, bccs) -> NDArray:
        """Values at N surface points; `bccs` is N x 3. Returns an N x ... array."""
        triangle_ids = np.asarray(triangle_ids, dtype=np.int64).reshape(-1)
        bccs = np.asarray(bccs, dtype=np.float64).reshape(-1, 3)
        if len(triangle_ids) != len(bccs):
            raise ValueError(f"Got {len(triangle_ids)} triangle ids but {len(bccs)} barycentric coordinates")
        self._check_triangle_ids(triangle_ids)
        return self._values_at(triangle_ids, bccs)

    @abstractmethod
    def _value_at(self, triangle_id: int, weights: NDArray[np.float64]):
        pass

    def _values_at(self, triangle_ids: NDArray[np.int64], bccs: NDArray[np.float64]) -> NDArray:
        return stack_values(self._value_at(int(t), w) for t, w in zip(triangle_ids, bccs))


class ConstantProperty(MeshSurfaceProperty):
    def __init__(self, triangulation, value):
        super().__init__(triangulation)
        self.value = value

    def _value_at(self, triangle_id, weights):
        return self.value

    def _values_at(self, triangle_ids, bccs):
        if not is_numeric(self.value):
            return stack_values([self.value] * len(triangle_ids))
        value = np.asarray(self.value)
        return np.repeat(value[np.newaxis], len(triangle_ids), axis=0)


class TriangleProperty(MeshSurfaceProperty):
    """One value per triangle; barycentric coordinates are ignored."""

    def __init__(self, triangulation, values):
        super().__init__(triangulation)
        self.values = values if isinstance(values, np.ndarray) else stack_values(values)
        if len(self.values) != self.num_triangles:
            raise ValueError(f"Need one value per triangle: {self.num_triangles}. Got: {len(self.values)}")

    def _value_at(self, triangle_id, weights):
        return self.values[triangle_id]

    def _values_at(self, triangle_ids, bccs):
        return self.values[triangle_ids]


class VertexProperty(MeshSurfaceProperty):
    """One value per vertex; evaluates to w0*v[a] + w1*v[b] + w2*v[c] for triangle (a, b, c)."""

    def __init__(self, triangulation, values):
        super().__init__(triangulation)
        if isinstance(values, np.ndarray) and values.dtype != object:
            if values.dtype.kind not in BLENDABLE_KINDS:
                raise UnsupportedValueTypeForInterpolation(
                    f"Vertex values of dtype {values.dtype} cannot be blended with barycentric weights"
                )
            self.values = values.astype(np.float64) if values.dtype.kind in "iu" else values
        else:
            self.values = _blendable_values(list(values), "Vertex values")

        required = int(self.triangles.max()) + 1 if self.num_triangles > 0 else 0
        if len(self.values) < required:
            raise ValueError(f"Triangulation references {required} vertices. Got values for: {len(self.values)}")

    def _value_at(self, triangle_id, weights):
        a, b, c = self.triangles[triangle_id]
        w0, w1, w2 = (float(w) for w in weights)
        return w0 * self.values[a] + w1 * self.values[b] + w2 * self.values[c]

    def _values_at(self, triangle_ids, bccs):
        if self.values.dtype == object:
            return super()._values_at(triangle_ids, bccs)
        corners = self.values[self.triangles[triangle_ids]]  # N x 3 x ...
        weights = bccs.reshape(bccs.shape + (1,) * (corners.ndim - 2))
        return weights[:, 0] * corners[:, 0] + weights[:, 1] * corners[:, 1] + weights[:, 2] * corners[:, 2]


class TextureMappedProperty(MeshSurfaceProperty):
    """
    Samples an image through UV coordinates.

    `uv` is V x 2 (per vertex) or F x 3 x 2 (per triangle corner, for meshes
    with UV seams). The blended (u, v) maps to image position
    x = u * (width - 1), y = (1 - v) * (height - 1), sampled with the
    texture's own interpolation and clamped to the image.
    """

    def __init__(self, triangulation, uv, texture: PixelImage):
        super().__init__(triangulation)
        uv = np.asarray(uv)
        if uv.dtype.kind not in BLENDABLE_KINDS:
            raise UnsupportedValueTypeForInterpolation(f"UV coordinates of dtype {uv.dtype} cannot be blended")
        uv = uv.astype(np.float64)
        if uv.ndim == 3:
            if uv.shape != (self.num_triangles, 3, 2):
                raise ValueError(f"Per-corner UVs must be {self.num_triangles} x 3 x 2. Got shape: {uv.shape}")
            self.uv_corners = uv
        elif uv.ndim == 2 and uv.shape[1] == 2:
            required = int(self.triangles.max()) + 1 if self.num_triangles > 0 else 0
            if len(uv) < required:
                raise ValueError(f"Triangulation references {required} vertices. Got UVs for: {len(uv)}")
            self.uv_corners = uv[self.triangles]
        else:
            raise ValueError(f"UVs must be V x 2 or F x 3 x 2. Got shape: {uv.shape}")
        if not isinstance(texture, PixelImage):
            raise TypeError(f"Texture must be a PixelImage. Got: {type(texture).__name__}")
        self.texture = texture

    def uv_at(self, triangle_ids: NDArray[np.int64], bccs: NDArray[np.float64]) -> NDArray[np.float64]:
        corners = self.uv_corners[triangle_ids]  # N x 3 x 2
        return bccs[:, 0:1] * corners[:, 0] + bccs[:, 1:2] * corners[:, 1] + bccs[:, 2:3] * corners[:, 2]

    def _values_at(self, triangle_ids, bccs):
        uv = self.uv_at(triangle_ids, bccs)
        xs = uv[:, 0] * (self.texture.width - 1)
        ys = (1.0 - uv[:, 1]) * (self.texture.height - 1)
        return self.texture.sample_many(xs, ys)

    def _value_at(self, triangle_id, weights):
        return self._values_at(np.array([triangle_id]), weights[np.newaxis])[0]


class MappedProperty(MeshSurfaceProperty):
    """
    Applies `fn` to the values of another property.

    With vectorized=True, `fn` receives the whole N x ... batch at once.
    """

    def __init__(self, source: MeshSurfaceProperty, fn: Callable, vectorized: bool = False):
        super().__init__(source.triangles)
        self.source = source
        self.fn = fn
        self.vectorized = vectorized

    def _value_at(self, triangle_id, weights):
        value = self.source._value_at(triangle_id, weights)
        if self.vectorized:
            return self.fn(np.asarray(value)[np.newaxis])[0]
        return self.fn(value)

    def _values_at(self, triangle_ids, bccs):
        values = self.source._values_at(triangle_ids, bccs)
        if self.vectorized:
            return self.fn(values)
        return stack_values(self.fn(v) for v in values)


def normalize_vectors(vectors: NDArray[np.float64]) -> NDArray[np.float64]:
    """Scale vectors along the last axis to unit length; zero vectors stay zero."""
    vectors = np.asarray(vectors, dtype=np.float64)
    lengths = np.linalg.norm(vectors, axis=-1, keepdims=True)
    return np.divide(vectors, lengths, out=np.zeros_like(vectors), where=lengths > 0)


def vertex_normal_property(mesh: TriangleMesh) -> MeshSurfaceProperty:
    """Smooth normals: vertex normals blended across each triangle and renormalized."""
    return MappedProperty(VertexProperty(mesh, mesh.vertex_normals()), normalize_vectors, vectorized=True)


def triangle_normal_property(mesh: TriangleMesh) -> MeshSurfaceProperty:
    """Flat normals: one per triangle."""
    return TriangleProperty(mesh, mesh.triangle_normals())
