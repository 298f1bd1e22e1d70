from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from numpy.typing import NDArray
import trimesh

from .errors import InvalidMeshReference


@dataclass(frozen=True, eq=False)
class TriangleMesh:
    vertices: NDArray[np.float64]  # V x 3 array of vertex coordinates
    triangles: NDArray[np.int64]  # F x 3 array of vertex *indices*, counter-clockwise; row index is the triangle id

    def __post_init__(self):
        vertices = np.array(self.vertices, dtype=np.float64)
        triangles = np.array(self.triangles, dtype=np.int64)
        if vertices.size == 0:
            vertices = vertices.reshape(0, 3)
        if triangles.size == 0:
            triangles = triangles.reshape(0, 3)

        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise InvalidMeshReference(f"Vertices must be a V x 3 array. Got shape: {vertices.shape}")
        if triangles.ndim != 2 or triangles.shape[1] != 3:
            raise InvalidMeshReference(f"Triangles must be an F x 3 array. Got shape: {triangles.shape}")
        if len(triangles) > 0:
            bad = np.where(np.any((triangles < 0) | (triangles >= len(vertices)), axis=1))[0]
            if len(bad) > 0:
                raise InvalidMeshReference(
                    f"Triangle {bad[0]} references vertex {triangles[bad[0]].tolist()}, "
                    f"mesh has {len(vertices)} vertices"
                )

        vertices.setflags(write=False)
        triangles.setflags(write=False)
        object.__setattr__(self, "vertices", vertices)
        object.__setattr__(self, "triangles", triangles)

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_triangles(self) -> int:
        return len(self.triangles)

    def corners(self) -> NDArray[np.float64]:
        """F x 3 x 3 array of the corner positions of every triangle."""
        return self.vertices[self.triangles]

    def transform(self, fn: Callable[[NDArray[np.float64]], NDArray[np.float64]]) -> "TriangleMesh":
        """Apply `fn` to the V x 3 vertex array and return a new mesh with the same triangulation."""
        return TriangleMesh(vertices=fn(self.vertices.copy()), triangles=self.triangles)

    def translate(self, offset) -> "TriangleMesh":
        offset = np.asarray(offset, dtype=np.float64)
        return self.transform(lambda v: v + offset)

    def rotate(self, matrix, center: Optional[NDArray[np.float64]] = None) -> "TriangleMesh":
        """Rotate about `center` (the origin by default) with a 3 x 3 matrix."""
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (3, 3):
            raise ValueError(f"Rotation matrix must be 3 x 3. Got shape: {matrix.shape}")
        center = np.zeros(3) if center is None else np.asarray(center, dtype=np.float64)
        return self.transform(lambda v: (v - center) @ matrix.T + center)

    def _cross_products(self) -> NDArray[np.float64]:
        corners = self.corners()
        return np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])

    def triangle_areas(self) -> NDArray[np.float64]:
        return 0.5 * np.linalg.norm(self._cross_products(), axis=1)

    def triangle_normals(self) -> NDArray[np.float64]:
        """Unit normals following the winding order; degenerate triangles get a zero normal."""
        cross = self._cross_products()
        lengths = np.linalg.norm(cross, axis=1, keepdims=True)
        return np.divide(cross, lengths, out=np.zeros_like(cross), where=lengths > 0)

    def vertex_normals(self) -> NDArray[np.float64]:
        """Area-weighted average of the normals of the triangles around each vertex."""
        cross = self._cross_products()
        accumulated = np.zeros_like(self.vertices)
        for corner in range(3):
            np.add.at(accumulated, self.triangles[:, corner], cross)
        lengths = np.linalg.norm(accumulated, axis=1, keepdims=True)
        return np.divide(accumulated, lengths, out=np.zeros_like(accumulated), where=lengths > 0)

    @classmethod
    def from_trimesh(cls, mesh: trimesh.Trimesh) -> "TriangleMesh":
        return cls(vertices=np.asarray(mesh.vertices), triangles=np.asarray(mesh.faces))

    def to_trimesh(self) -> trimesh.Trimesh:
        # process=False keeps vertex and face order, so triangle ids stay valid
        return trimesh.Trimesh(vertices=self.vertices.copy(), faces=self.triangles.copy(), process=False)
