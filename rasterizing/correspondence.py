"""
Per-pixel surface correspondence produced by rasterization.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np
from numpy.typing import NDArray

from data_types import BarycentricCoordinates


EMPTY_TRIANGLE_ID = -1


@dataclass(frozen=True)
class TriangleFragment:
    triangle_id: int
    barycentric: BarycentricCoordinates
    x: int
    y: int
    depth: float
    ccw_winding: bool


class CorrespondenceBuffer:
    """
    Dense height x width grid of triangle fragments.

    Storage is column-per-field: `triangle_ids[y, x]` is EMPTY_TRIANGLE_ID and
    `depth[y, x]` is +inf where no triangle covers the pixel.
    """

    def __init__(self, width: int, height: int):
        if int(width) != width or int(height) != height or width <= 0 or height <= 0:
            raise ValueError(f"Buffer size must be positive integers. Got: {width} x {height}")
        width, height = int(width), int(height)
        self.triangle_ids: NDArray[np.int64] = np.full((height, width), EMPTY_TRIANGLE_ID, dtype=np.int64)
        self.barycentric: NDArray[np.float64] = np.zeros((height, width, 3), dtype=np.float64)
        self.depth: NDArray[np.float64] = np.full((height, width), np.inf, dtype=np.float64)
        self.ccw_winding: NDArray[np.bool_] = np.zeros((height, width), dtype=bool)

    @property
    def width(self) -> int:
        return self.triangle_ids.shape[1]

    @property
    def height(self) -> int:
        return self.triangle_ids.shape[0]

    def _check_pixel(self, x: int, y: int):
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width} x {self.height} buffer")

    def is_empty(self, x: int, y: int) -> bool:
        self._check_pixel(x, y)
        return bool(self.triangle_ids[y, x] == EMPTY_TRIANGLE_ID)

    def fragment(self, x: int, y: int) -> Optional[TriangleFragment]:
        """The fragment stored at pixel (x, y), or None if nothing covers it."""
        if self.is_empty(x, y):
            return None
        return TriangleFragment(
            triangle_id=int(self.triangle_ids[y, x]),
            barycentric=BarycentricCoordinates.from_array(self.barycentric[y, x]),
            x=x,
            y=y,
            depth=float(self.depth[y, x]),
            ccw_winding=bool(self.ccw_winding[y, x]),
        )

    def coverage(self) -> NDArray[np.bool_]:
        return self.triangle_ids != EMPTY_TRIANGLE_ID

    def fragments(self) -> Iterator[TriangleFragment]:
        """Covered pixels in row-major order."""
        ys, xs = np.nonzero(self.coverage())
        for y, x in zip(ys, xs):
            yield self.fragment(int(x), int(y))

    def write(self, ys, xs, triangle_id: int, barycentric, depth, ccw_winding: bool):
        """Store one triangle's fragments at the given pixel rows/columns, unconditionally."""
        self.triangle_ids[ys, xs] = triangle_id
        self.barycentric[ys, xs] = barycentric
        self.depth[ys, xs] = depth
        self.ccw_winding[ys, xs] = ccw_winding

    def copy(self) -> "CorrespondenceBuffer":
        duplicate = CorrespondenceBuffer(self.width, self.height)
        duplicate.triangle_ids[...] = self.triangle_ids
        duplicate.barycentric[...] = self.barycentric
        duplicate.depth[...] = self.depth
        duplicate.ccw_winding[...] = self.ccw_winding
        return duplicate

    def identical_to(self, other: "CorrespondenceBuffer") -> bool:
        """Bit-identical comparison of all fields."""
        return (
            np.array_equal(self.triangle_ids, other.triangle_ids)
            and np.array_equal(self.barycentric, other.barycentric)
            and np.array_equal(self.depth, other.depth)
            and np.array_equal(self.ccw_winding, other.ccw_winding)
        )
