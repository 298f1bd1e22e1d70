"""
Evaluation of surface properties over a correspondence buffer.
"""

import numpy as np
from numpy.typing import NDArray

from rasterizing import CorrespondenceBuffer
from .properties import STORABLE_KINDS, MeshSurfaceProperty, is_numeric


def evaluate(buffer: CorrespondenceBuffer, surface_property: MeshSurfaceProperty, empty_value=None) -> NDArray:
    """
    Evaluate `surface_property` at the fragment of every pixel.

    Args:
        buffer: Correspondence from the rasterizer
        surface_property: Property defined on the rasterized triangulation
        empty_value: Value stored where no triangle covers the pixel

    Returns:
        NDArray: height x width (x value shape) grid. Numeric values with a
        numeric empty_value give a numeric grid; anything else an object grid
        holding one value per pixel.
    """
    ys, xs = np.nonzero(buffer.coverage())
    values = surface_property.on_surface_batch(buffer.triangle_ids[ys, xs], buffer.barycentric[ys, xs])

    if values.dtype.kind in STORABLE_KINDS and is_numeric(empty_value):
        empty = np.asarray(empty_value)
        value_shape = values.shape[1:]
        grid = np.empty((buffer.height, buffer.width) + value_shape, dtype=np.result_type(values.dtype, empty.dtype))
        grid[...] = empty
        grid[ys, xs] = values
        return grid

    grid = np.empty((buffer.height, buffer.width), dtype=object)
    for y in range(buffer.height):
        for x in range(buffer.width):
            grid[y, x] = empty_value
    for i, (y, x) in enumerate(zip(ys, xs)):
        grid[y, x] = values[i]
    return grid
