"""
Rasterize once, evaluate each surface property once, combine per pixel.
"""

from typing import Callable, Dict, Optional

import numpy as np
from numpy.typing import NDArray

from data_types import TriangleMesh
from imaging import PixelImage
from rasterizing import CorrespondenceBuffer, render_correspondence, render_correspondence_parallel
from rasterizing.rasterizer import Projection
from surface import MeshSurfaceProperty


Shader = Callable[[Dict[str, NDArray]], NDArray[np.float64]]


def shade_correspondence(
    buffer: CorrespondenceBuffer,
    properties: Dict[str, MeshSurfaceProperty],
    shader: Shader,
    background=(0.0, 0.0, 0.0),
) -> PixelImage:
    """
    Evaluate every named property at the covered pixels of `buffer` and
    combine them with `shader`. Uncovered pixels hold `background`.
    """
    ys, xs = np.nonzero(buffer.coverage())
    triangle_ids = buffer.triangle_ids[ys, xs]
    bccs = buffer.barycentric[ys, xs]
    values = {
        name: surface_property.on_surface_batch(triangle_ids, bccs)
        for name, surface_property in properties.items()
    }

    image = PixelImage.filled(buffer.width, buffer.height, background)
    if len(ys) > 0:
        colors = np.asarray(shader(values), dtype=np.float64)
        expected = (len(ys),) + image.data.shape[2:]
        if colors.shape != expected:
            raise ValueError(f"Shader must return an array of shape {expected}. Got: {colors.shape}")
        image.data[ys, xs] = colors
    return image


def render_image(
    mesh: TriangleMesh,
    project: Projection,
    width: int,
    height: int,
    properties: Dict[str, MeshSurfaceProperty],
    shader: Shader,
    background=(0.0, 0.0, 0.0),
    workers: Optional[int] = 1,
    show_progress: bool = False,
) -> PixelImage:
    """
    Render `mesh` to a width x height image.

    Args:
        mesh: Mesh to render
        project: Mesh space to image space (x, y, depth) projection
        width: Output width in pixels
        height: Output height in pixels
        properties: Surface properties by name, e.g. {"color": ..., "normal": ...}
        shader: Combines the evaluated properties into colors (see rendering.shading)
        background: Color of pixels no triangle covers
        workers: Rasterizer threads; 1 rasterizes serially, None uses every CPU
        show_progress: Progress bar for serial rasterization

    Returns:
        PixelImage: the rendered image
    """
    if workers == 1:
        buffer = render_correspondence(mesh, project, width, height, show_progress=show_progress)
    else:
        buffer = render_correspondence_parallel(mesh, project, width, height, workers=workers)
    return shade_correspondence(buffer, properties, shader, background)
