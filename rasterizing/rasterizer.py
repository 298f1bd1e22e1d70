"""
Triangle rasterization with z-buffered hidden-surface removal.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from tqdm import tqdm

from data_types import TriangleMesh
from .correspondence import CorrespondenceBuffer


# Twice the projected triangle area (in squared pixels) below which a triangle covers nothing.
DEGENERATE_AREA_EPSILON = 1e-12

Projection = Callable[[NDArray[np.float64]], NDArray[np.float64]]


def pointwise(fn: Callable[[NDArray[np.float64]], Sequence[float]]) -> Projection:
    """Lift a single-point projection (Point3D -> (x, y, depth)) to work on V x 3 arrays."""
    def project(points: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.array([fn(point) for point in points], dtype=np.float64).reshape(-1, 3)
    return project


def project_vertices(mesh: TriangleMesh, project: Projection) -> NDArray[np.float64]:
    """Project every mesh vertex to image space (x, y, depth)."""
    projected = np.asarray(project(mesh.vertices), dtype=np.float64)
    if projected.shape != (mesh.num_vertices, 3):
        raise ValueError(
            f"Projection must return a {mesh.num_vertices} x 3 array of (x, y, depth). "
            f"Got shape: {projected.shape}"
        )
    return projected


def edge_function(a, b, px, py):
    """Signed area (times two) spanned by edge a->b and point p; positive when p is left of the edge."""
    return (b[0] - a[0]) * (py - a[1]) - (b[1] - a[1]) * (px - a[0])


def rasterize_triangle(buffer: CorrespondenceBuffer, triangle_id: int, p0, p1, p2):
    """
    Rasterize one projected triangle into `buffer`.

    A pixel is covered when all three barycentric weights of its center are
    non-negative. A fragment replaces the stored one only when its depth is
    strictly smaller, so on equal depth the earlier triangle stays.
    Degenerate and non-finite triangles are skipped.
    """
    corners = np.array([p0, p1, p2], dtype=np.float64)
    if not np.all(np.isfinite(corners)):
        return

    signed_area = edge_function(p0, p1, p2[0], p2[1])
    if abs(signed_area) < DEGENERATE_AREA_EPSILON:
        return

    # Pixel centers sit at (x + 0.5, y + 0.5)
    xmin = max(0, int(np.floor(corners[:, 0].min() - 0.5)))
    xmax = min(buffer.width - 1, int(np.ceil(corners[:, 0].max() - 0.5)))
    ymin = max(0, int(np.floor(corners[:, 1].min() - 0.5)))
    ymax = min(buffer.height - 1, int(np.ceil(corners[:, 1].max() - 0.5)))
    if xmin > xmax or ymin > ymax:
        return

    xs = np.arange(xmin, xmax + 1, dtype=np.float64) + 0.5
    ys = np.arange(ymin, ymax + 1, dtype=np.float64) + 0.5
    xx, yy = np.meshgrid(xs, ys)

    # Dividing by the signed area makes the weights positive inside for either winding
    w0 = edge_function(p1, p2, xx, yy) / signed_area
    w1 = edge_function(p2, p0, xx, yy) / signed_area
    w2 = edge_function(p0, p1, xx, yy) / signed_area

    inside = (w0 >= 0) & (w1 >= 0) & (w2 >= 0)
    if not inside.any():
        return

    depth = w0 * p0[2] + w1 * p1[2] + w2 * p2[2]
    nearer = inside & (depth < buffer.depth[ymin:ymax + 1, xmin:xmax + 1])
    iy, ix = np.nonzero(nearer)
    if len(iy) == 0:
        return

    weights = np.stack([w0[iy, ix], w1[iy, ix], w2[iy, ix]], axis=-1)
    buffer.write(ymin + iy, xmin + ix, triangle_id, weights, depth[iy, ix], bool(signed_area > 0))


def _rasterize_triangles(
    buffer: CorrespondenceBuffer,
    triangles: NDArray[np.int64],
    projected: NDArray[np.float64],
    triangle_ids: Iterable[int],
    show_progress: bool = False,
):
    for triangle_id in tqdm(triangle_ids, desc="Rasterizing", disable=not show_progress):
        i0, i1, i2 = triangles[triangle_id]
        rasterize_triangle(buffer, int(triangle_id), projected[i0], projected[i1], projected[i2])


def render_correspondence(
    mesh: TriangleMesh,
    project: Projection,
    width: int,
    height: int,
    triangle_ids: Optional[Iterable[int]] = None,
    show_progress: bool = False,
) -> CorrespondenceBuffer:
    """
    Determine which triangle covers every pixel of a width x height grid.

    Args:
        mesh: Mesh to rasterize
        project: Maps a V x 3 array of mesh points to V x 3 image-space (x, y, depth); smaller depth is nearer
        width: Output width in pixels
        height: Output height in pixels
        triangle_ids: Optional subset of triangles to rasterize, in the order given; all triangles by default
        show_progress: Show a progress bar over triangles

    Returns:
        CorrespondenceBuffer: nearest fragment per pixel, empty where nothing covers it
    """
    buffer = CorrespondenceBuffer(width, height)
    projected = project_vertices(mesh, project)
    if triangle_ids is None:
        triangle_ids = range(mesh.num_triangles)
    _rasterize_triangles(buffer, mesh.triangles, projected, triangle_ids, show_progress)
    return buffer


def merge_correspondence(buffers: Sequence[CorrespondenceBuffer]) -> CorrespondenceBuffer:
    """
    Per-pixel minimum-depth reduction of partial buffers.

    A later buffer replaces a pixel only with a strictly nearer fragment, so
    passing buffers in triangulation order keeps the first-triangle tie break.
    """
    if len(buffers) == 0:
        raise ValueError("Need at least one buffer to merge")
    merged = buffers[0].copy()
    for partial in buffers[1:]:
        if (partial.width, partial.height) != (merged.width, merged.height):
            raise ValueError(
                f"Cannot merge a {partial.width} x {partial.height} buffer "
                f"into a {merged.width} x {merged.height} buffer"
            )
        nearer = partial.depth < merged.depth
        merged.triangle_ids[nearer] = partial.triangle_ids[nearer]
        merged.barycentric[nearer] = partial.barycentric[nearer]
        merged.depth[nearer] = partial.depth[nearer]
        merged.ccw_winding[nearer] = partial.ccw_winding[nearer]
    return merged


def render_correspondence_parallel(
    mesh: TriangleMesh,
    project: Projection,
    width: int,
    height: int,
    workers: Optional[int] = None,
) -> CorrespondenceBuffer:
    """
    Same result as render_correspondence, with contiguous triangle ranges
    rasterized on a thread pool into private buffers and merged in order.
    """
    if workers is None:
        workers = os.cpu_count() or 1
    if workers < 1:
        raise ValueError(f"Need at least one worker. Got: {workers}")

    projected = project_vertices(mesh, project)
    chunks = [chunk for chunk in np.array_split(np.arange(mesh.num_triangles), workers) if len(chunk) > 0]
    if not chunks:
        return CorrespondenceBuffer(width, height)

    def rasterize_chunk(chunk):
        partial = CorrespondenceBuffer(width, height)
        _rasterize_triangles(partial, mesh.triangles, projected, chunk)
        return partial

    with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
        partials = list(executor.map(rasterize_chunk, chunks))
    return merge_correspondence(partials)
