from .correspondence import EMPTY_TRIANGLE_ID, CorrespondenceBuffer, TriangleFragment
from .rasterizer import (
    DEGENERATE_AREA_EPSILON,
    merge_correspondence,
    pointwise,
    project_vertices,
    rasterize_triangle,
    render_correspondence,
    render_correspondence_parallel,
)
