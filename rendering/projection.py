"""
Projections from mesh space to image space (x, y, depth).

The camera looks down -z: larger z is nearer the viewer. Image x grows to
the right and image y grows downward. All projections take and return
N x 3 arrays.
"""

import numpy as np
from numpy.typing import NDArray


def rotation_matrix(axis, angle: float) -> NDArray[np.float64]:
    """Rotation by `angle` radians about `axis` (Rodrigues' formula)."""
    axis = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(axis)
    if norm == 0.0:
        raise ValueError("Rotation axis must be non-zero")
    x, y, z = axis / norm
    c, s = np.cos(angle), np.sin(angle)
    k = np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])
    return np.eye(3) * c + s * k + (1.0 - c) * np.outer([x, y, z], [x, y, z])


def viewport_projection(width: int, height: int):
    """Map normalized device coordinates in [-1, 1]^2 onto the pixel grid."""
    def project(points: NDArray[np.float64]) -> NDArray[np.float64]:
        points = np.asarray(points, dtype=np.float64)
        return np.stack([
            (points[:, 0] + 1.0) * width / 2.0,
            (1.0 - points[:, 1]) * height / 2.0,
            -points[:, 2],
        ], axis=-1)
    return project


def orthographic_projection(bounds_min, bounds_max, width: int, height: int, margin: float = 0.05):
    """
    Orthographic projection fitting the x/y extent of a bounding box into the
    frame, centered, keeping the aspect ratio and leaving `margin` (a fraction
    of the shorter side) free on each border.
    """
    bounds_min = np.asarray(bounds_min, dtype=np.float64)
    bounds_max = np.asarray(bounds_max, dtype=np.float64)
    center = (bounds_min + bounds_max) / 2.0
    extent = max(bounds_max[0] - bounds_min[0], bounds_max[1] - bounds_min[1])
    if extent <= 0.0:
        extent = 1.0
    scale = min(width, height) * (1.0 - 2.0 * margin) / extent

    def project(points: NDArray[np.float64]) -> NDArray[np.float64]:
        points = np.asarray(points, dtype=np.float64)
        return np.stack([
            width / 2.0 + (points[:, 0] - center[0]) * scale,
            height / 2.0 - (points[:, 1] - center[1]) * scale,
            center[2] - points[:, 2],
        ], axis=-1)
    return project


def perspective_projection(focal_length: float, width: int, height: int, camera_distance: float):
    """
    Pinhole camera at (0, 0, camera_distance) looking toward the origin.

    Depth is the distance in front of the camera. Points at or behind the
    camera plane project to NaN, so triangles touching them are skipped by
    the rasterizer.
    """
    if focal_length <= 0.0:
        raise ValueError(f"Focal length must be positive. Got: {focal_length}")

    def project(points: NDArray[np.float64]) -> NDArray[np.float64]:
        points = np.asarray(points, dtype=np.float64)
        depth = camera_distance - points[:, 2]
        in_front = depth > 0.0
        safe_depth = np.where(in_front, depth, 1.0)
        projected = np.stack([
            width / 2.0 + focal_length * points[:, 0] / safe_depth,
            height / 2.0 - focal_length * points[:, 1] / safe_depth,
            depth,
        ], axis=-1)
        projected[~in_front] = np.nan
        return projected
    return project
