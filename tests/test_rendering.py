"""
Tests for projections, shaders and the composite render pipeline.
"""

import os
import sys
import numpy as np
import pytest

# Add the parent directory to the Python path so we can import the rendering module
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from data_types import TriangleMesh
from rasterizing import render_correspondence
from rendering import (
    color_shader,
    lambert_shader,
    normal_shader,
    orthographic_projection,
    perspective_projection,
    render_image,
    rotation_matrix,
    shade_correspondence,
    viewport_projection,
)
from surface import ConstantProperty, TriangleProperty, triangle_normal_property


def create_square_mesh():
    """Square spanning [-1, 1]^2 in the z = 0 plane, facing +z."""
    vertices = np.array([
        [-1.0, -1.0, 0.0],
        [1.0, -1.0, 0.0],
        [1.0, 1.0, 0.0],
        [-1.0, 1.0, 0.0],
    ])
    return TriangleMesh(vertices=vertices, triangles=np.array([[0, 1, 2], [0, 2, 3]]))


def test_rotation_matrix():
    quarter = rotation_matrix([0.0, 0.0, 1.0], np.pi / 2)
    assert np.allclose(quarter @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0])
    assert np.allclose(quarter @ quarter.T, np.eye(3))
    assert np.isclose(np.linalg.det(rotation_matrix([1.0, 2.0, 3.0], 0.7)), 1.0)
    with pytest.raises(ValueError):
        rotation_matrix([0.0, 0.0, 0.0], 1.0)


def test_viewport_projection():
    project = viewport_projection(20, 10)
    projected = project(np.array([[-1.0, 1.0, 0.5], [1.0, -1.0, -2.0], [0.0, 0.0, 0.0]]))
    assert np.allclose(projected, [[0.0, 0.0, -0.5], [20.0, 10.0, 2.0], [10.0, 5.0, 0.0]])


def test_orthographic_projection_fits_bounds():
    project = orthographic_projection([-1.0, -1.0, -1.0], [1.0, 1.0, 1.0], 100, 50, margin=0.0)
    projected = project(np.array([[-1.0, -1.0, 1.0], [1.0, 1.0, -1.0], [0.0, 0.0, 0.0]]))
    # The shorter side (50 px) spans the 2-unit extent, centered horizontally
    assert np.allclose(projected[0], [25.0, 50.0, -1.0])
    assert np.allclose(projected[1], [75.0, 0.0, 1.0])
    assert np.allclose(projected[2], [50.0, 25.0, 0.0])


def test_perspective_projection():
    project = perspective_projection(10.0, 40, 30, camera_distance=5.0)
    projected = project(np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 0.0, 6.0]]))
    assert np.allclose(projected[0], [20.0, 15.0, 5.0])
    assert np.allclose(projected[1], [22.0, 13.0, 5.0])
    assert np.all(np.isnan(projected[2]))

    with pytest.raises(ValueError):
        perspective_projection(0.0, 40, 30, camera_distance=5.0)


def test_render_image_with_lambert_shading():
    """Light along the normal gives the full color; uncovered pixels keep the background."""
    mesh = create_square_mesh()
    properties = {
        "color": ConstantProperty(mesh, np.array([0.5, 0.25, 1.0])),
        "normal": triangle_normal_property(mesh),
    }
    project = orthographic_projection([-1.0, -1.0, 0.0], [1.0, 1.0, 0.0], 20, 20, margin=0.25)
    image = render_image(mesh, project, 20, 20, properties, lambert_shader((0.0, 0.0, 1.0), ambient=0.2),
                         background=(0.0, 0.0, 1.0))

    assert image.data.shape == (20, 20, 3)
    assert np.allclose(image[10, 10], [0.5, 0.25, 1.0])
    assert np.allclose(image[0, 0], [0.0, 0.0, 1.0])

    # Light from behind leaves only the ambient term
    dark = render_image(mesh, project, 20, 20, properties, lambert_shader((0.0, 0.0, -1.0), ambient=0.2))
    assert np.allclose(dark[10, 10], [0.1, 0.05, 0.2])


def test_parallel_render_matches_serial():
    mesh = create_square_mesh().rotate(rotation_matrix([1.0, 1.0, 0.0], 0.4))
    properties = {"color": TriangleProperty(mesh, [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])}
    project = perspective_projection(30.0, 32, 32, camera_distance=4.0)
    serial = render_image(mesh, project, 32, 32, properties, color_shader)
    parallel = render_image(mesh, project, 32, 32, properties, color_shader, workers=2)
    assert np.array_equal(serial.data, parallel.data)
    assert np.any(np.all(serial.data == [1.0, 0.0, 0.0], axis=-1))
    assert np.any(np.all(serial.data == [0.0, 1.0, 0.0], axis=-1))


def test_shade_correspondence_checks_shader_output():
    mesh = create_square_mesh()
    buffer = render_correspondence(mesh, viewport_projection(8, 8), 8, 8)
    properties = {"normal": triangle_normal_property(mesh)}

    image = shade_correspondence(buffer, properties, normal_shader)
    assert np.allclose(image[4, 4], [0.5, 0.5, 1.0])

    with pytest.raises(ValueError):
        shade_correspondence(buffer, properties, lambda values: np.zeros((1, 3)))


def test_scalar_image():
    mesh = create_square_mesh()
    buffer = render_correspondence(mesh, viewport_projection(8, 8), 8, 8)
    properties = {"depth_label": ConstantProperty(mesh, 0.75)}
    image = shade_correspondence(buffer, properties, lambda values: values["depth_label"], background=0.0)
    assert image.channels == 1
    assert np.isclose(image[4, 4], 0.75)
