"""
Tests for evaluating surface properties over a rasterized correspondence buffer.
"""

import os
import sys
import numpy as np
import pytest

# Add the parent directory to the Python path so we can import the surface module
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from data_types import OutOfRangeTriangleId, TriangleMesh
from rasterizing import render_correspondence
from surface import ConstantProperty, TriangleProperty, VertexProperty, evaluate


RED = np.array([1.0, 0.0, 0.0])
GREEN = np.array([0.0, 1.0, 0.0])
BLACK = np.array([0.0, 0.0, 0.0])


def identity(points):
    return points


def create_square_scene():
    """
    An 8 x 8 pixel square at (2, 2)-(10, 10) on a 12 x 12 grid, split along its
    diagonal into triangle 0 (upper right in the image) and triangle 1 (lower left).
    """
    vertices = np.array([
        [2.0, 2.0, 1.0],
        [10.0, 2.0, 1.0],
        [10.0, 10.0, 1.0],
        [2.0, 10.0, 1.0],
    ])
    mesh = TriangleMesh(vertices=vertices, triangles=np.array([[0, 1, 2], [0, 2, 3]]))
    return mesh, render_correspondence(mesh, identity, 12, 12)


def test_triangle_colors_fill_their_triangles():
    mesh, buffer = create_square_scene()
    grid = evaluate(buffer, TriangleProperty(mesh, [RED, GREEN]), BLACK)

    assert grid.shape == (12, 12, 3)
    assert np.allclose(grid[3, 8], RED)     # x=8, y=3 lies above the diagonal
    assert np.allclose(grid[8, 3], GREEN)   # x=3, y=8 lies below it
    assert np.allclose(grid[0, 0], BLACK)
    assert np.allclose(grid[11, 11], BLACK)

    covered = buffer.coverage()
    assert np.all(np.isin(buffer.triangle_ids[covered], [0, 1]))
    assert np.allclose(grid[buffer.triangle_ids == 0], RED)
    assert np.allclose(grid[buffer.triangle_ids == 1], GREEN)


def test_object_values_give_object_grid():
    mesh, buffer = create_square_scene()
    grid = evaluate(buffer, TriangleProperty(mesh, ["Red", "Green"]), None)
    assert grid.shape == (12, 12)
    assert grid.dtype == object
    assert grid[3, 8] == "Red"
    assert grid[8, 3] == "Green"
    assert grid[0, 0] is None


def test_constant_property_grid():
    mesh, buffer = create_square_scene()
    grid = evaluate(buffer, ConstantProperty(mesh, 5.0), 0.0)
    assert grid.shape == (12, 12)
    assert np.all(grid[buffer.coverage()] == 5.0)
    assert np.all(grid[~buffer.coverage()] == 0.0)


def test_grid_matches_pointwise_evaluation():
    """The vectorized grid equals on_surface called for each fragment."""
    mesh, buffer = create_square_scene()
    prop = VertexProperty(mesh, np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]]))
    grid = evaluate(buffer, prop, np.array([-1.0, -1.0]))

    n_checked = 0
    for fragment in buffer.fragments():
        expected = prop.on_surface(fragment.triangle_id, fragment.barycentric)
        assert np.allclose(grid[fragment.y, fragment.x], expected)
        n_checked += 1
    assert n_checked == int(buffer.coverage().sum())
    assert np.allclose(grid[0, 0], [-1.0, -1.0])


def test_empty_buffer():
    mesh, _ = create_square_scene()
    empty = render_correspondence(mesh, lambda points: points + [100.0, 0.0, 0.0], 12, 12)
    grid = evaluate(empty, VertexProperty(mesh, [1.0, 2.0, 3.0, 4.0]), 0.0)
    assert grid.shape == (12, 12)
    assert np.all(grid == 0.0)


def test_empty_buffer_with_vector_values():
    """Vector-valued properties keep their value shape when no pixel is covered."""
    mesh, _ = create_square_scene()
    empty = render_correspondence(mesh, lambda points: points + [100.0, 0.0, 0.0], 12, 12)

    grid = evaluate(empty, VertexProperty(mesh, np.eye(4)[:, :3]), 0.0)
    assert grid.shape == (12, 12, 3)
    assert np.all(grid == 0.0)

    grid = evaluate(empty, ConstantProperty(mesh, np.array([1.0, 0.0, 0.0])), 0.0)
    assert grid.shape == (12, 12, 3)
    assert np.all(grid == 0.0)


def test_string_array_values_give_object_grid():
    mesh, buffer = create_square_scene()
    grid = evaluate(buffer, TriangleProperty(mesh, np.array(["red", "green"])), 0)
    assert grid.dtype == object
    assert grid[3, 8] == "red"
    assert grid[0, 0] == 0


def test_property_for_another_triangulation_fails_fast():
    """A buffer referencing triangles the property does not know is a contract violation."""
    mesh, buffer = create_square_scene()
    smaller = TriangleProperty(mesh.triangles[:1], [RED])
    with pytest.raises(OutOfRangeTriangleId):
        evaluate(buffer, smaller, BLACK)


if __name__ == "__main__":
    # Run tests directly
    test_triangle_colors_fill_their_triangles()
    test_object_values_give_object_grid()
    test_constant_property_grid()
    test_grid_matches_pointwise_evaluation()
    test_empty_buffer()
    test_empty_buffer_with_vector_values()
    test_string_array_values_give_object_grid()
    test_property_for_another_triangulation_fails_fast()
    print("All tests passed!")
