"""
Pixel-combination policies for render_image.

A shader receives a dict mapping property names to N x ... arrays (one
entry per covered pixel) and returns N x C colors.
"""

import numpy as np
from numpy.typing import NDArray

from surface import normalize_vectors


def color_shader(values: dict) -> NDArray[np.float64]:
    """Unlit: the "color" property as is."""
    return np.asarray(values["color"], dtype=np.float64)


def normal_shader(values: dict) -> NDArray[np.float64]:
    """Visualize the "normal" property, mapping [-1, 1] to [0, 1] per channel."""
    return (normalize_vectors(values["normal"]) + 1.0) / 2.0


def lambert_shader(light_direction=(0.0, 0.0, 1.0), ambient: float = 0.2):
    """
    Diffuse shading of "color" under a directional light.

    `light_direction` points from the surface toward the light. Intensity is
    ambient + (1 - ambient) * max(0, n . l).
    """
    light = normalize_vectors(np.asarray(light_direction, dtype=np.float64))
    if not np.any(light):
        raise ValueError("Light direction must be non-zero")

    def shade(values: dict) -> NDArray[np.float64]:
        colors = np.asarray(values["color"], dtype=np.float64)
        normals = normalize_vectors(values["normal"])
        diffuse = np.clip(normals @ light, 0.0, 1.0)
        intensity = ambient + (1.0 - ambient) * diffuse
        if colors.ndim == 1:
            return colors * intensity
        return colors * intensity[:, np.newaxis]
    return shade
