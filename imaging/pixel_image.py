"""
Pixel grids with integer access and continuous-coordinate sampling.
"""

from typing import Callable

import numpy as np
from numpy.typing import NDArray
from PIL import Image


INTERPOLATIONS = ("nearest", "bilinear")


class PixelImage:
    """
    A width x height image backed by an H x W (scalar) or H x W x C (vector) float array.

    Pixels are addressed as image[x, y]. Continuous sampling treats pixel
    (x, y) as located at exactly (x, y) and clamps coordinates to
    [0, width - 1] x [0, height - 1].
    """

    def __init__(self, data, interpolation: str = "bilinear"):
        data = np.array(data, dtype=np.float64)
        if data.ndim not in (2, 3) or data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError(f"Image data must be a non-empty H x W or H x W x C array. Got shape: {data.shape}")
        if interpolation not in INTERPOLATIONS:
            raise ValueError(f"Interpolation must be one of {INTERPOLATIONS}. Got: {interpolation}")
        self.data = data
        self.interpolation = interpolation

    @classmethod
    def filled(cls, width: int, height: int, value, interpolation: str = "bilinear") -> "PixelImage":
        value = np.asarray(value, dtype=np.float64)
        data = np.empty((height, width) + value.shape, dtype=np.float64)
        data[...] = value
        return cls(data, interpolation)

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def channels(self) -> int:
        return 1 if self.data.ndim == 2 else self.data.shape[2]

    def _check_pixel(self, x: int, y: int):
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width} x {self.height} image")

    def __getitem__(self, pixel):
        x, y = pixel
        self._check_pixel(x, y)
        return self.data[y, x]

    def __setitem__(self, pixel, value):
        x, y = pixel
        self._check_pixel(x, y)
        self.data[y, x] = value

    def sample_many(self, xs, ys) -> NDArray[np.float64]:
        """Sample at N continuous coordinates; returns N (x C) values."""
        xs = np.clip(np.asarray(xs, dtype=np.float64), 0.0, self.width - 1)
        ys = np.clip(np.asarray(ys, dtype=np.float64), 0.0, self.height - 1)

        if self.interpolation == "nearest":
            return self.data[ys.astype(np.int64), xs.astype(np.int64)]

        x0 = np.floor(xs).astype(np.int64)
        y0 = np.floor(ys).astype(np.int64)
        x1 = np.minimum(x0 + 1, self.width - 1)
        y1 = np.minimum(y0 + 1, self.height - 1)
        fx = xs - x0
        fy = ys - y0
        if self.data.ndim == 3:
            fx = fx[..., np.newaxis]
            fy = fy[..., np.newaxis]

        top = (1.0 - fx) * self.data[y0, x0] + fx * self.data[y0, x1]
        bottom = (1.0 - fx) * self.data[y1, x0] + fx * self.data[y1, x1]
        return (1.0 - fy) * top + fy * bottom

    def sample(self, x: float, y: float):
        return self.sample_many(np.array([x]), np.array([y]))[0]

    @classmethod
    def from_pil(cls, image: Image.Image, interpolation: str = "bilinear") -> "PixelImage":
        """Convert an 8-bit Pillow image to floats in [0, 1]."""
        if image.mode not in ("L", "RGB", "RGBA"):
            image = image.convert("RGB")
        return cls(np.asarray(image, dtype=np.float64) / 255.0, interpolation)

    def to_pil(self) -> Image.Image:
        """Convert values in [0, 1] to an 8-bit Pillow image (L, RGB or RGBA)."""
        if self.channels not in (1, 3, 4):
            raise ValueError(f"Cannot convert a {self.channels}-channel image to Pillow")
        data = self.data
        if data.ndim == 3 and data.shape[2] == 1:
            data = data[:, :, 0]
        pixels = np.round(np.clip(data, 0.0, 1.0) * 255.0).astype(np.uint8)
        return Image.fromarray(pixels)


class ImageView:
    """
    Lazily evaluated image: every access calls `fn(x, y)`. Nothing is cached.
    """

    def __init__(self, width: int, height: int, fn: Callable[[int, int], object]):
        if width <= 0 or height <= 0:
            raise ValueError(f"Image size must be positive. Got: {width} x {height}")
        self.width = width
        self.height = height
        self.fn = fn

    def __getitem__(self, pixel):
        x, y = pixel
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width} x {self.height} image")
        return self.fn(x, y)

    def buffer(self, interpolation: str = "bilinear") -> PixelImage:
        """Evaluate every pixel once and store the result."""
        rows = [[self.fn(x, y) for x in range(self.width)] for y in range(self.height)]
        return PixelImage(rows, interpolation)
