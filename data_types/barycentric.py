from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


BARYCENTRIC_TOLERANCE = 1e-9


@dataclass(frozen=True)
class BarycentricCoordinates:
    """Weights of a point inside a triangle relative to its three corners."""
    b0: float
    b1: float
    b2: float

    @classmethod
    def vertex(cls, corner: int) -> "BarycentricCoordinates":
        """Coordinates of exactly one triangle corner (0, 1 or 2)."""
        if corner not in (0, 1, 2):
            raise ValueError(f"Triangle corner must be 0, 1 or 2. Got: {corner}")
        weights = [0.0, 0.0, 0.0]
        weights[corner] = 1.0
        return cls(*weights)

    @classmethod
    def center(cls) -> "BarycentricCoordinates":
        return cls(1.0 / 3.0, 1.0 / 3.0, 1.0 / 3.0)

    @classmethod
    def from_array(cls, weights) -> "BarycentricCoordinates":
        b0, b1, b2 = (float(w) for w in weights)
        return cls(b0, b1, b2)

    def as_array(self) -> NDArray[np.float64]:
        return np.array([self.b0, self.b1, self.b2], dtype=np.float64)

    def validate(self, tolerance: float = BARYCENTRIC_TOLERANCE) -> bool:
        """True if all weights lie in [0, 1] and sum to one, within tolerance."""
        weights = self.as_array()
        return bool(
            np.all(weights >= -tolerance)
            and np.all(weights <= 1.0 + tolerance)
            and abs(weights.sum() - 1.0) <= tolerance
        )

    def interpolate(self, a, b, c):
        """Blend three corner values: b0*a + b1*b + b2*c."""
        return self.b0 * a + self.b1 * b + self.b2 * c


def as_weights(bcc) -> NDArray[np.float64]:
    """Accept BarycentricCoordinates or any length-3 sequence and return a float array."""
    if isinstance(bcc, BarycentricCoordinates):
        return bcc.as_array()
    weights = np.asarray(bcc, dtype=np.float64)
    if weights.shape != (3,):
        raise ValueError(f"Barycentric coordinates need exactly 3 weights. Got shape: {weights.shape}")
    return weights
