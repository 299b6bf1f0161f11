"""Polar obstacle histogram over elevation and azimuth bins."""

from __future__ import annotations

import numpy as np

# Valid resolutions must fulfil 180 % (2 * ALPHA_RES) == 0,
# e.g. 1, 3, 5, 6, 10, 15, 18, 30, 45, 60.
ALPHA_RES = 6
GRID_LENGTH_Z = 360 // ALPHA_RES
GRID_LENGTH_E = 180 // ALPHA_RES

FLT_MIN = float(np.finfo(np.float32).tiny)


class Histogram:
    """Distance to obstacles per (elevation, azimuth) cell, in metres."""

    def __init__(self, res: int) -> None:
        if res <= 0:
            raise ValueError(f"histogram resolution must be positive, got {res}")
        self._resolution = res
        self._z_dim = 360 // res
        self._e_dim = 180 // res
        self._dist = np.zeros((self._e_dim, self._z_dim), dtype=np.float32)

    @property
    def resolution(self) -> int:
        return self._resolution

    @property
    def z_dim(self) -> int:
        return self._z_dim

    @property
    def e_dim(self) -> int:
        return self._e_dim

    @property
    def dist(self) -> np.ndarray:
        """A copy of the distance matrix, shape (e_dim, z_dim)."""
        return self._dist.copy()

    def _wrap_index(self, x: int, y: int) -> tuple[int, int]:
        return x % self._e_dim, y % self._z_dim

    def get_dist(self, x: int, y: int) -> float:
        """Distance of cell (x, y); indices wrap around the histogram."""
        x, y = self._wrap_index(x, y)
        return float(self._dist[x, y])

    def set_dist(self, x: int, y: int, value: float) -> None:
        """Set the distance of cell (x, y); indices must be in range."""
        if not (0 <= x < self._e_dim and 0 <= y < self._z_dim):
            raise IndexError(
                f"cell ({x}, {y}) outside histogram of shape ({self._e_dim}, {self._z_dim})"
            )
        self._dist[x, y] = value

    def upsample(self) -> None:
        """Turn a half-resolution histogram into a full-resolution one."""
        if self._resolution != ALPHA_RES * 2:
            raise ValueError(
                "Invalid use of upsample(): it can only be used on a half resolution histogram."
            )
        self._resolution //= 2
        self._z_dim *= 2
        self._e_dim *= 2
        self._dist = np.repeat(np.repeat(self._dist, 2, axis=0), 2, axis=1)

    def downsample(self) -> None:
        """Turn a full-resolution histogram into a half-resolution one by averaging 2x2 blocks."""
        if self._resolution != ALPHA_RES:
            raise ValueError(
                "Invalid use of downsample(): it can only be used on a full resolution histogram."
            )
        self._resolution *= 2
        self._z_dim //= 2
        self._e_dim //= 2
        blocks = self._dist[: self._e_dim * 2, : self._z_dim * 2].reshape(
            self._e_dim, 2, self._z_dim, 2
        )
        self._dist = blocks.mean(axis=(1, 3)).astype(np.float32)

    def set_zero(self) -> None:
        """Reset every cell to zero."""
        self._dist.fill(0.0)

    def is_empty(self) -> bool:
        """True if no cell holds a distance above FLT_MIN."""
        return not bool(np.any(self._dist > FLT_MIN))