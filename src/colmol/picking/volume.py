"""
Minimal sampled volume: scalar values at 3D positions.

Only what picking needs: a sample count for gid allocation and a way
to rebuild a single sample from its offset.
"""

from typing import NamedTuple

import numpy as np


class VolumeSample(NamedTuple):
    volume: "Volume"
    index: int
    value: float
    x: float
    y: float
    z: float


class Volume:
    """
    Args:
        data: N scalar values
        positions: (N, 3) or flat 3N sample coordinates
        name: Volume name
    """

    def __init__(self, data, positions, name: str = ""):
        self.name = name
        self.data = np.asarray(data, dtype=np.float32).reshape(-1)
        self.positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        if len(self.positions) != len(self.data):
            raise ValueError(
                f"{len(self.data)} values but {len(self.positions)} positions"
            )

    @classmethod
    def from_grid(cls, grid: np.ndarray, origin=(0.0, 0.0, 0.0), spacing: float = 1.0,
                  name: str = "") -> "Volume":
        """Volume from a 3D array sampled on a regular grid."""
        grid = np.asarray(grid, dtype=np.float32)
        axes = [np.arange(n, dtype=np.float32) * spacing + o for n, o in zip(grid.shape, origin)]
        xx, yy, zz = np.meshgrid(*axes, indexing="ij")
        positions = np.stack([xx.ravel(), yy.ravel(), zz.ravel()], axis=1)
        return cls(grid.ravel(), positions, name)

    def __len__(self) -> int:
        return len(self.data)

    def get_sample(self, index: int) -> VolumeSample:
        x, y, z = self.positions[index]
        return VolumeSample(self, int(index), float(self.data[index]), float(x), float(y), float(z))

    def __repr__(self) -> str:
        return f"Volume({self.name!r}, samples={len(self.data)})"
