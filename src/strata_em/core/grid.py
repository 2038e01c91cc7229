"""
Uniform grid for 2D TMz FDTD simulation.

The grid is a fixed ``width x height`` rectangle of square cells. All field
and material arrays share its shape and are indexed ``[i, j]`` with ``i``
along x (``0 <= i < width``) and ``j`` along y (``0 <= j < height``).

Example:
    >>> from strata_em.core.grid import UniformGrid
    >>> grid = UniformGrid(shape=(400, 400), resolution=1e-3)
    >>> width_m, height_m = grid.physical_extent()
    >>> dt = grid.cfl_timestep(0.5)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

# Physical constants (SI)
SPEED_OF_LIGHT = 299_792_458.0  # m/s
EPSILON_0 = 8.8541878128e-12  # F/m
MU_0 = 4.0 * np.pi * 1e-7  # H/m

DEFAULT_RESOLUTION = 1e-3  # 1 mm cells
DEFAULT_COURANT = 0.5

# The Mur boundary needs at least one interior cell between opposite edges
MIN_GRID_SIZE = 3


@dataclass
class UniformGrid:
    """Uniform 2D grid with square cells.

    Args:
        shape: Grid dimensions (width, height) in cells
        resolution: Cell spacing in meters (same for both axes)

    Attributes:
        width, height: Grid dimensions in cells
        dx: Cell spacing in meters
        x_coords, y_coords: Cell center coordinates in meters
        num_cells: Total number of cells

    Raises:
        ValueError: If either dimension is below 3 cells or the resolution
            is not positive.

    Example:
        >>> grid = UniformGrid(shape=(200, 100), resolution=2e-3)
        >>> grid.num_cells
        20000
    """

    shape: tuple[int, int]
    resolution: float = DEFAULT_RESOLUTION

    def __post_init__(self):
        if len(self.shape) != 2:
            raise ValueError(f"Grid shape must be (width, height), got {self.shape}")

        width, height = (int(n) for n in self.shape)
        if width < MIN_GRID_SIZE or height < MIN_GRID_SIZE:
            raise ValueError(
                f"Grid must be at least {MIN_GRID_SIZE}x{MIN_GRID_SIZE} cells, "
                f"got {width}x{height}"
            )
        if not np.isfinite(self.resolution) or self.resolution <= 0:
            raise ValueError(f"Resolution must be positive, got {self.resolution}")

        self.shape = (width, height)
        self.resolution = float(self.resolution)

        # Cell center coordinates
        self._x_coords = np.arange(width) * self.resolution + self.resolution / 2
        self._y_coords = np.arange(height) * self.resolution + self.resolution / 2

    @property
    def width(self) -> int:
        """Number of cells along x."""
        return self.shape[0]

    @property
    def height(self) -> int:
        """Number of cells along y."""
        return self.shape[1]

    @property
    def dx(self) -> float:
        """Cell spacing in meters."""
        return self.resolution

    @property
    def x_coords(self) -> NDArray[np.float64]:
        """Cell center x-coordinates."""
        return self._x_coords

    @property
    def y_coords(self) -> NDArray[np.float64]:
        """Cell center y-coordinates."""
        return self._y_coords

    @property
    def num_cells(self) -> int:
        """Total number of cells."""
        return self.shape[0] * self.shape[1]

    def physical_extent(self) -> tuple[float, float]:
        """Get physical domain size in meters.

        Returns:
            Tuple (Lx, Ly) of domain dimensions
        """
        return (self.width * self.resolution, self.height * self.resolution)

    def contains(self, i: int, j: int) -> bool:
        """Whether (i, j) is a valid cell index."""
        return 0 <= i < self.width and 0 <= j < self.height

    def is_interior(self, i: int, j: int) -> bool:
        """Whether (i, j) lies strictly inside the boundary ring."""
        return 1 <= i < self.width - 1 and 1 <= j < self.height - 1

    def cfl_timestep(self, courant: float = DEFAULT_COURANT) -> float:
        """Stable timestep for this grid.

        For 2D square cells the CFL limit is dt <= dx / (c * sqrt(2)).

        Args:
            courant: Fraction of the CFL limit to use (0 < courant <= 1)

        Returns:
            Timestep in seconds
        """
        if not 0 < courant <= 1:
            raise ValueError(f"Courant number must be in (0, 1], got {courant}")
        return float(courant * self.resolution / (SPEED_OF_LIGHT * np.sqrt(2.0)))

    def __repr__(self) -> str:
        return f"UniformGrid(shape={self.shape}, resolution={self.resolution:.3e})"
