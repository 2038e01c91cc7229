"""
Absorbing boundary condition for the 2D TMz solver.

MurABC applies the first-order Mur one-way wave equation to the outermost
ring of Ez cells:

    Ez_edge(n+1) = Ez_inner(n) + k * (Ez_inner(n+1) - Ez_edge(n))
    k = (cΔt/Δx - 1) / (cΔt/Δx + 1)

Ez_inner(n) is the value one cell inward of the edge *before* the step's
field update, so the boundary works in two phases: snapshot() at the start
of a step and apply() after the interior update and source injection.

Corners are not handled by the Mur formula. Each corner is set to the mean
of its two edge neighbours after the edges are updated.

Trade-offs: exact only for normal incidence; reflection grows with angle
of incidence and is largest near the corners.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from strata_em.core.grid import SPEED_OF_LIGHT

if TYPE_CHECKING:
    from strata_em.core.solver import FDTDSolver


class MurABC:
    """First-order Mur absorbing boundary on all four edges.

    Attributes:
        coeff: Mur coefficient (cΔt/Δx - 1) / (cΔt/Δx + 1)
        ez_left, ez_right: Ez at i=1 and i=width-2 from the last snapshot
        ez_top, ez_bottom: Ez at j=1 and j=height-2 from the last snapshot

    Example:
        >>> abc = MurABC()
        >>> abc.initialize(solver)
        >>> abc.snapshot(solver)   # before the H/E update
        >>> abc.apply(solver)      # after the update and source injection
    """

    def __init__(self):
        self.coeff: float = 0.0
        self.ez_left: NDArray[np.float64] | None = None
        self.ez_right: NDArray[np.float64] | None = None
        self.ez_top: NDArray[np.float64] | None = None
        self.ez_bottom: NDArray[np.float64] | None = None

    def initialize(self, solver: FDTDSolver) -> None:
        """Allocate snapshot buffers and compute the Mur coefficient."""
        width, height = solver.shape

        courant = SPEED_OF_LIGHT * solver.dt / solver.dx
        self.coeff = (courant - 1.0) / (courant + 1.0)

        self.ez_left = np.zeros(height, dtype=np.float64)
        self.ez_right = np.zeros(height, dtype=np.float64)
        self.ez_top = np.zeros(width, dtype=np.float64)
        self.ez_bottom = np.zeros(width, dtype=np.float64)

    @property
    def initialized(self) -> bool:
        """True once initialize() has allocated the buffers."""
        return self.ez_left is not None

    def snapshot(self, solver: FDTDSolver) -> None:
        """Capture Ez one cell inward of each edge (pre-update values)."""
        if not self.initialized:
            return

        ez = solver.ez
        self.ez_left[:] = ez[1, :]
        self.ez_right[:] = ez[-2, :]
        self.ez_top[:] = ez[:, 1]
        self.ez_bottom[:] = ez[:, -2]

    def apply(self, solver: FDTDSolver) -> None:
        """Update the edge and corner Ez cells from the snapshot."""
        if not self.initialized:
            return

        ez = solver.ez
        k = self.coeff

        # Left/right edges (corners excluded)
        ez[0, 1:-1] = self.ez_left[1:-1] + k * (ez[1, 1:-1] - ez[0, 1:-1])
        ez[-1, 1:-1] = self.ez_right[1:-1] + k * (ez[-2, 1:-1] - ez[-1, 1:-1])

        # Top/bottom edges (corners excluded)
        ez[1:-1, 0] = self.ez_top[1:-1] + k * (ez[1:-1, 1] - ez[1:-1, 0])
        ez[1:-1, -1] = self.ez_bottom[1:-1] + k * (ez[1:-1, -2] - ez[1:-1, -1])

        # Corners: mean of the two adjacent edge cells
        ez[0, 0] = 0.5 * (ez[1, 0] + ez[0, 1])
        ez[-1, 0] = 0.5 * (ez[-2, 0] + ez[-1, 1])
        ez[0, -1] = 0.5 * (ez[1, -1] + ez[0, -2])
        ez[-1, -1] = 0.5 * (ez[-2, -1] + ez[-1, -2])

    def reset(self) -> None:
        """Reset stored boundary values."""
        for buffer in (self.ez_left, self.ez_right, self.ez_top, self.ez_bottom):
            if buffer is not None:
                buffer.fill(0)

    def __repr__(self) -> str:
        return f"MurABC(coeff={self.coeff:.4f})"
