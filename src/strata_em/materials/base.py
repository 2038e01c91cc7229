"""Per-cell material maps for the 2D TMz solver.

A material map assigns every grid cell a relative permittivity εr, a
conductivity σ (S/m) and an object flag. The flag only marks cells that
belong to a placed object for overlay rendering; it does not enter the
field update.

Example:
    >>> from strata_em.materials import PEC_CONDUCTIVITY, MaterialMaps
    >>> maps = MaterialMaps.free_space((200, 200))
    >>> maps.sigma[50:60, 50:60] = PEC_CONDUCTIVITY
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

# Near-perfect conductor used for metal objects
PEC_CONDUCTIVITY = 1e5  # S/m

# Lower bound on εr in the update coefficients, as a fraction of ε0
EPSILON_FLOOR = 1e-6

FREE_SPACE_EPSILON_R = 1.0
FREE_SPACE_SIGMA = 0.0


@dataclass(eq=False)
class MaterialMaps:
    """Dense relative permittivity, conductivity and object-flag arrays.

    Args:
        epsilon_r: Relative permittivity per cell, shape (width, height)
        sigma: Conductivity per cell in S/m
        is_object: True where a placed object covers the cell

    Raises:
        ValueError: If the three arrays do not share one 2D shape.
    """

    epsilon_r: NDArray[np.float64]
    sigma: NDArray[np.float64]
    is_object: NDArray[np.bool_]

    def __post_init__(self):
        self.epsilon_r = np.asarray(self.epsilon_r, dtype=np.float64)
        self.sigma = np.asarray(self.sigma, dtype=np.float64)
        self.is_object = np.asarray(self.is_object, dtype=bool)

        if self.epsilon_r.ndim != 2:
            raise ValueError(
                f"Material maps must be 2D, got shape {self.epsilon_r.shape}"
            )
        if self.sigma.shape != self.epsilon_r.shape or self.is_object.shape != self.epsilon_r.shape:
            raise ValueError(
                "Material maps must share one shape: "
                f"epsilon_r {self.epsilon_r.shape}, sigma {self.sigma.shape}, "
                f"is_object {self.is_object.shape}"
            )

    @classmethod
    def free_space(cls, shape: tuple[int, int]) -> MaterialMaps:
        """Uniform vacuum: εr = 1, σ = 0, no objects."""
        return cls(
            epsilon_r=np.full(shape, FREE_SPACE_EPSILON_R, dtype=np.float64),
            sigma=np.full(shape, FREE_SPACE_SIGMA, dtype=np.float64),
            is_object=np.zeros(shape, dtype=bool),
        )

    @property
    def shape(self) -> tuple[int, int]:
        """Grid shape (width, height)."""
        return self.epsilon_r.shape

    def copy(self) -> MaterialMaps:
        """Deep copy of all three maps."""
        return MaterialMaps(
            epsilon_r=self.epsilon_r.copy(),
            sigma=self.sigma.copy(),
            is_object=self.is_object.copy(),
        )

    def is_free_space(self) -> bool:
        """True if every cell is vacuum and no cell is flagged."""
        return bool(
            np.all(self.epsilon_r == FREE_SPACE_EPSILON_R)
            and np.all(self.sigma == FREE_SPACE_SIGMA)
            and not np.any(self.is_object)
        )

    def __repr__(self) -> str:
        return (
            f"MaterialMaps(shape={self.shape}, "
            f"objects={int(np.count_nonzero(self.is_object))} cells)"
        )
