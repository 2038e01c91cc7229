"""Derived field quantities for display.

Renderers do not draw raw Ez/Hx/Hy. They draw one non-negative scalar
per cell chosen by a FieldView:

    ELECTRIC        |Ez|
    MAGNETIC        |H| = sqrt(Hx² + Hy²)
    POWER_DENSITY   |Ez · |H||

ScatteringPair runs two solvers side by side, one with the placed
objects (total field) and one that always stays free space (incident
field). Their difference is the field scattered by the objects.

Example:
    >>> from strata_em import PlacedObject
    >>> from strata_em.analysis import FieldView, ScatteringPair
    >>> pair = ScatteringPair(300, 300, frequency_ghz=2.0)
    >>> pair.rasterize([PlacedObject("metal_sphere", center=(200, 150), size=(30, 30))])
    >>> pair.run(steps=400)
    >>> image = pair.scattered_view(FieldView.ELECTRIC)
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from strata_em.core.solver import FDTDSolver
from strata_em.core.sources import SourceKind

if TYPE_CHECKING:
    from strata_em.geometry.objects import PlacedObject
    from strata_em.materials.base import MaterialMaps


class FieldView(Enum):
    """Scalar quantity shown for each cell."""

    ELECTRIC = "electric"
    MAGNETIC = "magnetic"
    POWER_DENSITY = "power_density"


def field_view(
    ez: NDArray[np.floating],
    hx: NDArray[np.floating],
    hy: NDArray[np.floating],
    view: FieldView | str = FieldView.ELECTRIC,
) -> NDArray[np.float64]:
    """Map field components to a per-cell display quantity.

    Args:
        ez, hx, hy: Field arrays of one shape
        view: Quantity to compute (FieldView or its string value)

    Returns:
        Non-negative array with the shape of ``ez``
    """
    view = FieldView(view)
    if view is FieldView.ELECTRIC:
        return np.abs(ez)

    h_magnitude = np.sqrt(hx * hx + hy * hy)
    if view is FieldView.MAGNETIC:
        return h_magnitude
    return np.abs(ez * h_magnitude)


def solver_view(solver: FDTDSolver, view: FieldView | str = FieldView.ELECTRIC) -> NDArray[np.float64]:
    """Display quantity for the current state of a solver."""
    return field_view(solver.ez, solver.hx, solver.hy, view)


class ScatteringPair:
    """Total-field and incident-field solvers driven in lock step.

    Both solvers share grid, resolution and source configuration. Objects
    are only rasterized into the total-field solver; the incident-field
    solver is kept as free space.

    Args:
        width, height: Grid size in cells
        **kwargs: Passed to both FDTDSolver constructors

    Attributes:
        total: Solver containing the placed objects
        incident: Free-space solver with the same source
    """

    def __init__(self, width: int, height: int, **kwargs):
        self.total = FDTDSolver(width, height, **kwargs)
        self.incident = FDTDSolver(width, height, **kwargs)
        self.incident.rasterize([])

    @property
    def step_count(self) -> int:
        return self.total.step_count

    def rasterize(self, objects: Iterable[PlacedObject] | None) -> MaterialMaps:
        """Rasterize objects into the total-field solver only."""
        self.incident.rasterize([])
        return self.total.rasterize(objects)

    def set_frequency(self, frequency_ghz: float) -> None:
        self.total.set_frequency(frequency_ghz)
        self.incident.set_frequency(frequency_ghz)

    def set_source_kind(self, kind: SourceKind | str) -> None:
        self.total.set_source_kind(kind)
        self.incident.set_source_kind(kind)

    def set_source_position(self, x: int, y: int) -> None:
        self.total.set_source_position(x, y)
        self.incident.set_source_position(x, y)

    def step(self) -> None:
        """Advance both solvers by one timestep."""
        self.total.step()
        self.incident.step()

    def run(self, steps: int) -> None:
        """Advance both solvers by ``steps`` timesteps."""
        for _ in range(steps):
            self.step()

    def reset_fields(self) -> None:
        self.total.reset_fields()
        self.incident.reset_fields()

    def scattered_fields(
        self,
    ) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """Total minus incident field for Ez, Hx and Hy."""
        return (
            self.total.ez - self.incident.ez,
            self.total.hx - self.incident.hx,
            self.total.hy - self.incident.hy,
        )

    def scattered_view(self, view: FieldView | str = FieldView.ELECTRIC) -> NDArray[np.float64]:
        """Display quantity of the scattered field."""
        return field_view(*self.scattered_fields(), view)

    def total_view(self, view: FieldView | str = FieldView.ELECTRIC) -> NDArray[np.float64]:
        """Display quantity of the total field."""
        return solver_view(self.total, view)
