"""2D Finite-Difference Time-Domain (FDTD) electromagnetic solver.

This module implements the TMz polarisation (Ez, Hx, Hy) of Maxwell's
equations on a staggered Yee grid with per-cell lossy dielectric
materials, a soft source and a first-order Mur absorbing boundary.

Physics:
    ∂Hx/∂t = -(1/μ0) ∂Ez/∂y
    ∂Hy/∂t =  (1/μ0) ∂Ez/∂x
    ε ∂Ez/∂t + σ Ez = ∂Hy/∂x - ∂Hx/∂y

Lossy update (per cell, ε = max(εr·ε0, 1e-6·ε0)):
    ca = (1 - σΔt/2ε) / (1 + σΔt/2ε)
    cb = (Δt/(εΔx)) / (1 + σΔt/2ε)
    Ez ← ca·Ez + cb·curl(H)

Stability: Δt = 0.5·Δx/(c√2) (CFL condition for 2D with Courant 0.5)

Example:
    >>> from strata_em import FDTDSolver, ObjectKind, PlacedObject
    >>> solver = FDTDSolver(400, 400)
    >>> solver.set_frequency(1.0)
    >>> solver.rasterize([
    ...     PlacedObject(ObjectKind.METAL_BOX, center=(260, 200), size=(30, 80)),
    ... ])
    >>> solver.add_probe("behind", position=(320, 200))
    >>> solver.run(steps=500)
    >>> peak = solver.max_field()
"""

from __future__ import annotations

import warnings
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from strata_em.boundaries import MurABC
from strata_em.geometry.objects import PlacedObject
from strata_em.geometry.rasterize import rasterize as rasterize_objects
from strata_em.materials.base import EPSILON_FLOOR, MaterialMaps

from .grid import (
    DEFAULT_COURANT,
    DEFAULT_RESOLUTION,
    EPSILON_0,
    MU_0,
    UniformGrid,
)
from .sources import SourceConfig, SourceKind, gaussian_pulse_weights, inject_source

# Instability guard: Ez values beyond this (or non-finite) are clamped
FIELD_LIMIT = 1e4


@dataclass
class Probe:
    """Ez recording probe at a grid cell.

    Args:
        name: Identifier for this probe
        position: Grid coordinates (i, j)
    """

    name: str
    position: tuple[int, int]
    data: list[float] = field(default_factory=list)

    def record(self, value: float) -> None:
        """Record an Ez sample."""
        self.data.append(value)

    def get_data(self) -> NDArray[np.float64]:
        """Get recorded data as numpy array."""
        return np.array(self.data, dtype=np.float64)

    def clear(self) -> None:
        """Clear recorded data."""
        self.data.clear()


class FDTDSolver:
    """2D TMz FDTD solver with staggered Yee grid.

    Owns the field arrays, the material arrays and the boundary state.
    Fields start at rest and materials start as free space. Each call to
    step() performs one leapfrog update in a fixed order:

    1. Snapshot Ez next to the edges (boundary state for this step)
    2. Update Hx, Hy from the curl of Ez
    3. Update interior Ez from the curl of H with lossy coefficients,
       clamping runaway values to ±1e4
    4. Inject the source at t = (step_count + 1)·Δt
    5. Apply the Mur boundary to the outer ring of Ez
    6. Increment the step counter

    Args:
        width: Grid size along x in cells (>= 3)
        height: Grid size along y in cells (>= 3)
        resolution: Cell spacing in meters (default: 1 mm)
        courant: Fraction of the 2D CFL limit used for Δt (default: 0.5)
        frequency_ghz: Source frequency in GHz (default: 1.0)
        source_kind: "point", "line", "plane" or "gaussian_pulse"
        source_position: Source cell (x, y); defaults to the grid centre
        warn_instability: If True, run() warns when the instability guard
            clamped cells during the run (default: False)

    Attributes:
        ez: Ez field array, shape (width, height)
        hx, hy: Magnetic field component arrays, same shape. H components
            sit half a cell from Ez; hx[i, j] lies between Ez[i, j] and
            Ez[i, j+1], hy[i, j] between Ez[i, j] and Ez[i+1, j].
        dt: Timestep in seconds, fixed at construction
        dx: Grid spacing in meters

    Raises:
        ValueError: On invalid grid size, resolution, courant number or
            source configuration.

    Example:
        >>> solver = FDTDSolver(200, 200, source_kind="gaussian_pulse")
        >>> for _ in range(100):
        ...     solver.step()
        >>> print(f"step {solver.step_count}: max |Ez| = {solver.max_field():.3e}")
    """

    def __init__(
        self,
        width: int,
        height: int,
        resolution: float = DEFAULT_RESOLUTION,
        courant: float = DEFAULT_COURANT,
        frequency_ghz: float = 1.0,
        source_kind: SourceKind | str = SourceKind.POINT,
        source_position: tuple[int, int] | None = None,
        warn_instability: bool = False,
    ):
        self._grid = UniformGrid(shape=(width, height), resolution=resolution)
        self.shape = self._grid.shape

        # dt is derived once from dx and never changes independently
        self._dx = self._grid.dx
        self._dt = self._grid.cfl_timestep(courant)
        self._coeff_h = self._dt / (MU_0 * self._dx)

        if source_position is None:
            source_position = (self.width // 2, self.height // 2)
        self._check_position(source_position, "Source position")
        self._config = SourceConfig(
            frequency_ghz=frequency_ghz,
            kind=source_kind,
            x=source_position[0],
            y=source_position[1],
        )
        self._pulse_weights = None

        # Field arrays (double precision)
        self.ez = np.zeros(self.shape, dtype=np.float64)
        self.hx = np.zeros(self.shape, dtype=np.float64)
        self.hy = np.zeros(self.shape, dtype=np.float64)

        # Material arrays, owned here and replaced only via apply_materials()
        self._materials = MaterialMaps.free_space(self.shape)
        self._ca = np.ones((self.width - 2, self.height - 2), dtype=np.float64)
        self._cb = np.ones((self.width - 2, self.height - 2), dtype=np.float64)
        self._update_coefficients()

        self._boundary = MurABC()
        self._boundary.initialize(self)

        # Probes and snapshots
        self._probes: dict[str, Probe] = {}
        self._snapshots: list[tuple[float, NDArray[np.float64]]] = []
        self._snapshot_interval: int | None = None

        # Simulation state
        self._step_count = 0
        self._clamped_cells = 0
        self._warn_instability = warn_instability

    @property
    def grid(self) -> UniformGrid:
        """The grid used by this solver."""
        return self._grid

    @property
    def width(self) -> int:
        return self.shape[0]

    @property
    def height(self) -> int:
        return self.shape[1]

    @property
    def dx(self) -> float:
        """Grid spacing in meters."""
        return self._dx

    @property
    def dt(self) -> float:
        """Timestep in seconds."""
        return self._dt

    @property
    def step_count(self) -> int:
        """Number of timesteps completed."""
        return self._step_count

    @property
    def time(self) -> float:
        """Current simulation time in seconds."""
        return self._step_count * self._dt

    @property
    def config(self) -> SourceConfig:
        """Current source configuration."""
        return self._config

    @property
    def boundary(self) -> MurABC:
        """The absorbing boundary applied at the grid edges."""
        return self._boundary

    @property
    def clamped_cell_count(self) -> int:
        """Cells clamped by the instability guard since the last reset."""
        return self._clamped_cells

    @property
    def epsilon_r(self) -> NDArray[np.float64]:
        """Relative permittivity per cell (read-only view)."""
        return _readonly(self._materials.epsilon_r)

    @property
    def sigma(self) -> NDArray[np.float64]:
        """Conductivity per cell in S/m (read-only view)."""
        return _readonly(self._materials.sigma)

    @property
    def object_mask(self) -> NDArray[np.bool_]:
        """Object presence flags per cell (read-only view)."""
        return _readonly(self._materials.is_object)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def set_frequency(self, frequency_ghz: float) -> None:
        """Set the source frequency in GHz."""
        self._config = SourceConfig(
            frequency_ghz=frequency_ghz,
            kind=self._config.kind,
            x=self._config.x,
            y=self._config.y,
        )

    def set_source_kind(self, kind: SourceKind | str) -> None:
        """Set the source kind (SourceKind or its string value)."""
        self._config = SourceConfig(
            frequency_ghz=self._config.frequency_ghz,
            kind=kind,
            x=self._config.x,
            y=self._config.y,
        )

    def set_source_position(self, x: int, y: int) -> None:
        """Move the source to cell (x, y).

        Raises:
            ValueError: If (x, y) lies outside the grid
        """
        self._check_position((x, y), "Source position")
        self._config = SourceConfig(
            frequency_ghz=self._config.frequency_ghz,
            kind=self._config.kind,
            x=x,
            y=y,
        )
        self._pulse_weights = None

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    def apply_materials(self, maps: MaterialMaps) -> None:
        """Replace the material maps in place.

        Field values are untouched, so materials can change while a
        simulation is running. Must not be called during step().

        Args:
            maps: Material maps with the solver's shape

        Raises:
            ValueError: If the maps do not match the grid shape
        """
        if maps.shape != self.shape:
            raise ValueError(
                f"Material shape {maps.shape} doesn't match grid shape {self.shape}"
            )

        np.copyto(self._materials.epsilon_r, maps.epsilon_r)
        np.copyto(self._materials.sigma, maps.sigma)
        np.copyto(self._materials.is_object, maps.is_object)
        self._update_coefficients()

    def rasterize(self, objects: Iterable[PlacedObject] | None) -> MaterialMaps:
        """Rasterize placed objects and apply the result.

        Args:
            objects: Objects in paint order (later objects win on overlap)

        Returns:
            The rasterized maps
        """
        maps = rasterize_objects(self.shape, objects)
        self.apply_materials(maps)
        return maps

    def get_materials(self) -> MaterialMaps:
        """Copy of the current material maps."""
        return self._materials.copy()

    def is_object(self, i: int, j: int) -> bool:
        """Object flag at (i, j); False outside the grid."""
        if not self._grid.contains(i, j):
            return False
        return bool(self._materials.is_object[i, j])

    def _update_coefficients(self) -> None:
        """Precompute the lossy Ez update coefficients for interior cells."""
        eps_r = self._materials.epsilon_r[1:-1, 1:-1]
        sigma = self._materials.sigma[1:-1, 1:-1]

        eps = np.maximum(eps_r * EPSILON_0, EPSILON_0 * EPSILON_FLOOR)
        loss = sigma * self._dt / (2.0 * eps)
        denom = 1.0 + loss
        self._ca[:] = (1.0 - loss) / denom
        self._cb[:] = (self._dt / (eps * self._dx)) / denom

    # -------------------------------------------------------------------------
    # Time stepping
    # -------------------------------------------------------------------------

    def step(self) -> None:
        """Advance simulation by one timestep.

        Grid layout (staggered Yee grid):
        - ez[i, j] at cell (i, j)
        - hx[i, j] at (i, j+1/2)
        - hy[i, j] at (i+1/2, j)
        """
        self._boundary.snapshot(self)

        with np.errstate(over="ignore", invalid="ignore"):
            self._update_h()
            self._update_e()

        self._inject_source()
        self._boundary.apply(self)

        self._step_count += 1

        self._record_probes()
        if self._snapshot_interval and self._step_count % self._snapshot_interval == 0:
            self._snapshots.append((self.time, self.ez.copy()))

    def _update_h(self) -> None:
        ez = self.ez
        self.hx[:-1, :-1] += self._coeff_h * (ez[:-1, :-1] - ez[:-1, 1:])
        self.hy[:-1, :-1] += self._coeff_h * (ez[1:, :-1] - ez[:-1, :-1])

    def _update_e(self) -> None:
        hx, hy = self.hx, self.hy
        curl_h = (hy[1:-1, 1:-1] - hy[:-2, 1:-1]) - (hx[1:-1, 1:-1] - hx[1:-1, :-2])

        interior = self.ez[1:-1, 1:-1]
        interior *= self._ca
        interior += self._cb * curl_h

        # Instability guard: clamp non-finite or runaway values, keeping sign
        runaway = ~np.isfinite(interior) | (np.abs(interior) > FIELD_LIMIT)
        if runaway.any():
            interior[runaway] = np.copysign(FIELD_LIMIT, interior[runaway])
            self._clamped_cells += int(np.count_nonzero(runaway))

    def _inject_source(self) -> None:
        """Inject the source for the step being computed."""
        if self._config.kind is SourceKind.GAUSSIAN_PULSE and self._pulse_weights is None:
            self._pulse_weights = gaussian_pulse_weights(
                self.shape, self._config.x, self._config.y
            )
        inject_source(
            self.ez,
            self._config,
            self._step_count + 1,
            self._dt,
            pulse_weights=self._pulse_weights,
        )

    def run(
        self,
        steps: int | None = None,
        duration: float | None = None,
        progress: bool = False,
        callback: Callable[[int], None] | None = None,
    ) -> None:
        """Run the simulation for a number of steps or a duration.

        Args:
            steps: Number of timesteps
            duration: Simulation time in seconds (rounded up to whole steps)
            progress: If True, show a tqdm progress bar
            callback: Function called after each timestep with the step count

        Raises:
            ValueError: Unless exactly one of steps and duration is given
        """
        if (steps is None) == (duration is None):
            raise ValueError("Provide exactly one of 'steps' or 'duration'")
        if steps is None:
            steps = int(np.ceil(duration / self._dt))
        if steps < 0:
            raise ValueError(f"Step count must be non-negative, got {steps}")

        clamped_before = self._clamped_cells

        if progress:
            from tqdm import tqdm

            iterator = tqdm(range(steps), desc="FDTD simulation")
        else:
            iterator = range(steps)

        for _ in iterator:
            self.step()
            if callback:
                callback(self._step_count)

        clamped = self._clamped_cells - clamped_before
        if self._warn_instability and clamped > 0:
            warnings.warn(
                f"Instability guard clamped {clamped} cell updates to ±{FIELD_LIMIT:g} "
                f"during {steps} steps. Check material values and source settings.",
                UserWarning,
                stacklevel=2,
            )

    def reset_fields(self) -> None:
        """Zero the fields and the step counter.

        Materials and source configuration are kept. Probe data, snapshots
        and the boundary state are cleared with the fields.
        """
        self.ez.fill(0)
        self.hx.fill(0)
        self.hy.fill(0)
        self._step_count = 0
        self._clamped_cells = 0
        self._snapshots.clear()
        self._boundary.reset()
        for probe in self._probes.values():
            probe.clear()

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    def max_field(self) -> float:
        """Maximum finite |Ez| over the grid; non-finite cells count as 0."""
        magnitude = np.abs(self.ez)
        finite = np.isfinite(magnitude)
        if not finite.any():
            return 0.0
        return float(magnitude[finite].max())

    def compute_energy(self) -> float:
        """Electromagnetic energy per unit length in the domain.

        Energy = (1/2) * sum(ε0·εr·Ez² + μ0·(Hx² + Hy²)) * Δx²

        Returns:
            Energy in J/m
        """
        dA = self._dx**2
        e_energy = 0.5 * EPSILON_0 * np.sum(self._materials.epsilon_r * self.ez**2) * dA
        h_energy = 0.5 * MU_0 * np.sum(self.hx**2 + self.hy**2) * dA
        return float(e_energy + h_energy)

    def add_probe(self, name: str, position: tuple[int, int]) -> None:
        """Add an Ez probe at a grid cell.

        Raises:
            ValueError: If the name is taken or the cell lies outside the grid
        """
        if name in self._probes:
            raise ValueError(f"Probe '{name}' already exists")
        self._check_position(position, "Probe position")
        i, j = position
        self._probes[name] = Probe(name=name, position=(int(i), int(j)))

    def get_probe_data(self, name: str | None = None) -> dict[str, NDArray[np.float64]]:
        """Get recorded probe data.

        Args:
            name: Specific probe name, or None for all probes

        Returns:
            Dict mapping probe names to Ez time series
        """
        if name is not None:
            if name not in self._probes:
                raise KeyError(f"Probe '{name}' not found")
            return {name: self._probes[name].get_data()}
        return {name: probe.get_data() for name, probe in self._probes.items()}

    def enable_snapshots(self, interval: int) -> None:
        """Save a copy of Ez every ``interval`` steps."""
        if interval < 1:
            raise ValueError(f"Snapshot interval must be at least 1, got {interval}")
        self._snapshot_interval = interval

    def get_snapshots(self) -> list[tuple[float, NDArray[np.float64]]]:
        """Get saved Ez snapshots.

        Returns:
            List of (time, ez) tuples
        """
        return self._snapshots.copy()

    def _record_probes(self) -> None:
        for probe in self._probes.values():
            i, j = probe.position
            probe.record(float(self.ez[i, j]))

    def _check_position(self, position: tuple[int, int], what: str) -> None:
        i, j = position
        if not self._grid.contains(i, j):
            raise ValueError(f"{what} {tuple(position)} is outside the {self.shape} grid")

    def __repr__(self) -> str:
        return (
            f"FDTDSolver(shape={self.shape}, dx={self._dx:.3e}, dt={self._dt:.3e}, "
            f"step={self._step_count})"
        )


def _readonly(array: NDArray) -> NDArray:
    view = array.view()
    view.flags.writeable = False
    return view
