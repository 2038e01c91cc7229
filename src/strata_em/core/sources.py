"""Source excitation for the 2D TMz solver.

Sources are soft (additive) Ez sources. Every kind shares one temporal
waveform, a sinusoid at the configured frequency with a Gaussian ramp-up
over the first steps so the excitation starts without a discontinuity:

    s(t) = 0.1 * sin(ωt) * exp(-((t - 50Δt) / (10Δt))²)    step < 100
    s(t) = 0.1 * sin(ωt)                                   otherwise

The kind only decides where, and with which weight, s(t) is added:

    point           s at (x, y)
    line            0.1·s along row y
    plane           0.5·s along a row that sweeps slowly through the grid
    gaussian_pulse  0.05·s·exp(-(r/20)²) over a 60×60 patch around (x, y)

Example:
    >>> from strata_em.core.sources import SourceConfig, SourceKind
    >>> config = SourceConfig(frequency_ghz=2.4, kind=SourceKind.LINE, x=50, y=20)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray

SOURCE_AMPLITUDE = 0.1
RAMP_STEPS = 100
RAMP_CENTER_STEPS = 50.0
RAMP_WIDTH_STEPS = 10.0

LINE_WEIGHT = 0.1
PLANE_WEIGHT = 0.5
PLANE_START_ROW = 50
PULSE_WEIGHT = 0.05
PULSE_SPATIAL_SIGMA = 20.0  # cells
PULSE_HALF_WIDTH = 30  # cells


class SourceKind(Enum):
    """Spatial distribution of the injected source."""

    POINT = "point"
    LINE = "line"
    PLANE = "plane"
    GAUSSIAN_PULSE = "gaussian_pulse"


@dataclass
class SourceConfig:
    """Source settings for a solver.

    Args:
        frequency_ghz: Carrier frequency in GHz. Zero gives a silent source.
        kind: Spatial distribution (SourceKind or its string value)
        x, y: Source cell; the line source only uses y

    Raises:
        ValueError: If the frequency is negative or not finite, or the
            kind is not a known source kind.
    """

    frequency_ghz: float = 1.0
    kind: SourceKind | str = SourceKind.POINT
    x: int = 0
    y: int = 0

    def __post_init__(self):
        self.kind = SourceKind(self.kind)
        self.frequency_ghz = float(self.frequency_ghz)
        if not np.isfinite(self.frequency_ghz) or self.frequency_ghz < 0:
            raise ValueError(
                f"Frequency must be a non-negative number of GHz, got {self.frequency_ghz}"
            )
        self.x = int(self.x)
        self.y = int(self.y)


def source_amplitude(step: int, dt: float, frequency_ghz: float) -> float:
    """Temporal source value for a timestep.

    Args:
        step: 1-based index of the step being computed; the source is
            evaluated at t = step * dt
        dt: Timestep in seconds
        frequency_ghz: Carrier frequency in GHz

    Returns:
        Source amplitude
    """
    t = step * dt
    omega = 2.0 * np.pi * frequency_ghz * 1e9
    if step < RAMP_STEPS:
        envelope = np.exp(
            -(((t - RAMP_CENTER_STEPS * dt) / (RAMP_WIDTH_STEPS * dt)) ** 2)
        )
        return float(np.sin(omega * t) * envelope * SOURCE_AMPLITUDE)

    return float(np.sin(omega * t) * SOURCE_AMPLITUDE)


def plane_wave_row(step: int, height: int) -> int:
    """Row carrying the plane-wave source at a given step.

    The row starts 50 cells from the top and advances one row every two
    steps, wrapping after ``|height - 100|`` rows, then is clamped to the
    interior. On a 100-row grid the span is empty and the row stays at 50.
    """
    span = abs(height - 2 * PLANE_START_ROW)
    row = PLANE_START_ROW
    if span:
        row += (step // 2) % span
    return min(height - 2, max(1, row))


def gaussian_pulse_weights(
    shape: tuple[int, int], x: int, y: int
) -> tuple[slice, slice, NDArray[np.float64]]:
    """Spatial weights of the Gaussian pulse source.

    The patch spans ``[x-30, x+30)`` by ``[y-30, y+30)`` clipped to the
    interior, weighted by ``exp(-(r/20)²)``.

    Returns:
        (i_slice, j_slice, weights) such that
        ``ez[i_slice, j_slice] += value * weights`` applies the source.
    """
    width, height = shape
    i0 = max(1, x - PULSE_HALF_WIDTH)
    i1 = min(width - 1, x + PULSE_HALF_WIDTH)
    j0 = max(1, y - PULSE_HALF_WIDTH)
    j1 = min(height - 1, y + PULSE_HALF_WIDTH)

    i_slice = slice(i0, max(i0, i1))
    j_slice = slice(j0, max(j0, j1))

    ii = np.arange(i_slice.start, i_slice.stop)[:, None]
    jj = np.arange(j_slice.start, j_slice.stop)[None, :]
    r = np.hypot(ii - x, jj - y)
    weights = np.exp(-((r / PULSE_SPATIAL_SIGMA) ** 2))

    return i_slice, j_slice, weights


def inject_source(
    ez: NDArray[np.floating],
    config: SourceConfig,
    step: int,
    dt: float,
    pulse_weights: tuple[slice, slice, NDArray[np.float64]] | None = None,
) -> float:
    """Add the source contribution for one step to the Ez field in place.

    Args:
        ez: Ez field array, shape (width, height)
        config: Source configuration
        step: 1-based index of the step being computed
        dt: Timestep in seconds
        pulse_weights: Precomputed result of gaussian_pulse_weights();
            computed on demand when omitted

    Returns:
        The temporal source value s(t) used for this step
    """
    width, height = ez.shape
    value = source_amplitude(step, dt, config.frequency_ghz)
    kind = config.kind

    if kind is SourceKind.POINT:
        x, y = config.x, config.y
        if 1 <= x < width - 1 and 1 <= y < height - 1:
            ez[x, y] += value
    elif kind is SourceKind.LINE:
        ez[1:-1, config.y] += value * LINE_WEIGHT
    elif kind is SourceKind.PLANE:
        row = plane_wave_row(step, height)
        ez[1:-1, row] += value * PLANE_WEIGHT
    elif kind is SourceKind.GAUSSIAN_PULSE:
        if pulse_weights is None:
            pulse_weights = gaussian_pulse_weights(ez.shape, config.x, config.y)
        i_slice, j_slice, weights = pulse_weights
        ez[i_slice, j_slice] += value * weights * PULSE_WEIGHT
    else:
        raise ValueError(f"Unknown source kind: {kind!r}")

    return value
