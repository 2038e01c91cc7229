"""Core FDTD solver components."""

from strata_em.core.grid import (
    EPSILON_0,
    MU_0,
    SPEED_OF_LIGHT,
    UniformGrid,
)
from strata_em.core.solver import FIELD_LIMIT, FDTDSolver, Probe
from strata_em.core.sources import (
    SourceConfig,
    SourceKind,
    inject_source,
    source_amplitude,
)

__all__ = [
    "FDTDSolver",
    "Probe",
    "FIELD_LIMIT",
    "UniformGrid",
    "SourceConfig",
    "SourceKind",
    "source_amplitude",
    "inject_source",
    "SPEED_OF_LIGHT",
    "EPSILON_0",
    "MU_0",
]
