"""Material maps and constants."""

from strata_em.materials.base import (
    EPSILON_FLOOR,
    PEC_CONDUCTIVITY,
    MaterialMaps,
)

__all__ = [
    "MaterialMaps",
    "PEC_CONDUCTIVITY",
    "EPSILON_FLOOR",
]
