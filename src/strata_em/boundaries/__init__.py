"""Boundary conditions for FDTD simulations."""

from strata_em.boundaries._boundaries import MurABC

__all__ = [
    "MurABC",
]
