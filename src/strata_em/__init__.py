"""
Strata EM - 2D electromagnetic FDTD simulation.

Main exports:
- FDTDSolver: 2D TMz (Ez, Hx, Hy) FDTD solver with lossy materials
- SourceKind: Point, line, plane and Gaussian pulse sources
- PlacedObject, ObjectKind: Scatterers placed on the grid
- rasterize: Placed objects -> per-cell material maps
- MaterialMaps: Relative permittivity, conductivity and object flags
- MurABC: First-order Mur absorbing boundary
- ScatteringPair, FieldView: Scattered-field and display quantities
"""

from strata_em.analysis import (
    FieldView,
    ScatteringPair,
    field_view,
    format_status,
    print_simulation_info,
)
from strata_em.boundaries import MurABC
from strata_em.core.grid import UniformGrid
from strata_em.core.solver import FDTDSolver, Probe
from strata_em.core.sources import SourceConfig, SourceKind
from strata_em.geometry import ObjectKind, PlacedObject, rasterize
from strata_em.materials import MaterialMaps

# Submodules for more specific imports
from . import analysis, boundaries, core, geometry, materials

__version__ = "0.1.0"

__all__ = [
    # Core solver
    "FDTDSolver",
    "Probe",
    "UniformGrid",
    "SourceConfig",
    "SourceKind",
    "MurABC",
    # Geometry and materials
    "ObjectKind",
    "PlacedObject",
    "rasterize",
    "MaterialMaps",
    # Analysis
    "FieldView",
    "ScatteringPair",
    "field_view",
    "format_status",
    "print_simulation_info",
    # Submodules
    "analysis",
    "boundaries",
    "core",
    "geometry",
    "materials",
]
