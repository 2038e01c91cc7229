"""Field views, scattered-field computation and status reporting."""

from strata_em.analysis.fields import (
    FieldView,
    ScatteringPair,
    field_view,
    solver_view,
)
from strata_em.analysis.status import (
    format_status,
    print_simulation_info,
    simulation_info_table,
)

__all__ = [
    "FieldView",
    "ScatteringPair",
    "field_view",
    "solver_view",
    "format_status",
    "simulation_info_table",
    "print_simulation_info",
]
