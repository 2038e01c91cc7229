"""Status text and summary tables for running simulations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from strata_em.core.solver import FDTDSolver


def format_status(solver: FDTDSolver) -> str:
    """Two-line status for a display overlay.

    Returns:
        Text like "Time Step: 120\\nMax Field: 4.2109e-02"
    """
    return f"Time Step: {solver.step_count}\nMax Field: {solver.max_field():.4e}"


def simulation_info_table(solver: FDTDSolver) -> Table:
    """Build a table of grid, timing, source and material information.

    Args:
        solver: FDTD solver instance

    Returns:
        Rich table ready for printing
    """
    width, height = solver.shape
    extent_x, extent_y = solver.grid.physical_extent()
    config = solver.config
    object_cells = int(solver.object_mask.sum())

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Grid", f"{width} × {height} ({solver.grid.num_cells:,} cells)")
    table.add_row("Resolution", f"{solver.dx * 1e3:.3f} mm")
    table.add_row("Domain", f"{extent_x * 1e3:.1f} × {extent_y * 1e3:.1f} mm")
    table.add_row("Timestep", f"{solver.dt * 1e12:.4f} ps")
    table.add_row("Source", f"{config.kind.value} at ({config.x}, {config.y})")
    table.add_row("Frequency", f"{config.frequency_ghz:g} GHz")
    table.add_row("Object cells", f"{object_cells:,}")
    table.add_row("Step", f"{solver.step_count:,}")
    table.add_row("Max |Ez|", f"{solver.max_field():.4e}")

    return table


def print_simulation_info(console: Console, solver: FDTDSolver) -> None:
    """Print simulation parameters before or during a run.

    Args:
        console: Rich console instance
        solver: FDTD solver instance
    """
    console.print("\n[bold]Simulation Parameters:[/bold]")
    console.print(simulation_info_table(solver))
    console.print()
