"""
Example: Point Source with a Metal Box
======================================
A 2 GHz point source radiates in free space towards a metal box.
This demonstrates the basic workflow: solver creation, object placement,
probe placement and stepping.

Grid: 400 × 400 cells @ 1mm resolution
Domain: 400mm × 400mm
Source: 2 GHz point source at the grid centre
Object: 30mm × 80mm metal box at x=280mm
Probes: In front of and behind the box
"""

import numpy as np
from rich.console import Console

from strata_em import FDTDSolver, ObjectKind, PlacedObject, format_status, print_simulation_info

console = Console()

# Create the solver
# - 400x400 cells, 1mm resolution
# - Timestep fixed by the 2D CFL condition with Courant 0.5
solver = FDTDSolver(400, 400, frequency_ghz=2.0)

# Place a metal box to the right of the source
solver.rasterize(
    [
        PlacedObject(ObjectKind.METAL_BOX, center=(280, 200), size=(30, 80)),
    ]
)

# Probes on either side of the box
solver.add_probe("front", position=(240, 200))
solver.add_probe("behind", position=(330, 200))

print_simulation_info(console, solver)

console.print("Running simulation...")
solver.run(steps=1200, progress=True)

console.print()
console.print(format_status(solver))

data = solver.get_probe_data()
front_peak = np.max(np.abs(data["front"]))
behind_peak = np.max(np.abs(data["behind"]))

console.print()
console.print(f"Peak |Ez| in front of box: {front_peak:.4e}")
console.print(f"Peak |Ez| behind box:      {behind_peak:.4e}")
console.print(f"Shielding: {20 * np.log10(front_peak / max(behind_peak, 1e-30)):.1f} dB")
