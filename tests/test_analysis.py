"""
Tests for display quantities, scattered fields and status reporting.
"""

import io

import numpy as np
import pytest
from rich.console import Console

from strata_em import FDTDSolver, PlacedObject
from strata_em.analysis import (
    FieldView,
    ScatteringPair,
    field_view,
    format_status,
    print_simulation_info,
    simulation_info_table,
    solver_view,
)

# =============================================================================
# Field views
# =============================================================================


class TestFieldView:
    @pytest.fixture
    def fields(self):
        ez = np.array([[-3.0, 0.0], [1.0, 2.0]])
        hx = np.array([[3.0, 0.0], [0.0, -1.0]])
        hy = np.array([[4.0, 1.0], [0.0, 0.0]])
        return ez, hx, hy

    def test_electric(self, fields):
        np.testing.assert_array_equal(field_view(*fields, FieldView.ELECTRIC), [[3, 0], [1, 2]])

    def test_magnetic(self, fields):
        np.testing.assert_allclose(field_view(*fields, "magnetic"), [[5, 1], [0, 1]])

    def test_power_density(self, fields):
        np.testing.assert_allclose(field_view(*fields, FieldView.POWER_DENSITY), [[15, 0], [0, 2]])

    def test_default_is_electric(self, fields):
        np.testing.assert_array_equal(field_view(*fields), np.abs(fields[0]))

    def test_unknown_view_rejected(self, fields):
        with pytest.raises(ValueError):
            field_view(*fields, "phase")

    def test_solver_view(self, small_solver):
        small_solver.run(steps=60)
        view = solver_view(small_solver, FieldView.MAGNETIC)

        assert view.shape == small_solver.shape
        assert np.all(view >= 0)
        np.testing.assert_allclose(view, np.hypot(small_solver.hx, small_solver.hy))


# =============================================================================
# Scattered field
# =============================================================================


class TestScatteringPair:
    def test_no_objects_no_scattering(self):
        pair = ScatteringPair(60, 60, frequency_ghz=5.0)
        pair.rasterize([])
        pair.run(steps=80)

        assert pair.step_count == 80
        for component in pair.scattered_fields():
            assert np.all(component == 0)

    def test_object_scatters(self):
        pair = ScatteringPair(80, 80, frequency_ghz=10.0, source_position=(20, 40))
        pair.rasterize([PlacedObject("metal_sphere", center=(50, 40), size=(12, 12))])
        pair.run(steps=200)

        assert pair.incident.get_materials().is_free_space()
        assert pair.total.is_object(50, 40)
        assert pair.scattered_view(FieldView.ELECTRIC).max() > 0

    def test_scattered_is_total_minus_incident(self):
        pair = ScatteringPair(60, 60, source_kind="line", source_position=(30, 10))
        pair.rasterize([PlacedObject("absorber", center=(30, 40), size=(16, 16))])
        pair.run(steps=120)

        ez, hx, hy = pair.scattered_fields()
        np.testing.assert_array_equal(ez, pair.total.ez - pair.incident.ez)
        np.testing.assert_array_equal(hy, pair.total.hy - pair.incident.hy)
        np.testing.assert_array_equal(pair.total_view(), np.abs(pair.total.ez))

    def test_settings_apply_to_both(self):
        pair = ScatteringPair(60, 60)
        pair.set_frequency(3.0)
        pair.set_source_kind("plane")
        pair.set_source_position(10, 10)

        for solver in (pair.total, pair.incident):
            assert solver.config.frequency_ghz == 3.0
            assert solver.config.kind.value == "plane"
            assert (solver.config.x, solver.config.y) == (10, 10)

    def test_reset_fields(self):
        pair = ScatteringPair(40, 40)
        pair.run(steps=10)
        pair.reset_fields()

        assert pair.total.step_count == 0
        assert pair.incident.step_count == 0
        assert pair.total.max_field() == 0.0


# =============================================================================
# Status reporting
# =============================================================================


class TestStatus:
    def test_status_at_rest(self, small_solver):
        assert format_status(small_solver) == "Time Step: 0\nMax Field: 0.0000e+00"

    def test_status_after_steps(self, small_solver):
        small_solver.run(steps=12)
        lines = format_status(small_solver).split("\n")

        assert lines[0] == "Time Step: 12"
        assert lines[1] == f"Max Field: {small_solver.max_field():.4e}"

    def test_info_table(self, small_solver):
        table = simulation_info_table(small_solver)
        assert table.row_count == 9

    def test_print_simulation_info(self):
        solver = FDTDSolver(40, 30, frequency_ghz=2.5, source_kind="line")
        solver.rasterize([PlacedObject("metal_box", center=(20, 15), size=(4, 4))])
        buffer = io.StringIO()
        console = Console(file=buffer, width=100)

        print_simulation_info(console, solver)
        output = buffer.getvalue()

        assert "Simulation Parameters" in output
        assert "40 × 30" in output
        assert "2.5 GHz" in output
        assert "line at (20, 15)" in output
        assert "25" in output  # object cells
