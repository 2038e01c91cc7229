"""
Unit tests for the 2D TMz FDTD solver.

Tests verify:
- Construction, timestep and source configuration
- Exact first-step values and causal spreading
- Wave propagation speed
- Material coupling (metal shielding, lossy decay)
- Instability guard and long-run boundedness
- Probes, snapshots, run() options and reset
"""

import warnings

import numpy as np
import pytest

from strata_em import FDTDSolver, MaterialMaps, ObjectKind, PlacedObject, SourceKind
from strata_em.core import FIELD_LIMIT, SPEED_OF_LIGHT
from strata_em.core.sources import source_amplitude


def gaussian_blob(shape, center, sigma):
    """Smooth Ez initial condition centred on a cell."""
    ii = np.arange(shape[0])[:, None]
    jj = np.arange(shape[1])[None, :]
    r2 = (ii - center[0]) ** 2 + (jj - center[1]) ** 2
    return np.exp(-r2 / (2.0 * sigma**2))


# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    def test_fields_start_at_rest(self, small_solver):
        assert small_solver.shape == (60, 50)
        for field in (small_solver.ez, small_solver.hx, small_solver.hy):
            assert field.shape == (60, 50)
            assert field.dtype == np.float64
            assert np.all(field == 0)
        assert small_solver.step_count == 0
        assert small_solver.max_field() == 0.0

    def test_materials_start_as_free_space(self, small_solver):
        assert np.all(small_solver.epsilon_r == 1.0)
        assert np.all(small_solver.sigma == 0.0)
        assert not small_solver.object_mask.any()
        assert small_solver.get_materials().is_free_space()

    def test_timestep(self, small_solver):
        expected = 0.5 * small_solver.dx / (SPEED_OF_LIGHT * np.sqrt(2.0))
        assert small_solver.dt == pytest.approx(expected, rel=1e-15)
        assert small_solver.dx == 1e-3

    def test_custom_courant(self):
        solver = FDTDSolver(20, 20, courant=0.9)
        dt_max = solver.dx / (SPEED_OF_LIGHT * np.sqrt(2.0))
        assert solver.dt == pytest.approx(0.9 * dt_max)

    def test_default_source(self, small_solver):
        config = small_solver.config
        assert config.kind is SourceKind.POINT
        assert (config.x, config.y) == (30, 25)
        assert config.frequency_ghz == 1.0

    @pytest.mark.parametrize("size", [(2, 10), (10, 1), (0, 0)])
    def test_too_small_grid_rejected(self, size):
        with pytest.raises(ValueError):
            FDTDSolver(*size)

    def test_source_outside_grid_rejected(self):
        with pytest.raises(ValueError, match="Source position"):
            FDTDSolver(20, 20, source_position=(20, 5))

    def test_unknown_source_kind_rejected(self):
        with pytest.raises(ValueError):
            FDTDSolver(20, 20, source_kind="dipole")

    def test_repr(self, small_solver):
        assert repr(small_solver).startswith("FDTDSolver(shape=(60, 50)")


class TestConfiguration:
    def test_set_frequency_keeps_kind_and_position(self, small_solver):
        small_solver.set_source_kind("line")
        small_solver.set_source_position(10, 12)
        small_solver.set_frequency(2.4)

        config = small_solver.config
        assert config.frequency_ghz == pytest.approx(2.4)
        assert config.kind is SourceKind.LINE
        assert (config.x, config.y) == (10, 12)

    def test_set_source_kind_enum_or_string(self, small_solver):
        small_solver.set_source_kind(SourceKind.PLANE)
        assert small_solver.config.kind is SourceKind.PLANE
        small_solver.set_source_kind("gaussian_pulse")
        assert small_solver.config.kind is SourceKind.GAUSSIAN_PULSE

    def test_set_source_position_out_of_grid(self, small_solver):
        with pytest.raises(ValueError, match="outside"):
            small_solver.set_source_position(-1, 10)
        assert (small_solver.config.x, small_solver.config.y) == (30, 25)

    def test_negative_frequency_rejected(self, small_solver):
        with pytest.raises(ValueError, match="Frequency"):
            small_solver.set_frequency(-2.0)

    def test_moving_gaussian_pulse(self):
        moved = FDTDSolver(80, 80, source_kind="gaussian_pulse", source_position=(40, 40))
        moved.step()
        moved.set_source_position(20, 20)
        moved.reset_fields()
        moved.run(steps=120)

        fresh = FDTDSolver(80, 80, source_kind="gaussian_pulse", source_position=(20, 20))
        fresh.run(steps=120)

        np.testing.assert_array_equal(moved.ez, fresh.ez)


# =============================================================================
# Time stepping
# =============================================================================


class TestFirstSteps:
    def test_first_step_injects_ramped_source_only(self):
        solver = FDTDSolver(400, 400)
        solver.set_frequency(1.0)
        solver.step()

        expected = (
            np.sin(2 * np.pi * 1e9 * solver.dt)
            * np.exp(-(((solver.dt - 50 * solver.dt) / (10 * solver.dt)) ** 2))
            * 0.1
        )
        assert solver.step_count == 1
        assert solver.ez[200, 200] == pytest.approx(expected, rel=1e-12)
        assert np.count_nonzero(solver.ez) == 1
        assert np.all(solver.hx == 0)
        assert np.all(solver.hy == 0)

    def test_source_evaluated_at_end_of_step(self):
        # Source-only value at the centre after one step is s(1·dt), not s(0)
        solver = FDTDSolver(40, 40, frequency_ghz=4.0)
        solver.step()
        assert solver.ez[20, 20] == source_amplitude(1, solver.dt, 4.0)
        assert solver.ez[20, 20] != 0.0

    def test_step_counter_and_time(self, small_solver):
        small_solver.run(steps=7)
        assert small_solver.step_count == 7
        assert small_solver.time == pytest.approx(7 * small_solver.dt)

    @pytest.mark.parametrize("steps", [1, 2, 5, 12])
    def test_causality(self, steps):
        solver = FDTDSolver(60, 60, frequency_ghz=3.0)
        solver.run(steps=steps)

        ii, jj = np.nonzero(solver.ez)
        distance = np.abs(ii - 30) + np.abs(jj - 30)
        assert distance.max() <= steps - 1

    def test_silent_source_leaves_fields_at_rest(self, silent_solver):
        silent_solver.run(steps=20)
        assert silent_solver.max_field() == 0.0
        assert silent_solver.compute_energy() == 0.0


class TestWaveSpeed:
    def test_wave_propagation_speed(self):
        """Radial pulse peak travels at c within 5%.

        The arrival-time difference between two probes on the same ray cancels
        the offset between the pulse peak and the wavefront.
        """
        solver = FDTDSolver(300, 300, frequency_ghz=0.0)
        solver.ez[:] = gaussian_blob(solver.shape, (60, 150), sigma=4.0)
        solver.add_probe("near", position=(120, 150))
        solver.add_probe("far", position=(220, 150))

        solver.run(steps=650)
        near = solver.get_probe_data("near")["near"]
        far = solver.get_probe_data("far")["far"]

        lag = int(np.argmax(far)) - int(np.argmax(near))
        distance = (220 - 120) * solver.dx
        measured_c = distance / (lag * solver.dt)

        assert measured_c == pytest.approx(SPEED_OF_LIGHT, rel=0.05), (
            f"Measured speed {measured_c:.4e} m/s, expected {SPEED_OF_LIGHT:.4e} m/s"
        )


# =============================================================================
# Materials
# =============================================================================


class TestMaterials:
    def test_rasterize_applies_maps(self, small_solver):
        maps = small_solver.rasterize(
            [PlacedObject(ObjectKind.METAL_BOX, center=(20, 20), size=(4, 4))]
        )

        assert maps.is_object[20, 20]
        assert small_solver.is_object(20, 20)
        assert not small_solver.is_object(40, 40)
        assert not small_solver.is_object(-1, 0)
        assert small_solver.sigma[20, 20] == 1e5

    def test_rasterize_replaces_previous_objects(self, small_solver):
        small_solver.rasterize([PlacedObject("metal_box", center=(20, 20), size=(4, 4))])
        small_solver.rasterize([PlacedObject("absorber", center=(40, 30), size=(4, 4))])

        assert not small_solver.is_object(20, 20)
        assert small_solver.is_object(40, 30)

    def test_apply_materials_shape_mismatch(self, small_solver):
        with pytest.raises(ValueError, match="doesn't match"):
            small_solver.apply_materials(MaterialMaps.free_space((50, 60)))

    def test_apply_materials_copies(self, small_solver):
        maps = MaterialMaps.free_space(small_solver.shape)
        maps.epsilon_r[10, 10] = 4.0
        small_solver.apply_materials(maps)
        maps.epsilon_r[10, 10] = 9.0

        assert small_solver.epsilon_r[10, 10] == 4.0

    def test_material_views_are_read_only(self, small_solver):
        with pytest.raises(ValueError):
            small_solver.epsilon_r[5, 5] = 2.0
        with pytest.raises(ValueError):
            small_solver.object_mask[5, 5] = True

    def test_materials_change_mid_run_keeps_fields(self, small_solver):
        small_solver.run(steps=30)
        ez = small_solver.ez.copy()
        small_solver.rasterize([PlacedObject("absorber", center=(10, 10), size=(4, 4))])

        np.testing.assert_array_equal(small_solver.ez, ez)
        assert small_solver.step_count == 30

    def test_metal_wall_shields(self):
        """A metal wall between source and probe blocks the direct wave."""

        def peak_at_probe(objects):
            solver = FDTDSolver(120, 120, frequency_ghz=10.0, source_position=(30, 60))
            solver.rasterize(objects)
            solver.add_probe("behind", position=(90, 60))
            solver.run(steps=300)
            return np.max(np.abs(solver.get_probe_data("behind")["behind"]))

        free = peak_at_probe([])
        walled = peak_at_probe([PlacedObject("metal_box", center=(60, 60), size=(6, 100))])

        assert free > 0
        assert walled < 0.1 * free

    def test_lossy_region_absorbs(self):
        def energy_after(sigma):
            solver = FDTDSolver(60, 60, frequency_ghz=0.0)
            maps = MaterialMaps.free_space(solver.shape)
            maps.sigma[:] = sigma
            solver.apply_materials(maps)
            solver.ez[:] = gaussian_blob(solver.shape, (30, 30), sigma=3.0)
            solver.run(steps=40)
            return solver.compute_energy()

        assert energy_after(5.0) < 0.1 * energy_after(0.0)

    def test_zero_permittivity_is_floored(self, small_solver):
        maps = MaterialMaps.free_space(small_solver.shape)
        maps.epsilon_r[:] = 0.0
        small_solver.apply_materials(maps)
        small_solver.run(steps=20)

        assert np.all(np.isfinite(small_solver.ez))

    def test_dielectric_energy_uses_permittivity(self):
        solver = FDTDSolver(20, 20, frequency_ghz=0.0)
        solver.ez[10, 10] = 1.0
        vacuum = solver.compute_energy()

        maps = MaterialMaps.free_space(solver.shape)
        maps.epsilon_r[:] = 4.0
        solver.apply_materials(maps)
        assert solver.compute_energy() == pytest.approx(4.0 * vacuum)


# =============================================================================
# Instability guard
# =============================================================================


class TestInstabilityGuard:
    def test_runaway_value_clamped(self):
        solver = FDTDSolver(40, 40, frequency_ghz=0.0)
        solver.ez[20, 20] = 1e6
        solver.step()

        assert abs(solver.ez[20, 20]) == FIELD_LIMIT
        assert solver.max_field() == FIELD_LIMIT
        assert solver.clamped_cell_count >= 1

    def test_infinite_value_clamped(self):
        solver = FDTDSolver(40, 40, frequency_ghz=0.0)
        solver.ez[20, 20] = np.inf
        solver.run(steps=5)

        assert np.all(np.isfinite(solver.ez))
        assert np.all(np.abs(solver.ez) <= FIELD_LIMIT)

    def test_max_field_ignores_non_finite(self, small_solver):
        small_solver.ez[10, 10] = np.nan
        small_solver.ez[11, 11] = -2.5
        assert small_solver.max_field() == 2.5

        small_solver.ez[:] = np.inf
        assert small_solver.max_field() == 0.0

    def test_warning_when_enabled(self):
        solver = FDTDSolver(40, 40, frequency_ghz=0.0, warn_instability=True)
        solver.ez[20, 20] = 1e6
        with pytest.warns(UserWarning, match="Instability guard"):
            solver.run(steps=1)

    def test_no_warning_by_default(self):
        solver = FDTDSolver(40, 40, frequency_ghz=0.0)
        solver.ez[20, 20] = 1e6
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            solver.run(steps=1)

    @pytest.mark.slow
    @pytest.mark.parametrize("kind", list(SourceKind))
    def test_fields_bounded_over_long_run(self, kind):
        solver = FDTDSolver(100, 120, frequency_ghz=5.0, source_kind=kind)
        solver.rasterize(
            [
                PlacedObject("metal_sphere", center=(70, 60), size=(16, 16)),
                PlacedObject(
                    "dielectric_sphere", center=(30, 80), size=(12, 12), conductivity=1.0
                ),
                PlacedObject("ram_layer", center=(50, 20), size=(60, 8), conductivity=0.9),
                PlacedObject("corner_deflector", center=(30, 30), size=(20, 20)),
            ]
        )
        peaks = []
        solver.run(steps=2000, callback=lambda step: peaks.append(solver.max_field()))

        assert len(peaks) == 2000
        assert max(peaks) <= FIELD_LIMIT
        assert np.all(np.isfinite(solver.ez))


# =============================================================================
# Probes, snapshots and run options
# =============================================================================


class TestProbes:
    def test_probe_records_every_step(self, small_solver):
        small_solver.add_probe("center", position=(30, 25))
        small_solver.run(steps=15)

        data = small_solver.get_probe_data("center")["center"]
        assert data.shape == (15,)
        assert data[-1] == small_solver.ez[30, 25]

    def test_all_probes(self, small_solver):
        small_solver.add_probe("a", position=(5, 5))
        small_solver.add_probe("b", position=(50, 40))
        small_solver.run(steps=3)

        assert set(small_solver.get_probe_data()) == {"a", "b"}

    def test_duplicate_probe_rejected(self, small_solver):
        small_solver.add_probe("a", position=(5, 5))
        with pytest.raises(ValueError, match="already exists"):
            small_solver.add_probe("a", position=(6, 6))

    def test_probe_outside_grid_rejected(self, small_solver):
        with pytest.raises(ValueError, match="Probe position"):
            small_solver.add_probe("far", position=(60, 10))

    def test_unknown_probe(self, small_solver):
        with pytest.raises(KeyError):
            small_solver.get_probe_data("missing")


class TestSnapshots:
    def test_snapshot_interval(self, small_solver):
        small_solver.enable_snapshots(5)
        small_solver.run(steps=12)

        snapshots = small_solver.get_snapshots()
        assert len(snapshots) == 2
        assert snapshots[0][0] == pytest.approx(5 * small_solver.dt)
        assert snapshots[1][1].shape == small_solver.shape

    def test_snapshots_are_copies(self, small_solver):
        small_solver.enable_snapshots(1)
        small_solver.run(steps=1)
        small_solver.ez[:] = 7.0
        assert not np.any(small_solver.get_snapshots()[0][1] == 7.0)

    def test_invalid_interval(self, small_solver):
        with pytest.raises(ValueError):
            small_solver.enable_snapshots(0)


class TestRun:
    def test_run_duration(self, small_solver):
        small_solver.run(duration=9.5 * small_solver.dt)
        assert small_solver.step_count == 10

    def test_requires_steps_or_duration(self, small_solver):
        with pytest.raises(ValueError, match="exactly one"):
            small_solver.run()
        with pytest.raises(ValueError, match="exactly one"):
            small_solver.run(steps=5, duration=1e-9)

    def test_negative_steps_rejected(self, small_solver):
        with pytest.raises(ValueError):
            small_solver.run(steps=-1)

    def test_callback_receives_step_count(self, small_solver):
        seen = []
        small_solver.run(steps=4, callback=seen.append)
        assert seen == [1, 2, 3, 4]

    def test_progress_bar(self, small_solver):
        small_solver.run(steps=3, progress=True)
        assert small_solver.step_count == 3

    def test_run_matches_repeated_step(self):
        a = FDTDSolver(50, 50, source_kind="plane")
        b = FDTDSolver(50, 50, source_kind="plane")
        a.run(steps=25)
        for _ in range(25):
            b.step()
        np.testing.assert_array_equal(a.ez, b.ez)


class TestReset:
    def test_reset_fields(self, small_solver):
        small_solver.rasterize(
            [
                PlacedObject("absorber", center=(10, 10), size=(4, 4)),
                PlacedObject("dielectric_sphere", center=(45, 35), size=(8, 8)),
            ]
        )
        small_solver.add_probe("p", position=(30, 25))
        small_solver.enable_snapshots(2)
        small_solver.run(steps=10)
        materials = small_solver.get_materials()

        small_solver.reset_fields()

        assert small_solver.step_count == 0
        assert small_solver.max_field() == 0.0
        assert np.all(small_solver.hx == 0) and np.all(small_solver.hy == 0)
        assert small_solver.get_probe_data("p")["p"].size == 0
        assert small_solver.get_snapshots() == []
        assert small_solver.clamped_cell_count == 0
        # Materials and source survive
        np.testing.assert_array_equal(small_solver.epsilon_r, materials.epsilon_r)
        np.testing.assert_array_equal(small_solver.sigma, materials.sigma)
        np.testing.assert_array_equal(small_solver.object_mask, materials.is_object)
        assert small_solver.is_object(10, 10)
        assert small_solver.config.kind is SourceKind.POINT

    def test_reset_then_rerun_is_reproducible(self, small_solver):
        small_solver.run(steps=40)
        first = small_solver.ez.copy()

        small_solver.reset_fields()
        small_solver.run(steps=40)
        np.testing.assert_array_equal(small_solver.ez, first)
