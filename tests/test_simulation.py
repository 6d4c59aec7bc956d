"""Tests for the Flow orchestrator.

Tests cover:
- Field ownership and the velocity buffer swap
- Step ordering (advection, viscosity, pressure)
- Configuration-driven behavior (variant, obstacles, warm start)
- Debug assertions
"""

import numpy as np
import pytest

from flowfield.diagnostics import FlowAssertionError, FlowSnapshot
from flowfield.kernels import JacobiPressureKernel, SweepVariant
from flowfield.params import FlowConfig
from flowfield.particles import ParticleSet
from flowfield.simulation import Flow


def make_flow(**updates) -> Flow:
    base = {"grid": {"width": 24, "height": 20}}
    for group, values in updates.items():
        base.setdefault(group, {}).update(values)
    return Flow(FlowConfig().with_updates(**base))


class TestFlowFields:
    def test_fields_allocated_zero(self):
        flow = make_flow()
        assert flow.velocity.shape == (24, 20, 2)
        assert flow.density.shape == (24, 20, 1)
        assert flow.pressure_field.shape == (24, 20, 1)
        assert flow.obstacles.shape == (24, 20, 1)
        assert not flow.velocity.to_numpy().any()

    def test_swap(self):
        flow = make_flow()
        a, b = flow.current(), flow.other()
        flow.swap()
        assert flow.current() is b
        assert flow.other() is a
        assert flow.velocity is b

    def test_advect_swaps_buffers(self):
        flow = make_flow()
        before = flow.current()
        flow.advect_sl(0.1)
        assert flow.current() is not before

    def test_advect_writes_into_other(self):
        flow = make_flow()
        flow.current().fill(1.0)
        flow.other().fill(-3.0)
        flow.advect_sl(0.1)
        np.testing.assert_allclose(flow.current().to_numpy(), 1.0)

    def test_reset(self):
        flow = make_flow()
        flow.add_impulse(12, 10, 3.0, 5.0, 0.0)
        flow.density.fill(1.0)
        flow.step(0.1)
        flow.reset()
        assert flow.tick == 0
        assert not flow.velocity.to_numpy().any()
        assert not flow.density.to_numpy().any()
        assert not flow.pressure_field.to_numpy().any()


class TestStep:
    def test_step_advances_tick_and_swaps(self):
        flow = make_flow()
        before = flow.current()
        flow.step(1 / 60)
        assert flow.tick == 1
        assert flow.current() is not before

    def test_step_without_advection_keeps_buffer(self):
        flow = make_flow(advection={"enabled": False})
        before = flow.current()
        flow.step(1 / 60)
        assert flow.current() is before

    def test_step_order_matches_manual_passes(self):
        """step = advect_sl, then viscosity, then pressure."""
        stepped = make_flow()
        manual = make_flow()
        for flow in (stepped, manual):
            flow.add_impulse(10, 9, 2.5, 15.0, -5.0)

        stepped.step(0.05)

        cfg = manual.config
        manual.advect_sl(0.05)
        manual.viscosity(cfg.viscosity.viscosity, 0.05, cfg.viscosity.border)
        manual.pressure()

        np.testing.assert_array_equal(
            stepped.velocity.to_numpy(), manual.velocity.to_numpy()
        )
        np.testing.assert_array_equal(
            stepped.pressure_field.to_numpy(), manual.pressure_field.to_numpy()
        )

    def test_many_steps_stay_finite(self):
        flow = make_flow()
        for tick in range(30):
            flow.add_impulse(12, 10, 2.0, 10.0, 0.0)
            flow.step(1 / 60)
        assert np.isfinite(flow.velocity.to_numpy()).all()
        assert flow.snapshot().max_speed > 0

    def test_jacobi_variant(self):
        flow = make_flow(solver={"variant": "jacobi"})
        assert flow.variant is SweepVariant.JACOBI
        assert isinstance(flow._pressure, JacobiPressureKernel)
        flow.add_impulse(12, 10, 2.0, 10.0, 0.0)
        flow.step(1 / 60)
        assert np.isfinite(flow.velocity.to_numpy()).all()

    def test_viscosity_border_defaults_to_obstacles(self):
        flow = make_flow()
        flow.obstacles.set(12, 10, 0, 1.0)
        flow.add_impulse(8, 10, 2.0, 10.0, 0.0)
        flow.viscosity_border(0.01, 0.1, -1.0, -1.0)
        v = flow.velocity.to_numpy()
        np.testing.assert_allclose(v[12, 10], -v[11, 10], rtol=1e-6)

    def test_cold_start_clears_pressure(self):
        flow = make_flow(pressure={"warm_start": False, "quality": 1})
        flow.pressure_field.fill(100.0)
        flow.pressure()
        assert np.abs(flow.pressure_field.to_numpy()[1:-1, 1:-1]).max() < 1.0

    def test_warm_start_keeps_pressure(self):
        flow = make_flow(pressure={"warm_start": True, "quality": 1})
        flow.pressure_field.fill(100.0)
        flow.pressure()
        assert flow.pressure_field.at(5, 5) == pytest.approx(100.0)

    def test_unit_scales_reach_the_kernel(self):
        flow = make_flow(pressure={"divergence_scale": 1.0, "gradient_scale": 1.0})
        assert flow._pressure.divergence_scale == pytest.approx(1.0)
        assert flow._pressure.gradient_scale == 1.0

    def test_pressure_measure(self):
        flow = make_flow(pressure={"quality": 40})
        flow.add_impulse(12, 10, 2.5, 10.0, 0.0)
        stats = flow.pressure(measure=True)
        assert stats.divergence_after < stats.divergence_before


class TestCoupling:
    def test_update_particles_uses_config_multipliers(self):
        flow = make_flow(coupling={"density_multiplier": 2.0})
        particles = ParticleSet(1)
        particles.add((240.0, 160.0), (0.0, 0.0), 1.5, 10)
        flow.update_particles(particles)
        assert float(flow.density.to_numpy().sum()) == pytest.approx(3.0)

    def test_set_world_extent(self):
        flow = make_flow()
        flow.set_world_extent(24.0, 20.0)
        assert flow.world_extent == (24.0, 20.0)

        particles = ParticleSet(1)
        particles.add((3.0, 4.0), (0.0, 0.0), 1.0, 10)
        flow.update_particles(particles, 0.0, 1.0)
        assert flow.density.at(3, 4) == pytest.approx(1.0)

    def test_add_velocity(self):
        flow = make_flow()
        flow.add_velocity(5, 6, 1.0, -2.0)
        flow.add_velocity(5, 6, 1.0, 0.0)
        assert flow.velocity.at(5, 6, 0) == pytest.approx(2.0)
        assert flow.velocity.at(5, 6, 1) == pytest.approx(-2.0)

    def test_add_impulse_validates_radius(self):
        with pytest.raises(ValueError):
            make_flow().add_impulse(5, 5, 0.0, 1.0, 1.0)

    def test_add_impulse_peaks_at_center(self):
        flow = make_flow()
        flow.add_impulse(12, 10, 2.0, 4.0, 0.0)
        v = flow.velocity.to_numpy()
        assert v[12, 10, 0] == pytest.approx(4.0)
        assert v[:, :, 0].argmax() == np.ravel_multi_index((12, 10), (24, 20))
        assert not v[0].any()


class TestDebugChecks:
    def test_zero_viscosity_rejected_in_debug(self):
        flow = make_flow(solver={"debug": True})
        with pytest.raises(FlowAssertionError, match="viscosity"):
            flow.viscosity(0.0, 0.1, -1.0)

    def test_zero_viscosity_propagates_without_debug(self, monkeypatch):
        monkeypatch.delenv("FLOWFIELD_DEBUG", raising=False)
        flow = make_flow()
        flow.add_impulse(12, 10, 2.0, 1.0, 0.0)
        flow.viscosity(0.0, 0.1, -1.0)
        assert not np.isfinite(flow.velocity.to_numpy()).all()

    def test_non_finite_detected_in_debug(self):
        flow = make_flow(solver={"debug": True})
        flow.velocity.set(3, 3, 0, float("nan"))
        with pytest.raises(FlowAssertionError, match="non-finite"):
            flow.pressure()

    @pytest.mark.parametrize("dt", [float("nan"), float("inf"), -float("inf")])
    def test_non_finite_timestep_rejected_in_advection(self, dt, random_values):
        flow = make_flow(solver={"debug": True})
        flow.current().from_numpy(random_values(24, 20, 2, seed=5))
        with pytest.raises(FlowAssertionError, match="timestep"):
            flow.advect_sl(dt)

    @pytest.mark.parametrize("dt", [float("nan"), float("inf")])
    def test_non_finite_timestep_rejected_in_viscosity(self, dt):
        flow = make_flow(solver={"debug": True})
        with pytest.raises(FlowAssertionError, match="timestep"):
            flow.viscosity(0.01, dt, -1.0)
        with pytest.raises(FlowAssertionError, match="timestep"):
            flow.viscosity_border(0.01, dt, -1.0, -1.0)

    def test_env_var_enables_debug(self, monkeypatch):
        monkeypatch.setenv("FLOWFIELD_DEBUG", "1")
        assert make_flow().debug is True

    def test_flow_assertion_is_assertion_error(self):
        assert issubclass(FlowAssertionError, AssertionError)


class TestSnapshot:
    def test_snapshot(self):
        flow = make_flow()
        flow.add_impulse(12, 10, 2.0, 3.0, 4.0)
        snap = flow.snapshot()
        assert isinstance(snap, FlowSnapshot)
        assert snap.tick == 0
        assert snap.max_speed == pytest.approx(5.0, rel=1e-5)
        assert "tick" in snap.format()
