"""Tests for field management module.

Tests Field access, FieldSpec, FieldContainer, and the velocity double buffer.
"""

import numpy as np
import pytest

from flowfield.core.geometry import GridGeometry
from flowfield.fields import (
    Field,
    FieldContainer,
    FieldRole,
    FieldSpec,
    VelocityBuffers,
    create_flow_container,
    create_flow_specs,
)
from flowfield.kernels import LinearBorder, ViscosityStencil


class TestField:
    """Tests for Field storage and access."""

    def test_shape(self, geometry):
        field = Field(geometry, channels=2, name="velocity")
        assert field.shape == (16, 16, 2)
        assert field.to_numpy().shape == (16, 16, 2)

    def test_rejects_zero_channels(self, geometry):
        with pytest.raises(ValueError):
            Field(geometry, channels=0)

    def test_clear_is_idempotent(self, field_factory, random_values):
        """Clearing twice leaves the same all-zero field."""
        field = field_factory(8, 6, 2, values=random_values(8, 6, 2))
        field.clear()
        first = field.to_numpy()
        field.clear()
        np.testing.assert_array_equal(field.to_numpy(), first)
        assert not first.any()

    def test_fill(self, field_factory):
        field = field_factory(5, 5, 2)
        field.fill(3.5)
        assert np.all(field.to_numpy() == 3.5)

    def test_at_and_set(self, field_factory):
        field = field_factory(5, 4, 2)
        field.set(3, 2, 1, 7.25)
        assert field.at(3, 2, 1) == 7.25
        assert field.at(3, 2, 0) == 0.0
        assert field.at(3, 2) == 0.0

    def test_from_numpy_accepts_2d_for_single_channel(self, field_factory):
        field = field_factory(4, 3)
        values = np.arange(12, dtype=np.float32).reshape(4, 3)
        field.from_numpy(values)
        np.testing.assert_array_equal(field.to_numpy()[:, :, 0], values)

    def test_from_numpy_shape_mismatch(self, field_factory):
        field = field_factory(4, 3, 2)
        with pytest.raises(ValueError):
            field.from_numpy(np.zeros((3, 4, 2)))
        with pytest.raises(ValueError):
            field.from_numpy(np.zeros((4, 3)))

    def test_copy_from(self, field_factory, random_values):
        values = random_values(6, 6, 2)
        src = field_factory(6, 6, 2, values=values)
        dst = field_factory(6, 6, 2)
        dst.copy_from(src)
        np.testing.assert_array_equal(dst.to_numpy(), values)

    def test_negative_iterations_rejected(self, field_factory):
        field = field_factory(5, 5)
        with pytest.raises(ValueError):
            field.convolve(ViscosityStencil(), LinearBorder(1.0), iterations=-1)

    def test_zero_iterations_leave_field_untouched(self, field_factory, random_values):
        values = random_values(6, 5)
        field = field_factory(6, 5, values=values)
        field.convolve(ViscosityStencil(), LinearBorder(0.0), iterations=0)
        np.testing.assert_array_equal(field.to_numpy(), values)

    def test_support_geometry_mismatch(self, field_factory):
        pressure = field_factory(6, 6)
        velocity = field_factory(7, 6, 2)
        with pytest.raises(ValueError, match="geometry"):
            pressure.convolve(ViscosityStencil(), LinearBorder(1.0), support=velocity)

    def test_support_cannot_alias_target(self, field_factory):
        field = field_factory(6, 6)
        with pytest.raises(ValueError):
            field.convolve(ViscosityStencil(), LinearBorder(1.0), support=field)

    def test_scratch_channel_mismatch(self, field_factory):
        velocity = field_factory(6, 6, 2)
        scratch = field_factory(6, 6, 1)
        with pytest.raises(ValueError, match="channel"):
            velocity.convolve_jacobi(ViscosityStencil(), LinearBorder(1.0), scratch)

    def test_mask_must_be_single_channel(self, field_factory):
        velocity = field_factory(6, 6, 2)
        mask = field_factory(6, 6, 2)
        border = LinearBorder(1.0)
        with pytest.raises(ValueError):
            velocity.convolve_border(ViscosityStencil(), border, border, mask)


class TestFieldSpec:
    """Tests for FieldSpec dataclass."""

    def test_basic_creation(self):
        spec = FieldSpec(name="density", role=FieldRole.STATE)
        assert spec.channels == 1
        assert spec.double_buffer is False

    def test_buffer_name(self):
        spec = FieldSpec(name="velocity", role=FieldRole.STATE, channels=2, double_buffer=True)
        assert spec.buffer_name() == "velocity_new"

    def test_invalid_name(self):
        with pytest.raises(ValueError):
            FieldSpec(name="", role=FieldRole.STATE)
        with pytest.raises(ValueError):
            FieldSpec(name="Velocity", role=FieldRole.STATE)
        with pytest.raises(ValueError):
            FieldSpec(name="bad-name", role=FieldRole.STATE)

    def test_invalid_channels(self):
        with pytest.raises(ValueError):
            FieldSpec(name="v", role=FieldRole.STATE, channels=0)

    def test_static_cannot_double_buffer(self):
        with pytest.raises(ValueError):
            FieldSpec(name="obstacles", role=FieldRole.STATIC, double_buffer=True)


class TestFieldContainer:
    """Tests for FieldContainer allocation and lookup."""

    def test_register_and_allocate(self, geometry):
        container = FieldContainer(geometry)
        container.register(FieldSpec("density", FieldRole.STATE))
        container.allocate()
        assert "density" in container
        assert container["density"].shape == (16, 16, 1)

    def test_duplicate_rejected(self, geometry):
        container = FieldContainer(geometry)
        container.register(FieldSpec("density", FieldRole.STATE))
        with pytest.raises(ValueError):
            container.register(FieldSpec("density", FieldRole.STATE))

    def test_buffer_name_conflict(self, geometry):
        container = FieldContainer(geometry)
        container.register(FieldSpec("velocity", FieldRole.STATE, double_buffer=True))
        with pytest.raises(ValueError):
            container.register(FieldSpec("velocity_new", FieldRole.STATE))

    def test_register_after_allocate(self, geometry):
        container = FieldContainer(geometry)
        container.register(FieldSpec("density", FieldRole.STATE))
        container.allocate()
        with pytest.raises(RuntimeError):
            container.register(FieldSpec("pressure", FieldRole.DERIVED))

    def test_get_before_allocate(self, geometry):
        container = FieldContainer(geometry)
        container.register(FieldSpec("density", FieldRole.STATE))
        with pytest.raises(RuntimeError):
            container.get("density")

    def test_allocate_empty(self, geometry):
        with pytest.raises(RuntimeError):
            FieldContainer(geometry).allocate()

    def test_get_pair_requires_double_buffer(self, geometry):
        container = create_flow_container(geometry)
        with pytest.raises(ValueError):
            container.get_pair("density")

    def test_flow_specs(self, geometry):
        container = create_flow_container(geometry)
        assert len(container) == len(create_flow_specs())
        first, second = container.get_pair("velocity")
        assert first.channels == second.channels == 2
        assert first is not second
        assert container.fields_by_role(FieldRole.SCRATCH) == [
            "velocity_scratch",
            "pressure_scratch",
        ]

    def test_allocated_fields_are_zero(self, geometry):
        container = create_flow_container(geometry)
        for name in container.field_names:
            assert not container[name].to_numpy().any()

    def test_clear_all(self, geometry):
        container = create_flow_container(geometry)
        container["density"].fill(2.0)
        container["velocity_new"].fill(1.0)
        container.clear_all()
        assert not container["density"].to_numpy().any()
        assert not container["velocity_new"].to_numpy().any()

    def test_memory(self, geometry):
        container = create_flow_container(geometry)
        # velocity x2 (2ch), velocity_scratch (2ch), density, pressure,
        # obstacles, pressure_scratch (1ch each)
        expected = 4 * 16 * 16 * (2 + 2 + 2 + 1 + 1 + 1 + 1)
        assert container.memory_bytes == expected

    def test_geometry_is_shared(self):
        geometry = GridGeometry(12, 9)
        container = create_flow_container(geometry)
        assert all(
            container[name].geometry == geometry for name in container.field_names
        )


class TestVelocityBuffers:
    """Tests for the current/other velocity selector."""

    def test_swap(self, geometry):
        container = create_flow_container(geometry)
        buffers = VelocityBuffers(container)
        a, b = container.get_pair("velocity")

        assert buffers.index == 0
        assert buffers.current() is a
        assert buffers.other() is b

        buffers.swap()
        assert buffers.index == 1
        assert buffers.current() is b
        assert buffers.other() is a

        buffers.swap()
        assert buffers.current() is a

    def test_reset(self, geometry):
        container = create_flow_container(geometry)
        buffers = VelocityBuffers(container)
        buffers.current().fill(1.0)
        buffers.other().fill(2.0)
        buffers.swap()

        buffers.reset()
        assert buffers.index == 0
        assert not buffers.current().to_numpy().any()
        assert not buffers.other().to_numpy().any()
