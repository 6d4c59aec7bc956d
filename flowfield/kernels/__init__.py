"""
Taichi kernels for the flow solver.

This module provides the solver passes and a registry for selecting between
the in-place (reference) and Jacobi relaxation variants.

Usage:
    from flowfield.kernels import KernelRegistry, SweepVariant

    registry = KernelRegistry()
    viscosity = registry.get_viscosity(SweepVariant.JACOBI, scratch=scratch)
    viscosity.viscosity(velocity, 0.01, dt, -1.0, quality=4)

Submodules:
- border, stencils: per-cell rules consumed by Field.convolve
- advection, viscosity, pressure, coupling: the solver passes
- forces: external velocity forcing
- protocol: Kernel interfaces and result types
"""

from typing import Type

from flowfield.kernels.advection import advect_semi_lagrangian, lerp, lerp2x2
from flowfield.kernels.border import LinearBorder
from flowfield.kernels.coupling import ParticleCoupling, couple_particles
from flowfield.kernels.forces import splat_velocity
from flowfield.kernels.pressure import (
    JacobiPressureKernel,
    InPlacePressureKernel,
    subtract_gradient,
)
from flowfield.kernels.protocol import (
    PressureKernel,
    ProjectionStats,
    SweepVariant,
    ViscosityKernel,
)
from flowfield.kernels.stencils import (
    PressureStencil,
    ViscosityStencil,
    viscosity_coefficients,
)
from flowfield.kernels.viscosity import InPlaceViscosityKernel, JacobiViscosityKernel


class KernelRegistry:
    """Registry for relaxation kernel implementations with variant selection.

    Allows runtime selection of the sweep variant without changing the Flow
    orchestration code. Useful for:
    - Comparing in-place and Jacobi convergence
    - Registering custom relaxation schemes

    Example:
        registry = KernelRegistry()
        pressure = registry.get_pressure(SweepVariant.IN_PLACE)
        registry.register_pressure(SweepVariant.JACOBI, MyPressureKernel)
    """

    def __init__(self):
        self._viscosity: dict[SweepVariant, Type[ViscosityKernel]] = {
            SweepVariant.IN_PLACE: InPlaceViscosityKernel,
            SweepVariant.JACOBI: JacobiViscosityKernel,
        }
        self._pressure: dict[SweepVariant, Type[PressureKernel]] = {
            SweepVariant.IN_PLACE: InPlacePressureKernel,
            SweepVariant.JACOBI: JacobiPressureKernel,
        }

    def get_viscosity(
        self, variant: SweepVariant = SweepVariant.IN_PLACE, **kwargs
    ) -> ViscosityKernel:
        """Get a viscosity kernel instance.

        Args:
            variant: Implementation variant (default: IN_PLACE)
            **kwargs: Constructor arguments (e.g. scratch)

        Raises:
            KeyError: If variant not registered
        """
        if variant not in self._viscosity:
            raise KeyError(
                f"No viscosity kernel registered for variant {variant}. "
                f"Available: {list(self._viscosity.keys())}"
            )
        return self._viscosity[variant](**kwargs)

    def get_pressure(
        self, variant: SweepVariant = SweepVariant.IN_PLACE, **kwargs
    ) -> PressureKernel:
        """Get a pressure kernel instance.

        Args:
            variant: Implementation variant (default: IN_PLACE)
            **kwargs: Constructor arguments (e.g. scratch, gradient_scale)

        Raises:
            KeyError: If variant not registered
        """
        if variant not in self._pressure:
            raise KeyError(
                f"No pressure kernel registered for variant {variant}. "
                f"Available: {list(self._pressure.keys())}"
            )
        return self._pressure[variant](**kwargs)

    def register_viscosity(
        self, variant: SweepVariant, kernel_cls: Type[ViscosityKernel]
    ) -> None:
        """Register a viscosity kernel implementation."""
        self._viscosity[variant] = kernel_cls

    def register_pressure(
        self, variant: SweepVariant, kernel_cls: Type[PressureKernel]
    ) -> None:
        """Register a pressure kernel implementation."""
        self._pressure[variant] = kernel_cls

    def available_variants(self, kernel_type: str) -> list[SweepVariant]:
        """List available variants for a kernel type ("viscosity" or "pressure").

        Raises:
            ValueError: If kernel_type is not recognized
        """
        registries = {
            "viscosity": self._viscosity,
            "pressure": self._pressure,
        }
        if kernel_type not in registries:
            raise ValueError(
                f"Unknown kernel type: {kernel_type}. "
                f"Available: {list(registries.keys())}"
            )
        return list(registries[kernel_type].keys())


# Default registry instance for convenience
_default_registry = KernelRegistry()


def get_registry() -> KernelRegistry:
    """Get the default kernel registry."""
    return _default_registry


__all__ = [
    # Registry
    "KernelRegistry",
    "get_registry",
    # Protocol types
    "SweepVariant",
    "ViscosityKernel",
    "PressureKernel",
    "ProjectionStats",
    # Building blocks
    "LinearBorder",
    "ViscosityStencil",
    "PressureStencil",
    "viscosity_coefficients",
    "lerp",
    "lerp2x2",
    # Passes
    "advect_semi_lagrangian",
    "subtract_gradient",
    "couple_particles",
    "splat_velocity",
    "ParticleCoupling",
    "InPlaceViscosityKernel",
    "JacobiViscosityKernel",
    "InPlacePressureKernel",
    "JacobiPressureKernel",
]
