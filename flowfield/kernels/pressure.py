"""
Pressure projection: remove the divergent part of the velocity field.

1. Relax P for `quality` iterations (border coefficient 1):
       P = (P(x+1)+P(x-1)+P(y+1)+P(y-1) − s_d·div V) / 4
       div V = (Vx(x+1) − Vx(x-1)) + (Vy(y+1) − Vy(y-1))
2. Correct interior velocity, leaving the ghost ring untouched:
       Vx −= s_g·(P(x+1) − P(x-1))
       Vy −= s_g·(P(y+1) − P(y-1))

s_d = s_g = 0.5 (default) is the centred-difference scaling: the composite
operator removes smooth divergence and repeated projections are stable.
s_d = s_g = 1 is the unit-scaled operator. Once the relaxation has
converged it flips the sign of smooth divergence and triples it, so
repeated ticks amplify mid-frequency modes.
"""

import taichi as ti

from flowfield.core.dtypes import DTYPE
from flowfield.diagnostics import divergence_l1
from flowfield.fields.grid import Field
from flowfield.kernels.border import LinearBorder
from flowfield.kernels.protocol import ProjectionStats
from flowfield.kernels.stencils import PressureStencil

# Zero-normal-gradient boundary for pressure
PRESSURE_BORDER = 1.0


@ti.kernel
def subtract_gradient(velocity: ti.template(), pressure: ti.template(), scale: DTYPE):
    """Subtract the central-difference gradient of P from interior velocity."""
    for x, y in ti.ndrange((1, velocity.width - 1), (1, velocity.height - 1)):
        velocity.data[x, y, 0] -= scale * (
            pressure.data[x + 1, y, 0] - pressure.data[x - 1, y, 0]
        )
        velocity.data[x, y, 1] -= scale * (
            pressure.data[x, y + 1, 0] - pressure.data[x, y - 1, 0]
        )


class InPlacePressureKernel:
    """Pressure relaxation through the in-place ``Field.convolve`` sweep.

    Args:
        scratch: Unused; accepted so every variant constructs the same way
        divergence_scale: s_d, weight of div V in the relaxation
        gradient_scale: s_g, weight of the pressure gradient correction
    """

    def __init__(
        self,
        scratch: Field | None = None,
        divergence_scale: float = 0.5,
        gradient_scale: float = 0.5,
    ):
        self._stencil = PressureStencil(divergence_scale)
        self._border = LinearBorder(PRESSURE_BORDER)
        self.gradient_scale = gradient_scale

    @property
    def divergence_scale(self) -> float:
        return self._stencil.divergence_scale

    @divergence_scale.setter
    def divergence_scale(self, value: float) -> None:
        self._stencil.set_divergence_scale(value)

    @property
    def fields_read(self) -> set[str]:
        return {"velocity", "pressure"}

    @property
    def fields_written(self) -> set[str]:
        return {"velocity", "pressure"}

    def _relax(self, velocity: Field, pressure: Field, quality: int) -> None:
        pressure.convolve(self._stencil, self._border, quality, support=velocity)

    def project(
        self,
        velocity: Field,
        pressure: Field,
        quality: int,
        measure: bool = False,
    ) -> ProjectionStats | None:
        if quality < 1:
            raise ValueError(f"quality must be >= 1, got {quality}")

        before = float(divergence_l1(velocity)) if measure else 0.0

        self._relax(velocity, pressure, quality)
        subtract_gradient(velocity, pressure, self.gradient_scale)

        if not measure:
            return None
        return ProjectionStats(
            divergence_before=before,
            divergence_after=float(divergence_l1(velocity)),
        )


class JacobiPressureKernel(InPlacePressureKernel):
    """Pressure relaxation through the double-buffered Jacobi sweep.

    Args:
        scratch: 1-channel Field matching the pressure geometry
    """

    def __init__(
        self,
        scratch: Field | None = None,
        divergence_scale: float = 0.5,
        gradient_scale: float = 0.5,
    ):
        if scratch is None:
            raise ValueError("JacobiPressureKernel requires a scratch field")
        super().__init__(
            divergence_scale=divergence_scale, gradient_scale=gradient_scale
        )
        self._scratch = scratch

    @property
    def fields_written(self) -> set[str]:
        return {"velocity", "pressure", "pressure_scratch"}

    def _relax(self, velocity: Field, pressure: Field, quality: int) -> None:
        pressure.convolve_jacobi(
            self._stencil, self._border, self._scratch, quality, support=velocity
        )
