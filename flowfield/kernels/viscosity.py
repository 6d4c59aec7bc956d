"""
Implicit viscosity: relaxation-based diffusion of the velocity field.

    alpha = (1/viscosity)·dt/quality
    beta  = 1/(alpha + 4)
    new   = (old·alpha + Σ 4 neighbors)·beta      (quality sweeps)

Two variants share the stencil and differ only in the sweep driver:
- InPlaceViscosityKernel: row-major in-place sweep (reference behavior)
- JacobiViscosityKernel: double-buffered sweep through a scratch Field
"""

from flowfield.fields.grid import Field
from flowfield.kernels.border import LinearBorder
from flowfield.kernels.stencils import ViscosityStencil, viscosity_coefficients


class InPlaceViscosityKernel:
    """Viscosity through ``Field.convolve`` / ``Field.convolve_border``.

    Args:
        scratch: Unused; accepted so every variant constructs the same way
    """

    def __init__(self, scratch: Field | None = None):
        self._stencil = ViscosityStencil()
        self._border = LinearBorder(0.0)
        self._inbound = LinearBorder(0.0)

    @property
    def fields_read(self) -> set[str]:
        return {"velocity"}

    @property
    def fields_written(self) -> set[str]:
        return {"velocity"}

    def _prepare(self, viscosity: float, dt: float, quality: int) -> None:
        if quality < 1:
            raise ValueError(f"quality must be >= 1, got {quality}")
        self._stencil.set_coefficients(*viscosity_coefficients(viscosity, dt, quality))

    def viscosity(
        self,
        velocity: Field,
        viscosity: float,
        dt: float,
        border: float,
        quality: int,
    ) -> None:
        self._prepare(viscosity, dt, quality)
        self._border.set_coefficient(border)
        velocity.convolve(self._stencil, self._border, quality)

    def viscosity_border(
        self,
        velocity: Field,
        viscosity: float,
        dt: float,
        out_border: float,
        in_border: float,
        mask: Field,
        quality: int,
    ) -> None:
        self._prepare(viscosity, dt, quality)
        self._border.set_coefficient(out_border)
        self._inbound.set_coefficient(in_border)
        velocity.convolve_border(self._stencil, self._inbound, self._border, mask, quality)


class JacobiViscosityKernel(InPlaceViscosityKernel):
    """Viscosity through the double-buffered Jacobi drivers.

    Args:
        scratch: 2-channel Field matching the velocity geometry
    """

    def __init__(self, scratch: Field | None = None):
        if scratch is None:
            raise ValueError("JacobiViscosityKernel requires a scratch field")
        super().__init__()
        self._scratch = scratch

    @property
    def fields_written(self) -> set[str]:
        return {"velocity", "velocity_scratch"}

    def viscosity(
        self,
        velocity: Field,
        viscosity: float,
        dt: float,
        border: float,
        quality: int,
    ) -> None:
        self._prepare(viscosity, dt, quality)
        self._border.set_coefficient(border)
        velocity.convolve_jacobi(self._stencil, self._border, self._scratch, quality)

    def viscosity_border(
        self,
        velocity: Field,
        viscosity: float,
        dt: float,
        out_border: float,
        in_border: float,
        mask: Field,
        quality: int,
    ) -> None:
        self._prepare(viscosity, dt, quality)
        self._border.set_coefficient(out_border)
        self._inbound.set_coefficient(in_border)
        velocity.convolve_border_jacobi(
            self._stencil, self._inbound, self._border, mask, self._scratch, quality
        )
