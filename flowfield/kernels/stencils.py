"""
Per-cell stencil operators consumed by the Field convolution driver.

ViscosityStencil (implicit diffusion relaxation):
    new = (old·alpha + Σ 4 axis neighbors)·beta

PressureStencil (Poisson relaxation, reads velocity as support):
    P = (Σ 4 axis neighbors of P − s_d·div V) / 4
    div V = (Vx(x+1) − Vx(x−1)) + (Vy(y+1) − Vy(y−1))

Coefficients are 0-d Taichi fields: updating them between calls reuses the
compiled sweep.
"""

import taichi as ti

from flowfield.core.dtypes import DTYPE


def viscosity_coefficients(viscosity: float, timestep: float, quality: int) -> tuple[float, float]:
    """Relaxation weights for one viscosity pass.

    alpha = (1/viscosity)·timestep/quality, beta = 1/(alpha + 4).
    A zero viscosity gives alpha = inf and beta = 0, which is propagated
    rather than rejected.
    """
    inverse = float("inf") if viscosity == 0 else 1.0 / viscosity
    alpha = inverse * timestep / quality
    beta = 1.0 / (alpha + 4.0)
    return alpha, beta


@ti.data_oriented
class ViscosityStencil:
    """Weighted average of a cell and its four axis neighbors."""

    def __init__(self, alpha: float = 0.0, beta: float = 0.25):
        self._alpha = ti.field(DTYPE, shape=())
        self._beta = ti.field(DTYPE, shape=())
        self.set_coefficients(alpha, beta)

    @property
    def alpha(self) -> float:
        return float(self._alpha[None])

    @property
    def beta(self) -> float:
        return float(self._beta[None])

    def set_coefficients(self, alpha: float, beta: float) -> None:
        self._alpha[None] = alpha
        self._beta[None] = beta

    @ti.func
    def stencil(self, f: ti.template(), x, y, c):
        return (
            f.data[x, y, c] * self._alpha[None]
            + f.data[x + 1, y, c]
            + f.data[x - 1, y, c]
            + f.data[x, y + 1, c]
            + f.data[x, y - 1, c]
        ) * self._beta[None]


@ti.data_oriented
class PressureStencil:
    """Pressure relaxation driven by the central-difference divergence of V."""

    def __init__(self, divergence_scale: float = 1.0):
        self._divergence_scale = ti.field(DTYPE, shape=())
        self.set_divergence_scale(divergence_scale)

    @property
    def divergence_scale(self) -> float:
        return float(self._divergence_scale[None])

    def set_divergence_scale(self, scale: float) -> None:
        self._divergence_scale[None] = scale

    @ti.func
    def stencil(self, p: ti.template(), v: ti.template(), x, y, c):
        div = (v.data[x + 1, y, 0] - v.data[x - 1, y, 0]) + (
            v.data[x, y + 1, 1] - v.data[x, y - 1, 1]
        )
        return (
            p.data[x + 1, y, c]
            + p.data[x - 1, y, c]
            + p.data[x, y + 1, c]
            + p.data[x, y - 1, c]
            - self._divergence_scale[None] * div
        ) / 4.0
