"""Numerical health checks and flow measurements.

Reductions used by tests, the CLI and the debug assertions. None of these
run inside the per-cell solver kernels.
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from flowfield.core.dtypes import DTYPE
from flowfield.core.geometry import is_interior


class FlowAssertionError(AssertionError):
    """A debug-build check on solver inputs or outputs failed."""


@ti.kernel
def divergence_l1(velocity: ti.template()) -> DTYPE:
    """Σ|div V| over interior cells, central differences without scaling."""
    total = ti.cast(0.0, DTYPE)
    for x, y in ti.ndrange((1, velocity.width - 1), (1, velocity.height - 1)):
        div = (velocity.data[x + 1, y, 0] - velocity.data[x - 1, y, 0]) + (
            velocity.data[x, y + 1, 1] - velocity.data[x, y - 1, 1]
        )
        total += ti.abs(div)
    return total


@ti.kernel
def compute_divergence(velocity: ti.template(), out: ti.template()):
    """Write div V into a 1-channel field; ghost cells get 0."""
    for x, y in ti.ndrange(velocity.width, velocity.height):
        div = ti.cast(0.0, DTYPE)
        if is_interior(x, y, velocity.width, velocity.height):
            div = (velocity.data[x + 1, y, 0] - velocity.data[x - 1, y, 0]) + (
                velocity.data[x, y + 1, 1] - velocity.data[x, y - 1, 1]
            )
        out.data[x, y, 0] = div


@ti.kernel
def compute_total(field: ti.template(), channel: ti.i32) -> DTYPE:
    """Sum one channel over the whole grid."""
    total = ti.cast(0.0, DTYPE)
    for x, y in ti.ndrange(field.width, field.height):
        total += field.data[x, y, channel]
    return total


def total_variation(field) -> float:
    """Σ|neighbor differences| over all horizontally and vertically adjacent pairs.

    Summed over every channel. Computed in float64 on the host.
    """
    arr = field.to_numpy().astype(np.float64)
    return float(
        np.abs(np.diff(arr, axis=0)).sum() + np.abs(np.diff(arr, axis=1)).sum()
    )


def max_speed(velocity) -> float:
    """Largest velocity magnitude anywhere on the grid."""
    v = velocity.to_numpy()
    return float(np.sqrt((v[:, :, 0] ** 2 + v[:, :, 1] ** 2).max()))


def count_non_finite(field) -> int:
    """Number of NaN or infinite samples."""
    return int(np.count_nonzero(~np.isfinite(field.to_numpy())))


def check_finite(field) -> None:
    """Raise FlowAssertionError if the field holds NaN or infinite samples."""
    bad = count_non_finite(field)
    if bad:
        raise FlowAssertionError(
            f"Field '{field.name}' contains {bad} non-finite sample(s)"
        )


def check_timestep(dt: float) -> None:
    """Raise FlowAssertionError unless dt is finite.

    Advection clamps its backtrace, so a NaN dt would otherwise produce
    finite but meaningless velocity.
    """
    if not math.isfinite(dt):
        raise FlowAssertionError(f"timestep must be finite, got {dt}")


def check_viscosity(viscosity: float) -> None:
    """Raise FlowAssertionError unless viscosity is strictly positive."""
    if not viscosity > 0:
        raise FlowAssertionError(f"viscosity must be > 0, got {viscosity}")


@dataclass(frozen=True)
class FlowSnapshot:
    """Scalar summary of the flow state for progress reporting."""

    tick: int
    max_speed: float
    divergence: float
    total_density: float

    def format(self) -> str:
        return (
            f"tick {self.tick:6d}: |v|max = {self.max_speed:.4e}, "
            f"Σ|div| = {self.divergence:.4e}, density = {self.total_density:.4e}"
        )
