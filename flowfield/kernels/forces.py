"""External forcing: splat velocity into the field around a point."""

import taichi as ti

from flowfield.core.dtypes import DTYPE


@ti.kernel
def splat_velocity(
    velocity: ti.template(),
    cx: DTYPE,
    cy: DTYPE,
    radius: DTYPE,
    vx: DTYPE,
    vy: DTYPE,
):
    """Add (vx, vy)·exp(-r²/radius²) to interior cells around (cx, cy)."""
    for x, y in ti.ndrange((1, velocity.width - 1), (1, velocity.height - 1)):
        dx = ti.cast(x, DTYPE) - cx
        dy = ti.cast(y, DTYPE) - cy
        w = ti.exp(-(dx * dx + dy * dy) / (radius * radius))
        velocity.data[x, y, 0] += vx * w
        velocity.data[x, y, 1] += vy * w
