"""
Semi-Lagrangian advection of the velocity field.

For every cell (x, y), ghosts included, trace back along the flow:

    src = (x, y) − dt·v(x, y),   clamped to [0, dim − 1.001]

and bilinearly sample both velocity components at src from the current
buffer into the other buffer. The clamp keeps floor(src) <= dim − 2, so the
+1 neighbor of the 2×2 stencil is always addressable.

Zero velocity maps every cell onto itself with zero fractional offset, so
the sampling degenerates to an exact copy.
"""

import taichi as ti

from flowfield.core.dtypes import DTYPE

# Keeps floor(src) strictly below the last index
CLAMP_MARGIN = 1.001


@ti.func
def lerp(a, v1, v2):
    """Linear interpolation: v1 at a=0, v2 at a=1."""
    return (1.0 - a) * v1 + a * v2


@ti.func
def lerp2x2(dx, dy, v11, v21, v12, v22):
    """Bilinear interpolation: along x on both rows, then along y."""
    return lerp(dy, lerp(dx, v11, v21), lerp(dx, v12, v22))


@ti.kernel
def advect_semi_lagrangian(src: ti.template(), dst: ti.template(), dt: DTYPE):
    """Write src advected by itself over dt into dst (both 2-channel Fields)."""
    max_x = ti.cast(src.width - CLAMP_MARGIN, DTYPE)
    max_y = ti.cast(src.height - CLAMP_MARGIN, DTYPE)

    for x, y in ti.ndrange(src.width, src.height):
        sx = ti.cast(x, DTYPE) - dt * src.data[x, y, 0]
        sy = ti.cast(y, DTYPE) - dt * src.data[x, y, 1]

        sx = ti.min(ti.max(sx, 0.0), max_x)
        sy = ti.min(ti.max(sy, 0.0), max_y)

        ix = ti.cast(sx, ti.i32)
        iy = ti.cast(sy, ti.i32)
        fx = sx - ix
        fy = sy - iy

        for c in ti.static(range(2)):
            dst.data[x, y, c] = lerp2x2(
                fx,
                fy,
                src.data[ix, iy, c],
                src.data[ix + 1, iy, c],
                src.data[ix, iy + 1, c],
                src.data[ix + 1, iy + 1, c],
            )
