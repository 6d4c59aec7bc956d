"""Type definitions for flowfield.

Single precision matches the real-time use case: the solver drives visual
effects, so ~7 significant digits is plenty and f32 halves memory traffic.
"""

import taichi as ti

# Default floating-point type for all fields and computations
DTYPE = ti.f32
