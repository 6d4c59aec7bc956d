"""Border policies: compute a ghost value from its interior neighbor.

The linear policy maps ``ghost = coefficient × neighbor``:

- coefficient  1: reflecting boundary (zero normal gradient)
- coefficient  0: fixed zero boundary
- coefficient -1: no-slip reflection for velocity components

The coefficient lives in a 0-d Taichi field so one policy object can be
re-targeted per call site without recompiling the sweeps that use it.
"""

import taichi as ti

from flowfield.core.dtypes import DTYPE


@ti.data_oriented
class LinearBorder:
    """Border policy ``ghost = coefficient × neighbor``."""

    def __init__(self, coefficient: float = 1.0):
        self._coefficient = ti.field(DTYPE, shape=())
        self.set_coefficient(coefficient)

    @property
    def coefficient(self) -> float:
        return float(self._coefficient[None])

    def set_coefficient(self, coefficient: float) -> None:
        self._coefficient[None] = coefficient

    @ti.func
    def border(self, value):
        return self._coefficient[None] * value
