"""Dense multi-channel grid with a generic convolution driver.

A Field stores ``width × height × channels`` samples in a single Taichi
field of shape ``(width, height, channels)``. Besides plain access it drives
stencil sweeps: fill the ghost ring through a border policy, then replace
every interior cell with ``stencil(field, x, y, c)``.

Two sweep families are provided:

- In place (``convolve``, ``convolve_border``): rows are visited in
  ascending y, cells in ascending x, and every write lands in the buffer
  being read. A stencil at (x, y) therefore sees the already-updated values
  at (x-1, y) and (x, y-1). The loops are serialized so this order holds on
  every backend.
- Jacobi (``convolve_jacobi``, ``convolve_border_jacobi``): each iteration
  snapshots the field into a scratch Field and reads only the snapshot.
  Converges differently and is kept as a separately named option.

Stencils and border policies are ``@ti.data_oriented`` objects exposing
``@ti.func`` methods:

    stencil.stencil(field, x, y, c) -> value
    stencil.stencil(field, support, x, y, c) -> value   # with a support field
    border.border(value) -> value
"""

from typing import Any

import numpy as np
import taichi as ti

from flowfield.core.dtypes import DTYPE
from flowfield.core.geometry import AXIS_DX, AXIS_DY, NUM_AXIS_NEIGHBORS, GridGeometry


@ti.data_oriented
class Field:
    """Fixed-size, multi-channel 2D grid of floating-point samples.

    Attributes:
        geometry: Grid dimensions
        channels: Samples per cell (2 for velocity, 1 for scalars)
        name: Identifier used in error messages
        data: Underlying Taichi field, shape (width, height, channels)

    Example:
        velocity = Field(GridGeometry(32, 32), channels=2, name="velocity")
        velocity.convolve(stencil, LinearBorder(-1.0), iterations=4)
    """

    def __init__(
        self,
        geometry: GridGeometry,
        channels: int = 1,
        name: str = "field",
        dtype: Any = DTYPE,
    ):
        if channels < 1:
            raise ValueError(f"channels must be >= 1, got {channels}")
        self.geometry = geometry
        self.width = geometry.width
        self.height = geometry.height
        self.channels = channels
        self.name = name
        self.data = ti.field(dtype=dtype, shape=(self.width, self.height, channels))

    def __repr__(self) -> str:
        return (
            f"Field(name={self.name!r}, width={self.width}, "
            f"height={self.height}, channels={self.channels})"
        )

    @property
    def shape(self) -> tuple[int, int, int]:
        """Buffer shape as (width, height, channels)."""
        return (self.width, self.height, self.channels)

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        """Set every cell of every channel to 0."""
        self.fill(0.0)

    @ti.kernel
    def fill(self, value: DTYPE):
        """Set every sample to a constant."""
        for I in ti.grouped(self.data):
            self.data[I] = value

    @ti.kernel
    def copy_from(self, other: ti.template()):
        """Copy all samples from another Field of identical shape."""
        for I in ti.grouped(self.data):
            self.data[I] = other.data[I]

    def at(self, x: int, y: int, channel: int = 0) -> float:
        """Read one sample. Unchecked: callers must stay inside the grid."""
        return self.data[x, y, channel]

    def set(self, x: int, y: int, channel: int, value: float) -> None:
        """Write one sample. Unchecked like ``at``."""
        self.data[x, y, channel] = value

    def to_numpy(self) -> np.ndarray:
        """Copy the buffer out as an array of shape (width, height, channels)."""
        return self.data.to_numpy()

    def from_numpy(self, array: np.ndarray) -> None:
        """Load the buffer from an array.

        Accepts (width, height, channels), or (width, height) for
        single-channel fields.
        """
        array = np.asarray(array, dtype=np.float32)
        if array.ndim == 2 and self.channels == 1:
            array = array[:, :, np.newaxis]
        if array.shape != self.shape:
            raise ValueError(
                f"Array shape {array.shape} doesn't match {self.name} {self.shape}"
            )
        self.data.from_numpy(np.ascontiguousarray(array))

    def _check_compatible(self, other: "Field", role: str, channels: int | None = None):
        if other.geometry != self.geometry:
            raise ValueError(
                f"{role} '{other.name}' has geometry {other.geometry.shape}, "
                f"expected {self.geometry.shape}"
            )
        if channels is not None and other.channels != channels:
            raise ValueError(
                f"{role} '{other.name}' must have {channels} channel(s), "
                f"got {other.channels}"
            )
        if other is self:
            raise ValueError(f"{role} must be a different Field than '{self.name}'")

    # -------------------------------------------------------------------------
    # Convolution drivers
    # -------------------------------------------------------------------------

    def convolve(
        self,
        stencil: Any,
        border: Any,
        iterations: int = 1,
        support: "Field | None" = None,
    ) -> None:
        """Run ``iterations`` in-place border-fill + stencil sweeps.

        Args:
            stencil: Object with ``stencil(field, x, y, c)``, or
                ``stencil(field, support, x, y, c)`` when support is given
            border: Border policy applied to the ghost ring
            iterations: Number of sweeps
            support: Optional read-only companion Field (any channel count)
        """
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        if support is not None:
            self._check_compatible(support, "support")

        for _ in range(iterations):
            if support is None:
                self._sweep(stencil, border)
            else:
                self._sweep_support(support, stencil, border)

        if iterations:
            self._fill_edges(border)

    def convolve_border(
        self,
        stencil: Any,
        inbound: Any,
        outbound: Any,
        mask: "Field",
        iterations: int = 1,
    ) -> None:
        """In-place sweeps that skip cells flagged non-zero in ``mask``.

        A flagged cell copies ``inbound.border(v)`` from its first unflagged
        neighbor in the order left, right, up, down, or becomes 0 when all
        four are flagged. The outer ghost ring uses ``outbound``.
        """
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        self._check_compatible(mask, "mask", channels=1)

        for _ in range(iterations):
            self._sweep_masked(stencil, inbound, outbound, mask)

        if iterations:
            self._fill_edges(outbound)

    def convolve_jacobi(
        self,
        stencil: Any,
        border: Any,
        scratch: "Field",
        iterations: int = 1,
        support: "Field | None" = None,
    ) -> None:
        """Double-buffered counterpart of ``convolve``.

        Every iteration fills the ghost ring, snapshots the field into
        ``scratch`` and evaluates the stencil on the snapshot only.
        """
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        self._check_compatible(scratch, "scratch", channels=self.channels)
        if support is not None:
            self._check_compatible(support, "support")

        for _ in range(iterations):
            self._fill_edges(border)
            scratch.copy_from(self)
            if support is None:
                self._sweep_jacobi(scratch, stencil)
            else:
                self._sweep_support_jacobi(scratch, support, stencil)

        if iterations:
            self._fill_edges(border)

    def convolve_border_jacobi(
        self,
        stencil: Any,
        inbound: Any,
        outbound: Any,
        mask: "Field",
        scratch: "Field",
        iterations: int = 1,
    ) -> None:
        """Double-buffered counterpart of ``convolve_border``."""
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        self._check_compatible(mask, "mask", channels=1)
        self._check_compatible(scratch, "scratch", channels=self.channels)

        for _ in range(iterations):
            self._fill_edges(outbound)
            scratch.copy_from(self)
            self._sweep_masked_jacobi(scratch, stencil, inbound, mask)

        if iterations:
            self._fill_edges(outbound)

    # -------------------------------------------------------------------------
    # Kernels
    # -------------------------------------------------------------------------

    @ti.kernel
    def _fill_edges(self, border: ti.template()):
        """Fill all four edges (corners excluded) from their interior neighbor."""
        for x in range(1, self.width - 1):
            for c in ti.static(range(self.channels)):
                self.data[x, 0, c] = border.border(self.data[x, 1, c])
                self.data[x, self.height - 1, c] = border.border(
                    self.data[x, self.height - 2, c]
                )
        for y in range(1, self.height - 1):
            for c in ti.static(range(self.channels)):
                self.data[0, y, c] = border.border(self.data[1, y, c])
                self.data[self.width - 1, y, c] = border.border(
                    self.data[self.width - 2, y, c]
                )

    @ti.kernel
    def _sweep(self, stencil: ti.template(), border: ti.template()):
        """One in-place sweep: top edge, rows (left, interior, right), bottom edge."""
        ti.loop_config(serialize=True)
        for x in range(1, self.width - 1):
            for c in ti.static(range(self.channels)):
                self.data[x, 0, c] = border.border(self.data[x, 1, c])

        ti.loop_config(serialize=True)
        for y in range(1, self.height - 1):
            for c in ti.static(range(self.channels)):
                self.data[0, y, c] = border.border(self.data[1, y, c])
            for x in range(1, self.width - 1):
                for c in ti.static(range(self.channels)):
                    self.data[x, y, c] = stencil.stencil(self, x, y, c)
            for c in ti.static(range(self.channels)):
                self.data[self.width - 1, y, c] = border.border(
                    self.data[self.width - 2, y, c]
                )

        ti.loop_config(serialize=True)
        for x in range(1, self.width - 1):
            for c in ti.static(range(self.channels)):
                self.data[x, self.height - 1, c] = border.border(
                    self.data[x, self.height - 2, c]
                )

    @ti.kernel
    def _sweep_support(
        self, support: ti.template(), stencil: ti.template(), border: ti.template()
    ):
        """In-place sweep whose stencil also reads a support field."""
        ti.loop_config(serialize=True)
        for x in range(1, self.width - 1):
            for c in ti.static(range(self.channels)):
                self.data[x, 0, c] = border.border(self.data[x, 1, c])

        ti.loop_config(serialize=True)
        for y in range(1, self.height - 1):
            for c in ti.static(range(self.channels)):
                self.data[0, y, c] = border.border(self.data[1, y, c])
            for x in range(1, self.width - 1):
                for c in ti.static(range(self.channels)):
                    self.data[x, y, c] = stencil.stencil(self, support, x, y, c)
            for c in ti.static(range(self.channels)):
                self.data[self.width - 1, y, c] = border.border(
                    self.data[self.width - 2, y, c]
                )

        ti.loop_config(serialize=True)
        for x in range(1, self.width - 1):
            for c in ti.static(range(self.channels)):
                self.data[x, self.height - 1, c] = border.border(
                    self.data[x, self.height - 2, c]
                )

    @ti.kernel
    def _sweep_masked(
        self,
        stencil: ti.template(),
        inbound: ti.template(),
        outbound: ti.template(),
        mask: ti.template(),
    ):
        """In-place sweep where masked cells copy their first unmasked neighbor."""
        ti.loop_config(serialize=True)
        for x in range(1, self.width - 1):
            for c in ti.static(range(self.channels)):
                self.data[x, 0, c] = outbound.border(self.data[x, 1, c])

        ti.loop_config(serialize=True)
        for y in range(1, self.height - 1):
            for c in ti.static(range(self.channels)):
                self.data[0, y, c] = outbound.border(self.data[1, y, c])
            for x in range(1, self.width - 1):
                if mask.data[x, y, 0] == 0:
                    for c in ti.static(range(self.channels)):
                        self.data[x, y, c] = stencil.stencil(self, x, y, c)
                else:
                    self._copy_from_open_neighbor(self, inbound, mask, x, y)
            for c in ti.static(range(self.channels)):
                self.data[self.width - 1, y, c] = outbound.border(
                    self.data[self.width - 2, y, c]
                )

        ti.loop_config(serialize=True)
        for x in range(1, self.width - 1):
            for c in ti.static(range(self.channels)):
                self.data[x, self.height - 1, c] = outbound.border(
                    self.data[x, self.height - 2, c]
                )

    @ti.kernel
    def _sweep_jacobi(self, prev: ti.template(), stencil: ti.template()):
        for x, y in ti.ndrange((1, self.width - 1), (1, self.height - 1)):
            for c in ti.static(range(self.channels)):
                self.data[x, y, c] = stencil.stencil(prev, x, y, c)

    @ti.kernel
    def _sweep_support_jacobi(
        self, prev: ti.template(), support: ti.template(), stencil: ti.template()
    ):
        for x, y in ti.ndrange((1, self.width - 1), (1, self.height - 1)):
            for c in ti.static(range(self.channels)):
                self.data[x, y, c] = stencil.stencil(prev, support, x, y, c)

    @ti.kernel
    def _sweep_masked_jacobi(
        self,
        prev: ti.template(),
        stencil: ti.template(),
        inbound: ti.template(),
        mask: ti.template(),
    ):
        for x, y in ti.ndrange((1, self.width - 1), (1, self.height - 1)):
            if mask.data[x, y, 0] == 0:
                for c in ti.static(range(self.channels)):
                    self.data[x, y, c] = stencil.stencil(prev, x, y, c)
            else:
                self._copy_from_open_neighbor(prev, inbound, mask, x, y)

    @ti.func
    def _copy_from_open_neighbor(
        self, source: ti.template(), inbound: ti.template(), mask: ti.template(), x, y
    ):
        """Write (x, y) from the first unmasked axis neighbor of ``source``, else 0."""
        found = 0
        for k in ti.static(range(NUM_AXIS_NEIGHBORS)):
            if found == 0:
                nx = x + AXIS_DX[k]
                ny = y + AXIS_DY[k]
                if mask.data[nx, ny, 0] == 0:
                    for c in ti.static(range(self.channels)):
                        self.data[x, y, c] = inbound.border(source.data[nx, ny, c])
                    found = 1
        if found == 0:
            for c in ti.static(range(self.channels)):
                self.data[x, y, c] = 0.0
