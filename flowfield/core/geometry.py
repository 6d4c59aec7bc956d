"""Grid geometry and neighbor indexing for flowfield.

This module centralizes all spatial indexing logic:
- GridGeometry: Immutable dataclass holding grid dimensions
- Axis neighbor vectors: 4-connectivity offsets used by stencils and the
  masked border fill
- Helper functions: Boundary checks usable inside kernels

Indexing convention:
    Cells are addressed as (x, y, channel) with x in [0, width) and
    y in [0, height). Sweeps are row-major: y is the outer loop and x the
    inner one, so "up" means y - 1 and "down" means y + 1.

    The outermost ring (x == 0, x == width-1, y == 0, y == height-1) holds
    ghost cells written only by border policies.

4-Connectivity order (also the masked-fill priority):
    Direction 0: Left  (-x)
    Direction 1: Right (+x)
    Direction 2: Up    (-y)
    Direction 3: Down  (+y)
"""

from dataclasses import dataclass

import taichi as ti

# Number of neighbors in 4-connectivity
NUM_AXIS_NEIGHBORS: int = 4

# Column offset (x)
AXIS_DX = ti.Vector([-1, 1, 0, 0])

# Row offset (y)
AXIS_DY = ti.Vector([0, 0, -1, 1])


@dataclass(frozen=True)
class GridGeometry:
    """Immutable grid geometry specification.

    Attributes:
        width: Number of columns (x dimension)
        height: Number of rows (y dimension)

    Properties:
        n_cells: Total number of cells (width * height)
        n_interior: Number of interior cells ((width-2) * (height-2))
        shape: (width, height) tuple, the leading shape of every field
    """

    width: int
    height: int

    def __post_init__(self):
        """Validate grid dimensions."""
        if self.width < 3:
            raise ValueError(f"width must be >= 3, got {self.width}")
        if self.height < 3:
            raise ValueError(f"height must be >= 3, got {self.height}")

    @property
    def n_cells(self) -> int:
        """Total number of cells."""
        return self.width * self.height

    @property
    def n_interior(self) -> int:
        """Number of interior (non-ghost) cells."""
        return (self.width - 2) * (self.height - 2)

    @property
    def shape(self) -> tuple[int, int]:
        """Grid shape as (width, height) tuple."""
        return (self.width, self.height)

    def contains(self, x: int, y: int) -> bool:
        """Check whether (x, y) addresses a cell of the grid (ghosts included)."""
        return 0 <= x < self.width and 0 <= y < self.height

    def is_ghost(self, x: int, y: int) -> bool:
        """Check whether (x, y) lies on the ghost ring."""
        return self.contains(x, y) and not (
            0 < x < self.width - 1 and 0 < y < self.height - 1
        )


# =============================================================================
# Taichi helper functions for use in kernels
# =============================================================================


@ti.func
def is_interior(x: int, y: int, width: int, height: int) -> bool:
    """Check if cell (x, y) is in the interior (not on the ghost ring)."""
    return 0 < x < width - 1 and 0 < y < height - 1
