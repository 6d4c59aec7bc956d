"""Fixed-capacity particle store satisfying the coupling contract.

The solver only needs ``pos``, ``velocity`` and ``size`` as parallel Taichi
fields. ParticleSet is the minimal collection used by the demo driver and
tests: a ring buffer of emitted particles with a countdown lifetime.
"""

import numpy as np
import taichi as ti

from flowfield.core.dtypes import DTYPE


@ti.data_oriented
class ParticleSet:
    """Ring buffer of particles with position, velocity, size and lifetime.

    Attributes:
        capacity: Number of slots (live or not)
        pos: World-space positions, Vector(2) field
        velocity: World-space velocities, Vector(2) field
        size: Particle sizes, scalar field
        lifetime: Remaining ticks, 0 = inactive
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.pos = ti.Vector.field(2, dtype=DTYPE, shape=capacity)
        self.velocity = ti.Vector.field(2, dtype=DTYPE, shape=capacity)
        self.size = ti.field(dtype=DTYPE, shape=capacity)
        self.lifetime = ti.field(dtype=ti.i32, shape=capacity)
        self._next = 0

    def __len__(self) -> int:
        return self.capacity

    def add(
        self,
        pos: tuple[float, float],
        velocity: tuple[float, float],
        size: float,
        lifetime: int,
    ) -> int:
        """Write a particle into the next slot, wrapping at capacity.

        Returns:
            The slot index that was written
        """
        slot = self._next
        self.pos[slot] = pos
        self.velocity[slot] = velocity
        self.size[slot] = size
        self.lifetime[slot] = lifetime
        self._next = (slot + 1) % self.capacity
        return slot

    def load(
        self,
        positions: np.ndarray,
        velocities: np.ndarray | None = None,
        sizes: np.ndarray | None = None,
        lifetime: int = 1,
    ) -> None:
        """Overwrite every slot from arrays of length capacity."""
        positions = np.asarray(positions, dtype=np.float32)
        if positions.shape != (self.capacity, 2):
            raise ValueError(
                f"positions must have shape ({self.capacity}, 2), got {positions.shape}"
            )
        if velocities is None:
            velocities = np.zeros_like(positions)
        if sizes is None:
            sizes = np.ones(self.capacity, dtype=np.float32)
        self.pos.from_numpy(positions)
        self.velocity.from_numpy(np.asarray(velocities, dtype=np.float32))
        self.size.from_numpy(np.asarray(sizes, dtype=np.float32))
        self.lifetime.from_numpy(np.full(self.capacity, lifetime, dtype=np.int32))
        self._next = 0

    def positions(self) -> np.ndarray:
        return self.pos.to_numpy()

    def velocities(self) -> np.ndarray:
        return self.velocity.to_numpy()

    def n_active(self) -> int:
        return int(np.count_nonzero(self.lifetime.to_numpy() > 0))

    @ti.kernel
    def integrate(self, dt: DTYPE, drag: DTYPE):
        """Move live particles, damp their velocity and count down lifetime."""
        for i in range(self.capacity):
            if self.lifetime[i] > 0:
                self.lifetime[i] -= 1
                self.pos[i] += self.velocity[i] * dt
                self.velocity[i] *= drag
