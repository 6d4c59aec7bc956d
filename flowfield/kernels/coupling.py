"""
Particle coupling: push particles with the flow, deposit them as density.

For every particle slot up to capacity (inactive slots included):

    px = int(width·pos.x/world_width + 0.5),   clamped to [0, width-1]
    py = int(height·pos.y/world_height + 0.5), clamped to [0, height-1]
    vel += velocity_multiplier·V(px, py)              (nearest cell)
    density(px, py) += size·density_multiplier        (if multiplier > 0)

The density field is cleared first whenever density_multiplier > 0.
World extents are runtime arguments, not constants.
"""

import taichi as ti

from flowfield.core.dtypes import DTYPE


@ti.kernel
def couple_particles(
    velocity: ti.template(),
    density: ti.template(),
    pos: ti.template(),
    vel: ti.template(),
    size: ti.template(),
    world_width: DTYPE,
    world_height: DTYPE,
    velocity_multiplier: DTYPE,
    density_multiplier: DTYPE,
):
    for i in range(pos.shape[0]):
        px = ti.cast(velocity.width * pos[i][0] / world_width + 0.5, ti.i32)
        py = ti.cast(velocity.height * pos[i][1] / world_height + 0.5, ti.i32)

        px = ti.min(ti.max(px, 0), velocity.width - 1)
        py = ti.min(ti.max(py, 0), velocity.height - 1)

        vel[i][0] += velocity.data[px, py, 0] * velocity_multiplier
        vel[i][1] += velocity.data[px, py, 1] * velocity_multiplier

        if density_multiplier > 0:
            density.data[px, py, 0] += size[i] * density_multiplier


class ParticleCoupling:
    """Bridges a Flow's velocity/density fields and a particle collection.

    Args:
        world_width: World-space extent mapped onto the grid width
        world_height: World-space extent mapped onto the grid height
    """

    def __init__(self, world_width: float = 480.0, world_height: float = 320.0):
        self.set_world_extent(world_width, world_height)

    @property
    def fields_read(self) -> set[str]:
        return {"velocity"}

    @property
    def fields_written(self) -> set[str]:
        return {"density"}

    def set_world_extent(self, world_width: float, world_height: float) -> None:
        if world_width <= 0 or world_height <= 0:
            raise ValueError(
                f"World extent must be positive, got {world_width} x {world_height}"
            )
        self.world_width = world_width
        self.world_height = world_height

    def update_particles(
        self,
        velocity,
        density,
        particles,
        velocity_multiplier: float,
        density_multiplier: float,
    ) -> None:
        """Apply the coupling to every slot of ``particles``.

        Args:
            velocity: Current 2-channel velocity Field
            density: 1-channel density Field
            particles: Object exposing ``pos``, ``velocity`` (2-vector fields)
                and ``size`` (scalar field) of equal length
            velocity_multiplier: Scale of the sampled velocity added to particles
            density_multiplier: Scale of the size deposited; <= 0 disables
        """
        if density_multiplier > 0:
            density.clear()
        couple_particles(
            velocity,
            density,
            particles.pos,
            particles.velocity,
            particles.size,
            self.world_width,
            self.world_height,
            velocity_multiplier,
            density_multiplier,
        )
