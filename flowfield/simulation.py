"""Flow orchestrator: owns the fields and runs the solver passes.

Per-tick order (enforced by ``step``, a usage contract for direct calls):
advection swaps the velocity buffers and must run first; viscosity and
pressure projection then refine the freshly advected field in place.
Particle coupling samples whatever velocity is current when called.
"""

from flowfield.config import debug_enabled
from flowfield.core.geometry import GridGeometry
from flowfield.diagnostics import (
    FlowSnapshot,
    check_finite,
    check_timestep,
    check_viscosity,
    compute_total,
    divergence_l1,
    max_speed,
)
from flowfield.fields import Field, VelocityBuffers, create_flow_container
from flowfield.kernels import (
    KernelRegistry,
    ParticleCoupling,
    ProjectionStats,
    SweepVariant,
    advect_semi_lagrangian,
    get_registry,
    splat_velocity,
)
from flowfield.params import FlowConfig


class Flow:
    """Real-time 2D fluid solver on fixed-size grids.

    Attributes:
        config: Flow configuration
        geometry: Grid dimensions shared by every field
        fields: FieldContainer holding all allocated Fields
        debug: Whether finiteness/viscosity assertions run after passes
        tick: Number of completed ``step`` calls

    Example:
        flow = Flow(FlowConfig())
        flow.add_impulse(16, 16, radius=3, vx=20, vy=0)
        flow.step(1 / 60)
        flow.update_particles(particles, 1.0, 0.0)
    """

    def __init__(
        self,
        config: FlowConfig | None = None,
        registry: KernelRegistry | None = None,
    ):
        self.config = config or FlowConfig()
        cfg = self.config

        self.geometry = GridGeometry(cfg.grid.width, cfg.grid.height)
        self.fields = create_flow_container(self.geometry)
        self._velocity = VelocityBuffers(self.fields)

        registry = registry or get_registry()
        variant = SweepVariant.parse(cfg.solver.variant)
        self.variant = variant
        self._viscosity = registry.get_viscosity(
            variant, scratch=self.fields["velocity_scratch"]
        )
        self._pressure = registry.get_pressure(
            variant,
            scratch=self.fields["pressure_scratch"],
            divergence_scale=cfg.pressure.divergence_scale,
            gradient_scale=cfg.pressure.gradient_scale,
        )
        self._coupling = ParticleCoupling(
            cfg.coupling.world_width, cfg.coupling.world_height
        )

        self.debug = cfg.solver.debug or debug_enabled()
        self.tick = 0

    # -------------------------------------------------------------------------
    # Field access
    # -------------------------------------------------------------------------

    def current(self) -> Field:
        """Velocity buffer holding the settled state."""
        return self._velocity.current()

    def other(self) -> Field:
        """Velocity buffer the next advection writes into."""
        return self._velocity.other()

    def swap(self) -> None:
        """Toggle which velocity buffer is current."""
        self._velocity.swap()

    @property
    def velocity(self) -> Field:
        """Current velocity (2 channels)."""
        return self._velocity.current()

    @property
    def density(self) -> Field:
        """Particle density deposited by ``update_particles``."""
        return self.fields["density"]

    @property
    def pressure_field(self) -> Field:
        """Pressure potential from the last projection."""
        return self.fields["pressure"]

    @property
    def obstacles(self) -> Field:
        """Obstacle mask used by ``viscosity_border`` by default."""
        return self.fields["obstacles"]

    def reset(self) -> None:
        """Zero every field and select velocity slot 0."""
        self.fields.clear_all()
        self._velocity.reset()
        self.tick = 0

    # -------------------------------------------------------------------------
    # Passes
    # -------------------------------------------------------------------------

    def advect_sl(self, dt: float) -> None:
        """Semi-Lagrangian self-advection of velocity, then swap buffers."""
        if self.debug:
            check_timestep(dt)
        advect_semi_lagrangian(self.current(), self.other(), dt)
        self.swap()
        if self.debug:
            check_finite(self.current())

    def viscosity(self, viscosity: float, dt: float, border: float) -> None:
        """Diffuse current velocity with a uniform outer border coefficient."""
        if self.debug:
            check_timestep(dt)
            check_viscosity(viscosity)
        self._viscosity.viscosity(
            self.current(), viscosity, dt, border, self.config.viscosity.quality
        )
        if self.debug:
            check_finite(self.current())

    def viscosity_border(
        self,
        viscosity: float,
        dt: float,
        out_border: float,
        in_border: float,
        mask: Field | None = None,
    ) -> None:
        """Diffuse current velocity around obstacle cells.

        Args:
            viscosity: Kinematic viscosity (> 0)
            dt: Timestep [s]
            out_border: Coefficient for the outer ghost ring
            in_border: Coefficient applied when a masked cell copies a neighbor
            mask: 1-channel Field, non-zero = obstacle (default: ``obstacles``)
        """
        if self.debug:
            check_timestep(dt)
            check_viscosity(viscosity)
        self._viscosity.viscosity_border(
            self.current(),
            viscosity,
            dt,
            out_border,
            in_border,
            self.obstacles if mask is None else mask,
            self.config.viscosity.quality,
        )
        if self.debug:
            check_finite(self.current())

    def pressure(self, measure: bool = False) -> ProjectionStats | None:
        """Project current velocity towards zero divergence.

        Returns:
            ProjectionStats when ``measure`` is True, else None
        """
        if not self.config.pressure.warm_start:
            self.pressure_field.clear()
        stats = self._pressure.project(
            self.current(),
            self.pressure_field,
            self.config.pressure.quality,
            measure=measure,
        )
        if self.debug:
            check_finite(self.pressure_field)
            check_finite(self.current())
        return stats

    def step(self, dt: float) -> None:
        """Run one tick in the required order: advect, viscosity, pressure."""
        cfg = self.config
        if cfg.advection.enabled:
            self.advect_sl(dt)
        if cfg.viscosity.use_obstacles:
            self.viscosity_border(
                cfg.viscosity.viscosity,
                dt,
                cfg.viscosity.border,
                cfg.viscosity.inbound_border,
            )
        else:
            self.viscosity(cfg.viscosity.viscosity, dt, cfg.viscosity.border)
        self.pressure()
        self.tick += 1

    # -------------------------------------------------------------------------
    # Coupling and forcing
    # -------------------------------------------------------------------------

    def set_world_extent(self, world_width: float, world_height: float) -> None:
        """Change the world-space extent mapped onto the grid."""
        self._coupling.set_world_extent(world_width, world_height)

    @property
    def world_extent(self) -> tuple[float, float]:
        return (self._coupling.world_width, self._coupling.world_height)

    def update_particles(
        self,
        particles,
        velocity_multiplier: float | None = None,
        density_multiplier: float | None = None,
    ) -> None:
        """Push particles with the current velocity and deposit density.

        Multipliers default to the ``coupling`` config section.
        """
        cfg = self.config.coupling
        if velocity_multiplier is None:
            velocity_multiplier = cfg.velocity_multiplier
        if density_multiplier is None:
            density_multiplier = cfg.density_multiplier
        self._coupling.update_particles(
            self.current(),
            self.density,
            particles,
            velocity_multiplier,
            density_multiplier,
        )

    def add_velocity(self, x: int, y: int, vx: float, vy: float) -> None:
        """Add (vx, vy) to a single cell of the current velocity."""
        field = self.current()
        field.set(x, y, 0, field.at(x, y, 0) + vx)
        field.set(x, y, 1, field.at(x, y, 1) + vy)

    def add_impulse(
        self, cx: float, cy: float, radius: float, vx: float, vy: float
    ) -> None:
        """Add a Gaussian velocity splat centred on grid position (cx, cy)."""
        if radius <= 0:
            raise ValueError(f"radius must be positive, got {radius}")
        splat_velocity(self.current(), cx, cy, radius, vx, vy)

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def snapshot(self) -> FlowSnapshot:
        """Scalar summary of the current state."""
        return FlowSnapshot(
            tick=self.tick,
            max_speed=max_speed(self.current()),
            divergence=float(divergence_l1(self.current())),
            total_density=float(compute_total(self.density, 0)),
        )
