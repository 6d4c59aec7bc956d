"""Parameter schema with validation. Units: grid cells, seconds."""

from dataclasses import asdict, dataclass, field
from typing import Any


class ValidationError(ValueError):
    """Parameter validation failed."""
    pass


def _positive(value: float, name: str) -> None:
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")


def _non_negative(value: float, name: str) -> None:
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")


def _at_least(value: int, minimum: int, name: str) -> None:
    if value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}, got {value}")


def _border(value: float, name: str) -> None:
    if not -1 <= value <= 1:
        raise ValidationError(f"{name} must be in [-1, 1], got {value}")


@dataclass(frozen=True)
class GridParams:
    """Grid: width, height in cells (ghost ring included)."""
    width: int = 32
    height: int = 32

    def __post_init__(self) -> None:
        _at_least(self.width, 3, "width")
        _at_least(self.height, 3, "height")

    @property
    def n_cells(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class ViscosityParams:
    """Viscosity: viscosity [cells²/s], quality [sweeps], border coefficients [-]."""
    viscosity: float = 0.01
    quality: int = 4
    border: float = -1.0
    inbound_border: float = -1.0
    use_obstacles: bool = False

    def __post_init__(self) -> None:
        _non_negative(self.viscosity, "viscosity")
        _at_least(self.quality, 1, "quality")
        _border(self.border, "border")
        _border(self.inbound_border, "inbound_border")


@dataclass(frozen=True)
class PressureParams:
    """Pressure: quality [iterations], warm start, divergence/gradient scales [-].

    Both scales at 1.0 reproduce the unit-scaled reference operator exactly.
    """

    quality: int = 20
    warm_start: bool = True
    divergence_scale: float = 0.5
    gradient_scale: float = 0.5

    def __post_init__(self) -> None:
        _at_least(self.quality, 1, "quality")
        _positive(self.divergence_scale, "divergence_scale")
        _positive(self.gradient_scale, "gradient_scale")


@dataclass(frozen=True)
class AdvectionParams:
    """Advection: enabled flag."""
    enabled: bool = True


@dataclass(frozen=True)
class CouplingParams:
    """Coupling: world extent mapped onto the grid, velocity/density multipliers."""
    world_width: float = 480.0
    world_height: float = 320.0
    velocity_multiplier: float = 1.0
    density_multiplier: float = 0.0

    def __post_init__(self) -> None:
        _positive(self.world_width, "world_width")
        _positive(self.world_height, "world_height")


@dataclass(frozen=True)
class SolverParams:
    """Solver: relaxation variant ('in_place' or 'jacobi'), debug checks."""
    variant: str = "in_place"
    debug: bool = False

    def __post_init__(self) -> None:
        if self.variant not in ("in_place", "jacobi"):
            raise ValidationError(
                f"variant must be 'in_place' or 'jacobi', got {self.variant!r}"
            )


@dataclass(frozen=True)
class FlowConfig:
    """Complete flow configuration."""

    grid: GridParams = field(default_factory=GridParams)
    viscosity: ViscosityParams = field(default_factory=ViscosityParams)
    pressure: PressureParams = field(default_factory=PressureParams)
    advection: AdvectionParams = field(default_factory=AdvectionParams)
    coupling: CouplingParams = field(default_factory=CouplingParams)
    solver: SolverParams = field(default_factory=SolverParams)

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dictionary."""
        return {
            "grid": asdict(self.grid),
            "viscosity": asdict(self.viscosity),
            "pressure": asdict(self.pressure),
            "advection": asdict(self.advection),
            "coupling": asdict(self.coupling),
            "solver": asdict(self.solver),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlowConfig":
        """Create from nested dictionary; unknown groups are rejected."""
        param_classes = {
            "grid": GridParams,
            "viscosity": ViscosityParams,
            "pressure": PressureParams,
            "advection": AdvectionParams,
            "coupling": CouplingParams,
            "solver": SolverParams,
        }
        unknown = set(data) - set(param_classes)
        if unknown:
            raise ValidationError(f"Unknown parameter group(s): {sorted(unknown)}")
        try:
            kwargs = {k: param_classes[k](**(data[k] or {})) for k in data}
        except TypeError as e:
            raise ValidationError(str(e)) from e
        return cls(**kwargs)

    def with_updates(self, **kwargs: Any) -> "FlowConfig":
        """Create new config with updates."""
        current = self.to_dict()
        for key, value in kwargs.items():
            if key not in current:
                raise ValidationError(f"Unknown parameter group: {key}")
            if isinstance(value, dict):
                current[key].update(value)
            else:
                current[key] = asdict(value)
        return self.from_dict(current)

    # Convenience accessors
    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height
