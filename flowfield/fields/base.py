"""Declarative allocation of the Fields a Flow owns.

Every Field is described by a FieldSpec up front; a FieldContainer turns the
specs into zeroed Fields of one GridGeometry in a single `allocate()` call and
never reallocates them. A double-buffered spec gets a second Field named
``<name>_new`` so advection can read one velocity buffer while writing the
other.

    container = FieldContainer(geometry)
    container.register(FieldSpec("velocity", FieldRole.STATE, channels=2, double_buffer=True))
    container.allocate()
    front, back = container.get_pair("velocity")
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from flowfield.core.dtypes import DTYPE
from flowfield.core.geometry import GridGeometry
from flowfield.fields.grid import Field

BYTES_PER_SAMPLE = 4


class FieldRole(Enum):
    """How the solver treats a field.

    STATE: carried from tick to tick (velocity, density)
    STATIC: written by the application only (obstacle mask)
    DERIVED: rebuilt by a pass every tick (pressure)
    SCRATCH: snapshot storage for the Jacobi sweeps
    """

    STATE = auto()
    STATIC = auto()
    DERIVED = auto()
    SCRATCH = auto()


@dataclass(frozen=True)
class FieldSpec:
    """Name, role and channel count of one Field.

    Attributes:
        name: snake_case identifier, also the container key
        role: FieldRole
        channels: samples per cell (2 for velocity)
        double_buffer: also allocate ``<name>_new``
        dtype: Taichi element type
        description: free text, shown nowhere but useful in reprs
    """

    name: str
    role: FieldRole
    channels: int = 1
    double_buffer: bool = False
    dtype: Any = DTYPE
    description: str = ""

    def __post_init__(self):
        if not self.name or not self.name.replace("_", "").isalnum():
            raise ValueError(f"Invalid field name: {self.name!r}")
        if self.name != self.name.lower():
            raise ValueError(f"Field name must be lower snake_case: {self.name!r}")
        if self.channels < 1:
            raise ValueError(f"{self.name}: channels must be >= 1, got {self.channels}")
        if self.double_buffer and self.role is FieldRole.STATIC:
            raise ValueError(f"{self.name}: a static field has no second buffer")

    def buffer_name(self) -> str:
        return f"{self.name}_new"

    def allocated_names(self) -> tuple[str, ...]:
        if self.double_buffer:
            return (self.name, self.buffer_name())
        return (self.name,)


class FieldContainer:
    """Owns every Field of one grid, keyed by name.

    Register specs, call `allocate()` once, then look fields up with
    ``container[name]``. Registration closes at allocation.
    """

    def __init__(self, geometry: GridGeometry):
        self._geometry = geometry
        self._specs: dict[str, FieldSpec] = {}
        self._fields: dict[str, Field] = {}

    @property
    def geometry(self) -> GridGeometry:
        return self._geometry

    @property
    def allocated(self) -> bool:
        return bool(self._fields)

    @property
    def field_names(self) -> list[str]:
        """Registered names in registration order, second buffers excluded."""
        return list(self._specs)

    def _taken_names(self) -> set[str]:
        taken = set()
        for spec in self._specs.values():
            taken.update(spec.allocated_names())
        return taken

    def register(self, *specs: FieldSpec) -> None:
        """Add one or more specs.

        Raises:
            RuntimeError: after allocate()
            ValueError: when a name (or its ``_new`` buffer) is already taken
        """
        for spec in specs:
            if self.allocated:
                raise RuntimeError("Container is allocated; no more fields can be added")
            clash = self._taken_names().intersection(spec.allocated_names())
            if clash:
                raise ValueError(f"Field name(s) already in use: {sorted(clash)}")
            self._specs[spec.name] = spec

    def allocate(self) -> None:
        """Create every registered Field, zeroed.

        Raises:
            RuntimeError: when called twice or with nothing registered
        """
        if self.allocated:
            raise RuntimeError("Container is already allocated")
        if not self._specs:
            raise RuntimeError("Nothing registered to allocate")

        for spec in self._specs.values():
            for name in spec.allocated_names():
                self._fields[name] = Field(
                    self._geometry, spec.channels, name=name, dtype=spec.dtype
                )

    def get(self, name: str) -> Field:
        if not self.allocated:
            raise RuntimeError("Container has not been allocated")
        try:
            return self._fields[name]
        except KeyError:
            raise KeyError(f"No field named {name!r}") from None

    def __getitem__(self, name: str) -> Field:
        return self.get(name)

    def get_spec(self, name: str) -> FieldSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise KeyError(f"No field spec named {name!r}") from None

    def get_pair(self, name: str) -> tuple[Field, Field]:
        """Both buffers of a double-buffered field, primary first."""
        spec = self.get_spec(name)
        if not spec.double_buffer:
            raise ValueError(f"{name} has a single buffer")
        return self.get(name), self.get(spec.buffer_name())

    def fields_by_role(self, role: FieldRole) -> list[str]:
        return [spec.name for spec in self._specs.values() if spec.role is role]

    def clear_all(self) -> None:
        """Zero every allocated field, second buffers included."""
        for field in self._fields.values():
            field.clear()

    @property
    def memory_bytes(self) -> int:
        total = 0
        for field in self._fields.values():
            width, height, channels = field.shape
            total += BYTES_PER_SAMPLE * width * height * channels
        return total

    @property
    def memory_mb(self) -> float:
        return self.memory_bytes / 2**20

    def __contains__(self, name: str) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)


def create_flow_specs(dtype: Any = DTYPE) -> list[FieldSpec]:
    """Specs for the fields of one Flow.

    velocity (2 channels, double-buffered for advection), density, pressure,
    the obstacle mask and the two Jacobi scratch fields.
    """
    layout = [
        ("velocity", FieldRole.STATE, 2, True, "Velocity (x, y) in cells per second"),
        ("density", FieldRole.STATE, 1, False, "Deposited particle density"),
        ("pressure", FieldRole.DERIVED, 1, False, "Projection potential"),
        ("obstacles", FieldRole.STATIC, 1, False, "Non-zero cells are excluded"),
        ("velocity_scratch", FieldRole.SCRATCH, 2, False, "Jacobi copy of velocity"),
        ("pressure_scratch", FieldRole.SCRATCH, 1, False, "Jacobi copy of pressure"),
    ]
    return [
        FieldSpec(name, role, channels, double_buffer, dtype, description)
        for name, role, channels, double_buffer, description in layout
    ]


def create_flow_container(geometry: GridGeometry) -> FieldContainer:
    """Allocated container holding every field a Flow needs."""
    container = FieldContainer(geometry)
    container.register(*create_flow_specs())
    container.allocate()
    return container
