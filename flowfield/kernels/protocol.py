"""
Kernel protocol definitions for swappable implementations.

Protocols define the interface that both in-place and Jacobi kernels
implement, enabling variant selection at runtime without changing the Flow
orchestration code.

Each relaxation kernel type has:
- a pass method (viscosity / viscosity_border / project)
- fields_read / fields_written properties for dependency tracking

Result dataclasses capture optional measurements for instrumentation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class SweepVariant(Enum):
    """Available relaxation sweep variants."""

    IN_PLACE = "in_place"  # Row-major in-place sweep (reference behavior)
    JACOBI = "jacobi"  # Double-buffered sweep, reads only the previous iterate

    @classmethod
    def parse(cls, value: "str | SweepVariant") -> "SweepVariant":
        """Accept either a variant or its config string."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Unknown sweep variant: {value!r}. "
                f"Available: {[v.value for v in cls]}"
            ) from None


@dataclass(frozen=True)
class ProjectionStats:
    """Measurements from a pressure projection.

    Attributes:
        divergence_before: Σ|div V| over interior cells before correction
        divergence_after: Σ|div V| over interior cells after correction
    """

    divergence_before: float
    divergence_after: float

    @property
    def reduction(self) -> float:
        """Fraction of the interior divergence removed (1.0 = all of it)."""
        if self.divergence_before == 0:
            return 0.0
        return 1.0 - self.divergence_after / self.divergence_before


@runtime_checkable
class ViscosityKernel(Protocol):
    """Protocol for implicit diffusion of the velocity field.

    alpha = (1/viscosity)·dt/quality, beta = 1/(alpha + 4)
    new = (old·alpha + Σ neighbors)·beta, repeated quality times.
    """

    def viscosity(
        self,
        velocity: Any,  # Field, 2 channels
        viscosity: float,
        dt: float,
        border: float,
        quality: int,
    ) -> None:
        """Diffuse velocity in place through the outer-border policy."""
        ...

    def viscosity_border(
        self,
        velocity: Any,  # Field, 2 channels
        viscosity: float,
        dt: float,
        out_border: float,
        in_border: float,
        mask: Any,  # Field, 1 channel
        quality: int,
    ) -> None:
        """Diffuse velocity around obstacle cells flagged in mask."""
        ...

    @property
    def fields_read(self) -> set[str]:
        """Fields read by this kernel."""
        ...

    @property
    def fields_written(self) -> set[str]:
        """Fields written by this kernel."""
        ...


@runtime_checkable
class PressureKernel(Protocol):
    """Protocol for pressure projection.

    Relaxes P against div V, then subtracts the gradient of P from the
    interior velocity.
    """

    def project(
        self,
        velocity: Any,  # Field, 2 channels
        pressure: Any,  # Field, 1 channel
        quality: int,
        measure: bool = False,
    ) -> ProjectionStats | None:
        """Run one projection; return stats only when measure is True."""
        ...

    @property
    def fields_read(self) -> set[str]:
        """Fields read by this kernel."""
        ...

    @property
    def fields_written(self) -> set[str]:
        """Fields written by this kernel."""
        ...
