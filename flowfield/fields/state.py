"""Velocity double buffer with an explicit current-slot selector.

Advection reads one velocity buffer and writes the other, then swaps. The
selector is a plain index into a two-slot tuple, owned by one Flow and
mutated only through ``swap()``.
"""

from flowfield.fields.base import FieldContainer
from flowfield.fields.grid import Field


class VelocityBuffers:
    """Two velocity Fields, exactly one of which is current.

    Example:
        buffers = VelocityBuffers(container)
        advect(buffers.current(), buffers.other())
        buffers.swap()
    """

    def __init__(self, container: FieldContainer, name: str = "velocity"):
        self._slots: tuple[Field, Field] = container.get_pair(name)
        self._current = 0

    @property
    def index(self) -> int:
        """Slot index (0 or 1) of the current buffer."""
        return self._current

    def current(self) -> Field:
        """Buffer holding the settled velocity."""
        return self._slots[self._current]

    def other(self) -> Field:
        """Buffer the next advection writes into."""
        return self._slots[1 - self._current]

    def swap(self) -> None:
        """Make the other buffer current."""
        self._current = 1 - self._current

    def reset(self) -> None:
        """Zero both buffers and select slot 0."""
        for field in self._slots:
            field.clear()
        self._current = 0
