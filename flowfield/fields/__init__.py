"""Field management for flowfield.

Main classes:
- Field: Dense multi-channel grid with convolution drivers
- FieldSpec: Declarative field specification
- FieldRole: Field categorization (STATE, STATIC, DERIVED, SCRATCH)
- FieldContainer: Allocates every Field once, up front
- VelocityBuffers: current/other velocity slots with swap()

Factory functions:
- create_flow_specs, create_flow_container
"""

from flowfield.fields.base import (
    FieldContainer,
    FieldRole,
    FieldSpec,
    create_flow_container,
    create_flow_specs,
)
from flowfield.fields.grid import Field
from flowfield.fields.state import VelocityBuffers

__all__ = [
    "Field",
    "FieldContainer",
    "FieldRole",
    "FieldSpec",
    "VelocityBuffers",
    "create_flow_container",
    "create_flow_specs",
]
