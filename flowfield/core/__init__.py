"""Core infrastructure: types, geometry, and constants."""

from flowfield.core.dtypes import DTYPE
from flowfield.core.geometry import (
    AXIS_DX,
    AXIS_DY,
    NUM_AXIS_NEIGHBORS,
    GridGeometry,
    is_interior,
)

__all__ = [
    "DTYPE",
    "GridGeometry",
    "AXIS_DX",
    "AXIS_DY",
    "NUM_AXIS_NEIGHBORS",
    "is_interior",
]
