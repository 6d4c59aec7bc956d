"""
Parameter management module for flowfield.

This module provides:
- Validated, immutable parameter containers (schema.py)
- YAML loading utilities (loader.py)
"""

from flowfield.params.schema import (
    AdvectionParams,
    CouplingParams,
    FlowConfig,
    GridParams,
    PressureParams,
    SolverParams,
    ValidationError,
    ViscosityParams,
)
from flowfield.params.loader import (
    load_config,
    load_config_with_overrides,
    merge_configs,
    save_config,
)

__all__ = [
    # Schema classes
    "GridParams",
    "ViscosityParams",
    "PressureParams",
    "AdvectionParams",
    "CouplingParams",
    "SolverParams",
    "FlowConfig",
    "ValidationError",
    # Loader functions
    "load_config",
    "save_config",
    "load_config_with_overrides",
    "merge_configs",
]
