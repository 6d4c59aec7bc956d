"""
Reading and writing FlowConfig as YAML.

A config file holds one mapping per parameter group; missing groups and keys
take their dataclass defaults:

    grid:
      width: 96
      height: 64
    pressure:
      quality: 40
"""

from pathlib import Path
from typing import Any

import yaml

from flowfield.params.schema import FlowConfig, ValidationError


def load_config(path: str | Path) -> FlowConfig:
    """
    Build a FlowConfig from a YAML file.

    An empty file gives the default config.

    Raises:
        FileNotFoundError: path does not exist
        ValidationError: top level is not a mapping, or a value is out of range
        yaml.YAMLError: unparsable file
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"No config file at {path}")

    with path.open() as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValidationError(
            f"{path}: expected a mapping of parameter groups, got {type(data).__name__}"
        )
    return FlowConfig.from_dict(data)


def save_config(config: FlowConfig, path: str | Path) -> None:
    """Write every group of `config` to `path`, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


def load_config_with_overrides(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> FlowConfig:
    """
    Defaults (or the file at `path`), then per-group overrides on top.

    `overrides` is shaped like the YAML file, e.g. what the CLI builds from
    its flags:

        load_config_with_overrides("configs/default.yaml", {"grid": {"width": 64}})
    """
    config = FlowConfig() if path is None else load_config(path)
    return config.with_updates(**overrides) if overrides else config


def merge_configs(base: FlowConfig, override: FlowConfig) -> FlowConfig:
    """Every value of `override` wins, including ones left at their default."""
    merged = base.to_dict()
    for group, values in override.to_dict().items():
        merged[group].update(values)
    return FlowConfig.from_dict(merged)
