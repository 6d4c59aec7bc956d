"""Pytest fixtures and test utilities for flowfield."""

import numpy as np
import pytest

from flowfield.config import init_taichi
from flowfield.core.geometry import GridGeometry
from flowfield.fields.grid import Field


@pytest.fixture(scope="session", autouse=True)
def taichi_init():
    """Initialize Taichi once per test session with CPU backend."""
    init_taichi(backend="cpu", debug=True)
    yield


@pytest.fixture
def geometry():
    """Small square grid used by most tests."""
    return GridGeometry(16, 16)


@pytest.fixture
def field_factory():
    """Factory for Fields, optionally loaded from an array."""
    return make_field


def make_field(
    width: int,
    height: int,
    channels: int = 1,
    name: str = "field",
    values: np.ndarray | None = None,
) -> Field:
    """Create a Field of the given size, zeroed or loaded from ``values``."""
    field = Field(GridGeometry(width, height), channels, name=name)
    if values is None:
        field.clear()
    else:
        field.from_numpy(values)
    return field


@pytest.fixture
def random_values():
    """Reproducible float32 arrays of shape (width, height, channels)."""
    return make_random_values


def make_random_values(
    width: int, height: int, channels: int = 1, seed: int = 0, scale: float = 1.0
) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return (scale * rng.standard_normal((width, height, channels))).astype(np.float32)


@pytest.fixture
def gaussian_gradient():
    """Smooth, fully divergent velocity fields: the gradient of Gaussian blobs."""
    return make_gaussian_gradient


def make_gaussian_gradient(
    width: int,
    height: int,
    centers: list[tuple[float, float]],
    sigma: float = 2.5,
    amplitude: float = 1.0,
) -> np.ndarray:
    """Velocity (width, height, 2) = centred-difference gradient of Σ Gaussians."""
    x = np.arange(width, dtype=np.float64).reshape(-1, 1)
    y = np.arange(height, dtype=np.float64).reshape(1, -1)
    g = np.zeros((width, height))
    for cx, cy in centers:
        g += amplitude * np.exp(-((x - cx) ** 2 + (y - cy) ** 2) / (2 * sigma**2))
    gx, gy = np.gradient(g)
    return np.stack([gx, gy], axis=-1).astype(np.float32)
