"""
Taichi configuration and initialization.

Environment variables:
    FLOWFIELD_BACKEND: 'cuda', 'vulkan', 'cpu', or 'auto' (default)
    FLOWFIELD_DEBUG: '1' to enable Taichi debug mode and solver assertions

Falls back to CPU if no CUDA device is found.
"""

import os
import subprocess

import taichi as ti

from flowfield.core.dtypes import DTYPE


def get_backend() -> str:
    """Determine Taichi backend: check env var, then auto-detect."""
    env = os.environ.get("FLOWFIELD_BACKEND", "auto").lower()

    if env in ("cuda", "vulkan", "cpu"):
        return env
    if env != "auto":
        raise ValueError(f"Invalid FLOWFIELD_BACKEND: {env}")

    # Auto-detect CUDA
    try:
        result = subprocess.run(
            ["nvidia-smi", "-L"], capture_output=True, text=True, timeout=5
        )
        if result.returncode == 0 and "GPU" in result.stdout:
            return "cuda"
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass

    return "cpu"


def debug_enabled() -> bool:
    """Whether FLOWFIELD_DEBUG requests debug checks."""
    return os.environ.get("FLOWFIELD_DEBUG", "0") == "1"


def init_taichi(
    backend: str | None = None,
    debug: bool | None = None,
    kernel_profiler: bool = False,
) -> str:
    """Initialize Taichi with specified or auto-detected backend."""
    if backend is None:
        backend = get_backend()
    if debug is None:
        debug = debug_enabled()

    arch = {"cuda": ti.cuda, "vulkan": ti.vulkan, "cpu": ti.cpu}.get(backend)
    if arch is None:
        raise ValueError(f"Unknown backend: {backend}")

    ti.init(
        arch=arch,
        default_fp=DTYPE,
        debug=debug,
        offline_cache=True,
        random_seed=42,
        kernel_profiler=kernel_profiler,
    )
    return backend
