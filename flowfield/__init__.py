"""
flowfield: real-time 2D grid fluid solver on Taichi.

Semi-Lagrangian advection, implicit viscosity and pressure projection on
fixed-size multi-channel grids, with a coupling surface for particle effects.
"""

__version__ = "0.1.0"
