"""Simulation module for TIRP read generation."""

from tirpsim.simulate.reads import run_read_simulation

__all__ = [
    "run_read_simulation",
]
