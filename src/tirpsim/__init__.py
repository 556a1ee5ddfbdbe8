"""
tirpsim: synthetic paired-end reads from circular genome assemblies.

This package provides tools for:
- Reading genome assemblies and classifying their replicons
- Per-replicon copy-number modelling (single-copy chromosomes, Poisson plasmids)
- Circular fragmentation with bounded rejection sampling
- Writing TIRP (tab-indexed-read-paired) and per-cell metadata files
"""

__version__ = "0.3.0"
__author__ = "tirpsim Team"
