"""
TIRP read simulator.

Fragments circular replicons of simulated cells into paired-end reads and
writes them as TIRP lines plus per-cell copy-number metadata.
"""

from .config import SimConfig, ConfigurationError, get_default_config, get_profile
from .models import Cell, Genome, Replicon, RepliconKind, RepliconDataError
from .engine import SimulationEngine
from .source import build_cells, load_genome, load_genomes, parse_fasta

__all__ = [
    'SimConfig',
    'ConfigurationError',
    'get_default_config',
    'get_profile',
    'Cell',
    'Genome',
    'Replicon',
    'RepliconKind',
    'RepliconDataError',
    'SimulationEngine',
    'build_cells',
    'load_genome',
    'load_genomes',
    'parse_fasta',
]
