"""
Read generation engine.

For each cell, for each replicon in input order:
1. copy number -> read count
2. sample read-count fragments
3. encode each fragment and write a TIRP line
4. write one metadata line

Each cell draws from its own random stream spawned from the run seed, so the
output for a cell does not depend on how many cells precede it or on which
process renders it.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from .config import SimConfig
from .copy_number import CopyNumberModel
from .encoder import ReadEncoder
from .fragment import FragmentSampler
from .models import (
    Cell, CopyNumberRecord, ReadPair, Replicon, RepliconDataError, SimulationStats
)

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 5000


class WriterPairSink:
    """Routes read pairs to a TirpWriter and records to a MetadataWriter."""

    def __init__(self, tirp_writer, metadata_writer):
        self.tirp_writer = tirp_writer
        self.metadata_writer = metadata_writer

    def write_pair(self, cell_id: int, pair: ReadPair):
        self.tirp_writer.write_pair(cell_id, pair)

    def write_chromref(self, cell_id: int, sequence: str):
        self.tirp_writer.write_chromref(cell_id, sequence)

    def write_record(self, cell_id: int, strain_name: str, record: CopyNumberRecord):
        self.metadata_writer.write_record(cell_id, strain_name, record)


def spawn_cell_seeds(seed: Optional[int], n_cells: int) -> List[np.random.SeedSequence]:
    """One independent seed sequence per cell, in cell order."""
    return np.random.SeedSequence(seed).spawn(n_cells)


def check_replicon(replicon: Replicon, cell: Cell, config: SimConfig):
    """Reject replicons the encoder cannot cut reads from."""
    if replicon.length < config.read_len:
        raise RepliconDataError(
            f"Replicon {replicon.name} in {cell.label} ({cell.strain_name}) is "
            f"{replicon.length} bp, shorter than read length {config.read_len}"
        )


class SimulationEngine:
    """Cell -> TIRP lines + metadata lines"""

    def __init__(self, config: SimConfig):
        config.check()
        self.config = config
        self.encoder = ReadEncoder(config)

    def simulate_cell(
        self,
        cell: Cell,
        sink,
        rng: Optional[np.random.Generator] = None
    ) -> SimulationStats:
        """
        Generate every read pair and metadata line for one cell.

        Args:
            cell: Cell to simulate
            sink: Receiver for TIRP and metadata records
            rng: Random generator for this cell

        Returns:
            Statistics for this cell
        """
        rng = rng if rng is not None else np.random.default_rng()
        copy_model = CopyNumberModel(self.config, rng)
        sampler = FragmentSampler(self.config, rng)
        stats = SimulationStats(cells=1)

        if not cell.replicons:
            raise RepliconDataError(f"{cell.label} ({cell.strain_name}) has no replicons")

        for replicon in cell.replicons:
            check_replicon(replicon, cell, self.config)

        if self.config.output.emit_chromref:
            for replicon in cell.replicons:
                if replicon.is_chromosome:
                    sink.write_chromref(cell.cell_id, replicon.sequence)
                    stats.chromref_lines += 1

        for replicon in cell.replicons:
            record = copy_model.record_for(replicon)
            logger.debug(
                f"{cell.label} {replicon.name} ({replicon.kind.value}, "
                f"{replicon.length} bp): copy number {record.copy_number}, "
                f"{record.num_reads} reads"
            )
            if not replicon.is_chromosome and record.copy_number == 0:
                stats.zero_copy_plasmids += 1

            for idx, fragment in enumerate(
                sampler.iter_fragments(replicon.length, record.num_reads), start=1
            ):
                pair = self.encoder.encode(replicon, fragment)
                sink.write_pair(cell.cell_id, pair)
                if fragment.wraps:
                    stats.wrapped_fragments += 1
                if idx % PROGRESS_INTERVAL == 0:
                    logger.debug(f"{cell.label} {replicon.name}: {idx} fragments")

            sink.write_record(cell.cell_id, cell.strain_name, record)
            stats.replicons += 1
            stats.read_pairs += record.num_reads
            kind = replicon.kind.value
            stats.reads_by_kind[kind] = stats.reads_by_kind.get(kind, 0) + record.num_reads

        stats.rejected_lengths = sampler.rejected
        return stats

    def simulate_cells(
        self,
        cells: Sequence[Cell],
        sink,
        seed: Optional[int] = None
    ) -> SimulationStats:
        """Simulate cells sequentially, in the given order."""
        total = SimulationStats()
        seeds = spawn_cell_seeds(seed, len(cells))
        for cell, cell_seed in zip(cells, seeds):
            stats = self.simulate_cell(cell, sink, np.random.default_rng(cell_seed))
            logger.info(
                f"{cell.label} ({cell.strain_name}): {stats.read_pairs} read pairs "
                f"from {stats.replicons} replicons"
            )
            total.merge(stats)
        return total
