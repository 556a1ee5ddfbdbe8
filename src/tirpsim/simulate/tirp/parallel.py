"""
Multi-process cell rendering.

Each worker renders a whole cell into an in-memory buffer; the parent
appends buffers to the output files strictly in cell order. Cells carry
their own seed sequence, so output matches a single-process run.
"""

import logging
import multiprocessing as mp
from collections import deque
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .config import SimConfig
from .engine import SimulationEngine, spawn_cell_seeds
from .models import Cell, SimulationStats, format_cell_id
from .writer import BufferedCellSink

logger = logging.getLogger(__name__)

_WORKER_ENGINE: Optional[SimulationEngine] = None


def get_optimal_workers(requested: int = 0) -> int:
    """
    Resolve the number of worker processes.

    Args:
        requested: Requested workers, 0 for automatic

    Returns:
        Number of workers actually used
    """
    cpu_count = mp.cpu_count()

    if requested <= 0:
        return max(1, cpu_count - 1)
    return min(max(1, requested), cpu_count)


def _init_worker(config: SimConfig):
    global _WORKER_ENGINE
    _WORKER_ENGINE = SimulationEngine(config)


def _render_cell(task: Tuple[Cell, np.random.SeedSequence]):
    cell, cell_seed = task
    sink = BufferedCellSink(_WORKER_ENGINE.config.phred_string)
    stats = _WORKER_ENGINE.simulate_cell(cell, sink, np.random.default_rng(cell_seed))
    return cell.cell_id, sink.tirp_lines, sink.metadata_lines, stats


def render_cells_parallel(
    cells: Sequence[Cell],
    config: SimConfig,
    num_workers: int,
    seed: Optional[int] = None,
    max_pending: Optional[int] = None
) -> Iterator[Tuple[int, List[str], List[str], SimulationStats]]:
    """
    Render cells in worker processes.

    At most max_pending cells (default 2 per worker) are submitted but not
    yet consumed, which bounds the rendered lines held in the parent.

    Yields:
        (cell_id, TIRP lines, metadata lines, stats) in input cell order
    """
    if max_pending is None:
        max_pending = 2 * num_workers
    if max_pending < 1:
        raise ValueError(f"max_pending must be >= 1 (got {max_pending})")

    seeds = spawn_cell_seeds(seed, len(cells))
    logger.info(f"Rendering {len(cells)} cells with {num_workers} workers")
    with mp.Pool(num_workers, initializer=_init_worker, initargs=(config,)) as pool:
        pending = deque()
        for task in zip(cells, seeds):
            if len(pending) >= max_pending:
                yield pending.popleft().get()
            pending.append(pool.apply_async(_render_cell, (task,)))
        while pending:
            yield pending.popleft().get()


def simulate_cells_parallel(
    cells: Sequence[Cell],
    config: SimConfig,
    tirp_writer,
    metadata_writer,
    num_workers: int,
    seed: Optional[int] = None
) -> SimulationStats:
    """Render cells in parallel and write them in cell order."""
    total = SimulationStats()
    for cell_id, tirp_lines, metadata_lines, stats in render_cells_parallel(
        cells, config, num_workers, seed
    ):
        tirp_writer.write_block("".join(tirp_lines), len(tirp_lines))
        metadata_writer.write_block("".join(metadata_lines), len(metadata_lines))
        logger.info(
            f"{format_cell_id(cell_id)}: {stats.read_pairs} read pairs "
            f"from {stats.replicons} replicons"
        )
        total.merge(stats)
    return total
