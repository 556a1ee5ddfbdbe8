"""
Simulate paired-end TIRP reads from genome assemblies.

Pipeline:
1. Configuration - profile or config file, then explicit overrides
2. Replicon source - FASTA + NCBI reports -> genomes -> cells
3. Read generation - copy number, circular fragmentation, read encoding
4. Record emission - TIRP lines and per-(cell, replicon) metadata lines
"""

import logging
from typing import Optional

from tirpsim.utils.validation import validate_input_exists, validate_output_path

logger = logging.getLogger(__name__)


def run_read_simulation(
    input_path: str,
    output_tirp: str,
    output_metadata: str,
    # Cell layout
    cells_per_genome: Optional[int] = None,
    # Copy number / depth
    plasmid_mean: Optional[float] = None,
    fragments_per_bp: Optional[float] = None,
    # Fragment length bounds
    min_len: Optional[int] = None,
    max_len: Optional[int] = None,
    # Options
    chromref: Optional[bool] = None,
    inclusive_start: Optional[bool] = None,
    compress: Optional[bool] = None,
    threads: int = 1,
    seed: Optional[int] = None,
    config_file: Optional[str] = None,
    profile: str = "default",
    save_config: Optional[str] = None,
):
    """
    Simulate TIRP reads for every cell built from the input assemblies.

    Args:
        input_path: Assembly FASTA file or directory of assemblies
        output_tirp: TIRP output path (truncated on open)
        output_metadata: Metadata output path (truncated on open)
        cells_per_genome: Cells simulated per input genome
        plasmid_mean: Poisson mean for plasmid copy numbers
        fragments_per_bp: Fragments per base pair per copy
        min_len: Exclusive lower fragment length bound
        max_len: Exclusive upper fragment length bound
        chromref: Emit a full-chromosome reference line per cell
        inclusive_start: Sample fragment starts from [0, seq_len]
        compress: gzip both outputs
        threads: Worker processes (0=auto, 1=single)
        seed: Random seed
        config_file: YAML/JSON config file (replaces the profile)
        profile: Named preset ("default", "high_copy")
        save_config: Write the effective configuration as YAML here

    Returns:
        SimulationStats for the run

    Outputs:
        - output_tirp: cell#NNNNNN, 1, 1, R1, R2, Q1, Q2, " " per read pair
        - output_metadata: cell#NNNNNN, strain, copy number, replicon, reads
    """
    from .tirp.config import SimConfig, get_profile
    from .tirp.engine import SimulationEngine, WriterPairSink, check_replicon
    from .tirp.parallel import get_optimal_workers, simulate_cells_parallel
    from .tirp.source import build_cells, load_genomes
    from .tirp.writer import MetadataWriter, TirpWriter

    # Load config
    if config_file:
        validate_input_exists(config_file, "Config file")
        config = SimConfig.from_file(config_file)
        logger.info(f"Config: {config_file}")
    else:
        config = get_profile(profile)
        logger.info(f"Profile: {profile}")

    # Override with explicit parameters
    if seed is not None:
        config.seed = seed
    if cells_per_genome is not None:
        config.output.cells_per_genome = cells_per_genome
    if plasmid_mean is not None:
        config.copy_number.plasmid_poisson_mean = plasmid_mean
    if fragments_per_bp is not None:
        config.depth.fragments_per_bp = fragments_per_bp
    if min_len is not None:
        config.fragment.min_len = min_len
    if max_len is not None:
        config.fragment.max_len = max_len
    if chromref is not None:
        config.output.emit_chromref = chromref
    if inclusive_start is not None:
        config.fragment.start_inclusive = inclusive_start
    if compress is not None:
        config.output.compress = compress

    config.check()

    logger.info(
        f"Fragments: Normal({config.fragment.mean}, {config.fragment.std}) in "
        f"({config.min_len}, {config.max_len}), {config.fragments_per_bp} per bp; "
        f"plasmid copy number ~ Poisson({config.plasmid_poisson_mean})"
    )

    # Validate paths before anything is written
    validate_input_exists(input_path, "Input")
    tirp_path = validate_output_path(output_tirp, "TIRP output")
    metadata_path = validate_output_path(output_metadata, "Metadata output")
    if tirp_path.resolve() == metadata_path.resolve():
        raise ValueError("TIRP and metadata outputs must be different files")

    # Load genomes
    logger.info(f"Input: {input_path}")
    genomes = load_genomes(input_path)
    cells = build_cells(genomes, config.output.cells_per_genome)
    logger.info(
        f"{len(genomes)} genomes -> {len(cells)} cells "
        f"({config.output.cells_per_genome} per genome)"
    )

    # Fail on unusable replicons before the outputs are truncated
    for cell in cells:
        for replicon in cell.replicons:
            check_replicon(replicon, cell, config)

    engine = SimulationEngine(config)
    num_workers = get_optimal_workers(threads)
    use_parallel = num_workers > 1 and len(cells) > 1

    logger.info(f"Output: {tirp_path} (TIRP), {metadata_path} (metadata)")
    with TirpWriter(tirp_path, config.phred_string, compress=config.output.compress) as tirp_writer, \
            MetadataWriter(metadata_path, compress=config.output.compress) as metadata_writer:
        if use_parallel:
            stats = simulate_cells_parallel(
                cells, config, tirp_writer, metadata_writer,
                num_workers=num_workers, seed=config.seed,
            )
        else:
            sink = WriterPairSink(tirp_writer, metadata_writer)
            stats = engine.simulate_cells(cells, sink, seed=config.seed)

    logger.info(stats.summary())

    if save_config:
        config.to_yaml(save_config)
        logger.info(f"Config saved: {save_config}")

    logger.info("Simulation completed successfully!")
    return stats
