"""
tirpsim CLI - Command Line Interface for TIRP read simulation.

Usage:
    tirpsim <command> [options]
"""

import logging

import click

from tirpsim import __version__


@click.group()
@click.version_option(version=__version__, prog_name="tirpsim")
def main():
    """tirpsim - Synthetic paired-end reads from circular genome assemblies.

    Use 'tirpsim <command> --help' for detailed usage of each command.
    """
    pass


# ============================================================================
# Simulation Commands
# ============================================================================

@main.command()
@click.option("-i", "--input", "input_path", required=True,
              help="Assembly FASTA file or directory of assemblies")
@click.option("-o", "--output", required=True, help="TIRP output file")
@click.option("-m", "--metadata", required=True, help="Metadata output file")
@click.option("-n", "--cells-per-genome", type=int, help="Cells simulated per genome")
@click.option("--plasmid-mean", type=float, help="Poisson mean of plasmid copy number")
@click.option("--fragments-per-bp", type=float, help="Fragments per bp per copy")
@click.option("--min-len", type=int, help="Minimum fragment length (exclusive)")
@click.option("--max-len", type=int, help="Maximum fragment length (exclusive)")
@click.option("--chromref", is_flag=True,
              help="Emit a full-chromosome reference line per cell")
@click.option("--inclusive-start", is_flag=True,
              help="Sample fragment starts from [0, length] (legacy output)")
@click.option("--compress", is_flag=True, help="gzip both outputs")
@click.option("-t", "--threads", default=1, help="Number of worker processes (0=auto)")
@click.option("--seed", type=int, help="Random seed")
@click.option("--config", "config_file", help="Config file (YAML/JSON)")
@click.option("--profile", type=click.Choice(["default", "high_copy"]),
              default="default", help="Parameter preset (ignored with --config)")
@click.option("--save-config", help="Write the effective config as YAML")
@click.option("--log-file", help="Also write log messages to this file")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
def simulate(input_path, output, metadata, cells_per_genome, plasmid_mean,
             fragments_per_bp, min_len, max_len, chromref, inclusive_start,
             compress, threads, seed, config_file, profile, save_config,
             log_file, verbose):
    """Simulate paired-end reads in TIRP format.

    Every replicon of every cell is fragmented on the circle; each fragment
    becomes one TIRP line and each (cell, replicon) one metadata line.
    Chromosomes are single-copy, plasmid copy numbers are Poisson draws.
    """
    from tirpsim.simulate.reads import run_read_simulation
    from tirpsim.utils.logging_utils import setup_logger

    setup_logger(log_file=log_file, level=logging.DEBUG if verbose else logging.INFO)
    try:
        run_read_simulation(
            input_path=input_path,
            output_tirp=output,
            output_metadata=metadata,
            cells_per_genome=cells_per_genome,
            plasmid_mean=plasmid_mean,
            fragments_per_bp=fragments_per_bp,
            min_len=min_len,
            max_len=max_len,
            # Unset flags leave config-file values alone
            chromref=chromref or None,
            inclusive_start=inclusive_start or None,
            compress=compress or None,
            threads=threads,
            seed=seed,
            config_file=config_file,
            profile=profile,
            save_config=save_config,
        )
    except (ValueError, RuntimeError, OSError) as e:
        logging.getLogger("tirpsim").error(str(e))
        raise click.ClickException(str(e))


@main.command("config")
@click.option("--profile", type=click.Choice(["default", "high_copy"]),
              default="default", help="Parameter preset")
@click.option("-o", "--output", help="Output YAML file (default: stdout)")
def show_config(profile, output):
    """Print or save a parameter preset as YAML."""
    import yaml

    from tirpsim.simulate.tirp.config import get_profile

    config = get_profile(profile)
    if output:
        config.to_yaml(output)
        click.echo(f"Config written to {output}")
    else:
        click.echo(yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False), nl=False)


if __name__ == "__main__":
    main()
