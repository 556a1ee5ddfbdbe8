"""
Replicon source: genome assemblies -> cells.

- FASTA reading (.fna/.fa/.fasta, optionally gzip)
- NCBI Datasets reports: sequence_report.jsonl (replicon classification) and
  assembly_data_report.jsonl (strain identity)
- cell construction with explicit, sequential cell ids

Expected NCBI Datasets layout:

    ncbi_dataset/data/assembly_data_report.jsonl
    ncbi_dataset/data/GCF_000005845.2/GCF_000005845.2_ASM584v2_genomic.fna
    ncbi_dataset/data/GCF_000005845.2/sequence_report.jsonl

Plain FASTA files without reports are accepted; replicons are then
classified from their header text.
"""

import gzip
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from .models import Cell, Genome, Replicon, RepliconDataError, RepliconKind
from .seq_utils import VALID_BASES, clean_sequence, gc_content

logger = logging.getLogger(__name__)

FASTA_SUFFIXES = (".fna", ".fa", ".fasta", ".fas")
SEQUENCE_REPORT = "sequence_report.jsonl"
ASSEMBLY_REPORT = "assembly_data_report.jsonl"

# Companion files NCBI Datasets places next to the genomic FASTA
NON_GENOMIC_FASTA = ("cds_from_genomic", "rna.", "protein.", "gene.")

_ASSEMBLY_ACCESSION = re.compile(r"GC[AF]_\d+\.\d+")

# Single-copy organelle genomes, simulated like chromosomes
ORGANELLE_LOCATIONS = ("mitochondrion", "chloroplast", "plastid", "apicoplast", "kinetoplast")


@dataclass(frozen=True)
class FastaRecord:
    name: str
    description: str
    sequence: str


def _open_text(path: Path):
    if path.suffix == '.gz':
        return gzip.open(path, 'rt')
    return open(path, 'r')


def is_fasta_path(path: Union[str, Path]) -> bool:
    name = Path(path).name.lower()
    if name.endswith('.gz'):
        name = name[:-3]
    return name.endswith(FASTA_SUFFIXES)


def parse_fasta(path: Union[str, Path]) -> List[FastaRecord]:
    """
    Parse a FASTA file in file order.

    Args:
        path: FASTA path (plain or .gz)

    Returns:
        FastaRecord list; name is the first whitespace-delimited header token
    """
    path = Path(path)
    records = []
    current_name = None
    current_desc = ""
    current_seq: List[str] = []

    def _flush():
        seq = "".join(current_seq)
        if not seq:
            logger.warning(f"Skipping empty sequence: {current_name}")
            return
        cleaned = clean_sequence(seq)
        if cleaned != seq.upper():
            invalid = set(seq.upper()) - VALID_BASES
            logger.warning(
                f"Sequence '{current_name}' contains non-standard bases: {invalid}. "
                f"These will be converted to 'N'."
            )
        records.append(FastaRecord(current_name, current_desc, cleaned))

    with _open_text(path) as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if line.startswith('>'):
                if current_name is not None:
                    _flush()
                header = line[1:].strip()
                parts = header.split(None, 1)
                if not parts:
                    raise RepliconDataError(f"Empty FASTA header in {path}")
                current_name = parts[0]
                current_desc = parts[1] if len(parts) > 1 else ""
                current_seq = []
            else:
                if current_name is None:
                    raise RepliconDataError(f"Sequence data before first header in {path}")
                current_seq.append(line)

    if current_name is not None:
        _flush()

    if not records:
        logger.warning(f"No valid sequences found in {path}")

    return records


# =============================================================================
# NCBI Datasets reports
# =============================================================================

def load_sequence_report(path: Union[str, Path]) -> Dict[str, RepliconKind]:
    """
    Map replicon accessions to their classification.

    Both GenBank and RefSeq accessions of a row point to the same kind.
    Rows without assignedMoleculeLocationType (unplaced scaffolds) are
    left out so callers fall back to the header. Organelle genomes count
    as chromosomes; any other unrecognized location type raises
    RepliconDataError.
    """
    df = pd.read_json(path, lines=True)
    if df.empty or "assignedMoleculeLocationType" not in df.columns:
        return {}

    kinds: Dict[str, RepliconKind] = {}
    for _, row in df.iterrows():
        location = row.get("assignedMoleculeLocationType")
        if not isinstance(location, str):
            continue
        if location.strip().lower() in ORGANELLE_LOCATIONS:
            kind = RepliconKind.CHROMOSOME
        else:
            kind = RepliconKind.parse(location)
        for col in ("genbankAccession", "refseqAccession"):
            acc = row.get(col)
            if isinstance(acc, str) and acc:
                kinds[acc] = kind
    return kinds


def load_assembly_report(path: Union[str, Path]) -> Dict[str, str]:
    """Map assembly accessions to strain names."""
    with open(path, 'r') as f:
        rows = [json.loads(line) for line in f if line.strip()]
    if not rows:
        return {}
    df = pd.json_normalize(rows)
    if "accession" not in df.columns:
        return {}

    strains: Dict[str, str] = {}
    for _, row in df.iterrows():
        strain = None
        organism = row.get("organism.organismName")
        infra = row.get("organism.infraspecificNames.strain")
        has_organism = isinstance(organism, str) and bool(organism)
        if isinstance(infra, str) and infra:
            if not has_organism:
                strain = infra
            elif infra in organism:
                strain = organism
            else:
                strain = f"{organism} {infra}"
        elif has_organism:
            strain = organism
        if strain:
            label = " ".join(strain.split())
            if label != strain:
                logger.warning(f"Normalized whitespace in strain name {strain!r} -> {label!r}")
            strains[row["accession"]] = label
    return strains


def classify_from_header(description: str) -> RepliconKind:
    """Fallback classification from FASTA header text."""
    if "plasmid" in description.lower():
        return RepliconKind.PLASMID
    return RepliconKind.CHROMOSOME


def assembly_accession_for(fasta_path: Path) -> str:
    """GCF_/GCA_ accession from the file or directory name, else the file stem."""
    for candidate in (fasta_path.parent.name, fasta_path.name):
        match = _ASSEMBLY_ACCESSION.search(candidate)
        if match:
            return match.group(0)
    name = fasta_path.name
    if name.endswith('.gz'):
        name = name[:-3]
    return Path(name).stem


def _find_upwards(start: Path, filename: str, max_levels: int = 3) -> Optional[Path]:
    directory = start
    for _ in range(max_levels):
        candidate = directory / filename
        if candidate.is_file():
            return candidate
        if directory.parent == directory:
            break
        directory = directory.parent
    return None


# =============================================================================
# Genomes and cells
# =============================================================================

def load_genome(
    fasta_path: Union[str, Path],
    kinds: Optional[Dict[str, RepliconKind]] = None,
    strains: Optional[Dict[str, str]] = None
) -> Genome:
    """
    Build a Genome from one assembly FASTA.

    Reports next to the FASTA (sequence_report.jsonl in the same directory,
    assembly_data_report.jsonl up to two levels above) are picked up
    automatically unless kinds/strains are passed in.
    """
    fasta_path = Path(fasta_path)
    accession = assembly_accession_for(fasta_path)

    if kinds is None:
        report = fasta_path.parent / SEQUENCE_REPORT
        kinds = load_sequence_report(report) if report.is_file() else {}
    if strains is None:
        report = _find_upwards(fasta_path.parent, ASSEMBLY_REPORT)
        strains = load_assembly_report(report) if report is not None else {}

    strain_name = strains.get(accession, accession)

    replicons = []
    for record in parse_fasta(fasta_path):
        kind = kinds.get(record.name)
        if kind is None:
            kind = classify_from_header(record.description)
            if kinds:
                logger.warning(
                    f"{record.name} not in sequence report; classified as {kind.value} "
                    f"from header"
                )
        replicons.append(Replicon(name=record.name, sequence=record.sequence, kind=kind))

    if not replicons:
        raise RepliconDataError(f"No replicons found in {fasta_path}")

    return Genome(accession=accession, strain_name=strain_name, replicons=tuple(replicons))


def discover_genomes(path: Union[str, Path]) -> List[Path]:
    """
    Locate assembly FASTA files.

    Args:
        path: A FASTA file, or a directory searched recursively

    Returns:
        Sorted list of FASTA paths, one per genome
    """
    path = Path(path)
    if path.is_file():
        return [path]
    found = sorted(
        p for p in path.rglob("*")
        if p.is_file() and is_fasta_path(p)
        and not p.name.startswith(NON_GENOMIC_FASTA)
    )
    if not found:
        raise FileNotFoundError(f"No FASTA files found under {path}")
    return found


def load_genomes(path: Union[str, Path]) -> List[Genome]:
    genomes = [load_genome(p) for p in discover_genomes(path)]
    for genome in genomes:
        logger.info(summarize_genome(genome))
    return genomes


def build_cells(
    genomes: Iterable[Genome],
    cells_per_genome: int = 1,
    first_cell_id: int = 1
) -> List[Cell]:
    """
    Create cells with sequential ids.

    Genome order is preserved and repeats of one genome are adjacent:
    with two genomes A, B and cells_per_genome=2 the ids are
    A->1, A->2, B->3, B->4.
    """
    if cells_per_genome < 1:
        raise ValueError(f"cells_per_genome must be >= 1 (got {cells_per_genome})")
    cells = []
    next_id = first_cell_id
    for genome in genomes:
        for _ in range(cells_per_genome):
            cells.append(Cell(
                cell_id=next_id,
                strain_name=genome.strain_name,
                replicons=genome.replicons,
            ))
            next_id += 1
    return cells


def summarize_genome(genome: Genome) -> str:
    n_plasmids = sum(1 for r in genome.replicons if not r.is_chromosome)
    total = genome.total_length
    gc = sum(gc_content(r.sequence) * r.length for r in genome.replicons) / total if total else 0.0
    return (
        f"{genome.accession} ({genome.strain_name}): "
        f"{len(genome.replicons)} replicons ({n_plasmids} plasmids), "
        f"{genome.total_length} bp, GC {gc:.1%}"
    )
