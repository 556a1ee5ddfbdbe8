"""
Core data structures.

Replicons and cells are immutable inputs; fragments are index ranges into a
replicon sequence and only become strings when a read is cut from them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class RepliconDataError(ValueError):
    """A replicon that cannot be simulated under the current configuration."""


class RepliconKind(Enum):
    """Replicon classification"""
    CHROMOSOME = "Chromosome"
    PLASMID = "Plasmid"

    @classmethod
    def parse(cls, value: str) -> 'RepliconKind':
        """Case-insensitive lookup by value ("chromosome", "Plasmid", ...)."""
        for kind in cls:
            if kind.value.lower() == str(value).strip().lower():
                return kind
        raise RepliconDataError(f"Unknown replicon kind: {value!r}")


# Characters that would split a TIRP or metadata column
FIELD_BREAKING = ("\t", "\n", "\r")


def check_field(value: str, what: str):
    """Reject text that cannot be written as a single tab-separated column."""
    if any(ch in value for ch in FIELD_BREAKING):
        raise RepliconDataError(f"{what} contains a tab or line break: {value!r}")


# =============================================================================
# Input structures
# =============================================================================

@dataclass(frozen=True)
class Replicon:
    """One circular DNA molecule of a genome."""
    name: str
    sequence: str
    kind: RepliconKind = RepliconKind.CHROMOSOME

    def __post_init__(self):
        check_field(self.name, "Replicon name")

    @property
    def length(self) -> int:
        return len(self.sequence)

    @property
    def is_chromosome(self) -> bool:
        return self.kind is RepliconKind.CHROMOSOME

    def get_circular_substr(self, offset: int, length: int) -> str:
        """Extract a substring, wrapping around the origin as often as needed."""
        L = self.length
        if L == 0:
            return ""
        offset = offset % L
        if offset + length <= L:
            return self.sequence[offset:offset + length]
        result = self.sequence[offset:]
        remaining = length - len(result)
        full_copies = remaining // L
        result += self.sequence * full_copies
        result += self.sequence[:remaining % L]
        return result


@dataclass(frozen=True)
class Genome:
    """A parsed assembly: strain label plus its replicons in file order."""
    accession: str
    strain_name: str
    replicons: Tuple[Replicon, ...] = ()

    def __post_init__(self):
        check_field(self.strain_name, "Strain name")

    @property
    def total_length(self) -> int:
        return sum(r.length for r in self.replicons)


@dataclass(frozen=True)
class Cell:
    """A simulated organism instance."""
    cell_id: int
    strain_name: str
    replicons: Tuple[Replicon, ...] = ()

    def __post_init__(self):
        check_field(self.strain_name, "Strain name")

    @property
    def label(self) -> str:
        return format_cell_id(self.cell_id)


def format_cell_id(cell_id: int) -> str:
    """cell#NNNNNN, zero-padded to six digits."""
    return f"cell#{cell_id:06d}"


# =============================================================================
# Per-fragment structures
# =============================================================================

@dataclass(frozen=True)
class Fragment:
    """
    A (start, length) range on a circular replicon.

    start is normalized modulo seq_len, so a start equal to seq_len
    refers to position 0.
    """
    start: int
    length: int
    seq_len: int

    def __post_init__(self):
        if self.seq_len <= 0:
            raise RepliconDataError("Fragment on an empty replicon")
        if self.start < 0:
            raise ValueError(f"Fragment start must be >= 0 (got {self.start})")
        object.__setattr__(self, "start", self.start % self.seq_len)

    @property
    def end(self) -> int:
        """Exclusive end on the unwrapped coordinate axis."""
        return self.start + self.length

    @property
    def wraps(self) -> bool:
        return self.end > self.seq_len

    def resolve(self, replicon: Replicon) -> str:
        """Materialize the fragment sequence."""
        return replicon.get_circular_substr(self.start, self.length)


@dataclass(frozen=True)
class ReadPair:
    """Forward read and reverse-complement mate from one fragment."""
    r1: str
    r2: str


@dataclass(frozen=True)
class CopyNumberRecord:
    """Copy number and read count for one (cell, replicon)."""
    replicon_name: str
    copy_number: int
    num_reads: int


@dataclass
class SimulationStats:
    """Run statistics"""
    cells: int = 0
    replicons: int = 0
    read_pairs: int = 0
    wrapped_fragments: int = 0
    zero_copy_plasmids: int = 0
    rejected_lengths: int = 0
    chromref_lines: int = 0
    reads_by_kind: dict = field(default_factory=dict)

    def merge(self, other: 'SimulationStats'):
        self.cells += other.cells
        self.replicons += other.replicons
        self.read_pairs += other.read_pairs
        self.wrapped_fragments += other.wrapped_fragments
        self.zero_copy_plasmids += other.zero_copy_plasmids
        self.rejected_lengths += other.rejected_lengths
        self.chromref_lines += other.chromref_lines
        for kind, count in other.reads_by_kind.items():
            self.reads_by_kind[kind] = self.reads_by_kind.get(kind, 0) + count

    def summary(self) -> str:
        return (
            f"Cells: {self.cells}, Replicons: {self.replicons}, "
            f"Read pairs: {self.read_pairs} "
            f"(chromosome: {self.reads_by_kind.get('Chromosome', 0)}, "
            f"plasmid: {self.reads_by_kind.get('Plasmid', 0)}), "
            f"Wrapped fragments: {self.wrapped_fragments}, "
            f"Zero-copy plasmids: {self.zero_copy_plasmids}, "
            f"Rejected length draws: {self.rejected_lengths}"
        )
