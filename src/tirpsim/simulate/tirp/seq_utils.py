"""
Sequence helpers
"""

from typing import Dict

VALID_BASES = set('ACGTN')

# Only the four unambiguous bases have partners; everything else becomes N
COMPLEMENT: Dict[str, str] = {'A': 'T', 'T': 'A', 'G': 'C', 'C': 'G'}


def reverse_complement(seq: str) -> str:
    """Reverse complement, mapping any non-ACGT symbol to N."""
    return "".join(COMPLEMENT.get(base, 'N') for base in reversed(seq))


def clean_sequence(seq: str) -> str:
    """Upper-case and replace anything outside ACGTN with N."""
    seq = seq.upper()
    if set(seq) <= VALID_BASES:
        return seq
    return ''.join(c if c in VALID_BASES else 'N' for c in seq)


def gc_content(seq: str) -> float:
    if len(seq) == 0:
        return 0.0
    gc = sum(1 for b in seq.upper() if b in 'GC')
    return gc / len(seq)
