"""
Paired-end read encoder.

R1 is the first read_len bases of a fragment as-is; R2 is the last read_len
bases, reverse complemented. Reads are cut straight from the replicon
sequence, so the full fragment is only built for callers that ask for it.
"""

from typing import Optional

from .config import SimConfig
from .models import Fragment, ReadPair, Replicon
from .seq_utils import reverse_complement


class ReadEncoder:
    """Fragment -> (R1, R2)"""

    def __init__(self, config: Optional[SimConfig] = None, read_len: Optional[int] = None):
        if read_len is None:
            read_len = (config or SimConfig()).read_len
        self.read_len = read_len

    def _check_length(self, length: int):
        if length < self.read_len:
            raise ValueError(
                f"Fragment of {length} bp is shorter than read length {self.read_len}"
            )

    def encode(self, replicon: Replicon, fragment: Fragment) -> ReadPair:
        """Encode a fragment given as an index range on a replicon."""
        self._check_length(fragment.length)
        r1 = replicon.get_circular_substr(fragment.start, self.read_len)
        tail = replicon.get_circular_substr(
            fragment.start + fragment.length - self.read_len, self.read_len
        )
        return ReadPair(r1=r1, r2=reverse_complement(tail))

    def encode_fragment(self, fragment_seq: str) -> ReadPair:
        """Encode an already materialized fragment sequence."""
        self._check_length(len(fragment_seq))
        r1 = fragment_seq[:self.read_len]
        r2 = reverse_complement(fragment_seq[len(fragment_seq) - self.read_len:])
        return ReadPair(r1=r1, r2=r2)
