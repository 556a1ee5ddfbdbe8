"""
Per-replicon copy-number model.

Chromosomes are single-copy; plasmid copy numbers are Poisson draws. The
number of fragments to generate scales with both replicon length and copy
number:

    num_reads = copy_number * floor(fragments_per_bp * seq_len)
"""

import logging
import math
from typing import Optional

import numpy as np

from .config import SimConfig
from .models import Replicon, RepliconKind, CopyNumberRecord

logger = logging.getLogger(__name__)


def reads_per_copy(seq_len: int, fragments_per_bp: float) -> int:
    """Fragments contributed by one copy of a replicon."""
    return int(math.floor(fragments_per_bp * seq_len))


def compute_num_reads(copy_number: int, seq_len: int, fragments_per_bp: float) -> int:
    return copy_number * reads_per_copy(seq_len, fragments_per_bp)


class CopyNumberModel:
    """Copy number and read count per replicon"""

    def __init__(
        self,
        config: SimConfig,
        rng: Optional[np.random.Generator] = None
    ):
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng()

    def copy_number(self, kind: RepliconKind, poisson_mean: Optional[float] = None) -> int:
        """
        Sample a copy number.

        Args:
            kind: Replicon classification
            poisson_mean: Plasmid Poisson mean; defaults to the configured value

        Returns:
            1 for chromosomes, a Poisson draw (possibly 0) for plasmids
        """
        if kind is RepliconKind.CHROMOSOME:
            return 1
        if kind is RepliconKind.PLASMID:
            lam = self.config.plasmid_poisson_mean if poisson_mean is None else poisson_mean
            return int(self.rng.poisson(lam))
        raise ValueError(f"Unsupported replicon kind: {kind!r}")

    def record_for(self, replicon: Replicon) -> CopyNumberRecord:
        """Draw the copy number for a replicon and derive its read count."""
        cn = self.copy_number(replicon.kind)
        num_reads = compute_num_reads(cn, replicon.length, self.config.fragments_per_bp)
        if cn == 0:
            logger.debug(f"Plasmid {replicon.name} drew copy number 0; no reads")
        return CopyNumberRecord(
            replicon_name=replicon.name,
            copy_number=cn,
            num_reads=num_reads,
        )
