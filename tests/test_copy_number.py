"""Tests for the copy-number / read-count model."""

import math

import numpy as np
import pytest

from tirpsim.simulate.tirp.config import SimConfig
from tirpsim.simulate.tirp.copy_number import (
    CopyNumberModel,
    compute_num_reads,
    reads_per_copy,
)
from tirpsim.simulate.tirp.models import Replicon, RepliconKind


def _replicon(length: int, kind: RepliconKind, name: str = "rep") -> Replicon:
    return Replicon(name=name, sequence=("ACGT" * (length // 4 + 1))[:length], kind=kind)


class TestCopyNumber:
    """Chromosomes are single-copy, plasmids Poisson."""

    @pytest.mark.parametrize("lam", [0.0, 2.0, 13.0, 100.0])
    def test_chromosome_always_single_copy(self, lam):
        model = CopyNumberModel(SimConfig(), np.random.default_rng(42))
        draws = {model.copy_number(RepliconKind.CHROMOSOME, lam) for _ in range(200)}
        assert draws == {1}

    @pytest.mark.parametrize("lam,tol", [(2.0, 0.1), (13.0, 0.25)])
    def test_plasmid_mean_converges(self, lam, tol):
        model = CopyNumberModel(SimConfig(), np.random.default_rng(123))
        draws = np.array([model.copy_number(RepliconKind.PLASMID, lam) for _ in range(20000)])

        assert abs(draws.mean() - lam) < tol
        assert abs(draws.var() - lam) < lam * 0.1
        assert (draws >= 0).all()

    def test_plasmid_uses_configured_mean(self):
        config = SimConfig()
        config.copy_number.plasmid_poisson_mean = 13.0
        model = CopyNumberModel(config, np.random.default_rng(9))
        draws = [model.copy_number(RepliconKind.PLASMID) for _ in range(5000)]
        assert abs(np.mean(draws) - 13.0) < 0.3

    def test_zero_copy_plasmid(self):
        config = SimConfig()
        config.copy_number.plasmid_poisson_mean = 0.0
        model = CopyNumberModel(config, np.random.default_rng(0))

        record = model.record_for(_replicon(5000, RepliconKind.PLASMID, "pZero"))

        assert record.copy_number == 0
        assert record.num_reads == 0
        assert record.replicon_name == "pZero"


class TestReadCount:
    """num_reads = copy_number * floor(fragments_per_bp * seq_len)."""

    def test_reads_per_copy(self):
        assert reads_per_copy(1000, 0.01) == 10
        assert reads_per_copy(1099, 0.01) == 10
        assert reads_per_copy(99, 0.01) == 0

    def test_scales_with_copy_number(self):
        assert compute_num_reads(1, 1000, 0.01) == 10
        assert compute_num_reads(3, 1050, 0.01) == 30
        assert compute_num_reads(0, 1050, 0.01) == 0

    def test_record_matches_formula(self):
        config = SimConfig()
        config.copy_number.plasmid_poisson_mean = 5.0
        model = CopyNumberModel(config, np.random.default_rng(77))
        plasmid = _replicon(4321, RepliconKind.PLASMID)

        for _ in range(100):
            record = model.record_for(plasmid)
            expected = record.copy_number * math.floor(config.fragments_per_bp * 4321)
            assert record.num_reads == expected

    def test_chromosome_record(self):
        model = CopyNumberModel(SimConfig(), np.random.default_rng(1))
        record = model.record_for(_replicon(1000, RepliconKind.CHROMOSOME, "chr"))
        assert record.copy_number == 1
        assert record.num_reads == 10
