"""
Configuration for the TIRP read simulator.

Parameter groups:
A. Fragmentation: min_len, max_len, mean, std, max_retries, start_inclusive
B. Copy number: plasmid_poisson_mean
C. Depth: fragments_per_bp
D. Reads: read_len, phred_fill_char
E. Output: cells_per_genome, emit_chromref, compress
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
import json
import math

import yaml


class ConfigurationError(ValueError):
    """Run configuration that cannot produce valid output."""


# Acceptance probabilities below this make the length sampler spin
MIN_ACCEPTANCE_PROBABILITY = 1e-3


@dataclass
class FragmentParams:
    """A. Fragment length and position sampling"""
    min_len: int = 250                 # exclusive lower bound
    max_len: int = 550                 # exclusive upper bound
    mean: float = 400.0                # Normal mean (typical Illumina insert)
    std: float = 50.0                  # Normal standard deviation
    max_retries: int = 10000           # rejection budget per fragment
    start_inclusive: bool = False      # sample start from [0, seq_len] instead of [0, seq_len)


@dataclass
class CopyNumberParams:
    """B. Per-replicon copy number"""
    plasmid_poisson_mean: float = 2.0  # chromosomes are always single-copy


@dataclass
class DepthParams:
    """C. Sequencing depth"""
    fragments_per_bp: float = 0.01     # ~1 fragment per 100 bp per copy


@dataclass
class ReadParams:
    """D. Read encoding"""
    read_len: int = 150
    phred_fill_char: str = "F"


@dataclass
class OutputParams:
    """E. Cell layout and output options"""
    cells_per_genome: int = 1
    emit_chromref: bool = False
    compress: bool = False


_NUMBER = (int, float)

# (section, field, accepted types)
_FIELD_TYPES = [
    ("fragment", "min_len", int),
    ("fragment", "max_len", int),
    ("fragment", "mean", _NUMBER),
    ("fragment", "std", _NUMBER),
    ("fragment", "max_retries", int),
    ("fragment", "start_inclusive", bool),
    ("copy_number", "plasmid_poisson_mean", _NUMBER),
    ("depth", "fragments_per_bp", _NUMBER),
    ("reads", "read_len", int),
    ("reads", "phred_fill_char", str),
    ("output", "cells_per_genome", int),
    ("output", "emit_chromref", bool),
    ("output", "compress", bool),
]


def _normal_cdf(x: float) -> float:
    return 0.5 * (1.0 + math.erf(x / math.sqrt(2.0)))


@dataclass
class SimConfig:
    """Complete simulation configuration"""

    fragment: FragmentParams = field(default_factory=FragmentParams)
    copy_number: CopyNumberParams = field(default_factory=CopyNumberParams)
    depth: DepthParams = field(default_factory=DepthParams)
    reads: ReadParams = field(default_factory=ReadParams)
    output: OutputParams = field(default_factory=OutputParams)

    seed: Optional[int] = None

    # =========================================================================
    # Flattened accessors
    # =========================================================================

    @property
    def min_len(self) -> int:
        return self.fragment.min_len

    @property
    def max_len(self) -> int:
        return self.fragment.max_len

    @property
    def read_len(self) -> int:
        return self.reads.read_len

    @property
    def fragments_per_bp(self) -> float:
        return self.depth.fragments_per_bp

    @property
    def plasmid_poisson_mean(self) -> float:
        return self.copy_number.plasmid_poisson_mean

    @property
    def phred_string(self) -> str:
        """Constant quality string, one fill character per read base."""
        return self.reads.phred_fill_char * self.reads.read_len

    def length_acceptance_probability(self) -> float:
        """
        Probability that one Normal draw survives the length filter.

        A floored draw is accepted when min_len + 1 <= x < max_len.
        """
        frag = self.fragment
        if frag.std <= 0:
            accepted = frag.min_len < math.floor(frag.mean) < frag.max_len
            return 1.0 if accepted else 0.0
        upper = _normal_cdf((frag.max_len - frag.mean) / frag.std)
        lower = _normal_cdf((frag.min_len + 1 - frag.mean) / frag.std)
        return max(0.0, upper - lower)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict:
        return {
            "fragment": {
                "min_len": self.fragment.min_len,
                "max_len": self.fragment.max_len,
                "mean": self.fragment.mean,
                "std": self.fragment.std,
                "max_retries": self.fragment.max_retries,
                "start_inclusive": self.fragment.start_inclusive,
            },
            "copy_number": {
                "plasmid_poisson_mean": self.copy_number.plasmid_poisson_mean,
            },
            "depth": {
                "fragments_per_bp": self.depth.fragments_per_bp,
            },
            "reads": {
                "read_len": self.reads.read_len,
                "phred_fill_char": self.reads.phred_fill_char,
            },
            "output": {
                "cells_per_genome": self.output.cells_per_genome,
                "emit_chromref": self.output.emit_chromref,
                "compress": self.output.compress,
            },
            "seed": self.seed,
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'SimConfig':
        config = cls()
        if not d:
            return config
        if not isinstance(d, dict):
            raise ConfigurationError(
                f"Config must be a mapping of sections (got {type(d).__name__})"
            )

        known = {"fragment", "copy_number", "depth", "reads", "output", "seed"}
        unknown = set(d) - known
        if unknown:
            raise ConfigurationError(f"Unknown config sections: {sorted(unknown)}")

        try:
            if "fragment" in d:
                config.fragment = FragmentParams(**d["fragment"])
            if "copy_number" in d:
                config.copy_number = CopyNumberParams(**d["copy_number"])
            if "depth" in d:
                config.depth = DepthParams(**d["depth"])
            if "reads" in d:
                config.reads = ReadParams(**d["reads"])
            if "output" in d:
                config.output = OutputParams(**d["output"])
        except TypeError as e:
            raise ConfigurationError(f"Invalid config entry: {e}") from e
        if "seed" in d:
            config.seed = d["seed"]

        return config

    @classmethod
    def from_yaml(cls, path: str) -> 'SimConfig':
        with open(path, 'r') as f:
            try:
                d = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Cannot parse config file {path}: {e}") from e
        return cls.from_dict(d or {})

    def to_yaml(self, path: str):
        with open(path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_json(cls, path: str) -> 'SimConfig':
        with open(path, 'r') as f:
            try:
                d = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Cannot parse config file {path}: {e}") from e
        return cls.from_dict(d)

    def to_json(self, path: str):
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_file(cls, path: str) -> 'SimConfig':
        """Load YAML or JSON depending on the file suffix."""
        if str(path).endswith((".yaml", ".yml")):
            return cls.from_yaml(path)
        return cls.from_json(path)

    # =========================================================================
    # Validation
    # =========================================================================

    def _type_problems(self) -> List[str]:
        """Values of the wrong type; range checks below assume these pass."""
        problems = []
        for section, key, expected in _FIELD_TYPES:
            value = getattr(getattr(self, section), key)
            # bool is an int subclass but never a valid number here
            if isinstance(value, bool) and expected is not bool:
                ok = False
            else:
                ok = isinstance(value, expected)
            if not ok:
                problems.append(f"{section}.{key} has invalid value {value!r}")
        if self.seed is not None and (
            isinstance(self.seed, bool) or not isinstance(self.seed, int) or self.seed < 0
        ):
            problems.append(f"seed must be a non-negative integer (got {self.seed!r})")
        return problems

    def validate(self) -> List[str]:
        """Check the configuration, returning a list of problems."""
        problems = self._type_problems()
        if problems:
            return problems
        frag = self.fragment

        if self.reads.read_len <= 0:
            problems.append(f"read_len must be > 0 (got {self.reads.read_len})")
        if frag.min_len < self.reads.read_len:
            problems.append(
                f"min_len ({frag.min_len}) must be >= read_len ({self.reads.read_len})"
            )
        if frag.max_len - frag.min_len < 2:
            problems.append(
                f"no integer length lies strictly between min_len ({frag.min_len}) "
                f"and max_len ({frag.max_len})"
            )
        if frag.std < 0:
            problems.append(f"fragment std must be >= 0 (got {frag.std})")
        if frag.max_retries <= 0:
            problems.append(f"max_retries must be > 0 (got {frag.max_retries})")
        if not problems:
            p_accept = self.length_acceptance_probability()
            if p_accept < MIN_ACCEPTANCE_PROBABILITY:
                problems.append(
                    f"fragment length bounds ({frag.min_len}, {frag.max_len}) accept "
                    f"only {p_accept:.2e} of Normal({frag.mean}, {frag.std}) draws"
                )

        if self.copy_number.plasmid_poisson_mean < 0:
            problems.append(
                f"plasmid_poisson_mean must be >= 0 "
                f"(got {self.copy_number.plasmid_poisson_mean})"
            )
        if self.depth.fragments_per_bp < 0:
            problems.append(
                f"fragments_per_bp must be >= 0 (got {self.depth.fragments_per_bp})"
            )
        if len(self.reads.phred_fill_char) != 1:
            problems.append(
                f"phred_fill_char must be a single character "
                f"(got {self.reads.phred_fill_char!r})"
            )
        if self.output.cells_per_genome < 1:
            problems.append(
                f"cells_per_genome must be >= 1 (got {self.output.cells_per_genome})"
            )

        return problems

    def check(self):
        """Raise ConfigurationError listing every problem found by validate()."""
        problems = self.validate()
        if problems:
            raise ConfigurationError("Invalid configuration: " + "; ".join(problems))


# =============================================================================
# Presets
# =============================================================================

def get_default_config() -> SimConfig:
    """Default run profile (low-copy plasmids)."""
    return SimConfig()


def get_high_copy_config() -> SimConfig:
    """High-copy plasmid profile."""
    config = SimConfig()
    config.copy_number.plasmid_poisson_mean = 13.0
    return config


PROFILES: Dict[str, Callable[[], SimConfig]] = {
    "default": get_default_config,
    "high_copy": get_high_copy_config,
}


def get_profile(name: str) -> SimConfig:
    if name not in PROFILES:
        raise ConfigurationError(
            f"Unknown profile: {name}. Available profiles: {list(PROFILES)}"
        )
    return PROFILES[name]()
