"""
Circular fragmentation sampler.

- start uniform on [0, seq_len) (or [0, seq_len] in compatibility mode)
- length ~ floor(Normal(mean, std)), rejected until min_len < length < max_len
- fragments past the origin wrap around the circle
"""

import math
from typing import Iterator, Optional

import numpy as np

from .config import SimConfig
from .models import Fragment, Replicon


class FragmentSamplingError(RuntimeError):
    """The length sampler exhausted its retry budget."""


class FragmentSampler:
    """Fragment position/length sampler"""

    def __init__(
        self,
        config: SimConfig,
        rng: Optional[np.random.Generator] = None
    ):
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng()
        self.rejected = 0

    def sample_start(self, seq_len: int) -> int:
        high = seq_len + 1 if self.config.fragment.start_inclusive else seq_len
        return int(self.rng.integers(0, high))

    def sample_length(self) -> int:
        """
        Rejection-sample a fragment length.

        Raises:
            FragmentSamplingError: If no draw lands strictly inside the
                bounds within max_retries attempts
        """
        frag = self.config.fragment
        for _ in range(frag.max_retries):
            length = math.floor(self.rng.normal(frag.mean, frag.std))
            if frag.min_len < length < frag.max_len:
                return int(length)
            self.rejected += 1
        raise FragmentSamplingError(
            f"No fragment length in ({frag.min_len}, {frag.max_len}) after "
            f"{frag.max_retries} draws from Normal({frag.mean}, {frag.std})"
        )

    def sample_fragment(self, seq_len: int) -> Fragment:
        """Sample one fragment on a circular sequence of length seq_len."""
        start = self.sample_start(seq_len)
        length = self.sample_length()
        return Fragment(start=start, length=length, seq_len=seq_len)

    def sample_resolved(self, replicon: Replicon):
        """
        Sample a fragment and materialize its sequence.

        Returns:
            (start, length, fragment sequence)
        """
        fragment = self.sample_fragment(replicon.length)
        return fragment.start, fragment.length, fragment.resolve(replicon)

    def iter_fragments(self, seq_len: int, count: int) -> Iterator[Fragment]:
        """Yield count independent fragments."""
        for _ in range(count):
            yield self.sample_fragment(seq_len)
