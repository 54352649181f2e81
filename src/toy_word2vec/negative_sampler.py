"""
NegativeSampler: draws negative word indices from the smoothed unigram
distribution by inverse-CDF lookup on the vocabulary's cumulative table.
"""

import math

import numpy as np

from .random_source import RandomSource
from .vocabulary import CUM_TABLE_DOMAIN


class NegativeSampler:
    """
    Samples word index i with probability proportional to count(i) ** 0.75.

    The sentinel at index 0 is never returned: a lookup that lands on it
    is replaced by a uniform draw over [1, vocab_size - 1].

    Parameters
    ----------
    cum_table : np.ndarray
        Cumulative table built by ``vocabulary.build_cum_table``.
    rng : RandomSource
        Shared random stream.
    """

    def __init__(self, cum_table: np.ndarray, rng: RandomSource) -> None:
        if len(cum_table) < 2:
            raise ValueError("Negative sampling needs at least one real word.")
        self._table = np.asarray(cum_table, dtype=np.int64)
        self.vocab_size = len(self._table)
        self.rng = rng

    def sample(self) -> int:
        """Draw one index in [1, vocab_size - 1]."""
        target = int(
            self._table.searchsorted(self.rng.uniform() * CUM_TABLE_DOMAIN, side="left")
        )
        if target == 0:
            target = (
                math.floor(self.rng.uniform() * CUM_TABLE_DOMAIN)
                % (self.vocab_size - 1)
                + 1
            )
        return target

    def sample_many(self, count: int) -> np.ndarray:
        """Draw *count* indices (convenience for inspection and tests)."""
        return np.array([self.sample() for _ in range(count)], dtype=np.int64)

    def __repr__(self) -> str:  # pragma: no cover
        return f"NegativeSampler(vocab_size={self.vocab_size})"
