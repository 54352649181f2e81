"""
RandomSource: the single seeded stream of randomness used for weight
initialisation, window reduction and negative sampling.
"""

from typing import Optional, Tuple

import numpy as np


class RandomSource:
    """
    Thin wrapper around ``numpy.random.Generator``.

    Every random decision in a session is drawn from one instance, so two
    sessions built with the same seed, corpus and config evolve identically.
    """

    def __init__(self, seed: Optional[int] = 1) -> None:
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def uniform(self) -> float:
        """A float in [0, 1)."""
        return float(self._rng.random())

    def small_weight(self, hidden_size: int) -> float:
        """One initial weight, uniform in [-0.5/hidden_size, 0.5/hidden_size)."""
        return (self.uniform() - 0.5) / hidden_size

    def small_weights(self, shape: Tuple[int, ...], hidden_size: int) -> np.ndarray:
        """Vectorised small_weight over an array of *shape*."""
        return (self._rng.random(shape) - 0.5) / hidden_size

    def __repr__(self) -> str:  # pragma: no cover
        return f"RandomSource(seed={self.seed})"
