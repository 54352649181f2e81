"""
EmbeddingStore: the two parameter matrices of the model.
"""

import math

import numpy as np

from .random_source import RandomSource


class EmbeddingStore:
    """
    Two embedding matrices are maintained:

    * syn0  (vocab_size, hidden_size) - input vectors, "the" word vectors
    * syn1  (vocab_size, hidden_size) - output vectors, used only when
      scoring negative-sampling candidates

    Rows returned by vector_in / vector_out are views, so updates made
    through them land in the matrices.
    """

    def __init__(self, syn0: np.ndarray, syn1: np.ndarray) -> None:
        if syn0.shape != syn1.shape:
            raise ValueError(
                f"syn0 {syn0.shape} and syn1 {syn1.shape} must have the same shape."
            )
        self.syn0 = syn0
        self.syn1 = syn1

    @classmethod
    def initialize(cls, vocab_size: int, hidden_size: int,
                   rng: RandomSource) -> "EmbeddingStore":
        """Both matrices uniform in [-0.5/hidden_size, 0.5/hidden_size)."""
        shape = (vocab_size, hidden_size)
        syn0 = rng.small_weights(shape, hidden_size)
        syn1 = rng.small_weights(shape, hidden_size)
        return cls(syn0, syn1)

    @property
    def vocab_size(self) -> int:
        return self.syn0.shape[0]

    @property
    def hidden_size(self) -> int:
        return self.syn0.shape[1]

    def _check(self, index: int) -> int:
        if not 0 <= index < self.syn0.shape[0]:
            raise IndexError(
                f"Word index {index} out of range for vocabulary of size "
                f"{self.syn0.shape[0]}."
            )
        return index

    def vector_in(self, index: int) -> np.ndarray:
        return self.syn0[self._check(index)]

    def vector_out(self, index: int) -> np.ndarray:
        return self.syn1[self._check(index)]

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"EmbeddingStore(vocab_size={self.vocab_size}, "
            f"hidden_size={self.hidden_size})"
        )


def sigmoid(x: float) -> float:
    """
    Logistic function with numerical stability.

    Uses the identity:
        sigma(x) = 1 / (1 + exp(-x))        for x >= 0
        sigma(x) = exp(x) / (1 + exp(x))    for x <  0

    so ``math.exp`` never overflows.
    """
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)
