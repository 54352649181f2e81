"""
Vocabulary: sentence splitting, word counting, rare-word filtering,
frequency ranking and the cumulative table for negative sampling.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

# Sentinel occupying index 0.  A literal NUL token in the corpus is dropped
# like any pruned word so it cannot collide with the sentinel.
NULL_WORD = "\0"

# Smoothed unigram exponent and the integer domain of the cumulative table.
POWER = 0.75
CUM_TABLE_DOMAIN = 2147483647  # 2^31 - 1


@dataclass
class VocabItem:
    index: int
    count: int = 0


class Vocabulary:
    """
    Frequency-ranked vocabulary with the sentinel word at index 0.

    Attributes
    ----------
    items : dict
        word -> VocabItem, including the sentinel.
    index2word : list
        index -> word; ``index2word[0] == NULL_WORD``.
    counts : np.ndarray
        Per-index counts (int64), the sentinel has count 1.
    cum_table : np.ndarray
        Non-decreasing int64 array of length ``size`` ending at
        CUM_TABLE_DOMAIN.
    corpus_size : int
        Sum of the counts of the real (non-sentinel) words.
    """

    def __init__(self, items: Dict[str, VocabItem], index2word: List[str]) -> None:
        self.items = items
        self.index2word = index2word
        self.counts = np.array(
            [items[w].count for w in index2word], dtype=np.int64
        )
        self.corpus_size = int(self.counts[1:].sum())
        self.cum_table = build_cum_table(self.counts)

    @property
    def size(self) -> int:
        return len(self.index2word)

    def __len__(self) -> int:
        return len(self.index2word)

    def __contains__(self, word: str) -> bool:
        return word in self.items

    def index(self, word: str) -> int:
        """Index of *word*; raises KeyError for words outside the vocabulary."""
        if word not in self.items:
            raise KeyError(f"'{word}' is not in the vocabulary.")
        return self.items[word].index

    def encode(self, tokens: Sequence[str]) -> List[int]:
        """
        Convert tokens to indices, silently dropping any token that was
        filtered out of the vocabulary (the sentinel included).
        """
        items = self.items
        return [items[t].index for t in tokens if t in items and t != NULL_WORD]

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"Vocabulary(size={self.size}, "
            f"corpus_size={self.corpus_size})"
        )


def split_sentences(corpus: str) -> List[List[str]]:
    """
    One sentence per line, whitespace-separated tokens.  Empty lines are
    kept as empty sentences so the sentence count matches the line count.
    """
    return [line.split() for line in corpus.split("\n")]


def build_vocabulary(sentences: Sequence[Sequence[str]], min_count: int = 2) -> Vocabulary:
    """
    Count word frequencies, discard rare words (count < min_count), sort
    the survivors by descending count and put the sentinel in front.

    Ties keep first-occurrence order, so the result is deterministic for a
    given corpus.
    """
    counts: Counter = Counter()
    for sentence in sentences:
        counts.update(sentence)

    counts.pop(NULL_WORD, None)

    # Filter rare words
    filtered = [(w, c) for w, c in counts.items() if c >= min_count]

    # Stable sort keeps first-seen order among equal counts
    filtered.sort(key=lambda x: -x[1])

    index2word = [NULL_WORD] + [w for w, _ in filtered]
    items = {NULL_WORD: VocabItem(0, 1)}
    for idx, (word, cnt) in enumerate(filtered, start=1):
        items[word] = VocabItem(idx, cnt)
    return Vocabulary(items, index2word)


def build_cum_table(counts: np.ndarray, power: float = POWER,
                    domain: int = CUM_TABLE_DOMAIN) -> np.ndarray:
    """
    Cumulative distribution of ``count ** power`` over all indices (the
    sentinel included), scaled to the integer range [0, domain].

    Rounding happens after accumulation, so the last entry is exactly
    *domain* up to floating-point error in the running sum; it is pinned
    to *domain* explicitly.
    """
    smoothed = np.power(np.asarray(counts, dtype=np.float64), power)
    total = smoothed.sum()
    if total <= 0:
        return np.zeros(len(smoothed), dtype=np.int64)
    cumulative = np.cumsum(smoothed / total)
    table = np.floor(cumulative * domain + 0.5).astype(np.int64)
    table[-1] = domain
    # Rounding error must never make the table decrease.
    return np.maximum.accumulate(table)
