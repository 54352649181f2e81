"""
Trainer: online skip-gram / CBOW training with negative sampling, one
sentence at a time, in bursts that stop at breakpoints.
"""

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Container, List, Optional, Sequence

import numpy as np

from .config import Word2vecConfig
from .embeddings import EmbeddingStore, sigmoid
from .errors import InvalidStateError
from .negative_sampler import NegativeSampler
from .random_source import RandomSource
from .vocabulary import Vocabulary


class TrainerPhase(Enum):
    UNINITIALIZED = "UNINITIALIZED"
    READY = "READY"
    TRAINING = "TRAINING"
    PAUSED = "PAUSED"


class BreakReason(Enum):
    TIME = "time"
    INSTANCES = "iterations"
    WATCHED_INSTANCES = "watched"


@dataclass
class TrainingCursor:
    """
    Position of the training run.

    ``instances`` counts every in-vocabulary token trained so far and
    never resets; ``sentences`` wraps to 0 at the end of the corpus,
    incrementing ``epochs``.
    """

    instances: int = 0
    sentences: int = 0
    epochs: int = 0
    learning_rate: float = 0.0
    watched_instances: int = 0


@dataclass
class Breakpoint:
    """
    Stop conditions of a burst; a value of None / -1 disables a condition.

    deadline is in the units of the trainer's clock (``time.monotonic``).
    """

    deadline: Optional[float] = None
    instances: int = -1
    watched_instances: int = -1

    @property
    def is_open_ended(self) -> bool:
        return self.deadline is None and self.instances <= 0 and self.watched_instances <= 0

    def reached(self, cursor: TrainingCursor, now: float) -> Optional[BreakReason]:
        if self.deadline is not None and now >= self.deadline:
            return BreakReason.TIME
        if self.instances > 0 and cursor.instances >= self.instances:
            return BreakReason.INSTANCES
        if self.watched_instances > 0 and cursor.watched_instances >= self.watched_instances:
            return BreakReason.WATCHED_INSTANCES
        return None


class Trainer:
    """
    Mutates an EmbeddingStore sentence by sentence.

    Simplifications kept on purpose:

    * negative sampling only, no hierarchical softmax
    * no subsampling of frequent words
    * training never finishes: past ``iter`` epochs the learning rate
      stays at ``min_alpha``

    Parameters
    ----------
    config : Word2vecConfig
    vocabulary : Vocabulary
    store : EmbeddingStore
        Owned exclusively by this trainer while a burst runs.
    sentences : sequence of token lists
        The corpus, one entry per line.
    rng : RandomSource
        Shared random stream (the one that initialised *store*).
    clock : callable
        Returns the current time in seconds; ``time.monotonic`` by default.
    """

    def __init__(
        self,
        config: Word2vecConfig,
        vocabulary: Vocabulary,
        store: EmbeddingStore,
        sentences: Sequence[Sequence[str]],
        rng: RandomSource,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.vocabulary = vocabulary
        self.store = store
        self.rng = rng
        self.clock = clock

        # Out-of-vocabulary tokens are dropped once, up front.
        self.encoded: List[List[int]] = [vocabulary.encode(s) for s in sentences]
        self.num_sentences = len(self.encoded)

        self.sampler: Optional[NegativeSampler] = (
            NegativeSampler(vocabulary.cum_table, rng) if vocabulary.size > 1 else None
        )
        self.cursor = TrainingCursor(learning_rate=config.alpha)
        self.phase = TrainerPhase.READY

    # ------------------------------------------------------------------
    # Phase handling
    # ------------------------------------------------------------------

    @property
    def trainable(self) -> bool:
        return self.sampler is not None and self.num_sentences > 0

    def require_idle(self) -> None:
        """Raise if a burst is in progress (read access is only safe between bursts)."""
        if self.phase is TrainerPhase.TRAINING:
            raise InvalidStateError("A training burst is in progress.")

    # ------------------------------------------------------------------
    # Learning rate
    # ------------------------------------------------------------------

    def learning_rate_at(self, instances: int) -> float:
        """Linear decay from alpha to min_alpha over ``iter`` passes, then flat."""
        cfg = self.config
        budget = self.vocabulary.corpus_size * cfg.iter
        progress = min(1.0, instances / budget) if budget > 0 else 1.0
        return cfg.alpha - (cfg.alpha - cfg.min_alpha) * progress

    # ------------------------------------------------------------------
    # Bursts
    # ------------------------------------------------------------------

    def train_until_breakpoint(
        self,
        breakpoint: Breakpoint,
        watched: Container[int] = frozenset(),
    ) -> BreakReason:
        """
        Train whole sentences until *breakpoint* fires.

        Breakpoints are checked after every sentence, never inside one,
        so a burst always ends on a sentence boundary.

        Parameters
        ----------
        breakpoint : Breakpoint
        watched : container of int
            Indices of watched words; each trained occurrence advances
            ``cursor.watched_instances``.

        Returns
        -------
        The BreakReason that stopped the burst.
        """
        if not self.trainable:
            raise InvalidStateError(
                "Nothing to train: the vocabulary holds only the null word."
            )
        if breakpoint.is_open_ended:
            raise ValueError("A burst needs at least one breakpoint.")
        self.require_idle()

        self.phase = TrainerPhase.TRAINING
        try:
            while True:
                self.train_sentence(watched)
                reason = breakpoint.reached(self.cursor, self.clock())
                if reason is not None:
                    return reason
        finally:
            self.phase = TrainerPhase.PAUSED

    def train_sentence(self, watched: Container[int] = frozenset()) -> None:
        """Train on the sentence under the cursor and advance the cursor."""
        if not self.trainable:
            raise InvalidStateError(
                "Nothing to train: the vocabulary holds only the null word."
            )
        cfg = self.config
        cursor = self.cursor
        words = self.encoded[cursor.sentences]

        cursor.learning_rate = self.learning_rate_at(cursor.instances)

        for pos, word in enumerate(words):
            reduced_window = math.floor(self.rng.uniform() * cfg.window + 0.5)
            start = max(0, pos - cfg.window + reduced_window)
            end = min(len(words), pos + cfg.window + 1 - reduced_window)
            context = [words[p] for p in range(start, end) if p != pos]

            if cfg.sg:
                for context_idx in context:
                    self.train_sg_pair(word, context_idx)
            elif context:
                l1 = self.store.syn0[context].sum(axis=0)
                if cfg.cbow_mean:
                    l1 /= len(context)
                self.train_cbow_pair(word, context, l1)

            cursor.instances += 1
            if word in watched:
                cursor.watched_instances += 1

        cursor.sentences += 1
        if cursor.sentences >= self.num_sentences:
            cursor.sentences = 0
            cursor.epochs += 1

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def train_sg_pair(self, w_idx: int, context_idx: int) -> None:
        """
        One skip-gram update: the context word's input vector predicts the
        center word *w_idx*.
        """
        l1 = self.store.vector_in(context_idx)
        neu1e = self._negative_sampling_update(w_idx, l1)
        l1 += neu1e

    def train_cbow_pair(self, w_idx: int, context_idxs: Sequence[int],
                        l1: np.ndarray) -> None:
        """
        One CBOW update: the combined context vector *l1* predicts *w_idx*.

        The accumulated error is added in full to every context word's
        input vector, even when *l1* is a mean.
        """
        if len(context_idxs) == 0:
            return
        neu1e = self._negative_sampling_update(w_idx, l1)
        syn0 = self.store.syn0
        for idx in context_idxs:
            syn0[idx] += neu1e

    def _negative_sampling_update(self, w_idx: int, l1: np.ndarray) -> np.ndarray:
        """
        Score the true target (label 1) and up to ``negative`` sampled
        words (label 0) against *l1*, updating their output vectors in
        place.  A draw equal to *w_idx* is skipped, not redrawn.

        Returns
        -------
        The error accumulated for *l1* (not yet applied).
        """
        cfg = self.config
        syn1 = self.store.syn1
        lr = self.cursor.learning_rate
        neu1e = np.zeros(self.store.hidden_size)

        for d in range(cfg.negative + 1):
            if d == 0:
                target = w_idx
                label = 1.0
            else:
                target = self.sampler.sample()
                if target == w_idx:
                    continue
                label = 0.0
            l2 = syn1[target]
            f = float(np.dot(l1, l2))
            g = (label - sigmoid(f)) * lr
            neu1e += g * l2
            l2 += g * l1
        return neu1e

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"Trainer(phase={self.phase.value}, instances={self.cursor.instances}, "
            f"epochs={self.cursor.epochs}, lr={self.cursor.learning_rate:.6f})"
        )
