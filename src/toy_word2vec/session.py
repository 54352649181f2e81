"""
Session: the request-facing shell around the engine.

Owns the corpus, status transitions, breakpoint scheduling and the query
book, and hands typed requests to VocabularyBuilder, Trainer and
QueryRanker.  Every state-changing request returns a SessionState
snapshot, the only channel through which progress reaches the UI.
"""

import copy
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .config import Word2vecConfig
from .embeddings import EmbeddingStore
from .errors import InvalidStateError, UnknownTermError
from .random_source import RandomSource
from .ranker import QueryBook, QueryOutRecord, QueryRanker, QueryStatus, parse_term
from .trainer import BreakReason, Breakpoint, Trainer, TrainerPhase
from .vocabulary import Vocabulary, build_vocabulary, split_sentences


class SessionStatus(Enum):
    WAIT_FOR_CORPUS = "WAIT_FOR_CORPUS"
    WAIT_FOR_INIT = "WAIT_FOR_INIT"
    WAIT_FOR_TRAIN = "WAIT_FOR_TRAIN"
    AUTO_BREAK = "AUTO_BREAK"
    USER_BREAK = "USER_BREAK"


# ----------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class SetCorpus:
    corpus: str


@dataclass(frozen=True)
class InitModel:
    pass


@dataclass(frozen=True)
class Train:
    iterations: int = -1
    watched: bool = False


@dataclass(frozen=True)
class TrainContinue:
    pass


@dataclass(frozen=True)
class ValidateQueryIn:
    query_in: Tuple[str, ...]


@dataclass(frozen=True)
class ValidateQueryOut:
    query_out: str


@dataclass(frozen=True)
class UpdateQuery:
    query_in: Tuple[str, ...]
    query_out: Tuple[Tuple[str, QueryStatus], ...] = ()


Request = Union[SetCorpus, InitModel, Train, TrainContinue,
                ValidateQueryIn, ValidateQueryOut, UpdateQuery]


# ----------------------------------------------------------------------
# Results
# ----------------------------------------------------------------------

@dataclass
class ValidationResult:
    is_valid: bool
    message: str = ""


@dataclass
class DataOverview:
    vocab_size: int
    num_sentences: int
    corpus_size: int


@dataclass
class SessionState:
    status: SessionStatus
    config: Word2vecConfig
    phase: TrainerPhase = TrainerPhase.UNINITIALIZED
    vocab_size: int = 0
    num_sentences: int = 0
    corpus_size: int = 0
    sentences: int = 0
    epochs: int = 0
    instances: int = 0
    watched_instances: int = 0
    learning_rate: float = 0.0
    qi_vec: List[float] = field(default_factory=list)
    query_out_records: List[QueryOutRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Plain, JSON-compatible copy of the snapshot."""
        data = asdict(self)
        data["status"] = self.status.value
        data["phase"] = self.phase.value
        data["config"] = self.config.to_dict()
        for record in data["query_out_records"]:
            record["status"] = record["status"].value
        return data


# ----------------------------------------------------------------------
# Session
# ----------------------------------------------------------------------

class Session:
    """
    One interactive training session.

    Parameters
    ----------
    config : Word2vecConfig or mapping, optional
        Defaults are used for anything not given; unknown keys are ignored.
    clock : callable
        Seconds, used for the time breakpoint.  ``time.monotonic`` by default.
    """

    def __init__(
        self,
        config: Optional[Union[Word2vecConfig, Mapping[str, Any]]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(config, Word2vecConfig):
            self.config = config
            self.config.validate()
        else:
            self.config = Word2vecConfig().update(config)
        self.clock = clock

        self.status = SessionStatus.WAIT_FOR_CORPUS
        self.corpus: Optional[str] = None
        self.sentences: List[List[str]] = []
        self.vocabulary: Optional[Vocabulary] = None
        self.store: Optional[EmbeddingStore] = None
        self.trainer: Optional[Trainer] = None
        self.ranker: Optional[QueryRanker] = None
        self.book = QueryBook()
        self.breakpoint = Breakpoint()

        self.qi_vec = np.zeros(self.config.hidden_size)
        self.query_out_records: List[QueryOutRecord] = []

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, request: Request) -> Union["SessionState", ValidationResult]:
        if isinstance(request, SetCorpus):
            return self.set_corpus(request.corpus)
        if isinstance(request, InitModel):
            return self.init_model()
        if isinstance(request, Train):
            return self.train(request.iterations, request.watched)
        if isinstance(request, TrainContinue):
            return self.train_continue()
        if isinstance(request, ValidateQueryIn):
            return self.validate_query_in(request.query_in)
        if isinstance(request, ValidateQueryOut):
            return self.validate_query_out(request.query_out)
        if isinstance(request, UpdateQuery):
            return self.update_query(request.query_in, request.query_out)
        raise TypeError(f"Unrecognized request type: {type(request).__name__!r}")

    # ------------------------------------------------------------------
    # Corpus and initialisation
    # ------------------------------------------------------------------

    def set_corpus(self, corpus: str) -> "SessionState":
        self.corpus = corpus
        self.status = SessionStatus.WAIT_FOR_INIT
        return self.state()

    def init_model(self) -> "SessionState":
        """
        Build the vocabulary and fresh embeddings.  Resets all counters,
        the query-in, watched and ignored terms and every rank history.
        """
        if self.corpus is None:
            raise InvalidStateError("Must set a corpus before initialising the model.")
        cfg = self.config
        rng = RandomSource(cfg.seed)

        self.sentences = split_sentences(self.corpus)
        self.vocabulary = build_vocabulary(self.sentences, cfg.min_count)
        self.store = EmbeddingStore.initialize(self.vocabulary.size, cfg.hidden_size, rng)
        self.trainer = Trainer(cfg, self.vocabulary, self.store, self.sentences,
                               rng, clock=self.clock)
        self.ranker = QueryRanker(self.vocabulary, self.store)
        # queries and rank histories belong to the previous model
        self.book = QueryBook()
        self.qi_vec = np.zeros(cfg.hidden_size)
        self.query_out_records = []
        self.status = SessionStatus.WAIT_FOR_TRAIN

        overview = self.data_overview()
        print(
            f"[init] vocab_size={overview.vocab_size:,}  "
            f"num_sentences={overview.num_sentences:,}  "
            f"corpus_size={overview.corpus_size:,}"
        )
        return self.state()

    def data_overview(self) -> DataOverview:
        self._require_vocab()
        return DataOverview(
            vocab_size=self.vocabulary.size,
            num_sentences=len(self.sentences),
            corpus_size=self.vocabulary.corpus_size,
        )

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(self, iterations: int = -1, watched: bool = False) -> "SessionState":
        """
        Start a burst.  With ``iterations > 0`` the burst also stops after
        that many more instances (or watched instances when *watched*);
        otherwise only the time budget ends it.
        """
        trainer = self._require_trainer()
        self.breakpoint = Breakpoint(deadline=self._deadline())
        if iterations > 0:
            if watched:
                self.breakpoint.watched_instances = (
                    trainer.cursor.watched_instances + iterations
                )
            else:
                self.breakpoint.instances = trainer.cursor.instances + iterations
        return self._train_until_breakpoint()

    def train_continue(self) -> "SessionState":
        """Resume with a fresh time budget; earlier count targets still apply."""
        self._require_trainer()
        self.breakpoint.deadline = self._deadline()
        return self._train_until_breakpoint()

    def _deadline(self) -> float:
        return self.clock() + self.config.report_interval_ms / 1000.0

    def _train_until_breakpoint(self) -> "SessionState":
        trainer = self._require_trainer()
        reason = trainer.train_until_breakpoint(
            self.breakpoint, self.book.watched_indices(self.vocabulary)
        )
        if reason is BreakReason.TIME:
            self.status = SessionStatus.AUTO_BREAK
        else:
            self.status = SessionStatus.USER_BREAK
            print(f"[train] USER_BREAK: {reason.value}")
        self.compute_query_result()
        return self.state()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def validate_query_in(self, query_in: Sequence[str]) -> ValidationResult:
        self._require_vocab()
        messages = []
        for term in query_in:
            word, _ = parse_term(term)
            if word not in self.vocabulary:
                messages.append(f'"{word}" is not in vocabulary.')
        return ValidationResult(not messages, "\n".join(messages))

    def validate_query_out(self, query_out: str) -> ValidationResult:
        self._require_vocab()
        if query_out not in self.vocabulary:
            return ValidationResult(False, f'"{query_out}" is not in vocabulary.')
        return ValidationResult(True)

    def update_query(
        self,
        query_in: Sequence[str],
        query_out: Sequence[Tuple[str, QueryStatus]] = (),
    ) -> "SessionState":
        """
        Replace the query-in terms, apply status changes to query-out
        terms and recompute the ranking.

        Raises UnknownTermError (leaving the session untouched) when a
        query-in or tracked query-out term is not in the vocabulary.
        """
        updates = [(word, QueryStatus(status)) for word, status in query_out]
        validation = self.validate_query_in(query_in)
        if validation.is_valid:
            for word, status in updates:
                if status is not QueryStatus.NORMAL and word not in self.vocabulary:
                    validation = self.validate_query_out(word)
                    break
        if not validation.is_valid:
            raise UnknownTermError(validation.message, validation)

        self.book.set_query_in(query_in)
        for word, status in updates:
            self.book.set_status(word, status)
        self.compute_query_result()
        return self.state()

    def set_query_in(self, query_in: Sequence[str]) -> "SessionState":
        return self.update_query(query_in)

    def update_query_status(self, word: str, status: QueryStatus) -> "SessionState":
        return self.update_query(self.book.query_in, [(word, status)])

    def compute_query_result(self) -> List[QueryOutRecord]:
        """Recompute the leaderboard for the current query-in."""
        trainer = self._require_trainer()
        trainer.require_idle()
        self.qi_vec, self.query_out_records = self.ranker.compute_query_result(
            self.book, trainer.cursor.instances
        )
        return self.query_out_records

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def state(self) -> SessionState:
        snapshot = SessionState(status=self.status, config=self.config)
        if self.trainer is not None:
            cursor = self.trainer.cursor
            snapshot.phase = self.trainer.phase
            snapshot.vocab_size = self.vocabulary.size
            snapshot.num_sentences = len(self.sentences)
            snapshot.corpus_size = self.vocabulary.corpus_size
            snapshot.sentences = cursor.sentences
            snapshot.epochs = cursor.epochs
            snapshot.instances = cursor.instances
            snapshot.watched_instances = cursor.watched_instances
            snapshot.learning_rate = cursor.learning_rate
        snapshot.qi_vec = [float(v) for v in self.qi_vec]
        snapshot.query_out_records = copy.deepcopy(self.query_out_records)
        return snapshot

    def _require_vocab(self) -> Vocabulary:
        if self.vocabulary is None:
            raise InvalidStateError("Must first build vocab before validating queries.")
        return self.vocabulary

    def _require_trainer(self) -> Trainer:
        if self.trainer is None:
            raise InvalidStateError("Must initialise the model before training or querying.")
        return self.trainer

    def __repr__(self) -> str:  # pragma: no cover
        return f"Session(status={self.status.value}, trainer={self.trainer!r})"
