"""
toy_word2vec – interactive, incrementally trainable word2vec in NumPy.
"""

from .config import Word2vecConfig
from .embeddings import EmbeddingStore
from .errors import ConfigError, InvalidStateError, UnknownTermError, Word2vecError
from .negative_sampler import NegativeSampler
from .random_source import RandomSource
from .ranker import QueryBook, QueryOutRecord, QueryRanker, QueryStatus, RankHistoryEntry
from .session import Session, SessionState, SessionStatus, ValidationResult
from .trainer import BreakReason, Breakpoint, Trainer, TrainerPhase, TrainingCursor
from .vocabulary import Vocabulary, build_vocabulary, split_sentences

__all__ = [
    "Word2vecConfig",
    "EmbeddingStore",
    "ConfigError",
    "InvalidStateError",
    "UnknownTermError",
    "Word2vecError",
    "NegativeSampler",
    "RandomSource",
    "QueryBook",
    "QueryOutRecord",
    "QueryRanker",
    "QueryStatus",
    "RankHistoryEntry",
    "Session",
    "SessionState",
    "SessionStatus",
    "ValidationResult",
    "BreakReason",
    "Breakpoint",
    "Trainer",
    "TrainerPhase",
    "TrainingCursor",
    "Vocabulary",
    "build_vocabulary",
    "split_sentences",
]
