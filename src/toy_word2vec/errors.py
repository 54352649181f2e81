"""
Exception types raised by the toy_word2vec engine.

Degenerate inputs (empty corpus, zero-norm vectors, empty CBOW context)
never raise; they fall back to defined values.  Only genuine precondition
violations surface as exceptions.
"""

from typing import Optional


class Word2vecError(Exception):
    """Base class for all engine errors."""


class InvalidStateError(Word2vecError, RuntimeError):
    """An operation was requested before its prerequisite state exists."""


class ConfigError(Word2vecError, ValueError):
    """A configuration value is out of its allowed range."""


class UnknownTermError(Word2vecError, KeyError):
    """
    A query update named terms that are not in the vocabulary.

    The failing ValidationResult is attached so the caller can render the
    message inline.
    """

    def __init__(self, message: str, validation: Optional[object] = None) -> None:
        super().__init__(message)
        self.message = message
        self.validation = validation

    def __str__(self) -> str:
        return self.message
