import numpy as np
import pytest

from toy_word2vec.config import Word2vecConfig
from toy_word2vec.embeddings import EmbeddingStore
from toy_word2vec.random_source import RandomSource
from toy_word2vec.session import Session
from toy_word2vec.trainer import Trainer
from toy_word2vec.vocabulary import build_vocabulary, split_sentences

# Three sentences of three tokens each: 6 distinct words, 9 tokens.
SMALL_CORPUS = "the cat sat\nthe dog ran\na cat ran"

ROYAL_CORPUS = "\n".join([
    "the king looked at the queen",
    "the man looked at the woman",
    "the king is a man",
    "the queen is a woman",
    "a boy is a young man",
    "a girl is a young woman",
] * 3)

# Large enough that the time breakpoint never fires in a test.
NO_TIMEOUT = {"report_interval_ms": 600_000}


class FakeClock:
    """Returns the given values in order, then repeats the last one."""

    def __init__(self, *values):
        self.values = list(values) or [0.0]
        self.calls = 0

    def __call__(self):
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value


def make_config(**overrides):
    data = dict(NO_TIMEOUT)
    data.update(overrides)
    return Word2vecConfig().update(data)


def make_trainer(corpus=SMALL_CORPUS, clock=None, **overrides):
    config = make_config(**overrides)
    rng = RandomSource(config.seed)
    sentences = split_sentences(corpus)
    vocab = build_vocabulary(sentences, config.min_count)
    store = EmbeddingStore.initialize(vocab.size, config.hidden_size, rng)
    return Trainer(config, vocab, store, sentences, rng, clock=clock or FakeClock(0.0))


def make_session(corpus=SMALL_CORPUS, clock=None, **overrides):
    session = Session(make_config(**overrides), clock=clock or FakeClock(0.0))
    session.set_corpus(corpus)
    session.init_model()
    return session


@pytest.fixture
def small_session():
    return make_session(min_count=1, hidden_size=4, negative=2, sg=True)


@pytest.fixture
def royal_session():
    return make_session(ROYAL_CORPUS, min_count=1, hidden_size=8)


def unit(vec):
    vec = np.asarray(vec, dtype=np.float64)
    return vec / np.linalg.norm(vec)
