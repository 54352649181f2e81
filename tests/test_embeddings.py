import numpy as np
import pytest

from toy_word2vec.embeddings import EmbeddingStore, sigmoid
from toy_word2vec.random_source import RandomSource


def test_initialize_shapes_and_range():
    store = EmbeddingStore.initialize(12, 8, RandomSource(5))
    assert store.syn0.shape == (12, 8)
    assert store.syn1.shape == (12, 8)
    bound = 0.5 / 8
    assert np.all(np.abs(store.syn0) <= bound)
    assert np.all(np.abs(store.syn1) <= bound)
    assert not np.array_equal(store.syn0, store.syn1)


def test_initialize_is_reproducible():
    a = EmbeddingStore.initialize(6, 4, RandomSource(2))
    b = EmbeddingStore.initialize(6, 4, RandomSource(2))
    np.testing.assert_array_equal(a.syn0, b.syn0)
    np.testing.assert_array_equal(a.syn1, b.syn1)


def test_vectors_are_views():
    store = EmbeddingStore.initialize(3, 2, RandomSource(1))
    store.vector_in(1)[:] = 7.0
    store.vector_out(2)[0] += 1.0
    assert np.all(store.syn0[1] == 7.0)
    assert store.syn1[2, 0] > 0.5


@pytest.mark.parametrize("index", [-1, 3, 100])
def test_out_of_range_index_raises(index):
    store = EmbeddingStore.initialize(3, 2, RandomSource(1))
    with pytest.raises(IndexError):
        store.vector_in(index)
    with pytest.raises(IndexError):
        store.vector_out(index)


def test_mismatched_matrices_rejected():
    with pytest.raises(ValueError):
        EmbeddingStore(np.zeros((3, 2)), np.zeros((3, 4)))


def test_sigmoid_stability():
    assert sigmoid(0.0) == 0.5
    assert 0.0 <= sigmoid(-1000.0) < 1e-100
    assert sigmoid(1000.0) == 1.0
    assert np.isclose(sigmoid(2.0) + sigmoid(-2.0), 1.0)


def test_small_weight_bounds():
    rng = RandomSource(3)
    weights = [rng.small_weight(4) for _ in range(200)]
    assert all(-0.125 <= w < 0.125 for w in weights)
    assert min(weights) < 0 < max(weights)
