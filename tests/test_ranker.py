"""Cosine ranking, result surfacing and the rank-history ledger."""

import numpy as np
import pytest

from toy_word2vec.embeddings import EmbeddingStore
from toy_word2vec.ranker import (
    QueryBook,
    QueryOutRecord,
    QueryRanker,
    QueryStatus,
    parse_term,
    query_key,
)
from toy_word2vec.vocabulary import build_vocabulary

from conftest import unit

WORDS = ["q"] + [f"w{i:02d}" for i in range(1, 15)]


@pytest.fixture
def fan():
    """
    Vocabulary '\\0', q, w01..w14 with 2-d vectors fanned out from q's
    direction, so wNN ranks NN-1, q ranks 14 and the sentinel ranks 15.
    """
    vocab = build_vocabulary([WORDS], min_count=1)
    syn0 = np.zeros((vocab.size, 2))
    syn0[0] = [-1.0, 0.0]
    syn0[1] = [1.0, 0.0]
    for k in range(2, vocab.size):
        angle = 0.1 * (k - 1)
        syn0[k] = [2.0 * np.cos(angle), 2.0 * np.sin(angle)]
    store = EmbeddingStore(syn0, np.zeros_like(syn0))
    return vocab, store, QueryRanker(vocab, store)


def _book(query_in, **statuses):
    book = QueryBook()
    book.set_query_in(query_in)
    for word, status in statuses.items():
        book.set_status(word, status)
    return book


class TestTerms:

    def test_parse_term(self):
        assert parse_term("king") == ("king", 1)
        assert parse_term("-man") == ("man", -1)

    def test_query_key_preserves_order_and_sign(self):
        assert query_key(["king", "-man"]) == "king&-man"
        assert query_key(["-man", "king"]) != query_key(["king", "-man"])


class TestRank:

    def test_scores_are_cosines(self, fan):
        vocab, store, ranker = fan
        ranking = ranker.rank(["q"])
        np.testing.assert_allclose(ranking.query_vector, [1.0, 0.0])
        k = vocab.index("w03")
        assert ranking.scores[k] == pytest.approx(np.cos(0.3))

    def test_query_words_score_zero(self, fan):
        vocab, _, ranker = fan
        ranking = ranker.rank(["q", "-w01"])
        assert ranking.scores[vocab.index("q")] == 0.0
        assert ranking.scores[vocab.index("w01")] == 0.0

    def test_ranks_are_dense_permutation(self, fan):
        vocab, _, ranker = fan
        ranking = ranker.rank(["q"])
        assert sorted(ranking.ranks.tolist()) == list(range(vocab.size))
        for rank, idx in enumerate(ranking.order):
            assert ranking.ranks[idx] == rank

    def test_order_follows_descending_score(self, fan):
        vocab, _, ranker = fan
        ranking = ranker.rank(["q"])
        expected = [vocab.index(w) for w in WORDS[1:]] + [vocab.index("q"), 0]
        assert ranking.order.tolist() == expected

    def test_zero_query_vector_is_defined(self, fan):
        vocab, _, ranker = fan
        ranking = ranker.rank(["q", "-q"])
        assert np.all(ranking.query_vector == 0.0)
        assert np.all(ranking.scores == 0.0)
        # all ties: index order
        assert ranking.order.tolist() == list(range(vocab.size))

    def test_zero_norm_candidate_scores_zero(self, fan):
        vocab, store, ranker = fan
        store.syn0[vocab.index("w05")] = 0.0
        ranking = ranker.rank(["q"])
        assert ranking.scores[vocab.index("w05")] == 0.0

    def test_signed_composition(self, fan):
        vocab, store, ranker = fan
        vec, indices = ranker.query_vector(["w02", "-w07"])
        expected = unit(store.syn0[vocab.index("w02")] - store.syn0[vocab.index("w07")])
        np.testing.assert_allclose(vec, expected)
        assert indices == {vocab.index("w02"), vocab.index("w07")}

    def test_unknown_word_raises_key_error(self, fan):
        _, _, ranker = fan
        with pytest.raises(KeyError):
            ranker.query_vector(["nope"])


class TestComputeQueryResult:

    def test_top_ten_by_default(self, fan):
        _, _, ranker = fan
        qi_vec, records = ranker.compute_query_result(_book(["q"]), iteration=0)
        assert [r.query for r in records] == WORDS[1:11]
        assert [r.rank for r in records] == list(range(10))
        assert all(r.status is QueryStatus.NORMAL for r in records)
        np.testing.assert_allclose(qi_vec, [1.0, 0.0])

    def test_watched_added_and_ignored_removed(self, fan):
        _, _, ranker = fan
        book = _book(["q"], w13=QueryStatus.WATCHED, w02=QueryStatus.IGNORED)
        _, records = ranker.compute_query_result(book, iteration=0)
        ranks = [r.rank for r in records]
        assert ranks == sorted(ranks)
        assert ranks == [0, 2, 3, 4, 5, 6, 7, 8, 9, 12]
        assert records[-1].query == "w13"
        assert records[-1].status is QueryStatus.WATCHED
        assert "w02" not in [r.query for r in records]

    def test_query_words_never_surface(self, fan):
        _, _, ranker = fan
        book = _book(["w01", "-w03"], w01=QueryStatus.WATCHED)
        _, records = ranker.compute_query_result(book, iteration=0)
        names = [r.query for r in records]
        assert "w01" not in names
        assert "w03" not in names

    def test_small_vocabulary_shows_every_real_word_but_queries(self):
        vocab = build_vocabulary([["a", "b", "c"]], min_count=1)
        store = EmbeddingStore(np.eye(4, 3, k=-1) + 0.1, np.zeros((4, 3)))
        ranker = QueryRanker(vocab, store)
        _, records = ranker.compute_query_result(_book(["a"]), iteration=0)
        assert sorted(r.query for r in records) == ["b", "c"]

    def test_sentinel_never_surfaces(self, fan):
        _, _, ranker = fan
        # the sentinel's vector points along -q, so it ranks first here
        ranking = ranker.rank(["-q"])
        assert ranking.order[0] == 0
        _, records = ranker.compute_query_result(_book(["-q"]), iteration=0)
        assert records
        assert "\0" not in [r.query for r in records]
        # rank 1 is q itself, forced to score 0
        assert (records[0].query, records[0].rank) == ("w14", 2)

    def test_empty_query_gives_no_records(self, fan):
        _, _, ranker = fan
        qi_vec, records = ranker.compute_query_result(QueryBook(), iteration=0)
        assert records == []
        assert np.all(qi_vec == 0.0)

    def test_history_coalesces_within_an_iteration(self, fan):
        _, store, ranker = fan
        book = _book(["q"])
        ranker.compute_query_result(book, iteration=5)
        ranker.compute_query_result(book, iteration=5)
        record = book.current_records()["w01"]
        assert len(record.rank_history) == 1
        ranker.compute_query_result(book, iteration=9)
        assert [h.iteration for h in record.rank_history] == [5, 9]

    def test_records_persist_per_query_key(self, fan):
        _, _, ranker = fan
        book = _book(["q"])
        _, first = ranker.compute_query_result(book, iteration=1)
        book.set_query_in(["w01"])
        ranker.compute_query_result(book, iteration=2)
        book.set_query_in(["q"])
        _, again = ranker.compute_query_result(book, iteration=3)
        assert again[0] is first[0]
        assert [h.iteration for h in again[0].rank_history] == [1, 3]


class TestRankHistory:

    def test_same_iteration_overwrites(self):
        record = QueryOutRecord("w")
        record.record_rank(5, 10)
        record.record_rank(3, 10)
        assert record.rank == 3
        assert [(h.rank, h.iteration) for h in record.rank_history] == [(3, 10)]

    def test_new_iteration_appends(self):
        record = QueryOutRecord("w")
        record.record_rank(5, 10)
        record.record_rank(4, 11)
        record.record_rank(2, 20)
        iterations = [h.iteration for h in record.rank_history]
        assert iterations == [10, 11, 20]
        assert record.rank == 2


class TestQueryBook:

    def test_watch_then_ignore_then_normal(self):
        book = _book(["q"])
        book.set_status("w", QueryStatus.GOOD)
        assert "w" in book.watched
        assert book.current_records()["w"].status is QueryStatus.GOOD

        book.set_status("w", QueryStatus.IGNORED)
        assert "w" not in book.watched
        assert "w" in book.ignored

        book.set_status("w", QueryStatus.BAD)
        assert "w" in book.watched and "w" not in book.ignored

        book.set_status("w", QueryStatus.NORMAL)
        assert "w" not in book.watched and "w" not in book.ignored
        assert book.current_records()["w"].status is QueryStatus.NORMAL

    def test_status_is_scoped_to_query_key(self):
        book = _book(["q"])
        book.set_status("w", QueryStatus.WATCHED)
        book.set_query_in(["-q"])
        assert "w" not in book.current_records()
        # watched set itself is session-wide
        assert "w" in book.watched
