"""
QueryRanker: cosine ranking of the vocabulary against a composed query
vector, plus the per-query rank-history ledger that persists across
training bursts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence, Set, Tuple

import numpy as np

from .embeddings import EmbeddingStore
from .vocabulary import Vocabulary

MINUS = "-"
KEY_SEPARATOR = "&"
TOP_N = 10


class QueryStatus(Enum):
    NORMAL = "NORMAL"
    GOOD = "GOOD"
    BAD = "BAD"
    WATCHED = "WATCHED"
    IGNORED = "IGNORED"


@dataclass
class RankHistoryEntry:
    rank: int
    iteration: int


@dataclass
class QueryOutRecord:
    query: str
    status: QueryStatus = QueryStatus.NORMAL
    rank: int = -1
    rank_history: List[RankHistoryEntry] = field(default_factory=list)

    def record_rank(self, rank: int, iteration: int) -> None:
        """
        Set the current rank and log it.  Two ranks logged at the same
        iteration collapse into one entry holding the later rank.
        """
        self.rank = rank
        if self.rank_history and self.rank_history[-1].iteration == iteration:
            self.rank_history[-1].rank = rank
        else:
            self.rank_history.append(RankHistoryEntry(rank, iteration))


def parse_term(term: str) -> Tuple[str, int]:
    """Split a query-in term into (word, sign); a leading '-' means subtract."""
    if term.startswith(MINUS):
        return term[1:], -1
    return term, 1


def query_key(query_in: Sequence[str]) -> str:
    """Order-preserving key of a signed query-in list."""
    return KEY_SEPARATOR.join(query_in)


class QueryBook:
    """
    Session-scoped bookkeeping for queries.

    * the current query-in terms and their key
    * the watched and ignored query-out terms
    * one record set per query-in key, kept for the life of the session
    """

    def __init__(self) -> None:
        self.query_in: Tuple[str, ...] = ()
        # dict keeps watch order
        self.watched: Dict[str, None] = {}
        self.ignored: Set[str] = set()
        self.records: Dict[str, Dict[str, QueryOutRecord]] = {}

    @property
    def key(self) -> str:
        return query_key(self.query_in)

    def set_query_in(self, query_in: Sequence[str]) -> Dict[str, QueryOutRecord]:
        self.query_in = tuple(query_in)
        return self.current_records()

    def current_records(self) -> Dict[str, QueryOutRecord]:
        return self.records.setdefault(self.key, {})

    def record_for(self, word: str) -> QueryOutRecord:
        lookup = self.current_records()
        if word not in lookup:
            lookup[word] = QueryOutRecord(word)
        return lookup[word]

    def set_status(self, word: str, status: QueryStatus) -> None:
        """
        GOOD / BAD / WATCHED start (or keep) tracking *word* under the
        current query-in; IGNORED hides it from results; NORMAL clears both.
        """
        if status in (QueryStatus.GOOD, QueryStatus.BAD, QueryStatus.WATCHED):
            self.watched[word] = None
            self.ignored.discard(word)
            self.record_for(word).status = status
        elif status is QueryStatus.IGNORED:
            self.watched.pop(word, None)
            self.ignored.add(word)
        else:
            self.watched.pop(word, None)
            self.ignored.discard(word)
            lookup = self.current_records()
            if word in lookup:
                lookup[word].status = QueryStatus.NORMAL

    def watched_indices(self, vocabulary: Vocabulary) -> Set[int]:
        return {vocabulary.index(w) for w in self.watched if w in vocabulary}


@dataclass
class Ranking:
    """Full ranking of one query: scores per index and the sorted order."""

    query_vector: np.ndarray
    scores: np.ndarray
    order: np.ndarray   # order[rank] -> index
    ranks: np.ndarray   # ranks[index] -> rank
    query_indices: Set[int]


class QueryRanker:
    """
    Scores every vocabulary word by cosine similarity to a signed sum of
    query word vectors.  Read-only with respect to the embeddings.

    Parameters
    ----------
    vocabulary : Vocabulary
    store : EmbeddingStore
    top_n : int
        Number of leading ranks always surfaced.
    """

    def __init__(self, vocabulary: Vocabulary, store: EmbeddingStore,
                 top_n: int = TOP_N) -> None:
        self.vocabulary = vocabulary
        self.store = store
        self.top_n = top_n

    def query_vector(self, query_in: Sequence[str]) -> Tuple[np.ndarray, Set[int]]:
        """
        L2-normalised signed sum of the query words' input vectors, and the
        set of their indices.  A zero sum stays all-zero.

        Raises KeyError for words outside the vocabulary; callers validate
        first.
        """
        vec = np.zeros(self.store.hidden_size)
        indices: Set[int] = set()
        for term in query_in:
            word, sign = parse_term(term)
            idx = self.vocabulary.index(word)
            indices.add(idx)
            vec += sign * self.store.vector_in(idx)
        norm = np.linalg.norm(vec)
        if norm > 0:
            vec /= norm
        return vec, indices

    def rank(self, query_in: Sequence[str]) -> Ranking:
        """
        Cosine score of every index against the query vector.  Query words
        score exactly 0, as does any zero-norm candidate.  Ranks follow
        descending score with ties broken by index.
        """
        qi_vec, query_indices = self.query_vector(query_in)
        syn0 = self.store.syn0
        norms = np.linalg.norm(syn0, axis=1)
        dots = syn0 @ qi_vec
        scores = np.zeros(len(norms))
        nonzero = norms > 0
        scores[nonzero] = dots[nonzero] / norms[nonzero]
        if query_indices:
            scores[list(query_indices)] = 0.0

        order = np.argsort(-scores, kind="stable")
        ranks = np.empty_like(order)
        ranks[order] = np.arange(len(order))
        return Ranking(qi_vec, scores, order, ranks, query_indices)

    def compute_query_result(
        self, book: QueryBook, iteration: int
    ) -> Tuple[np.ndarray, List[QueryOutRecord]]:
        """
        Rank the vocabulary for ``book.query_in`` and update the history of
        every surfaced word.

        Surfaced words are the top ``top_n`` ranks plus every watched word,
        minus ignored words, query words and the sentinel.

        Returns
        -------
        (query_vector, records) with records sorted by ascending rank.
        An empty query-in gives a zero vector and no records.
        """
        if not book.query_in:
            return np.zeros(self.store.hidden_size), []

        ranking = self.rank(book.query_in)
        index2word = self.vocabulary.index2word

        ranks_to_show: List[int] = list(range(min(self.top_n, len(ranking.order))))
        for word in book.watched:
            if word not in self.vocabulary:
                continue
            ranks_to_show.append(int(ranking.ranks[self.vocabulary.index(word)]))

        shown: List[int] = []
        seen: Set[int] = set()
        for rank in ranks_to_show:
            if rank in seen:
                continue
            seen.add(rank)
            idx = int(ranking.order[rank])
            if idx == 0 or idx in ranking.query_indices or index2word[idx] in book.ignored:
                continue
            shown.append(rank)
        shown.sort()

        records: List[QueryOutRecord] = []
        for rank in shown:
            record = book.record_for(index2word[int(ranking.order[rank])])
            record.record_rank(rank, iteration)
            records.append(record)
        return ranking.query_vector, records
