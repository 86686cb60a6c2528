"""TF-IDF similarity pass (second pass).

The rule pass labels what it can recognise.  Everything it leaves as
``Unsorted`` (or labels with low confidence) is re-queried here against
the library's own confidently labelled items:

* :meth:`SimilarityIndex.build` turns ``(text, category)`` pairs into a
  frozen snapshot (IDF table, document vectors, inverted index and one
  centroid per category).
* :meth:`SimilarityClassifier.infer` scores a query against the
  documents sharing at least one feature, votes over the top-k
  neighbours and falls back to the nearest category centroid when no
  neighbour is similar enough.

Weights use smoothed IDF and sublinear TF::

    idf    = ln((N + 1) / (df + 1)) + 1
    weight = (1 + ln tf) * idf

and are stored as float32 values.  The index has no mutation API; it is
rebuilt per scan and may be queried from many threads without locks.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from . import tuning
from .tokenizer import extract_terms


def _norm(values: np.ndarray) -> float:
    return max(float(np.linalg.norm(values)), float(tuning.NORM_EPSILON))


@dataclass(frozen=True)
class TfidfVector:
    """Sparse token -> weight mapping with its (floored) L2 norm."""

    weights: Mapping[str, float]
    norm: float

    @classmethod
    def from_counts(cls, counts: Mapping[str, int], idf: Mapping[str, float]) -> "TfidfVector":
        tokens = [t for t in counts if t in idf]
        if not tokens:
            return cls(MappingProxyType({}), float(tuning.NORM_EPSILON))
        tf = np.fromiter((counts[t] for t in tokens), dtype=np.float32, count=len(tokens))
        idf_values = np.fromiter((idf[t] for t in tokens), dtype=np.float32, count=len(tokens))
        weights = ((1.0 + np.log(tf)) * idf_values).astype(np.float32)
        return cls(MappingProxyType(dict(zip(tokens, weights.tolist()))), _norm(weights))

    def __len__(self) -> int:
        return len(self.weights)


def cosine(a: TfidfVector, b: TfidfVector) -> float:
    """Cosine similarity clamped to [0, 1]; iterates the smaller map."""
    small, large = (a, b) if len(a) <= len(b) else (b, a)
    dot = 0.0
    large_weights = large.weights
    for token, weight in small.weights.items():
        other = large_weights.get(token)
        if other is not None:
            dot += weight * other
    sim = dot / (a.norm * b.norm)
    return max(0.0, min(1.0, sim))


@dataclass(frozen=True)
class IndexedDocument:
    vector: TfidfVector
    category: str


@dataclass(frozen=True)
class SimilarityIndex:
    """Immutable TF-IDF snapshot of a labelled corpus."""

    idf: Mapping[str, float]
    docs: Tuple[IndexedDocument, ...]
    inverted_index: Mapping[str, Tuple[int, ...]]
    centroids: Mapping[str, TfidfVector]

    @classmethod
    def empty(cls) -> "SimilarityIndex":
        return cls(MappingProxyType({}), (), MappingProxyType({}), MappingProxyType({}))

    @classmethod
    def build(cls, corpus: Iterable[Tuple[str, str]]) -> "SimilarityIndex":
        """Build an index from ``(text, category)`` pairs.

        Documents that yield no terms (or carry no category) are dropped.
        Categories keep the order in which they first appear in the corpus.
        """
        counted: List[Tuple[Counter, str]] = []
        for text, category in corpus:
            if not category:
                continue
            terms = extract_terms(text)
            if not terms:
                continue
            counted.append((Counter(terms), str(category)))

        if not counted:
            return cls.empty()

        df: Counter = Counter()
        for counts, _category in counted:
            df.update(counts.keys())

        n_docs = len(counted)
        vocab = sorted(df)
        vocab_index = {token: i for i, token in enumerate(vocab)}
        df_values = np.fromiter((df[t] for t in vocab), dtype=np.float32, count=len(vocab))
        idf_values = (np.log((n_docs + 1.0) / (df_values + 1.0)) + 1.0).astype(np.float32)
        idf = dict(zip(vocab, idf_values.tolist()))

        docs: List[IndexedDocument] = []
        postings: Dict[str, List[int]] = {}
        members: Dict[str, List[int]] = {}
        for doc_id, (counts, category) in enumerate(counted):
            docs.append(IndexedDocument(TfidfVector.from_counts(counts, idf), category))
            for token in counts:
                postings.setdefault(token, []).append(doc_id)
            members.setdefault(category, []).append(doc_id)

        centroids: Dict[str, TfidfVector] = {}
        for category, doc_ids in members.items():
            acc = np.zeros(len(vocab), dtype=np.float32)
            for doc_id in doc_ids:
                weights = docs[doc_id].vector.weights
                idx = np.fromiter((vocab_index[t] for t in weights), dtype=np.int64, count=len(weights))
                vals = np.fromiter(weights.values(), dtype=np.float32, count=len(weights))
                np.add.at(acc, idx, vals)
            acc /= np.float32(len(doc_ids))
            acc = (acc / np.float32(_norm(acc))).astype(np.float32)
            nonzero = np.flatnonzero(acc)
            centroid = {vocab[i]: float(acc[i]) for i in nonzero.tolist()}
            centroids[category] = TfidfVector(MappingProxyType(centroid), _norm(acc[nonzero]))

        return cls(
            idf=MappingProxyType(idf),
            docs=tuple(docs),
            inverted_index=MappingProxyType({t: tuple(ids) for t, ids in postings.items()}),
            centroids=MappingProxyType(centroids),
        )

    @property
    def is_empty(self) -> bool:
        return not self.docs

    @property
    def size(self) -> int:
        return len(self.docs)

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(self.centroids.keys())

    def vectorize(self, text: str) -> Optional[TfidfVector]:
        """Query vector using this index's IDF; None when no term is known."""
        counts = Counter(t for t in extract_terms(text) if t in self.idf)
        if not counts:
            return None
        return TfidfVector.from_counts(counts, self.idf)

    def candidates(self, query: TfidfVector) -> List[int]:
        """Sorted ids of documents sharing at least one feature with the query."""
        found: set[int] = set()
        for token in query.weights:
            found.update(self.inverted_index.get(token, ()))
        return sorted(found)

    def stats(self) -> Dict[str, int]:
        return {
            "documents": len(self.docs),
            "vocabulary": len(self.idf),
            "categories": len(self.centroids),
        }


@dataclass
class SimilarityClassifier:
    """k-nearest-neighbour vote with a centroid fallback."""

    top_k: int = tuning.TOP_K
    min_similarity: float = tuning.MIN_SIMILARITY
    min_centroid_similarity: float = tuning.MIN_CENTROID_SIMILARITY

    def rank(self, query: TfidfVector, index: SimilarityIndex, top_k: int) -> List[Tuple[float, int]]:
        """Top ``top_k`` ``(similarity, doc_id)`` pairs, document id breaking ties."""
        scored = [(cosine(query, index.docs[doc_id].vector), doc_id) for doc_id in index.candidates(query)]
        scored.sort(key=lambda item: (-item[0], item[1]))
        return scored[: max(1, int(top_k))]

    def infer(
        self,
        text: str,
        index: Optional[SimilarityIndex],
        top_k: Optional[int] = None,
        min_similarity: Optional[float] = None,
        min_centroid_similarity: Optional[float] = None,
    ) -> Tuple[Optional[str], float]:
        """Return ``(category, similarity)`` or ``(None, best_seen)``."""
        if index is None or index.is_empty:
            return None, 0.0
        query = index.vectorize(text or "")
        if query is None:
            return None, 0.0

        k = self.top_k if top_k is None else top_k
        min_sim = self.min_similarity if min_similarity is None else min_similarity
        min_cent = self.min_centroid_similarity if min_centroid_similarity is None else min_centroid_similarity

        top = self.rank(query, index, k)
        best_sim = top[0][0] if top else 0.0

        votes: Dict[str, float] = {}
        first_rank: Dict[str, int] = {}
        for rank, (sim, doc_id) in enumerate(top):
            category = index.docs[doc_id].category
            votes[category] = votes.get(category, 0.0) + sim
            first_rank.setdefault(category, rank)

        if votes and best_sim >= min_sim:
            winner = min(votes, key=lambda c: (-votes[c], first_rank[c]))
            return winner, float(best_sim)

        cent_category, cent_sim = self.nearest_centroid(query, index)
        if cent_category is not None and cent_sim >= min_cent:
            return cent_category, float(cent_sim)
        return None, float(max(best_sim, cent_sim))

    @staticmethod
    def nearest_centroid(query: TfidfVector, index: SimilarityIndex) -> Tuple[Optional[str], float]:
        """Best centroid; ties go to the category seen first in the corpus."""
        best_category: Optional[str] = None
        best = -1.0
        for category, centroid in index.centroids.items():
            sim = cosine(query, centroid)
            if sim > best:
                best_category, best = category, sim
        return best_category, max(best, 0.0)

