# core/knowledge_index.py
from typing import List, Protocol, Sequence, Tuple
import numpy as np
from core.entities import CorpusEntry, SearchHit
from util.errors import EmptyIndex
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


class VectorIndex(Protocol):
    """Contract any nearest-neighbor backend has to meet."""

    @property
    def size(self) -> int: ...

    def search(self, query_vector: np.ndarray, k: int = 1) -> List[SearchHit]: ...


class KnowledgeIndex:
    """
    Exact L2 nearest-neighbor index over a fixed corpus.

    Immutable once built: entries are a tuple and the vector matrix is
    read-only, so concurrent searches need no locking.
    """

    def __init__(self, entries: Sequence[CorpusEntry], matrix: np.ndarray) -> None:
        self._entries: Tuple[CorpusEntry, ...] = tuple(entries)
        self._matrix = matrix
        self._matrix.setflags(write=False)

    @classmethod
    def build(cls, entries: Sequence[Tuple[str, np.ndarray]]) -> "KnowledgeIndex":
        rows = [
            CorpusEntry(text=text, vector=np.asarray(vec, dtype=np.float32).reshape(-1))
            for text, vec in entries
        ]
        if not rows:
            logger.warning("index.build.empty")
            return cls((), np.zeros((0, 0), dtype=np.float32))
        dims = {r.vector.shape[0] for r in rows}
        if len(dims) != 1:
            raise ValueError(f"corpus vectors have mixed dimensions: {sorted(dims)}")
        matrix = np.stack([r.vector for r in rows]).astype(np.float32, copy=True)
        logger.info("index.build n=%d d=%d", matrix.shape[0], matrix.shape[1])
        return cls(rows, matrix)

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def dimension(self) -> int:
        return int(self._matrix.shape[1]) if self.size else 0

    @property
    def entries(self) -> Tuple[CorpusEntry, ...]:
        return self._entries

    def search(self, query_vector: np.ndarray, k: int = 1) -> List[SearchHit]:
        """
        Return up to `k` (entry, distance) pairs, closest first.
        Equal distances keep corpus order, so the earlier entry wins.
        """
        if self.size == 0:
            raise EmptyIndex()
        if k < 1:
            raise ValueError("k must be >= 1")
        q = np.asarray(query_vector, dtype=np.float32).reshape(-1)
        if q.shape[0] != self.dimension:
            raise ValueError(
                f"query dimension {q.shape[0]} does not match index dimension {self.dimension}"
            )
        dists = np.linalg.norm(self._matrix - q, axis=1)
        order = np.argsort(dists, kind="stable")[: min(k, self.size)]
        return [SearchHit(self._entries[int(i)], float(dists[int(i)])) for i in order]


def build_knowledge_index(texts: Sequence[str], embedder) -> KnowledgeIndex:
    """
    Embed the corpus in one batch and build the index. An empty corpus is a
    configuration error.
    """
    corpus = [t for t in texts if t and t.strip()]
    if not corpus:
        raise EmptyIndex()
    with timed(logger, "index.corpus.embed", n=len(corpus)):
        vectors = embedder.embed(corpus)
    return KnowledgeIndex.build(list(zip(corpus, vectors)))
