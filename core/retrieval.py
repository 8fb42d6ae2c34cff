# core/retrieval.py
from typing import Optional
from core.embeddings import EmbeddingService
from core.knowledge_index import VectorIndex
import logging

logger = logging.getLogger(__name__)


class Retriever:
    """
    Nearest-neighbor grounding for chat queries.

    With max_distance unset the closest entry is always returned, however far
    away it is. When set, a farther best match yields an empty context.
    """

    def __init__(
        self,
        embedder: EmbeddingService,
        index: VectorIndex,
        max_distance: Optional[float] = None,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._max_distance = max_distance

    def retrieve_context(self, query: str) -> str:
        vec = self._embedder.embed_one(query)
        best = self._index.search(vec, k=1)[0]
        if self._max_distance is not None and best.distance > self._max_distance:
            logger.info(
                "retrieve.below_threshold dist=%.4f max=%.4f",
                best.distance,
                self._max_distance,
            )
            return ""
        logger.info("retrieve.hit dist=%.4f", best.distance)
        return best.entry.text
