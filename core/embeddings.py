# core/embeddings.py
from typing import Sequence
import numpy as np
from sentence_transformers import SentenceTransformer
from config.settings import settings
from core.model_registry import ModelRegistry
from util.enums import ModelName
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


def load_embedding_model() -> SentenceTransformer:
    """
    Load the sentence embedding model on CPU.

    max_seq_length is pinned so over-long inputs are cut at the same token
    every time instead of being rejected.
    """
    name = settings.EMBEDDING_MODEL_NAME
    model = SentenceTransformer(name, device="cpu")
    model.max_seq_length = settings.EMBEDDING_MAX_TOKENS
    logger.info("embed.model.ready model=%s max_tokens=%d", name, model.max_seq_length)
    return model


class EmbeddingService:
    def __init__(self, registry: ModelRegistry, batch_size: int | None = None) -> None:
        self._registry = registry
        self._batch_size = batch_size or settings.EMBEDDING_BATCH_SIZE

    def embed(self, texts: Sequence[str]) -> np.ndarray:
        """
        Encode `texts` into L2-normalized float32 vectors, one row per input in
        input order.
        """
        items = list(texts)
        if not items:
            return np.zeros((0, 0), dtype=np.float32)
        model = self._registry.get(ModelName.EMBEDDING)
        with timed(logger, "embed.encode", n=len(items), batch=self._batch_size):
            vecs = model.encode(
                items,
                batch_size=self._batch_size,
                convert_to_numpy=True,
                normalize_embeddings=True,
                show_progress_bar=False,
            )
        emb = np.asarray(vecs, dtype=np.float32)
        if emb.ndim == 1:
            emb = emb.reshape(1, -1)
        if emb.shape[0] != len(items):
            raise RuntimeError(
                f"embedding model returned {emb.shape[0]} vectors for {len(items)} inputs"
            )
        return emb

    def embed_one(self, text: str) -> np.ndarray:
        return self.embed([text])[0]
