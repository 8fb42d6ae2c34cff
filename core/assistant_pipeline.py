# core/assistant_pipeline.py
import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional
from config.settings import settings
from core.document_text import DocumentExtractor
from core.embeddings import EmbeddingService, load_embedding_model
from core.entities import Document, LengthBand
from core.generation import Generator, load_generation_model
from core.knowledge_index import VectorIndex, build_knowledge_index
from core.model_registry import ModelRegistry
from core.retrieval import Retriever
from core.sanitizer import Sanitizer
from util import functions
from util.constants import CONTEXT_DELIMITER
from util.enums import ModelName
from util.errors import EmptyDocument, EmptyQuery, GenerationTimeout
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


class AssistantPipeline:
    """
    Composes extraction, sanitization, retrieval and generation into the two
    public operations.

    Blocking work (PyMuPDF/OCR, embedding, generation) runs on a bounded
    thread pool; every request runs under a deadline and overruns surface as
    GenerationTimeout.
    """

    def __init__(
        self,
        *,
        extractor: DocumentExtractor,
        sanitizer: Sanitizer,
        retriever: Retriever,
        generator: Generator,
        registry: ModelRegistry,
        index: VectorIndex,
        max_document_chars: int,
        summary_band: LengthBand,
        chat_band: LengthBand,
        request_timeout: float,
        workers: int = 4,
    ) -> None:
        self._extractor = extractor
        self._sanitizer = sanitizer
        self._retriever = retriever
        self._generator = generator
        self.registry = registry
        self.index = index
        self._max_document_chars = max_document_chars
        self._summary_band = summary_band
        self._chat_band = chat_band
        self._timeout = request_timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, workers), thread_name_prefix="inference"
        )

    async def _blocking(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, *args)

    async def _with_deadline(self, op: str, coro) -> str:
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error("%s.timeout after_s=%.1f", op, self._timeout)
            raise GenerationTimeout()

    async def summarize_document(self, document: Document) -> str:
        return await self._with_deadline("summarize", self._summarize(document))

    async def answer_query(self, query: str) -> str:
        return await self._with_deadline("answer", self._answer(query))

    async def _summarize(self, document: Document) -> str:
        with timed(logger, "summarize", bytes=len(document.data), media=document.media_type):
            extracted = await self._blocking(self._extractor.extract, document)
            if extracted.is_empty:
                logger.warning("summarize.empty fragments=%d", len(extracted.fragments))
                raise EmptyDocument()
            text = functions.clip_chars(extracted.text, self._max_document_chars)
            summary = await self._blocking(
                self._generator.generate,
                text,
                self._summary_band.max_length,
                self._summary_band.min_length,
            )
        logger.info("summarize.ok in_chars=%d out_chars=%d", len(text), len(summary))
        return summary

    async def _answer(self, query: str) -> str:
        clean = self._sanitizer.sanitize(query or "").strip()
        if not clean:
            raise EmptyQuery()
        with timed(logger, "answer", chars=len(clean)):
            context = await self._blocking(self._retriever.retrieve_context, clean)
            prompt = f"{context}{CONTEXT_DELIMITER}{clean}" if context else clean
            answer = await self._blocking(
                self._generator.generate,
                prompt,
                self._chat_band.max_length,
                self._chat_band.min_length,
            )
        logger.info("answer.ok grounded=%s out_chars=%d", bool(context), len(answer))
        return answer

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)


def default_registry() -> ModelRegistry:
    return ModelRegistry(
        {
            ModelName.EMBEDDING: load_embedding_model,
            ModelName.GENERATION: load_generation_model,
        }
    )


def build_pipeline(
    registry: Optional[ModelRegistry] = None,
    extractor: Optional[DocumentExtractor] = None,
    warm: Optional[bool] = None,
) -> AssistantPipeline:
    """
    Startup wiring from settings. Model load failures and an empty corpus
    propagate: the process cannot serve without them.
    """
    registry = registry or default_registry()
    if settings.WARM_MODELS_ON_STARTUP if warm is None else warm:
        registry.warm()

    embedder = EmbeddingService(registry)
    with timed(logger, "startup.index", n=len(settings.CORPUS_ENTRIES)):
        index = build_knowledge_index(settings.CORPUS_ENTRIES, embedder)

    return AssistantPipeline(
        extractor=extractor or DocumentExtractor(),
        sanitizer=Sanitizer(settings.DENYLIST_TERMS, settings.REDACTION_MARKER),
        retriever=Retriever(embedder, index, settings.RETRIEVAL_MAX_DISTANCE),
        generator=Generator(registry),
        registry=registry,
        index=index,
        max_document_chars=settings.MAX_DOCUMENT_CHARS,
        summary_band=LengthBand.of(settings.SUMMARY_LENGTH_BAND),
        chat_band=LengthBand.of(settings.CHAT_LENGTH_BAND),
        request_timeout=settings.REQUEST_TIMEOUT_SECONDS,
        workers=settings.INFERENCE_WORKERS,
    )
