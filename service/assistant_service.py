# service/assistant_service.py
import logging
from fastapi import UploadFile
from core.assistant_pipeline import AssistantPipeline
from core.entities import Document
from model.api import ChatResponse, HealthResponse, SummaryResponse
from util.constants import PDF_MEDIA_TYPE
from util.errors import AppError

logger = logging.getLogger(__name__)


class AssistantService:
    """
    Request/response contract over the pipeline. Callers are already
    authenticated upstream.
    """

    def __init__(self, pipeline: AssistantPipeline) -> None:
        self._pipeline = pipeline

    async def upload_document(self, file: UploadFile) -> SummaryResponse:
        """
        Summarize an uploaded file.
        Logs: byte size and media type only (no payloads).
        """
        try:
            data = await file.read()
            await file.seek(0)
        except Exception:
            logger.error("upload.read.error")
            raise

        media_type = file.content_type or PDF_MEDIA_TYPE
        logger.info("upload.start bytes=%d media=%s", len(data), media_type)
        try:
            summary = await self._pipeline.summarize_document(
                Document(data=data, media_type=media_type)
            )
        except AppError as e:
            logger.warning("upload.rejected status=%d", e.status_code)
            raise
        logger.info("upload.ok bytes=%d summary_chars=%d", len(data), len(summary))
        return SummaryResponse(summary=summary)

    async def chat_query(self, text: str) -> ChatResponse:
        try:
            answer = await self._pipeline.answer_query(text)
        except AppError as e:
            logger.warning("chat.rejected status=%d", e.status_code)
            raise
        return ChatResponse(response=answer)

    def health(self) -> HealthResponse:
        return HealthResponse(
            ok=True,
            indexSize=self._pipeline.index.size,
            modelsLoaded=self._pipeline.registry.loaded(),
        )
