# controller/assistant_controller.py
from fastapi import APIRouter, Depends, File, UploadFile, status
from model.api import ChatRequest, ChatResponse, SummaryResponse
from service.assistant_service import AssistantService
from util.constants import InternalURIs
from controller.controller_dependencies import (
    enforce_max_upload_size,
    get_assistant_service,
    rate_limit_dependencies,
)

assistant_router = APIRouter(dependencies=rate_limit_dependencies())


@assistant_router.post(
    InternalURIs.UPLOAD_DOCUMENT,
    response_model=SummaryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def upload_document(
    file: UploadFile = File(...),
    service: AssistantService = Depends(get_assistant_service),
) -> SummaryResponse:
    return await service.upload_document(file)


@assistant_router.post(InternalURIs.CHAT, response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    service: AssistantService = Depends(get_assistant_service),
) -> ChatResponse:
    return await service.chat_query(payload.query)
