# controller/health_controller.py
from fastapi import APIRouter, Depends
from model.api import HealthResponse
from service.assistant_service import AssistantService
from util.constants import InternalURIs
from controller.controller_dependencies import get_assistant_service

health_router = APIRouter()


@health_router.get(InternalURIs.HEALTH, response_model=HealthResponse)
async def healthz(
    service: AssistantService = Depends(get_assistant_service),
) -> HealthResponse:
    return service.health()
