# controller/controller_dependencies.py
from typing import List
from fastapi import Depends, File, HTTPException, Request, UploadFile
from fastapi.params import Depends as DependsParam
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from service.assistant_service import AssistantService


def get_assistant_service(request: Request) -> AssistantService:
    return AssistantService(request.app.state.pipeline)


def rate_limit_dependencies() -> List[DependsParam]:
    """Router-level limiter, only when a Redis-backed limiter is configured."""
    if not settings.RATE_LIMIT_ENABLED:
        return []
    return [
        Depends(
            RateLimiter(times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS)
        )
    ]


async def enforce_max_upload_size(
    request: Request, file: UploadFile = File(...)
) -> UploadFile:
    # Fast pre-check via Content-Length if present
    MAX_BYTES = settings.MAX_FILE_MB * 1024 * 1024
    cl = request.headers.get("content-length")
    if cl and cl.isdigit() and int(cl) > MAX_BYTES:
        raise HTTPException(
            status_code=413,
            detail={
                "ok": False,
                "error": "file_too_large",
                "maxMb": settings.MAX_FILE_MB,
            },
        )

    # Hard cap while reading initial bytes (works even if no Content-Length)
    blob = await file.read(MAX_BYTES + 1)
    if len(blob) > MAX_BYTES:
        raise HTTPException(
            status_code=413,
            detail={
                "ok": False,
                "error": "file_too_large",
                "maxMb": settings.MAX_FILE_MB,
            },
        )

    # Reset so downstream can re-read file stream
    await file.seek(0)
    return file
