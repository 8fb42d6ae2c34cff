# util/errors.py
from typing import Dict, Optional
from fastapi import HTTPException, status
from util.enums import ErrorMessage


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self,
        message: str,
        http_status: int = status.HTTP_400_BAD_REQUEST,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=http_status, detail=message, headers=headers)

    @property
    def message(self) -> str:
        return str(self.detail)


class _KnownError(AppError):
    error: ErrorMessage

    def __init__(
        self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None
    ) -> None:
        info = self.error.value
        super().__init__(message or info.message, info.http_status, headers)


class MalformedDocument(_KnownError):
    error = ErrorMessage.MALFORMED_DOCUMENT


class EmptyDocument(_KnownError):
    error = ErrorMessage.EMPTY_DOCUMENT


class EmptyQuery(_KnownError):
    error = ErrorMessage.EMPTY_QUERY


class EmptyIndex(_KnownError):
    error = ErrorMessage.EMPTY_INDEX


class GenerationTimeout(_KnownError):
    error = ErrorMessage.GENERATION_TIMEOUT

    def __init__(self, message: Optional[str] = None, retry_after: int = 30) -> None:
        super().__init__(message, headers={"Retry-After": str(retry_after)})
