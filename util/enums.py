# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    TEST = "test"
    PROD = "prod"


class ModelName(str, Enum):
    EMBEDDING = "embedding"
    GENERATION = "generation"

    def __str__(self):
        return self.value


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    MALFORMED_DOCUMENT = ErrorInfo(
        "Uploaded file is not a readable document",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    EMPTY_DOCUMENT = ErrorInfo(
        "No text could be extracted from the document",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    EMPTY_QUERY = ErrorInfo(
        "Query is empty after sanitization", status.HTTP_422_UNPROCESSABLE_ENTITY
    )
    EMPTY_INDEX = ErrorInfo(
        "Knowledge base is not configured", status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    GENERATION_TIMEOUT = ErrorInfo(
        "The assistant took too long to respond, please retry",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
