# config/settings.py
import os
import sys
from typing import List, Optional, Tuple
from dotenv import load_dotenv
from pydantic import ValidationError, Field, field_validator
from pydantic_settings import BaseSettings
from util import constants
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    HOST: str = Field(default="127.0.0.1", validation_alias="HOST")
    PORT: int = Field(default=8000, validation_alias="PORT")

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(
        default="http://localhost:3000", validation_alias="ALLOWED_ORIGIN"
    )
    MAX_FILE_MB: int = Field(default=20, validation_alias="MAX_FILE_MB")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Rate limiting (Redis-backed, off unless a Redis is available)
    RATE_LIMIT_ENABLED: bool = Field(default=False, validation_alias="RATE_LIMIT_ENABLED")
    REDIS_URL: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    RATE_LIMIT_TIMES: int = Field(default=30, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")

    # Embedding Engine
    EMBEDDING_MODEL_NAME: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        validation_alias="EMBEDDING_MODEL_NAME",
    )
    EMBEDDING_MAX_TOKENS: int = Field(default=256, validation_alias="EMBEDDING_MAX_TOKENS")
    EMBEDDING_BATCH_SIZE: int = Field(default=64, validation_alias="EMBEDDING_BATCH_SIZE")

    # Generation Engine
    GENERATION_MODEL_NAME: str = Field(
        default="facebook/bart-large-cnn", validation_alias="GENERATION_MODEL_NAME"
    )
    MAX_DOCUMENT_CHARS: int = Field(default=3000, validation_alias="MAX_DOCUMENT_CHARS")
    SUMMARY_LENGTH_BAND: Tuple[int, int] = Field(
        default=(30, 150), validation_alias="SUMMARY_LENGTH_BAND"
    )
    CHAT_LENGTH_BAND: Tuple[int, int] = Field(
        default=(10, 60), validation_alias="CHAT_LENGTH_BAND"
    )
    WARM_MODELS_ON_STARTUP: bool = Field(
        default=True, validation_alias="WARM_MODELS_ON_STARTUP"
    )

    # Inference workers
    INFERENCE_WORKERS: int = Field(default=4, validation_alias="INFERENCE_WORKERS")
    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=120.0, validation_alias="REQUEST_TIMEOUT_SECONDS"
    )

    # OCR
    OCR_ENABLED: bool = Field(default=True, validation_alias="OCR_ENABLED")
    OCR_LANGUAGE: str = Field(default="eng", validation_alias="OCR_LANGUAGE")
    TESSERACT_CMD: Optional[str] = Field(default=None, validation_alias="TESSERACT_CMD")

    # Sanitizer
    DENYLIST_TERMS: List[str] = Field(
        default=["badword1", "badword2", "badword3"], validation_alias="DENYLIST_TERMS"
    )
    REDACTION_MARKER: str = Field(
        default=constants.REDACTION_MARKER, validation_alias="REDACTION_MARKER"
    )

    # Knowledge base
    CORPUS_ENTRIES: List[str] = Field(
        default=[
            "Company HR policy allows 2 days of leave per month.",
            "IT support can be contacted at ithelp@company.com.",
            "The next company event will be held on Friday.",
        ],
        validation_alias="CORPUS_ENTRIES",
    )
    RETRIEVAL_MAX_DISTANCE: Optional[float] = Field(
        default=None, validation_alias="RETRIEVAL_MAX_DISTANCE"
    )

    # Logging knobs
    LOGGER_NAME: str = "employee-assistant"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    @field_validator("SUMMARY_LENGTH_BAND", "CHAT_LENGTH_BAND")
    @classmethod
    def _check_band(cls, v: Tuple[int, int]) -> Tuple[int, int]:
        lo, hi = v
        if lo < 0 or lo > hi:
            raise ValueError("length band must satisfy 0 <= min <= max")
        return v


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
