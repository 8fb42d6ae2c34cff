# model/api.py
from typing import List
from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    query: str = Field(max_length=4000)


class ChatResponse(BaseModel):
    response: str


class SummaryResponse(BaseModel):
    summary: str


class HealthResponse(BaseModel):
    ok: bool
    indexSize: int
    modelsLoaded: List[str]
