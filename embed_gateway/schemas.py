# embed_gateway/schemas.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# Client schemas
class RegisterResponse(BaseModel):
    id: int
    origin: str
    api_token: str
    daily_limit: int
    total_limit: int


class ValidateRequest(BaseModel):
    token: Optional[str] = None
    origin: Optional[str] = None


class QuotasExceeded(BaseModel):
    daily: bool
    total: bool


class ClientInfo(BaseModel):
    id: int
    origin: str
    daily_limit: int
    total_limit: int
    used_daily: int
    used_total: int
    quotas_exceeded: QuotasExceeded


class ValidateResponse(BaseModel):
    valid: bool
    client: ClientInfo


# Embedding schemas
class EmbeddingsRequest(BaseModel):
    texts: list[str] = Field(min_length=1)


class EmbeddingItem(BaseModel):
    id: int
    text: str
    reused: bool
    embedding: list[float]


class EmbeddingsResponse(BaseModel):
    embeddings: list[EmbeddingItem]


class EmbeddingRecordResponse(BaseModel):
    id: int
    text: str
    embedding: list[float]
    dimensions: int
    created_at: Optional[datetime] = None


# Health schemas
class HealthResponse(BaseModel):
    status: str
    version: str
