# embed_gateway/routes/embeddings.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from embed_gateway.auth import get_current_client
from embed_gateway.cache import bytes_to_vector, get_embedding_by_id
from embed_gateway.config import settings
from embed_gateway.database import get_db
from embed_gateway.errors import ValidationError
from embed_gateway.gateway import embed_texts
from embed_gateway.models import Client
from embed_gateway.providers import EmbeddingProvider, get_provider
from embed_gateway.schemas import (
    EmbeddingItem,
    EmbeddingRecordResponse,
    EmbeddingsRequest,
    EmbeddingsResponse,
)

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


@router.post("", response_model=EmbeddingsResponse)
async def create_embeddings(
    request: EmbeddingsRequest,
    client: Client = Depends(get_current_client),
    provider: EmbeddingProvider = Depends(get_provider),
    db: Session = Depends(get_db),
):
    """Get embeddings for a batch of texts, reusing stored ones."""
    if len(request.texts) > settings.max_batch_size:
        raise ValidationError(f"Batch size exceeds limit of {settings.max_batch_size}")

    results = await embed_texts(db, client, request.texts, provider)

    return EmbeddingsResponse(
        embeddings=[
            EmbeddingItem(id=r.id, text=r.text, reused=r.reused, embedding=r.vector)
            for r in results
        ]
    )


@router.get("/{embedding_id}", response_model=EmbeddingRecordResponse)
def read_embedding(
    embedding_id: int,
    client: Client = Depends(get_current_client),
    db: Session = Depends(get_db),
):
    """Get a stored embedding by id."""
    record = get_embedding_by_id(db, embedding_id)
    return EmbeddingRecordResponse(
        id=record.id,
        text=record.text,
        embedding=bytes_to_vector(record.embedding),
        dimensions=record.dimensions,
        created_at=record.created_at,
    )
