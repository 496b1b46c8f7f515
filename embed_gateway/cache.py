# embed_gateway/cache.py
import logging
import struct
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from embed_gateway.errors import NotFoundError, ProviderError
from embed_gateway.metrics import CACHE_HITS, CACHE_MISSES, PROVIDER_FAILURES
from embed_gateway.models import EmbeddingRecord
from embed_gateway.normalize import generate_text_hash
from embed_gateway.providers import EmbeddingProvider

logger = logging.getLogger(__name__)


@dataclass
class ResolvedEmbedding:
    id: int
    text: str
    vector: list[float]
    reused: bool


def vector_to_bytes(vector: list[float]) -> bytes:
    """Convert float vector to bytes for storage."""
    return struct.pack(f"{len(vector)}f", *vector)


def bytes_to_vector(data: bytes) -> list[float]:
    """Convert bytes back to float vector."""
    count = len(data) // 4
    return list(struct.unpack(f"{count}f", data))


def get_cached_embedding(db: Session, text: str) -> Optional[EmbeddingRecord]:
    """Look up a stored embedding by exact text.

    The hash narrows the search; full text equality decides. Lowest id wins
    if duplicates ever exist.
    """
    return (
        db.query(EmbeddingRecord)
        .filter(
            EmbeddingRecord.text_hash == generate_text_hash(text),
            EmbeddingRecord.text == text,
        )
        .order_by(EmbeddingRecord.id)
        .first()
    )


def get_embedding_by_id(db: Session, embedding_id: int) -> EmbeddingRecord:
    record = db.query(EmbeddingRecord).filter(EmbeddingRecord.id == embedding_id).first()
    if record is None:
        raise NotFoundError("Embedding not found")
    return record


def store_embedding(
    db: Session,
    text: str,
    vector: list[float],
    model: Optional[str] = None,
) -> tuple[EmbeddingRecord, bool]:
    """Insert an embedding record for text.

    Returns (record, created). If a concurrent request inserted the same text
    first, the existing record is returned with created=False.
    """
    record = EmbeddingRecord(
        text=text,
        text_hash=generate_text_hash(text),
        embedding=vector_to_bytes(vector),
        dimensions=len(vector),
        model=model,
    )
    db.add(record)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        existing = get_cached_embedding(db, text)
        if existing is None:
            raise exc
        return existing, False
    db.refresh(record)
    return record, True


def _resolved(record: EmbeddingRecord, text: str, reused: bool) -> ResolvedEmbedding:
    return ResolvedEmbedding(
        id=record.id,
        text=text,
        vector=bytes_to_vector(record.embedding),
        reused=reused,
    )


async def resolve_embedding(
    db: Session,
    text: str,
    provider: EmbeddingProvider,
    before_generate: Optional[Callable[[], None]] = None,
    before_store: Optional[Callable[[], None]] = None,
) -> ResolvedEmbedding:
    """Return the embedding for text, generating it on first occurrence.

    On a miss, before_generate runs before the provider is called and
    before_store runs once a vector is back but before it is persisted. The
    orchestrator checks quota in the first and charges in the second, so a
    failed provider call costs nothing and a refused charge stores nothing.
    """
    record = get_cached_embedding(db, text)
    if record is not None:
        CACHE_HITS.inc()
        return _resolved(record, text, reused=True)

    CACHE_MISSES.inc()
    if before_generate is not None:
        before_generate()

    try:
        vector = await provider.embed(text)
    except ProviderError:
        PROVIDER_FAILURES.inc()
        raise
    except Exception as e:
        PROVIDER_FAILURES.inc()
        raise ProviderError(f"Embedding provider failed: {type(e).__name__}") from e

    if not vector:
        PROVIDER_FAILURES.inc()
        raise ProviderError("Embedding provider returned an empty vector")

    if before_store is not None:
        before_store()

    record, created = store_embedding(db, text, vector, model=getattr(provider, "model", None))
    if not created:
        logger.info("Embedding %s was stored by a concurrent request", record.id)
    return _resolved(record, text, reused=not created)
