# embed_gateway/gateway.py
import logging
from datetime import date
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from embed_gateway.cache import ResolvedEmbedding, resolve_embedding
from embed_gateway.config import settings
from embed_gateway.errors import ValidationError
from embed_gateway.models import Client
from embed_gateway.providers import EmbeddingProvider
from embed_gateway.quota import admit, consume, ensure_available

logger = logging.getLogger(__name__)


async def embed_texts(
    db: Session,
    client: Client,
    texts: Sequence[str],
    provider: EmbeddingProvider,
    today: Optional[date] = None,
    charge_cache_hits: Optional[bool] = None,
) -> list[ResolvedEmbedding]:
    """Resolve a batch of texts for an authenticated client.

    The client is admitted once for the batch. Before each miss reaches the
    provider the remaining quota is checked, so a batch larger than the quota
    stops at the first text it cannot pay for. The unit is charged only once
    the provider has returned a vector, and a refused charge stores nothing.
    Anything stored before a failure stays stored and charged.
    """
    if isinstance(texts, str) or not texts:
        raise ValidationError("texts must be a non-empty array")
    if not all(isinstance(t, str) for t in texts):
        raise ValidationError("texts must contain only strings")

    if charge_cache_hits is None:
        charge_cache_hits = settings.charge_cache_hits

    admit(db, client, today)
    client_id = client.id

    def check() -> None:
        ensure_available(db, client_id, 1, today)

    def charge() -> None:
        consume(db, client_id, 1, today)

    results = []
    for text in texts:
        resolved = await resolve_embedding(
            db, text, provider, before_generate=check, before_store=charge
        )
        if resolved.reused and charge_cache_hits:
            charge()
        results.append(resolved)

    generated = sum(1 for r in results if not r.reused)
    logger.info(
        "Client %s batch of %d: %d generated, %d reused",
        client_id, len(results), generated, len(results) - generated,
    )
    return results
