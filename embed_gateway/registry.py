# embed_gateway/registry.py
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from embed_gateway.config import settings
from embed_gateway.crypto import generate_api_token, get_token_prefix, hash_api_token
from embed_gateway.errors import ConflictError, ValidationError
from embed_gateway.models import Client
from embed_gateway.normalize import normalize_origin

logger = logging.getLogger(__name__)


def utc_today():
    return datetime.now(timezone.utc).date()


def get_client(db: Session, client_id: int) -> Optional[Client]:
    return db.query(Client).filter(Client.id == client_id).first()


def get_client_by_origin(db: Session, origin: str) -> Optional[Client]:
    """Look up a client by origin (normalized before comparison)."""
    canonical = normalize_origin(origin)
    if not canonical:
        return None
    return db.query(Client).filter(Client.origin == canonical).first()


def get_client_by_token(db: Session, token: str) -> Optional[Client]:
    """Resolve a plaintext token to its client, or None."""
    return db.query(Client).filter(Client.api_token == hash_api_token(token)).first()


def register_client(
    db: Session,
    origin: str,
    daily_limit: Optional[int] = None,
    total_limit: Optional[int] = None,
) -> tuple[Client, str]:
    """Register a new origin and issue its token.

    Returns the persisted client and the plaintext token. The token is only
    available here; the registry stores its hash.

    Raises ValidationError for an empty origin and ConflictError when the
    canonical origin is already registered.
    """
    canonical = normalize_origin(origin)
    if not canonical:
        raise ValidationError("Missing or invalid origin")

    daily_limit = settings.default_daily_limit if daily_limit is None else daily_limit
    total_limit = settings.default_total_limit if total_limit is None else total_limit
    if daily_limit <= 0 or total_limit <= 0:
        raise ValidationError("Quota limits must be positive integers")

    if get_client_by_origin(db, canonical):
        raise ConflictError()

    token = generate_api_token()
    client = Client(
        origin=canonical,
        api_token=hash_api_token(token),
        token_prefix=get_token_prefix(token),
        daily_limit=daily_limit,
        total_limit=total_limit,
        used_daily=0,
        used_total=0,
        last_reset=utc_today(),
    )
    db.add(client)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same origin
        db.rollback()
        raise ConflictError()
    db.refresh(client)

    logger.info("Registered client %s for %s (token %s...)", client.id, canonical, client.token_prefix)
    return client, token
