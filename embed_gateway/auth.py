# embed_gateway/auth.py
import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from embed_gateway.config import AuthPolicy, settings
from embed_gateway.database import get_db
from embed_gateway.errors import (
    InvalidTokenError,
    MissingTokenError,
    OriginMismatchError,
    ValidationError,
)
from embed_gateway.models import Client
from embed_gateway.normalize import normalize_origin
from embed_gateway.registry import get_client_by_token

logger = logging.getLogger(__name__)


def authenticate(
    db: Session,
    token: Optional[str],
    request_origin: Optional[str],
    policy: AuthPolicy = AuthPolicy.TOKEN_WITH_OPTIONAL_ORIGIN,
) -> Client:
    """Resolve a token to a client and enforce the origin binding.

    resolve token -> require match -> optionally require origin binding.
    Never mutates the client.
    """
    if not token:
        raise MissingTokenError()

    client = get_client_by_token(db, token)
    if client is None:
        logger.warning("Rejected request with unknown token")
        raise InvalidTokenError()

    if policy == AuthPolicy.TOKEN_ONLY:
        return client

    canonical_request = normalize_origin(request_origin)
    if not canonical_request:
        if policy == AuthPolicy.TOKEN_WITH_REQUIRED_ORIGIN:
            raise ValidationError("Missing Origin header")
        # TODO: switch the default policy to TOKEN_WITH_REQUIRED_ORIGIN once
        # non-browser callers have migrated to sending an Origin header.
        logger.warning("Client %s authenticated without an Origin header", client.id)
        return client

    canonical_client = normalize_origin(client.origin)
    if canonical_request != canonical_client:
        logger.warning(
            "Origin mismatch for client %s: %s != %s",
            client.id, canonical_request, canonical_client,
        )
        raise OriginMismatchError(canonical_request, canonical_client)

    return client


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[7:].strip() or None


def get_bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    return parse_bearer(authorization)


def get_request_origin(
    origin: Optional[str] = Header(None),
    referer: Optional[str] = Header(None),
) -> Optional[str]:
    """Origin header, falling back to Referer."""
    return origin or referer


def get_auth_policy() -> AuthPolicy:
    return settings.auth_policy


def get_current_client(
    token: Optional[str] = Depends(get_bearer_token),
    request_origin: Optional[str] = Depends(get_request_origin),
    policy: AuthPolicy = Depends(get_auth_policy),
    db: Session = Depends(get_db),
) -> Client:
    """FastAPI dependency: authenticated client for the current request."""
    return authenticate(db, token, request_origin, policy)
