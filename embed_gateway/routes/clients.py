# embed_gateway/routes/clients.py
import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from embed_gateway.auth import authenticate, get_bearer_token
from embed_gateway.config import AuthPolicy, settings
from embed_gateway.database import get_db
from embed_gateway.errors import InvalidTokenError, MissingTokenError, ValidationError
from embed_gateway.quota import quota_status
from embed_gateway.registry import register_client
from embed_gateway.schemas import (
    ClientInfo,
    RegisterResponse,
    ValidateRequest,
    ValidateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["clients"])


def require_registration_secret(token: Optional[str] = Depends(get_bearer_token)) -> None:
    """Guard registration with the shared secret, when one is configured."""
    secret = settings.registration_secret
    if not secret:
        return
    if not token:
        raise MissingTokenError()
    if not secrets.compare_digest(token, secret):
        raise InvalidTokenError()


@router.post(
    "/register-origin",
    response_model=RegisterResponse,
    status_code=201,
    dependencies=[Depends(require_registration_secret)],
)
def register_origin(
    origin: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """Register the calling Origin and issue its API token."""
    if not origin:
        raise ValidationError("Missing Origin header")

    marker = settings.registration_path_marker
    if marker and marker not in origin:
        raise ValidationError(f"Origin header must contain {marker}")

    client, token = register_client(db, origin)

    return RegisterResponse(
        id=client.id,
        origin=client.origin,
        api_token=token,
        daily_limit=client.daily_limit,
        total_limit=client.total_limit,
    )


@router.post("/validate", response_model=ValidateResponse)
def validate(request: ValidateRequest, db: Session = Depends(get_db)):
    """Check a token/origin pair and report the client's quota state."""
    if not request.token or not request.origin:
        raise ValidationError("token and origin are required")

    client = authenticate(
        db, request.token, request.origin, AuthPolicy.TOKEN_WITH_REQUIRED_ORIGIN
    )
    status = quota_status(client)

    return ValidateResponse(
        valid=True,
        client=ClientInfo(
            id=client.id,
            origin=client.origin,
            daily_limit=client.daily_limit,
            total_limit=client.total_limit,
            **status,
        ),
    )
