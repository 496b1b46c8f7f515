# embed_gateway/quota.py
"""Daily reset and admission control for client quotas.

Counters are only ever changed through conditional UPDATE statements so two
concurrent requests for the same client cannot both pass a read-then-write
check and overrun a limit.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from embed_gateway.errors import DailyQuotaExceededError, TotalQuotaExceededError
from embed_gateway.metrics import QUOTA_REJECTIONS
from embed_gateway.models import Client
from embed_gateway.registry import get_client, utc_today

logger = logging.getLogger(__name__)


def reset_daily_usage(db: Session, client_id: int, today: Optional[date] = None) -> bool:
    """Zero used_daily if last_reset is before today.

    Returns True if this call performed the reset. last_reset only moves forward.
    """
    today = today or utc_today()
    result = db.execute(
        update(Client)
        .where(
            Client.id == client_id,
            or_(Client.last_reset.is_(None), Client.last_reset < today),
        )
        .values(used_daily=0, last_reset=today)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    if result.rowcount:
        logger.info("Daily usage reset for client %s (%s)", client_id, today)
    return bool(result.rowcount)


def _reject(client: Client, n: int) -> None:
    if client.used_daily + n > client.daily_limit:
        QUOTA_REJECTIONS.labels(kind="daily").inc()
        logger.info("Client %s over daily quota (%s/%s)", client.id, client.used_daily, client.daily_limit)
        raise DailyQuotaExceededError()
    QUOTA_REJECTIONS.labels(kind="total").inc()
    logger.info("Client %s over total quota (%s/%s)", client.id, client.used_total, client.total_limit)
    raise TotalQuotaExceededError()


def admit(db: Session, client: Client, today: Optional[date] = None) -> Client:
    """Batch-level admission gate.

    Applies the daily reset first, so the request is judged against the
    post-reset counters. Daily limit is checked before the total limit.
    """
    reset_daily_usage(db, client.id, today)
    db.refresh(client)

    if client.used_daily >= client.daily_limit or client.used_total >= client.total_limit:
        _reject(client, 1)
    return client


def ensure_available(db: Session, client_id: int, n: int = 1, today: Optional[date] = None) -> None:
    """Refuse early if n more units would not fit. Read-only apart from the daily reset.

    Only a hint: the charge itself is decided by consume().
    """
    reset_daily_usage(db, client_id, today)
    client = get_client(db, client_id)
    db.refresh(client)
    if client.used_daily + n > client.daily_limit or client.used_total + n > client.total_limit:
        _reject(client, n)


def consume(db: Session, client_id: int, n: int = 1, today: Optional[date] = None) -> None:
    """Atomically charge n units against both counters.

    The increment only applies if neither limit would be exceeded; an
    affected-row count of zero means the charge was refused.
    """
    if n <= 0:
        return
    reset_daily_usage(db, client_id, today)

    result = db.execute(
        update(Client)
        .where(
            Client.id == client_id,
            Client.used_daily + n <= Client.daily_limit,
            Client.used_total + n <= Client.total_limit,
        )
        .values(
            used_daily=Client.used_daily + n,
            used_total=Client.used_total + n,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()

    if result.rowcount == 0:
        client = get_client(db, client_id)
        db.refresh(client)
        _reject(client, n)


def quota_status(client: Client, today: Optional[date] = None) -> dict:
    """Read-only view of a client's effective usage.

    A stale last_reset means the daily counter is effectively zero even
    though it has not been persisted yet.
    """
    today = today or utc_today()
    used_daily = client.used_daily
    if client.last_reset is None or client.last_reset < today:
        used_daily = 0
    return {
        "used_daily": used_daily,
        "used_total": client.used_total,
        "quotas_exceeded": {
            "daily": used_daily >= client.daily_limit,
            "total": client.used_total >= client.total_limit,
        },
    }
