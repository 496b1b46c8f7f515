# tests/test_quota.py
from datetime import timedelta

import pytest
from embed_gateway.errors import DailyQuotaExceededError, TotalQuotaExceededError
from embed_gateway.models import Client
from embed_gateway.quota import admit, consume, ensure_available, quota_status, reset_daily_usage
from embed_gateway.registry import utc_today

TODAY = utc_today()
YESTERDAY = TODAY - timedelta(days=1)


def test_admit_under_limits(db, make_client):
    client, _ = make_client(daily_limit=10, total_limit=100, used_daily=3, used_total=30)
    assert admit(db, client, TODAY).id == client.id


def test_admit_daily_exceeded(db, make_client):
    client, _ = make_client(daily_limit=5, used_daily=5)
    with pytest.raises(DailyQuotaExceededError) as exc_info:
        admit(db, client, TODAY)
    assert exc_info.value.status_code == 429


def test_admit_total_exceeded(db, make_client):
    client, _ = make_client(daily_limit=5, total_limit=20, used_daily=0, used_total=20)
    with pytest.raises(TotalQuotaExceededError) as exc_info:
        admit(db, client, TODAY)
    assert exc_info.value.status_code == 402


def test_admit_checks_daily_before_total(db, make_client):
    client, _ = make_client(daily_limit=5, total_limit=5, used_daily=5, used_total=5)
    with pytest.raises(DailyQuotaExceededError):
        admit(db, client, TODAY)


def test_daily_reset_before_admission(db, make_client):
    """Yesterday's exhausted quota does not block today's first request."""
    client, _ = make_client(daily_limit=5, used_daily=5, used_total=5, last_reset=YESTERDAY)

    admit(db, client, TODAY)

    db.refresh(client)
    assert client.used_daily == 0
    assert client.used_total == 5
    assert client.last_reset == TODAY


def test_reset_only_moves_forward(db, make_client):
    client, _ = make_client(used_daily=4, last_reset=TODAY)

    assert reset_daily_usage(db, client.id, YESTERDAY) is False
    db.refresh(client)
    assert client.used_daily == 4
    assert client.last_reset == TODAY


def test_reset_happens_once(db, make_client):
    client, _ = make_client(used_daily=4, last_reset=YESTERDAY)

    assert reset_daily_usage(db, client.id, TODAY) is True
    assert reset_daily_usage(db, client.id, TODAY) is False


def test_consume_increments_both_counters(db, make_client):
    client, _ = make_client(used_daily=1, used_total=10)

    consume(db, client.id, 2, TODAY)

    db.refresh(client)
    assert (client.used_daily, client.used_total) == (3, 12)


def test_consume_refuses_past_daily_limit(db, make_client):
    client, _ = make_client(daily_limit=2, used_daily=2, used_total=2)

    with pytest.raises(DailyQuotaExceededError):
        consume(db, client.id, 1, TODAY)

    db.refresh(client)
    assert (client.used_daily, client.used_total) == (2, 2)


def test_consume_refuses_past_total_limit(db, make_client):
    client, _ = make_client(daily_limit=10, total_limit=3, used_daily=0, used_total=3)

    with pytest.raises(TotalQuotaExceededError):
        consume(db, client.id, 1, TODAY)


def test_consume_zero_is_noop(db, make_client):
    client, _ = make_client(used_daily=1)
    consume(db, client.id, 0, TODAY)
    db.refresh(client)
    assert client.used_daily == 1


def test_interleaved_requests_cannot_overrun(session_factory, make_client):
    """Two requests both pass admission on the same snapshot; only one may charge."""
    client, _ = make_client(daily_limit=1, total_limit=100)

    first = session_factory()
    second = session_factory()
    try:
        a = first.get(Client, client.id)
        b = second.get(Client, client.id)
        admit(first, a, TODAY)
        admit(second, b, TODAY)

        consume(first, a.id, 1, TODAY)
        with pytest.raises(DailyQuotaExceededError):
            consume(second, b.id, 1, TODAY)
    finally:
        first.close()
        second.close()

    check = session_factory()
    try:
        stored = check.get(Client, client.id)
        assert stored.used_daily <= stored.daily_limit
        assert stored.used_daily == 1
    finally:
        check.close()


def test_naive_read_then_write_overruns(session_factory, make_client):
    """Counter-example: separate read/compare/write lets both requests through."""
    client, _ = make_client(daily_limit=1, total_limit=100)

    first = session_factory()
    second = session_factory()
    try:
        a = first.get(Client, client.id)
        b = second.get(Client, client.id)
        seen_a, seen_b = a.used_daily, b.used_daily
        assert seen_a < a.daily_limit and seen_b < b.daily_limit

        a.used_daily = seen_a + 1
        first.commit()
        b.used_daily = seen_b + 1
        second.commit()
    finally:
        first.close()
        second.close()

    check = session_factory()
    try:
        stored = check.get(Client, client.id)
        # Lost update: two admitted units, counter says one
        assert stored.used_daily == 1
    finally:
        check.close()


def test_many_units_never_exceed_limits(db, make_client):
    client, _ = make_client(daily_limit=7, total_limit=100)

    admitted = 0
    for _ in range(20):
        try:
            consume(db, client.id, 1, TODAY)
            admitted += 1
        except DailyQuotaExceededError:
            pass

    db.refresh(client)
    assert admitted == 7
    assert client.used_daily == 7


def test_quota_status_stale_day(make_client):
    client, _ = make_client(daily_limit=5, total_limit=10, used_daily=5, used_total=6, last_reset=YESTERDAY)

    status = quota_status(client, TODAY)

    assert status["used_daily"] == 0
    assert status["used_total"] == 6
    assert status["quotas_exceeded"] == {"daily": False, "total": False}


def test_quota_status_exceeded_flags(make_client):
    client, _ = make_client(daily_limit=5, total_limit=10, used_daily=5, used_total=10)

    status = quota_status(client, TODAY)

    assert status["quotas_exceeded"] == {"daily": True, "total": True}


def test_ensure_available_does_not_charge(db, make_client):
    client, _ = make_client(daily_limit=2, used_daily=1, used_total=1)

    ensure_available(db, client.id, 1, TODAY)

    db.refresh(client)
    assert (client.used_daily, client.used_total) == (1, 1)


def test_ensure_available_refuses_when_full(db, make_client):
    client, _ = make_client(daily_limit=5, total_limit=3, used_daily=0, used_total=3)

    with pytest.raises(TotalQuotaExceededError):
        ensure_available(db, client.id, 1, TODAY)


def test_ensure_available_applies_daily_reset(db, make_client):
    client, _ = make_client(daily_limit=1, used_daily=1, last_reset=YESTERDAY)

    ensure_available(db, client.id, 1, TODAY)

    db.refresh(client)
    assert client.used_daily == 0
