# tests/conftest.py
# Set environment variables BEFORE any imports that read them
import os
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["OPENAI_API_KEY"] = "test-openai-key-for-testing-only"
os.environ["AUTH_POLICY"] = "token_with_optional_origin"

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from embed_gateway.database import Base
from embed_gateway.errors import ProviderError
from embed_gateway.models import Client
from embed_gateway.crypto import hash_api_token, get_token_prefix
from embed_gateway.registry import utc_today


class FakeProvider:
    """Deterministic provider that records every text it embeds."""

    model = "fake-embedding"

    def __init__(self, dimensions: int = 4, fail_on: set[str] | None = None):
        self.dimensions = dimensions
        self.fail_on = fail_on or set()
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.fail_on:
            raise ProviderError("provider unavailable")
        seed = sum(text.encode()) % 97
        return [(seed + i) / 100.0 for i in range(self.dimensions)]


@pytest.fixture
def session_factory(tmp_path):
    """File-backed SQLite so several sessions see the same data."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'gateway.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def make_client(db):
    """Insert a client directly with a known token."""
    counter = {"n": 0}

    def _make(
        origin: str = "https://example.com",
        daily_limit: int = 1000,
        total_limit: int = 100000,
        used_daily: int = 0,
        used_total: int = 0,
        last_reset: date | None = None,
        token: str | None = None,
    ) -> tuple[Client, str]:
        counter["n"] += 1
        token = token or f"emb_test_token_{counter['n']}"
        client = Client(
            origin=origin,
            api_token=hash_api_token(token),
            token_prefix=get_token_prefix(token),
            daily_limit=daily_limit,
            total_limit=total_limit,
            used_daily=used_daily,
            used_total=used_total,
            last_reset=last_reset or utc_today(),
        )
        db.add(client)
        db.commit()
        db.refresh(client)
        return client, token

    return _make


@pytest.fixture
def make_provider():
    return FakeProvider
