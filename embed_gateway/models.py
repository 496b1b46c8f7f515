# embed_gateway/models.py
from datetime import datetime
from sqlalchemy import Column, Date, DateTime, Integer, LargeBinary, String, Text, Index
from embed_gateway.database import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    origin = Column(String, unique=True, nullable=False)
    api_token = Column(String, unique=True, nullable=False)  # SHA-256 of the issued token
    token_prefix = Column(String, nullable=False)
    daily_limit = Column(Integer, nullable=False)
    total_limit = Column(Integer, nullable=False)
    used_daily = Column(Integer, nullable=False, default=0)
    used_total = Column(Integer, nullable=False, default=0)
    last_reset = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class EmbeddingRecord(Base):
    __tablename__ = "embeddings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    text_hash = Column(String(64), nullable=False)
    embedding = Column(LargeBinary, nullable=False)
    dimensions = Column(Integer, nullable=False)
    model = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_embeddings_text_hash", "text_hash", unique=True),
    )
