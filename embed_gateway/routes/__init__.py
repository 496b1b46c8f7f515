# embed_gateway/routes/__init__.py
from embed_gateway.routes.clients import router as clients_router
from embed_gateway.routes.embeddings import router as embeddings_router

__all__ = ["clients_router", "embeddings_router"]
