# embed_gateway/providers.py
"""Embedding provider clients.

The gateway never computes vectors itself; it hands a single text to one of
these clients and stores what comes back. Retries, if any, belong here and
not in the gateway core.
"""

import logging
from typing import List, Optional

import httpx
from fastapi import Request

from embed_gateway.config import Settings, settings
from embed_gateway.errors import ProviderError

logger = logging.getLogger(__name__)


class EmbeddingProvider:
    """Interface for embedding providers."""

    model: str = ""

    async def embed(self, text: str) -> List[float]:
        """Embed a single text string.

        Args:
            text: Input text

        Returns:
            Embedding vector

        Raises:
            ProviderError: if the provider call fails
        """
        raise NotImplementedError


class OpenAIProvider(EmbeddingProvider):
    """OpenAI embedding provider using the OpenAI API."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """Initialize OpenAI provider.

        Args:
            model: OpenAI model name
            api_key: OpenAI API key
            timeout: Request timeout in seconds
        """
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self._client: Optional[object] = None

    def _load_client(self):
        """Lazy load the async OpenAI client."""
        if self._client is not None:
            return

        if not self.api_key:
            raise ProviderError("OpenAI provider not configured. Set OPENAI_API_KEY.")

        from openai import AsyncOpenAI
        logger.info("Initializing OpenAI client with model %s", self.model)
        self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)

    async def embed(self, text: str) -> List[float]:
        self._load_client()
        try:
            response = await self._client.embeddings.create(
                input=[text],
                model=self.model,
            )
        except Exception as e:
            raise ProviderError(f"OpenAI embedding request failed: {type(e).__name__}") from e

        if not response.data:
            raise ProviderError("OpenAI returned no embedding")
        return list(response.data[0].embedding)


class RemoteProvider(EmbeddingProvider):
    """Remote embedding provider via an HTTP backend."""

    def __init__(self, backend_url: str, timeout: float = 30.0, model: str = "text-embedding-3-small"):
        """Initialize remote provider.

        Args:
            backend_url: Backend service URL
            timeout: Request timeout in seconds
            model: Model name to request
        """
        self.backend_url = backend_url.rstrip("/")
        self.timeout = timeout
        self.model = model

    async def embed(self, text: str) -> List[float]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.backend_url}/embed",
                    json={"texts": [text], "model": self.model},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise ProviderError(f"Remote backend timeout: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Remote backend error: {e}") from e

        try:
            return [float(x) for x in data["embeddings"][0]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderError("Remote backend returned a malformed response") from e


def build_provider(config: Settings) -> EmbeddingProvider:
    """Create the provider selected in configuration."""
    if config.provider == "remote":
        return RemoteProvider(
            config.remote_backend_url,
            timeout=config.provider_timeout,
            model=config.embedding_model,
        )
    if config.provider == "openai":
        return OpenAIProvider(
            model=config.embedding_model,
            api_key=config.openai_api_key or None,
            timeout=config.provider_timeout,
        )
    raise ValueError(f"Unknown embedding provider: {config.provider}")


def get_provider(request: Request) -> EmbeddingProvider:
    """FastAPI dependency returning the provider built at startup."""
    provider = getattr(request.app.state, "provider", None)
    if provider is None:
        provider = build_provider(settings)
        request.app.state.provider = provider
    return provider
