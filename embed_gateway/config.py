# embed_gateway/config.py
import enum
import warnings

from pydantic_settings import BaseSettings


class AuthPolicy(str, enum.Enum):
    """How a resolved token is bound to the calling origin."""

    TOKEN_ONLY = "token_only"
    TOKEN_WITH_OPTIONAL_ORIGIN = "token_with_optional_origin"
    TOKEN_WITH_REQUIRED_ORIGIN = "token_with_required_origin"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./embed_gateway.db"

    # Embedding provider
    provider: str = "openai"  # "openai" | "remote"
    openai_api_key: str = ""
    embedding_model: str = "text-embedding-3-small"
    remote_backend_url: str = ""
    provider_timeout: float = 30.0

    # Auth
    auth_policy: AuthPolicy = AuthPolicy.TOKEN_WITH_OPTIONAL_ORIGIN
    registration_secret: str = ""  # Empty: registration needs no bearer
    registration_path_marker: str = ""  # e.g. "/wp-admin"

    # Quotas
    default_daily_limit: int = 1000
    default_total_limit: int = 100_000
    charge_cache_hits: bool = False

    # Batch limits
    max_batch_size: int = 100

    log_level: str = "INFO"
    cors_allow_origins: list[str] = ["*"]

    class Config:
        env_file = ".env"

    def validate_provider(self) -> None:
        """Validate that the selected provider is configured.

        Call this at application startup to fail fast if credentials are missing.
        """
        if self.provider not in ("openai", "remote"):
            raise ValueError(f"Unknown embedding provider: {self.provider}")
        if self.provider == "openai" and not self.openai_api_key:
            raise ValueError(
                "Provider 'openai' selected but OPENAI_API_KEY is not set. "
                "Set it before starting the server."
            )
        if self.provider == "remote" and not self.remote_backend_url:
            raise ValueError(
                "Provider 'remote' selected but REMOTE_BACKEND_URL is not set. "
                "Set it before starting the server."
            )


settings = Settings()

# Warn at import time if the provider is not configured (don't fail yet for tests)
if settings.provider == "openai" and not settings.openai_api_key:
    warnings.warn(
        "OPENAI_API_KEY not configured. Cache misses will fail until it is set.",
        UserWarning,
    )
