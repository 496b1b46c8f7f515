# embed_gateway/errors.py
"""Domain errors raised by the gateway core.

Every error carries the HTTP status it maps to; ``main.py`` turns them into
``{"detail": ...}`` responses at the boundary.
"""


class GatewayError(Exception):
    """Base exception for all gateway domain errors."""

    status_code: int = 500
    detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ValidationError(GatewayError):
    status_code = 400
    detail = "Invalid request"


class AuthError(GatewayError):
    status_code = 401
    detail = "Unauthorized"


class MissingTokenError(AuthError):
    status_code = 401
    detail = "Missing API token"


class InvalidTokenError(AuthError):
    status_code = 403
    detail = "Invalid API token"


class OriginMismatchError(AuthError):
    status_code = 403

    def __init__(self, request_origin: str, client_origin: str) -> None:
        self.request_origin = request_origin
        self.client_origin = client_origin
        super().__init__(
            f"Origin mismatch: request origin '{request_origin}' "
            f"does not match registered origin '{client_origin}'"
        )


class QuotaError(GatewayError):
    status_code = 429


class DailyQuotaExceededError(QuotaError):
    status_code = 429
    detail = "Daily quota exceeded"


class TotalQuotaExceededError(QuotaError):
    status_code = 402
    detail = "Total quota exceeded"


class ConflictError(GatewayError):
    status_code = 409
    detail = "Origin already registered"


class NotFoundError(GatewayError):
    status_code = 404
    detail = "Not found"


class ProviderError(GatewayError):
    """Raised when the embedding provider call fails. Never retried by the core."""

    status_code = 500
    detail = "Embedding provider error"
