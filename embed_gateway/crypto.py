# embed_gateway/crypto.py
import hashlib
import secrets

TOKEN_PREFIX = "emb_"


def generate_api_token() -> str:
    """Generate a new client token with emb_ prefix (256 bits of entropy)."""
    random_part = secrets.token_hex(32)
    return f"{TOKEN_PREFIX}{random_part}"


def hash_api_token(token: str) -> str:
    """Hash a client token for storage (one-way)."""
    return hashlib.sha256(token.encode()).hexdigest()


def get_token_prefix(token: str) -> str:
    """Get the prefix of a token for identification in logs and the CLI."""
    return token[:12]
