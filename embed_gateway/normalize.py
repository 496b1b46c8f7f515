# embed_gateway/normalize.py
import hashlib
from typing import Optional
from urllib.parse import urlsplit

DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_origin(value: Optional[str]) -> str:
    """Canonicalize an Origin or Referer value for comparison.

    - Empty or missing values become ""
    - Bare paths ("/wp-admin/foo") are referer fragments, not origins: ""
    - URLs become "scheme://host[:port]", lowercased, default ports dropped
    - Anything unparseable is lowercased with one trailing slash removed
    """
    if not value:
        return ""
    value = value.strip()
    if not value or value.startswith("/"):
        return ""

    try:
        parsed = urlsplit(value)
        # Accessing .port validates it and raises on garbage like "host:abc"
        parsed.port
    except ValueError:
        parsed = None

    if parsed is not None and parsed.scheme and parsed.netloc:
        scheme = parsed.scheme.lower()
        host = parsed.netloc.rsplit("@", 1)[-1]
        if parsed.port is not None and DEFAULT_PORTS.get(scheme) == parsed.port:
            host = host.rsplit(":", 1)[0]
        return f"{scheme}://{host}".lower()

    value = value.lower()
    if value.endswith("/"):
        value = value[:-1]
    return value


def generate_text_hash(text: str) -> str:
    """Generate SHA-256 hash of the exact text (no normalization)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
