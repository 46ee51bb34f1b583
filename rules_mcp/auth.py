"""
API key validation module.

Authentication is optional: when ``settings.api_key`` is unset every
request is accepted. When it is set, HTTP clients must send the key either
as ``X-API-Key`` or as ``Authorization: Bearer <key>``. The stdio transport
is not authenticated.
"""

import hashlib
import hmac

from fastapi import Header, HTTPException

from .config import settings


def hash_api_key(key: str) -> str:
    """Hash an API key using SHA-256."""
    return hashlib.sha256(key.encode()).hexdigest()


def extract_api_key(x_api_key: str | None, authorization: str | None) -> str | None:
    """Pick the API key out of the request headers."""
    if x_api_key:
        return x_api_key
    if authorization:
        return authorization[7:] if authorization.startswith("Bearer ") else authorization
    return None


def validate_api_key(api_key: str | None) -> bool:
    """Check an API key against the configured one."""
    if not settings.api_key:
        return True
    if not api_key:
        return False
    return hmac.compare_digest(hash_api_key(api_key), hash_api_key(settings.api_key))


async def require_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    authorization: str | None = Header(default=None),
) -> None:
    """FastAPI dependency rejecting requests without a valid API key."""
    if not validate_api_key(extract_api_key(x_api_key, authorization)):
        raise HTTPException(status_code=401, detail="Invalid API key")
