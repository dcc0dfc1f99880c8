"""
X-API-KEY authentication for the alert API.

Keys come from the comma-separated ``API_KEYS`` setting. With no keys
configured every request is accepted, which is how local development runs.
"""

import hmac

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from src.config.settings import get_settings

api_key_header = APIKeyHeader(name="X-API-KEY", auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "APIKey"},
    )


def _matches_any(candidate: str, keys: list[str]) -> bool:
    return any(hmac.compare_digest(candidate.encode(), key.encode()) for key in keys)


async def verify_api_key(api_key: str | None = Security(api_key_header)) -> str:
    """
    Resolve the caller's API key.

    Returns:
        The presented key, or ``"dev-mode"`` when auth is disabled.

    Raises:
        HTTPException: 401 if the header is missing or the key is unknown.
    """
    keys = get_settings().api_key_list
    if not keys:
        return "dev-mode"

    if api_key is None:
        raise _unauthorized("Missing API key. Provide X-API-KEY header.")
    if not _matches_any(api_key, keys):
        raise _unauthorized("Invalid API key")
    return api_key
