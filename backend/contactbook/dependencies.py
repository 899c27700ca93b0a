"""
ContactBook Backend - Authentication Dependencies
==================================================

What:  FastAPI dependencies that resolve the caller's identity from a
       ``Authorization: Bearer <token>`` header.
Why:   Routes declare ``user_id: str = Depends(require_auth)`` and never touch
       headers or tokens themselves.
How:   HTTPBearer(auto_error=False) extracts the credentials without raising;
       we raise our own UnauthorizedError so the error body matches every
       other API error.

Variants:
    require_auth:   401 on any failure; the route handler never runs
    optional_auth:  None on any failure; the request proceeds anonymously
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from contactbook.exceptions import UnauthorizedError
from contactbook.security import InvalidTokenError, decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

MISSING_HEADER_MESSAGE = "Access denied. Missing or invalid authorization header."
INVALID_TOKEN_MESSAGE = "Invalid or expired token."


def _is_bearer(credentials: Optional[HTTPAuthorizationCredentials]) -> bool:
    # HTTPBearer accepts any casing of the scheme; only "Bearer" is honoured here
    return (
        credentials is not None
        and credentials.scheme == "Bearer"
        and bool(credentials.credentials)
    )


async def require_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Return the authenticated user id or raise 401 UNAUTHORIZED."""
    if not _is_bearer(credentials):
        raise UnauthorizedError(message=MISSING_HEADER_MESSAGE)

    try:
        payload = decode_access_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.info("Rejected bearer token: %s", str(e))
        raise UnauthorizedError(message=INVALID_TOKEN_MESSAGE)

    request.state.user_id = payload.user_id
    return payload.user_id


async def optional_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    if not _is_bearer(credentials):
        return None
    try:
        payload = decode_access_token(credentials.credentials)
    except InvalidTokenError:
        return None

    request.state.user_id = payload.user_id
    return payload.user_id
