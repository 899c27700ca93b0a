"""
ContactBook Backend - Password Hashing & Access Tokens
======================================================

What:  bcrypt password hashing and HS256 JWT access tokens.
Why:   Credentials are never stored in plain text; sessions are stateless
       bearer tokens so no server-side session store is needed.
How:   bcrypt runs in Starlette's threadpool (it is CPU-bound and would
       otherwise stall the event loop); PyJWT signs and verifies tokens.

Token payload:
    {"sub": <user id>, "userId": <user id>, "type": "access", "iat": ..., "exp": ...}

    There is no revocation list: a token stays valid until ``exp`` no matter
    what happens to the user afterwards.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from starlette.concurrency import run_in_threadpool

from contactbook.config import settings

ACCESS_TOKEN_TYPE = "access"


class InvalidTokenError(Exception):
    """Token is malformed, tampered with, expired, or not an access token."""


@dataclass(frozen=True)
class TokenPayload:
    user_id: str
    expires_at: datetime


def _hash_sync(password: str, rounds: int) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def _verify_sync(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Corrupt hash or over-long input
        return False


async def hash_password(password: str, rounds: Optional[int] = None) -> str:
    return await run_in_threadpool(_hash_sync, password, rounds or settings.bcrypt_rounds)


async def verify_password(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(_verify_sync, password, password_hash)


def create_access_token(user_id: str, expires_in: Optional[int] = None) -> str:
    """Sign an access token for ``user_id`` valid for ``expires_in`` seconds."""
    now = datetime.now(timezone.utc)
    lifetime = expires_in if expires_in is not None else settings.jwt_access_token_expiry
    payload: Dict[str, Any] = {
        "sub": user_id,
        "userId": user_id,
        "type": ACCESS_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=lifetime)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload:
    """
    Verify signature and expiry, then extract the user id.

    Raises:
        InvalidTokenError: for any verification failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidTokenError(str(e)) from e

    user_id = payload.get("userId")
    if payload.get("type") != ACCESS_TOKEN_TYPE or not isinstance(user_id, str) or not user_id:
        raise InvalidTokenError("Token is not an access token")

    return TokenPayload(
        user_id=user_id,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
