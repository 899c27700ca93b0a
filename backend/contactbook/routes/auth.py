"""
ContactBook Backend - Auth Route Handlers
==========================================

What:  POST /auth/register, POST /auth/login, GET /auth/me.
How:   Bodies are validated by Pydantic before the handler runs; the
       handlers call AuthService and sign tokens.

Login failure responses are byte-for-byte identical whether the email is
unknown or the password is wrong, so the endpoint cannot be used to
enumerate registered addresses.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.database import get_db_session
from contactbook.dependencies import require_auth
from contactbook.exceptions import NotFoundError, UnauthorizedError
from contactbook.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from contactbook.schemas.common import ErrorResponse
from contactbook.security import create_access_token
from contactbook.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _invalid_credentials() -> UnauthorizedError:
    return UnauthorizedError(code="INVALID_CREDENTIALS", message="Invalid email or password.")


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Validation failed", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user = await auth_service.create_user(db, body.name, body.email, body.password)
    return AuthResponse(
        token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Validation failed", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
    },
    summary="Exchange email and password for an access token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user = await auth_service.find_user_by_email(db, body.email)
    if user is None:
        raise _invalid_credentials()

    if not await auth_service.validate_password(user, body.password):
        logger.info("Failed login for user %s", user.id)
        raise _invalid_credentials()

    return AuthResponse(
        token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.get(
    "/me",
    response_model=UserResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Account no longer exists", "model": ErrorResponse},
    },
    summary="Current user",
)
async def me(
    user_id: str = Depends(require_auth),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    user = await auth_service.get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError(code="USER_NOT_FOUND", message="User not found.")
    return UserResponse.model_validate(user)
