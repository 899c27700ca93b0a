"""
ContactBook Backend - Auth Service
===================================

What:  Account creation, lookups and password checks.
Why:   Keeps credential handling out of the route handlers.
How:   Stateless service; every call receives the request's AsyncSession.

Lookups return None rather than raising: whether a missing user is a 401
(login) or a 404 (/auth/me) is the caller's decision.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.exceptions import ConflictError, DatabaseError
from contactbook.models.user import User
from contactbook.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Business logic for user accounts."""

    async def find_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.email == email))
        except SQLAlchemyError as e:
            logger.error("Database error looking up user by email: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})
        return result.scalar_one_or_none()

    async def get_user_by_id(self, db: AsyncSession, user_id: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.id == user_id))
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(context={"user_id": user_id, "error_type": type(e).__name__})
        return result.scalar_one_or_none()

    async def create_user(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
    ) -> User:
        """
        Register a new account.

        Raises:
            ConflictError (USER_EXISTS): the email is already registered,
                including when a concurrent registration wins the race to
                the unique index.
        """
        if await self.find_user_by_email(db, email) is not None:
            raise ConflictError(
                code="USER_EXISTS",
                message="User already exists with this email.",
            )

        user = User(name=name, email=email, password_hash=await hash_password(password))
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(
                code="USER_EXISTS",
                message="User already exists with this email.",
            )
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("User registered: %s", user.id)
        return user

    async def validate_password(self, user: User, password: str) -> bool:
        return await verify_password(password, user.password_hash)


auth_service = AuthService()
