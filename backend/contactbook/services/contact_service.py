"""
ContactBook Backend - Contact Service
======================================

What:  Per-user CRUD over contacts, with search, sort and offset pagination.
Why:   Business rules (ownership scoping, email uniqueness per user) live
       here, not in the route handlers.
How:   Stateless service; each method receives the request's AsyncSession
       and the authenticated user id. Every query filters on user_id.

Transactions:
    Create, update and delete commit before returning. A failed commit is
    raised as DatabaseError while the request is still in flight, so the
    client gets a 500 instead of a success status for a lost write.

Ownership:
    A contact that exists but belongs to someone else is reported exactly
    like a missing one (404 CONTACT_NOT_FOUND). There is no 403 path, so
    IDs cannot be probed across accounts.

Pagination:
    (page, limit) → OFFSET (page - 1) * limit LIMIT limit
    total is a COUNT(*) over the same filter; total_pages = ceil(total / limit)
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import Select, asc, delete, desc, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.exceptions import ConflictError, DatabaseError, NotFoundError
from contactbook.models.contact import Contact
from contactbook.schemas.contact import ListContactsParams, Pagination

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Contact.name,
    "email": Contact.email,
    "createdAt": Contact.created_at,
}

UPDATABLE_FIELDS = ("name", "email", "phone")


def _not_found() -> NotFoundError:
    return NotFoundError(code="CONTACT_NOT_FOUND", message="Contact not found")


def _duplicate_email() -> ConflictError:
    return ConflictError(
        code="DUPLICATE_EMAIL",
        message="A contact with this email already exists",
    )


class ContactService:
    """Business logic layer for contact operations."""

    async def _find_owned(
        self, db: AsyncSession, user_id: str, contact_id: str
    ) -> Optional[Contact]:
        result = await db.execute(
            select(Contact).where(Contact.id == contact_id, Contact.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _email_taken(self, db: AsyncSession, user_id: str, email: str) -> bool:
        result = await db.execute(
            select(Contact.id).where(Contact.email == email, Contact.user_id == user_id)
        )
        return result.first() is not None

    async def create_contact(
        self, db: AsyncSession, user_id: str, data: Dict[str, Any]
    ) -> Contact:
        """
        Insert a contact owned by ``user_id``.

        Raises:
            ConflictError (DUPLICATE_EMAIL): the user already has a contact
                with this email.
        """
        try:
            if await self._email_taken(db, user_id, data["email"]):
                raise _duplicate_email()

            contact = Contact(
                name=data["name"],
                email=data["email"],
                phone=data["phone"],
                user_id=user_id,
            )
            db.add(contact)
            await db.commit()
        except IntegrityError:
            # Lost a race against a concurrent insert of the same (email, user)
            await db.rollback()
            raise _duplicate_email()
        except SQLAlchemyError as e:
            logger.error("Database error creating contact: %s", str(e), exc_info=True)
            raise DatabaseError(context={"user_id": user_id, "error_type": type(e).__name__})

        logger.info("Contact %s created for user %s", contact.id, user_id)
        return contact

    def _filtered(self, query: Select, user_id: str, search: str) -> Select:
        query = query.where(Contact.user_id == user_id)
        if search:
            query = query.where(
                or_(
                    Contact.name.icontains(search, autoescape=True),
                    Contact.email.icontains(search, autoescape=True),
                )
            )
        return query

    async def list_contacts(
        self,
        db: AsyncSession,
        user_id: str,
        params: Optional[ListContactsParams] = None,
    ) -> Tuple[List[Contact], Pagination]:
        """
        Return one page of the user's contacts plus pagination metadata.

        Search is a case-insensitive substring match over name OR email;
        LIKE wildcards typed by the user are matched literally. Sorting is
        single-key; the contact id breaks ties so pages never overlap.
        """
        params = params or ListContactsParams()
        column = SORT_COLUMNS[params.sort_by]
        direction = asc if params.sort_order == "asc" else desc

        try:
            count_query = self._filtered(select(func.count(Contact.id)), user_id, params.search)
            total = (await db.execute(count_query)).scalar() or 0

            query = (
                self._filtered(select(Contact), user_id, params.search)
                .order_by(direction(column), direction(Contact.id))
                .offset((params.page - 1) * params.limit)
                .limit(params.limit)
            )
            contacts = list((await db.execute(query)).scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing contacts: %s", str(e), exc_info=True)
            raise DatabaseError(context={"user_id": user_id, "error_type": type(e).__name__})

        pagination = Pagination(
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=math.ceil(total / params.limit),
        )
        return contacts, pagination

    async def get_contact_by_id(
        self, db: AsyncSession, user_id: str, contact_id: str
    ) -> Contact:
        try:
            contact = await self._find_owned(db, user_id, contact_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching contact %s: %s", contact_id, str(e))
            raise DatabaseError(context={"contact_id": contact_id})

        if contact is None:
            raise _not_found()
        return contact

    async def update_contact(
        self,
        db: AsyncSession,
        user_id: str,
        contact_id: str,
        patch: Dict[str, Any],
    ) -> Contact:
        """
        Apply a partial update. Only keys present in ``patch`` change.

        Changing the email re-checks per-user uniqueness; keeping the
        contact's own current email is not a conflict.
        """
        contact = await self.get_contact_by_id(db, user_id, contact_id)
        changes = {k: v for k, v in patch.items() if k in UPDATABLE_FIELDS and v is not None}

        try:
            new_email = changes.get("email")
            if new_email is not None and new_email != contact.email:
                if await self._email_taken(db, user_id, new_email):
                    raise _duplicate_email()

            for field, value in changes.items():
                setattr(contact, field, value)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise _duplicate_email()
        except SQLAlchemyError as e:
            logger.error("Database error updating contact %s: %s", contact_id, str(e), exc_info=True)
            raise DatabaseError(context={"contact_id": contact_id})

        logger.info("Contact %s updated (%s)", contact_id, ", ".join(sorted(changes)))
        return contact

    async def delete_contact(self, db: AsyncSession, user_id: str, contact_id: str) -> None:
        """Hard delete. No tombstone is kept."""
        await self.get_contact_by_id(db, user_id, contact_id)
        try:
            await db.execute(
                delete(Contact).where(Contact.id == contact_id, Contact.user_id == user_id)
            )
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting contact %s: %s", contact_id, str(e))
            raise DatabaseError(context={"contact_id": contact_id})

        logger.info("Contact %s deleted", contact_id)


contact_service = ContactService()
