"""
ContactBook Backend - User SQLAlchemy Model
============================================

What:  ORM model representing the `users` table.
Why:   Accounts own contacts; the email is the login identifier.

Table Design Rationale:
    - id: UUID4 rendered as text. Opaque to clients, non-sequential so it
      cannot be enumerated, and portable across PostgreSQL and SQLite.
    - email: UNIQUE, compared case-sensitively (stored exactly as submitted).
    - password_hash: bcrypt output, never serialized to clients.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contactbook.database import Base

if TYPE_CHECKING:
    from contactbook.models.contact import Contact


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """An account. Created at registration, never deleted by the API."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column("password", String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    contacts: Mapped[List["Contact"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
