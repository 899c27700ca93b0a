"""
ContactBook Backend - Contact SQLAlchemy Model
===============================================

What:  ORM model representing the `contacts` table.
Why:   The core resource of the API; every row belongs to exactly one user.

Constraints:
    - UNIQUE (email, user_id): a user cannot hold two contacts with the same
      email, while two different users may each have one. The service layer
      checks this first to return a clean 409; the constraint is the
      backstop for concurrent inserts.
    - user_id → users.id ON DELETE CASCADE: contacts never outlive their owner.

Query Patterns:
    - List a user's contacts: WHERE user_id = :uid ORDER BY <key> LIMIT/OFFSET
      → idx_contacts_user_id narrows the scan to one owner
    - Fetch one: WHERE id = :id AND user_id = :uid → primary key lookup
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contactbook.database import Base
from contactbook.models.user import new_id

if TYPE_CHECKING:
    from contactbook.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Contact(Base):
    """A person in a user's address book. Hard-deleted, no tombstones."""

    __tablename__ = "contacts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str] = mapped_column(String(25), nullable=False)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    owner: Mapped["User"] = relationship(back_populates="contacts")

    __table_args__ = (
        UniqueConstraint("email", "user_id", name="uq_contacts_email_user_id"),
        Index("idx_contacts_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Contact(id={self.id}, email='{self.email}', user_id={self.user_id})>"
