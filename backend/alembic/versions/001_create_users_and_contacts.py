"""Create users and contacts tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates `users` and `contacts`.
How:   Portable column types (ids are UUID4 text) so the same migration runs
       on PostgreSQL and SQLite.

Constraints:
    - users.email UNIQUE
    - contacts (email, user_id) UNIQUE: one email per address book
    - contacts.user_id → users.id ON DELETE CASCADE

Rollback: downgrade() drops both tables (destructive - all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False, comment="UUID4 as text"),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(200), nullable=False, comment="Stored exactly as submitted"),
        sa.Column("password", sa.String(255), nullable=False, comment="bcrypt hash, never plain text"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "contacts",
        sa.Column("id", sa.String(36), nullable=False, comment="UUID4 as text"),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(200), nullable=False),
        sa.Column("phone", sa.String(25), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False, comment="Owning user"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_contacts"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_contacts_user_id", ondelete="CASCADE"
        ),
        sa.UniqueConstraint("email", "user_id", name="uq_contacts_email_user_id"),
    )

    # Every contact query filters on the owner
    op.create_index("idx_contacts_user_id", "contacts", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_contacts_user_id", table_name="contacts")
    op.drop_table("contacts")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
