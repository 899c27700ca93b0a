"""
ContactBook Backend - Contact Service Unit Tests
=================================================

What:  Tests for ContactService business rules against a real in-memory
       database (constraints and ordering are the database's job, so they
       are exercised for real).

What we test:
    ✅ Per-user email uniqueness (and cross-user freedom)
    ✅ Ownership: another user's contact is CONTACT_NOT_FOUND
    ✅ Search, sort and pagination arithmetic
    ✅ Partial updates and the email re-check
    ✅ Hard delete
"""

import pytest
from sqlalchemy.exc import OperationalError

from contactbook.exceptions import ConflictError, DatabaseError, NotFoundError
from contactbook.models.user import User
from contactbook.schemas.contact import ListContactsParams
from contactbook.services.contact_service import ContactService


async def make_user(db, email):
    user = User(name=email.split("@")[0], email=email, password_hash="x")
    db.add(user)
    await db.flush()
    return user


def payload(n, **overrides):
    data = {
        "name": f"Contact {n:02d}",
        "email": f"contact{n:02d}@example.com",
        "phone": f"555-010-{n:04d}",
    }
    data.update(overrides)
    return data


class TestCreateContact:

    def setup_method(self):
        self.service = ContactService()

    @pytest.mark.asyncio
    async def test_create_assigns_owner_and_timestamps(self, db_session):
        user = await make_user(db_session, "owner@example.com")

        contact = await self.service.create_contact(db_session, user.id, payload(1))

        assert contact.id
        assert contact.user_id == user.id
        assert contact.created_at is not None
        assert contact.updated_at is not None

    @pytest.mark.asyncio
    async def test_duplicate_email_for_same_user(self, db_session):
        user = await make_user(db_session, "owner@example.com")
        await self.service.create_contact(db_session, user.id, payload(1))

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_contact(db_session, user.id, payload(2, email="contact01@example.com"))

        assert exc_info.value.code == "DUPLICATE_EMAIL"

    @pytest.mark.asyncio
    async def test_same_email_for_different_users(self, db_session):
        alice = await make_user(db_session, "alice@example.com")
        bob = await make_user(db_session, "bob@example.com")

        a = await self.service.create_contact(db_session, alice.id, payload(1))
        b = await self.service.create_contact(db_session, bob.id, payload(1))

        assert a.id != b.id


class TestListContacts:

    def setup_method(self):
        self.service = ContactService()

    @pytest.mark.asyncio
    async def test_pagination_arithmetic(self, db_session):
        user = await make_user(db_session, "owner@example.com")
        for n in range(25):
            await self.service.create_contact(db_session, user.id, payload(n))

        page3, pagination = await self.service.list_contacts(
            db_session, user.id, ListContactsParams(page=3, limit=10)
        )

        assert len(page3) == 5
        assert pagination.total == 25
        assert pagination.total_pages == 3
        assert pagination.page == 3

    @pytest.mark.asyncio
    async def test_pages_do_not_overlap(self, db_session):
        user = await make_user(db_session, "owner@example.com")
        for n in range(25):
            await self.service.create_contact(db_session, user.id, payload(n))

        seen = []
        for page in (1, 2, 3):
            items, _ = await self.service.list_contacts(
                db_session, user.id, ListContactsParams(page=page, limit=10)
            )
            seen.extend(c.id for c in items)

        assert len(seen) == len(set(seen)) == 25

    @pytest.mark.asyncio
    async def test_empty_list(self, db_session):
        user = await make_user(db_session, "owner@example.com")

        items, pagination = await self.service.list_contacts(db_session, user.id)

        assert items == []
        assert pagination.total == 0
        assert pagination.total_pages == 0

    @pytest.mark.asyncio
    async def test_only_own_contacts_listed(self, db_session):
        alice = await make_user(db_session, "alice@example.com")
        bob = await make_user(db_session, "bob@example.com")
        await self.service.create_contact(db_session, alice.id, payload(1))
        await self.service.create_contact(db_session, bob.id, payload(2))

        items, pagination = await self.service.list_contacts(db_session, alice.id)

        assert [c.email for c in items] == ["contact01@example.com"]
        assert pagination.total == 1

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_over_name_or_email(self, db_session):
        user = await make_user(db_session, "owner@example.com")
        await self.service.create_contact(db_session, user.id, payload(1, name="Marie Curie"))
        await self.service.create_contact(db_session, user.id, payload(2, email="curie.fan@lab.org"))
        await self.service.create_contact(db_session, user.id, payload(3, name="Ada Lovelace"))

        items, pagination = await self.service.list_contacts(
            db_session, user.id, ListContactsParams(search="CURIE")
        )

        assert pagination.total == 2
        assert {c.name for c in items} == {"Marie Curie", "Contact 02"}

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, db_session):
        user = await make_user(db_session, "owner@example.com")
        await self.service.create_contact(db_session, user.id, payload(1, name="100% Legit"))
        await self.service.create_contact(db_session, user.id, payload(2, name="1000 Plain"))

        items, _ = await self.service.list_contacts(
            db_session, user.id, ListContactsParams(search="100%")
        )

        assert [c.name for c in items] == ["100% Legit"]

    @pytest.mark.asyncio
    async def test_sort_by_email_both_directions(self, db_session):
        user = await make_user(db_session, "owner@example.com")
        for n, name in enumerate(["Charlie", "alpha", "Bravo"]):
            await self.service.create_contact(db_session, user.id, payload(n, name=name))

        asc_items, _ = await self.service.list_contacts(
            db_session, user.id, ListContactsParams(sort_by="email", sort_order="asc")
        )
        desc_items, _ = await self.service.list_contacts(
            db_session, user.id, ListContactsParams(sort_by="email", sort_order="desc")
        )

        assert [c.email for c in asc_items] == [
            "contact00@example.com", "contact01@example.com", "contact02@example.com"
        ]
        assert [c.email for c in desc_items] == list(reversed([c.email for c in asc_items]))


class TestGetUpdateDelete:

    def setup_method(self):
        self.service = ContactService()

    @pytest.mark.asyncio
    async def test_foreign_contact_is_not_found(self, db_session):
        alice = await make_user(db_session, "alice@example.com")
        bob = await make_user(db_session, "bob@example.com")
        contact = await self.service.create_contact(db_session, alice.id, payload(1))

        for call in (
            self.service.get_contact_by_id(db_session, bob.id, contact.id),
            self.service.update_contact(db_session, bob.id, contact.id, {"name": "Hijack"}),
            self.service.delete_contact(db_session, bob.id, contact.id),
        ):
            with pytest.raises(NotFoundError) as exc_info:
                await call
            assert exc_info.value.code == "CONTACT_NOT_FOUND"

        still_there = await self.service.get_contact_by_id(db_session, alice.id, contact.id)
        assert still_there.name == "Contact 01"

    @pytest.mark.asyncio
    async def test_partial_update_changes_only_given_fields(self, db_session):
        user = await make_user(db_session, "owner@example.com")
        contact = await self.service.create_contact(db_session, user.id, payload(1))

        updated = await self.service.update_contact(
            db_session, user.id, contact.id, {"phone": "+44 20 7946 0958"}
        )

        assert updated.phone == "+44 20 7946 0958"
        assert updated.name == "Contact 01"
        assert updated.email == "contact01@example.com"

    @pytest.mark.asyncio
    async def test_update_to_sibling_email_conflicts(self, db_session):
        user = await make_user(db_session, "owner@example.com")
        await self.service.create_contact(db_session, user.id, payload(1))
        second = await self.service.create_contact(db_session, user.id, payload(2))

        with pytest.raises(ConflictError) as exc_info:
            await self.service.update_contact(
                db_session, user.id, second.id, {"email": "contact01@example.com"}
            )
        assert exc_info.value.code == "DUPLICATE_EMAIL"

    @pytest.mark.asyncio
    async def test_update_to_own_email_succeeds(self, db_session):
        user = await make_user(db_session, "owner@example.com")
        contact = await self.service.create_contact(db_session, user.id, payload(1))

        updated = await self.service.update_contact(
            db_session, user.id, contact.id, {"email": "contact01@example.com", "name": "Renamed"}
        )

        assert updated.name == "Renamed"

    @pytest.mark.asyncio
    async def test_delete_is_hard(self, db_session):
        user = await make_user(db_session, "owner@example.com")
        contact = await self.service.create_contact(db_session, user.id, payload(1))

        await self.service.delete_contact(db_session, user.id, contact.id)

        with pytest.raises(NotFoundError):
            await self.service.get_contact_by_id(db_session, user.id, contact.id)
        _, pagination = await self.service.list_contacts(db_session, user.id)
        assert pagination.total == 0

    @pytest.mark.asyncio
    async def test_database_failure_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(DatabaseError):
            await self.service.get_contact_by_id(mock_db_session, "user-id", "contact-id")
