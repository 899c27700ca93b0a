"""
ContactBook Backend - Migration Tests
======================================

What we test:
    ✅ `alembic upgrade head` builds users/contacts with their constraints
    ✅ `alembic downgrade base` removes them again

The Config is built without alembic.ini so its logging section does not
replace the handlers other tests capture.
"""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from contactbook.config import settings

BACKEND_DIR = Path(__file__).resolve().parents[1]


def alembic_config() -> Config:
    config = Config()
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    return config


class TestMigrations:

    def test_upgrade_then_downgrade(self, tmp_path, monkeypatch):
        db_file = tmp_path / "migrate.db"
        monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{db_file}")
        config = alembic_config()

        command.upgrade(config, "head")

        engine = create_engine(f"sqlite:///{db_file}")
        try:
            inspector = inspect(engine)
            assert {"users", "contacts"} <= set(inspector.get_table_names())

            [fk] = inspector.get_foreign_keys("contacts")
            assert fk["referred_table"] == "users"
            assert fk["options"].get("ondelete") == "CASCADE"

            uniques = {tuple(u["column_names"]) for u in inspector.get_unique_constraints("contacts")}
            assert ("email", "user_id") in uniques

            user_indexes = {i["name"]: i for i in inspector.get_indexes("users")}
            assert user_indexes["ix_users_email"]["unique"]

            command.downgrade(config, "base")

            remaining = set(inspect(engine).get_table_names())
            assert "users" not in remaining
            assert "contacts" not in remaining
        finally:
            engine.dispose()
