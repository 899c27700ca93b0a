"""
ORM models. Importing this package registers every table on ``Base.metadata``
(Alembic autogenerate and the test fixtures rely on it).
"""

from contactbook.models.user import User
from contactbook.models.contact import Contact

__all__ = ["User", "Contact"]
