"""
ContactBook Backend - Contact Request/Response Schemas
=======================================================

What:  Pydantic models defining the contacts API contract.
Why:   Request bodies are validated before any handler runs, and every field
       violation is reported at once (see contactbook.validation).

Field rules:
    name:   1-120 characters
    email:  1-200 characters, plausible address shape (syntax only)
    phone:  10-25 characters from digits, "+", "-", "(", ")" and whitespace
"""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from contactbook.schemas.common import CamelModel

PHONE_PATTERN = r"^[0-9+\-\s()]+$"

SortField = Literal["name", "email", "createdAt"]
SortOrder = Literal["asc", "desc"]


def check_email_shape(value: str) -> str:
    """
    Reject strings that are not plausible email addresses.

    The value is returned unchanged (no case folding or IDNA normalization):
    emails are compared exactly as the client sent them.
    """
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Invalid email format")
    return value


ContactName = Annotated[str, Field(min_length=1, max_length=120)]
EmailAddress = Annotated[str, Field(min_length=1, max_length=200), AfterValidator(check_email_shape)]
ContactPhone = Annotated[str, Field(min_length=10, max_length=25, pattern=PHONE_PATTERN)]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ContactCreate(BaseModel):
    """Body of POST /contacts. All three fields are required."""

    name: ContactName
    email: EmailAddress
    phone: ContactPhone


class ContactUpdate(BaseModel):
    """
    Body of PUT /contacts/{id}. Partial: only supplied fields change.

    At least one of name/email/phone must be present. A field is either
    absent or a valid value; an explicit ``null`` is rejected.
    """

    name: Optional[ContactName] = None
    email: Optional[EmailAddress] = None
    phone: Optional[ContactPhone] = None

    @field_validator("name", "email", "phone", mode="before")
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        # Defaults are not validated, so this only sees fields the client sent
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @model_validator(mode="after")
    def require_one_field(self) -> "ContactUpdate":
        if self.name is None and self.email is None and self.phone is None:
            raise ValueError(
                "At least one field (name, email, or phone) must be provided for update"
            )
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class ListContactsParams(BaseModel):
    """Validated list query, passed from the route to the service."""

    model_config = ConfigDict(frozen=True)

    page: int = 1
    limit: int = 10
    search: str = ""
    sort_by: SortField = "createdAt"
    sort_order: SortOrder = "desc"


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ContactResponse(CamelModel):
    id: str
    name: str
    email: str
    phone: str
    user_id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes even for timezone-aware columns
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class Pagination(CamelModel):
    """
    Offset pagination metadata, recomputed on every list call.

    total_pages = ceil(total / limit); 0 when the user has no matches.
    """

    page: int
    limit: int
    total: int
    total_pages: int


class ContactEnvelope(BaseModel):
    success: bool = True
    data: ContactResponse


class ContactListResponse(BaseModel):
    success: bool = True
    data: List[ContactResponse]
    pagination: Pagination
