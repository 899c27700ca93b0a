"""
ContactBook Backend - Auth Request/Response Schemas
====================================================

Password rules:
    8-128 characters and at most 72 bytes once UTF-8 encoded. bcrypt only
    looks at the first 72 bytes, so longer inputs are rejected instead of
    being silently truncated.
"""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from contactbook.schemas.contact import ContactName, EmailAddress

BCRYPT_MAX_BYTES = 72


def check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return value


NewPassword = Annotated[
    str, Field(min_length=8, max_length=128), AfterValidator(check_password_bytes)
]


class RegisterRequest(BaseModel):
    name: ContactName
    email: EmailAddress
    password: NewPassword


class LoginRequest(BaseModel):
    email: Annotated[str, Field(min_length=1, max_length=200)]
    password: Annotated[str, Field(min_length=1, max_length=128)]


class UserResponse(BaseModel):
    """Public view of a user. The password hash is never part of it."""

    model_config = {"from_attributes": True}

    id: str
    name: str
    email: str


class AuthResponse(BaseModel):
    token: str
    user: UserResponse
