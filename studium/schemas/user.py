from email_validator import EmailNotValidError, validate_email
from pydantic import Field, field_validator
from typing import Optional

from .base import CamelModel


def check_email(value: str) -> str:
    """Reject malformed addresses but keep the input exactly as typed.

    Lookups are exact and case-sensitive, so the normalized form
    (lower-cased domain) must not replace what the user sent.
    """
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"Invalid email format: {e}") from e
    return value


class EmailModel(CamelModel):
    email: str

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        return check_email(value)


class UserCreate(EmailModel):
    password: str = Field(min_length=6)
    name: Optional[str] = None


class UserSignin(EmailModel):
    password: str = Field(min_length=1)


class PasswordResetRequest(EmailModel):
    pass


class PasswordReset(CamelModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class UserPublic(CamelModel):
    """User as exposed over the API; never carries the password hash."""
    id: str
    email: str
    name: Optional[str] = None


class AuthResponse(CamelModel):
    message: str
    token: str
    user: UserPublic
