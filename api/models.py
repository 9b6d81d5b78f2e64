"""
API request and response models for accountgate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Wire names follow the client application: the user id is "_id", the reset
request uses camelCase keys.
"""

from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, StringConstraints, field_validator

from auth.models import User
from auth.passwords import MAX_PASSWORD_BYTES

# Names and addresses are trimmed. Passwords are taken exactly as sent.
_Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]
_Email = Annotated[EmailStr, BeforeValidator(lambda v: v.strip() if isinstance(v, str) else v)]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    user = "user"
    admin = "admin"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/v1/signup."""

    name: _Name
    email: _Email
    password: str = Field(min_length=6, max_length=64)

    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, value: str) -> str:
        """Reject passwords whose UTF-8 form exceeds bcrypt's 72-byte limit."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class ActivationRequest(BaseModel):
    """Request body for POST /api/v1/account-activation.

    token is optional so an empty body gets the "Token is not found" message
    rather than a 422.
    """

    token: Optional[str] = None


class SigninRequest(BaseModel):
    email: _Email
    password: str = Field(min_length=1, max_length=64)


class ForgotPasswordRequest(BaseModel):
    email: _Email


class ResetPasswordRequest(BaseModel):
    """Request body for POST /api/v1/reset-password.

    Both fields are optional: a missing link gets the "Reset token is not
    found" message, and the new password is checked by the service only once
    a link is present.
    """

    model_config = ConfigDict(populate_by_name=True)

    reset_password_link: Optional[str] = Field(default=None, alias="resetPasswordLink")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class ProfileUpdate(BaseModel):
    """Request body for PUT /api/v1/user/update and /api/v1/admin/update.

    Length rules are checked by the service so the errors use the 400
    envelope rather than a 422.
    """

    name: Optional[str] = Field(default=None, max_length=64)
    password: Optional[str] = Field(default=None, max_length=64)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class PublicUser(BaseModel):
    """The part of a user record safe to return to clients.

    Hash, salt and reset link are never included.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(alias="_id")
    name: str
    email: str
    role: RoleEnum

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        """Build the public projection from a domain User."""
        return cls(_id=user.id, name=user.name, email=user.email, role=user.role)


class SigninResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user: PublicUser


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
