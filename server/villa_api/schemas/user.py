"""Account and authentication schemas."""

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from ..core.timeutils import UtcDateTime
from .common import ApiModel, reject_null


class UserResponse(ApiModel):
    """User as returned by the API; the password hash is never exposed."""

    id: int = Field(..., description="User ID")
    username: str = Field(..., description="Login name")
    full_name: Optional[str] = Field(None, description="Display name")
    email: str = Field(..., description="Email address")
    phone: Optional[str] = Field(None, description="Phone number")
    date_of_birth: Optional[str] = Field(None, description="Date of birth (YYYY-MM-DD)")
    notes: Optional[str] = Field(None, description="Administrator notes")
    is_admin: bool = Field(..., description="Whether the user can access the back office")
    created_at: UtcDateTime = Field(..., description="Registration time")


class RegisterRequest(ApiModel):
    """Request schema for self-registration."""

    username: str = Field(..., min_length=3, max_length=50, description="Login name")
    password: str = Field(..., min_length=6, max_length=128, description="Plain-text password")
    email: EmailStr = Field(..., description="Email address")
    full_name: Optional[str] = Field(None, max_length=255, description="Display name")
    phone: Optional[str] = Field(None, max_length=32, description="Phone number")
    date_of_birth: Optional[str] = Field(
        None,
        pattern=r"^\d{4}-\d{2}-\d{2}$",
        description="Date of birth (YYYY-MM-DD)"
    )
    notes: Optional[str] = Field(None, description="Free-text notes")


class LoginRequest(ApiModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(ApiModel):
    """Successful login: the user and a bearer token for API calls."""

    user: UserResponse
    token: str = Field(..., description="HS256 JWT for the Authorization header")


class PasswordResetRequest(ApiModel):
    email: EmailStr


class PasswordResetConfirm(ApiModel):
    token: str = Field(..., min_length=1, description="Token received by email")
    new_password: str = Field(..., min_length=6, max_length=128)


class DirectPasswordReset(ApiModel):
    email: EmailStr
    new_password: str = Field(..., min_length=6, max_length=128)


class ManualUserRequest(ApiModel):
    """Account created by an administrator on behalf of a guest."""

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    date_of_birth: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    notes: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128, description="Generated when omitted")
    is_admin: bool = False


class ManualUserResponse(ApiModel):
    user: UserResponse
    temporary_password: Optional[str] = Field(
        None,
        description="Generated password, returned only when none was supplied"
    )


class UpdateUserRequest(ApiModel):
    """Partial update of a user by an administrator."""

    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    notes: Optional[str] = None
    is_admin: Optional[bool] = None

    @field_validator("is_admin")
    @classmethod
    def is_admin_not_null(cls, v):
        return reject_null(v)
