from pydantic import EmailStr, Field, field_validator
from typing import Optional

from marketplace.models.user import Role
from marketplace.schemas.common import CamelModel

# bcrypt only accepts up to 72 bytes of input
BCRYPT_MAX_BYTES = 72


def check_password_bytes(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password cannot be longer than {BCRYPT_MAX_BYTES} bytes")
    return value


class RegisterRequest(CamelModel):
    """Schema for registering a new account."""
    full_name: str = Field(..., min_length=1, max_length=100, description="Display name")
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=6, description="Plain-text password")

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please provide a name")
        return value

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return check_password_bytes(value)


class AdminRegisterRequest(RegisterRequest):
    """Schema for registering an admin account with the out-of-band code."""
    admin_code: str = Field(..., min_length=1, description="Admin registration code")


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.strip().lower()


class ProfileUpdate(CamelModel):
    """Schema for updating the caller's profile. All fields are optional."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = Field(None, min_length=6)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value is not None else None

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, value: Optional[str]) -> Optional[str]:
        return check_password_bytes(value)


class UserSummary(CamelModel):
    """Public view of a user. Never includes the password hash."""
    id: str
    full_name: str
    email: str
    role: Role


class AuthData(CamelModel):
    token: str
    user: UserSummary
