"""Auth and profile schemas."""
import re
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, model_validator, field_validator
from mcan_api.models.user import UserRole

# E.164-ish: optional +, no leading zero, up to 15 digits
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
PASSWORD_MIN_LENGTH = 6


def _validate_phone(value: str | None) -> str | None:
    if value is None:
        return None
    s = re.sub(r"[\s-]", "", value)
    if not PHONE_PATTERN.match(s):
        raise ValueError("Phone number must be in international format, e.g. +2348012345678")
    return s


class RegisterRequest(BaseModel):
    full_name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: str
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    confirm_password: str
    state_code: str | None = None
    deployment_state: str | None = None
    service_year: str | None = None

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        return _validate_phone(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH)


class VerifyEmailRequest(BaseModel):
    token: str


class UserResponse(BaseModel):
    """Public user shape; never includes the password hash or tokens."""
    id: str
    email: str
    full_name: str
    phone: str | None = None
    role: UserRole
    state_code: str | None = None
    deployment_state: str | None = None
    service_year: str | None = None
    is_active: bool
    is_email_verified: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class AuthTokens(BaseModel):
    user: UserResponse
    token: str
    refresh_token: str
