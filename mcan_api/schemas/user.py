"""User management schemas (admin and self-service)."""
from pydantic import BaseModel, EmailStr, Field, field_validator
from mcan_api.models.user import UserRole
from mcan_api.schemas.auth import PASSWORD_MIN_LENGTH, _validate_phone

# SUPER_ADMIN is seeded, never created or granted through the API
ASSIGNABLE_ROLES = tuple(r for r in UserRole if r != UserRole.SUPER_ADMIN)


def _assignable(role: UserRole | None) -> UserRole | None:
    if role is not None and role not in ASSIGNABLE_ROLES:
        raise ValueError("Role cannot be assigned")
    return role


class MemberCreate(BaseModel):
    """Officer-registered member; password falls back to the configured default."""
    full_name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    phone: str
    state_code: str | None = None
    deployment_state: str | None = None
    service_year: str | None = None
    password: str | None = Field(default=None, min_length=PASSWORD_MIN_LENGTH)

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        return _validate_phone(v)


class AdminUserCreate(MemberCreate):
    role: UserRole

    @field_validator("role")
    @classmethod
    def role_assignable(cls, v: UserRole) -> UserRole:
        return _assignable(v)


class AdminUserUpdate(BaseModel):
    """All optional; only provided fields are updated."""
    full_name: str | None = Field(default=None, min_length=2, max_length=100)
    email: EmailStr | None = None
    phone: str | None = None
    role: UserRole | None = None
    state_code: str | None = None
    deployment_state: str | None = None
    service_year: str | None = None
    is_active: bool | None = None

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str | None) -> str | None:
        return _validate_phone(v)

    @field_validator("role")
    @classmethod
    def role_assignable(cls, v: UserRole | None) -> UserRole | None:
        return _assignable(v)


class ProfileUpdate(BaseModel):
    """Fields a member may change on their own record."""
    full_name: str | None = Field(default=None, min_length=2, max_length=100)
    phone: str | None = None
    state_code: str | None = None
    deployment_state: str | None = None
    service_year: str | None = None

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str | None) -> str | None:
        return _validate_phone(v)


class AdminResetPassword(BaseModel):
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH)
