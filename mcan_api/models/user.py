"""Members and authentication."""
import enum
import uuid

from sqlalchemy import Column, String, Enum as SQLEnum, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mcan_api.database import Base


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    NATIONAL_ADMIN = "NATIONAL_ADMIN"
    STATE_AMEER = "STATE_AMEER"
    STATE_SECRETARY = "STATE_SECRETARY"
    MCLO_AMEER = "MCLO_AMEER"
    MEMBER = "MEMBER"


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole, name="user_role"), nullable=False, default=UserRole.MEMBER)

    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    state_code = Column(String(50), nullable=True)  # NYSC state code, e.g. LA/24A/1234
    deployment_state = Column(String(100), nullable=True)
    service_year = Column(String(10), nullable=True)

    # Soft delete: accounts are deactivated, never removed
    is_active = Column(Boolean, default=True, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    email_verification_token = Column(String(128), nullable=True, index=True)
    password_reset_token = Column(String(128), nullable=True, index=True)
    password_reset_expires = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    eid_card = relationship(
        "EIDCard",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
