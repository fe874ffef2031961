"""Association properties (mosques, offices, halls, schools) tracked per state chapter."""
import enum
import uuid

from sqlalchemy import Column, String, Text, Float, ForeignKey, Enum as SQLEnum, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mcan_api.database import Base


class PropertyType(str, enum.Enum):
    MOSQUE = "MOSQUE"
    OFFICE = "OFFICE"
    HALL = "HALL"
    SCHOOL = "SCHOOL"
    OTHER = "OTHER"


class PropertyStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"


class Property(Base):
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    type = Column(SQLEnum(PropertyType, name="property_type"), nullable=False)
    status = Column(SQLEnum(PropertyStatus, name="property_status"), nullable=False, default=PropertyStatus.ACTIVE)

    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    state_chapter = Column(String(100), nullable=False, index=True)
    ownership_document = Column(String(500), nullable=True)  # URL of uploaded deed/title

    added_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Soft delete: hidden from listings, kept for records
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    added_by_user = relationship("User")
