"""Digital membership identity cards. One card per user."""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mcan_api.database import Base


class EIDCardStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"


class EIDCard(Base):
    __tablename__ = "eid_cards"
    # Concurrent first-time generation for the same user must not create two cards;
    # a card number resolves to exactly one holder
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_eid_cards_user_id"),
        UniqueConstraint("card_number", name="uq_eid_cards_card_number"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    card_number = Column(String(64), nullable=False)  # MCAN-<user id without hyphens>
    svg_markup = Column(Text, nullable=False)
    version = Column(String(16), nullable=False)

    # Validity window; reset when the card is regenerated
    status = Column(SQLEnum(EIDCardStatus, name="eid_card_status"), nullable=False, default=EIDCardStatus.ACTIVE)
    issued_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="eid_card")

    def effective_status(self, now: datetime | None = None) -> EIDCardStatus:
        """Stored status, except that an ACTIVE card past expires_at reads as EXPIRED."""
        if self.status != EIDCardStatus.ACTIVE or self.expires_at is None:
            return self.status
        now = now or datetime.now(timezone.utc)
        expires = self.expires_at if self.expires_at.tzinfo else self.expires_at.replace(tzinfo=timezone.utc)
        return EIDCardStatus.EXPIRED if expires <= now else EIDCardStatus.ACTIVE

    @property
    def current_status(self) -> EIDCardStatus:
        return self.effective_status()

    @property
    def is_expired(self) -> bool:
        return self.effective_status() == EIDCardStatus.EXPIRED
