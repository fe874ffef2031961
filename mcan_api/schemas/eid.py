"""E-ID card schemas."""
from datetime import datetime
from pydantic import BaseModel, Field
from mcan_api.models.eid_card import EIDCardStatus
from mcan_api.models.user import UserRole


class EIDCardResponse(BaseModel):
    id: str
    user_id: str
    card_number: str
    svg_markup: str
    version: str
    # Stored status with expiry applied
    status: EIDCardStatus = Field(validation_alias="current_status")
    is_expired: bool
    issued_at: datetime
    expires_at: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class EIDVerification(BaseModel):
    """What a QR scan reveals about the card holder: no contact details.

    is_valid is true only for an active holder with an unexpired ACTIVE card.
    """
    card_number: str
    full_name: str
    role: UserRole
    state_code: str | None = None
    deployment_state: str | None = None
    is_active: bool
    status: EIDCardStatus
    is_valid: bool
    issued_at: datetime
    expires_at: datetime
