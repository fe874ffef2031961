"""Dashboard and admin statistics."""
from datetime import datetime
from pydantic import BaseModel


class DashboardStats(BaseModel):
    total_members: int
    active_members: int
    verified_members: int
    new_members_this_month: int
    properties_count: int
    eid_cards_issued: int


class StateStats(BaseModel):
    """Per deployment state: members and properties in that state chapter."""
    state: str
    member_count: int
    active_member_count: int
    properties_count: int


class UserStats(BaseModel):
    total: int
    active: int
    verified: int
    by_role: dict[str, int]


class AuditLogEntry(BaseModel):
    id: int
    category: str
    title: str
    message: str
    actor_user_id: str | None
    actor_email: str | None
    target_user_id: str | None
    ip_address: str | None
    meta: dict | None
    created_at: datetime | None

    class Config:
        from_attributes = True
