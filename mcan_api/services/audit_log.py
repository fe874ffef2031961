"""Audit trail writer. Rows are only ever inserted; the caller owns the commit."""
from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Any

from fastapi import Request
from sqlalchemy.orm import Session

from mcan_api.models.audit_log import AuditLog

CATEGORY_USER_MANAGEMENT = "user_management"
CATEGORY_EID_CARD = "eid_card"
CATEGORY_AUTH = "auth"
CATEGORY_PROPERTY = "property"

# The one client-controlled string; it must fit its column
USER_AGENT_MAX = AuditLog.__table__.c.user_agent.type.length


def _jsonable(value: Any) -> Any:
    """meta goes into a JSON column: enums become their value, dates ISO strings."""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def request_context(request: Request | None) -> dict[str, str | None]:
    """ip_address / user_agent keyword arguments for create_log()."""
    if request is None:
        return {"ip_address": None, "user_agent": None}
    agent = (request.headers.get("user-agent") or "").strip()
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": agent[:USER_AGENT_MAX] or None,
    }


def create_log(
    db: Session,
    category: str,
    title: str,
    message: str,
    *,
    actor_user_id: str | None = None,
    actor_email: str | None = None,
    target_user_id: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    meta: dict[str, Any] | None = None,
) -> AuditLog:
    entry = AuditLog(
        category=category,
        title=title,
        message=message,
        actor_user_id=actor_user_id,
        actor_email=actor_email,
        target_user_id=target_user_id,
        ip_address=ip_address,
        user_agent=user_agent,
        meta=None if meta is None else _jsonable(meta),
    )
    db.add(entry)
    db.flush()
    return entry
