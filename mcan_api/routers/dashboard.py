"""Dashboard aggregates: member, property and e-ID counts."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from mcan_api.database import get_db
from mcan_api.dependencies import get_current_identity, require_capability
from mcan_api.models.eid_card import EIDCard
from mcan_api.models.property import Property
from mcan_api.models.user import User
from mcan_api.responses import ok
from mcan_api.schemas.dashboard import DashboardStats, StateStats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

UNASSIGNED_STATE = "Unassigned"


@router.get("/stats")
def dashboard_stats(db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    now = datetime.now(timezone.utc)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    stats = DashboardStats(
        total_members=db.query(User).count(),
        active_members=db.query(User).filter(User.is_active.is_(True)).count(),
        verified_members=db.query(User).filter(User.is_email_verified.is_(True)).count(),
        new_members_this_month=db.query(User).filter(User.created_at >= month_start).count(),
        properties_count=db.query(Property).filter(Property.deleted_at.is_(None)).count(),
        eid_cards_issued=db.query(EIDCard).count(),
    )
    return ok("Dashboard statistics retrieved successfully", stats)


@router.get("/states", dependencies=[Depends(require_capability("can_access_all_states"))])
def state_breakdown(db: Session = Depends(get_db)):
    """Per-state counts; members grouped by deployment state, properties by state chapter."""
    members: dict[str, list[int]] = {}
    rows = (
        db.query(User.deployment_state, User.is_active, func.count(User.id))
        .group_by(User.deployment_state, User.is_active)
        .all()
    )
    for state, is_active, count in rows:
        bucket = members.setdefault(state or UNASSIGNED_STATE, [0, 0])
        bucket[0] += count
        if is_active:
            bucket[1] += count

    properties = {
        chapter or UNASSIGNED_STATE: count
        for chapter, count in db.query(Property.state_chapter, func.count(Property.id))
        .filter(Property.deleted_at.is_(None))
        .group_by(Property.state_chapter)
        .all()
    }

    states = sorted(set(members) | set(properties))
    out = [
        StateStats(
            state=state,
            member_count=members.get(state, [0, 0])[0],
            active_member_count=members.get(state, [0, 0])[1],
            properties_count=properties.get(state, 0),
        )
        for state in states
    ]
    return ok("State statistics retrieved successfully", out)
