"""System administration: user management, statistics, permissions, audit trail."""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from mcan_api.config import get_settings
from mcan_api.database import get_db
from mcan_api.dependencies import get_current_user, require_capability
from mcan_api.models.audit_log import AuditLog
from mcan_api.models.user import User
from mcan_api.responses import created, ok
from mcan_api.routers.eid import get_card_repository, issue_card, record_card_event
from mcan_api.schemas.auth import UserResponse
from mcan_api.schemas.dashboard import AuditLogEntry, UserStats
from mcan_api.schemas.eid import EIDCardResponse
from mcan_api.schemas.user import AdminResetPassword, AdminUserCreate, AdminUserUpdate
from mcan_api.services import users as user_store
from mcan_api.services.audit_log import CATEGORY_USER_MANAGEMENT, create_log, request_context
from mcan_api.services.auth import get_password_hash
from mcan_api.services.eid import EIDCardRepository
from mcan_api.services.permissions import permissions_table

# Every route here: authenticate, then allow only roles that can manage the system (SUPER_ADMIN)
router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_capability("can_manage_system"))],
)


def _log_user_change(db: Session, request: Request, actor: User, target: User, title: str, meta: dict | None = None) -> None:
    create_log(
        db,
        CATEGORY_USER_MANAGEMENT,
        title,
        f"{actor.email} -> {target.email}: {title.lower()}.",
        actor_user_id=actor.id,
        actor_email=actor.email,
        target_user_id=target.id,
        meta=meta,
        **request_context(request),
    )


@router.get("/users")
def list_users(db: Session = Depends(get_db)):
    users = db.query(User).order_by(User.created_at.desc()).all()
    return ok("Users retrieved successfully", [UserResponse.model_validate(u) for u in users])


@router.post("/users")
def create_user(
    data: AdminUserCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_user),
):
    user = user_store.create_user(
        db,
        email=data.email,
        password=data.password or get_settings().default_user_password,
        full_name=data.full_name,
        phone=data.phone,
        role=data.role,
        state_code=data.state_code,
        deployment_state=data.deployment_state,
        service_year=data.service_year,
    )
    _log_user_change(db, request, admin, user, "User created", {"role": data.role})
    db.commit()
    db.refresh(user)
    return created("User created successfully", UserResponse.model_validate(user))


@router.put("/users/{user_id}")
def update_user(
    user_id: str,
    data: AdminUserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_user),
):
    user = user_store.get_or_404(db, user_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if changes.get("is_active") is False:
        user_store.ensure_not_super_admin(user, "deactivate")
    if "role" in changes:
        # Nobody is demoted out of SUPER_ADMIN through the API
        user_store.ensure_not_super_admin(user, "change role of")
    old_role = user.role
    user_store.apply_updates(db, user, changes)
    meta = {"fields": sorted(changes)}
    if "role" in changes and changes["role"] != old_role:
        meta.update(old_role=old_role, new_role=changes["role"])
    _log_user_change(db, request, admin, user, "User updated", meta)
    db.commit()
    db.refresh(user)
    return ok("User updated successfully", UserResponse.model_validate(user))


@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_user),
):
    """Soft delete (deactivate). SUPER_ADMIN accounts are refused."""
    user = user_store.get_or_404(db, user_id)
    user_store.deactivate(user)
    _log_user_change(db, request, admin, user, "User deactivated")
    db.commit()
    return ok("User deactivated successfully")


@router.post("/users/{user_id}/reset-password")
def reset_user_password(
    user_id: str,
    data: AdminResetPassword,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_user),
):
    user = user_store.get_or_404(db, user_id)
    user.password_hash = get_password_hash(data.new_password)
    user.password_reset_token = None
    user.password_reset_expires = None
    _log_user_change(db, request, admin, user, "Password reset by admin")
    db.commit()
    return ok("Password reset successfully")


@router.get("/users/{user_id}/eid")
def get_user_eid(
    user_id: str,
    db: Session = Depends(get_db),
    repo: EIDCardRepository = Depends(get_card_repository),
):
    user = user_store.get_or_404(db, user_id)
    card = repo.get_by_user(user.id)
    if not card:
        return ok("E-ID not issued", None)
    return ok("E-ID fetched", EIDCardResponse.model_validate(card))


@router.post("/users/{user_id}/eid")
def generate_user_eid(
    user_id: str,
    request: Request,
    regenerate: bool = Query(False),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_user),
    repo: EIDCardRepository = Depends(get_card_repository),
):
    user = user_store.get_or_404(db, user_id)
    card = issue_card(repo, user, regenerate=regenerate)
    record_card_event(db, request, admin, user, card, "E-ID card regenerated by admin" if regenerate else "E-ID card issued by admin")
    return ok("E-ID generated", EIDCardResponse.model_validate(card))


@router.get("/stats")
def user_stats(db: Session = Depends(get_db)):
    by_role = {
        (role.value if hasattr(role, "value") else str(role)): count
        for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all()
    }
    return ok(
        "User statistics retrieved successfully",
        UserStats(
            total=db.query(User).count(),
            active=db.query(User).filter(User.is_active.is_(True)).count(),
            verified=db.query(User).filter(User.is_email_verified.is_(True)).count(),
            by_role=by_role,
        ),
    )


@router.get("/permissions")
def role_permissions():
    return ok("Role permissions retrieved successfully", permissions_table())


@router.get("/audit-logs")
def audit_logs(
    category: str | None = None,
    user_id: str | None = None,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    q = db.query(AuditLog)
    if category:
        q = q.filter(AuditLog.category == category)
    if user_id:
        q = q.filter(AuditLog.target_user_id == user_id)
    rows = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
    return ok("Audit logs retrieved successfully", [AuditLogEntry.model_validate(r) for r in rows])
