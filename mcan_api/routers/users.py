"""Member records: self-service profile and editor-level management."""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from mcan_api.database import get_db
from mcan_api.dependencies import get_current_identity, get_current_user, require_capability
from mcan_api.models.user import User, UserRole
from mcan_api.responses import ok
from mcan_api.schemas.auth import UserResponse
from mcan_api.schemas.user import ProfileUpdate
from mcan_api.services import users as user_store
from mcan_api.services.audit_log import CATEGORY_USER_MANAGEMENT, create_log, request_context
from mcan_api.services.auth import Identity
from mcan_api.services.permissions import permissions_for

router = APIRouter(prefix="/users", tags=["users"])

require_user_editor = require_capability("can_edit_users")


def _can_access(identity: Identity, user_id: str) -> bool:
    return identity.user_id == str(user_id) or permissions_for(identity.role).can_edit_users


def _set_active(db: Session, request: Request, actor: User, user: User, active: bool, action: str = "deactivate") -> User:
    if active:
        user.is_active = True
    else:
        user_store.deactivate(user, action)
    create_log(
        db,
        CATEGORY_USER_MANAGEMENT,
        "User activated" if active else "User deactivated",
        f"{actor.email} set {user.email} active={active}.",
        actor_user_id=actor.id,
        actor_email=actor.email,
        target_user_id=user.id,
        **request_context(request),
    )
    db.commit()
    db.refresh(user)
    return user


@router.get("")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = None,
    role: UserRole | None = None,
    state_code: str | None = None,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_user_editor),
):
    q = db.query(User)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(User.full_name.ilike(like), User.email.ilike(like)))
    if role:
        q = q.filter(User.role == role)
    if state_code:
        q = q.filter(User.state_code.ilike(f"{state_code.strip()}%"))
    total = q.count()
    rows = q.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    total_pages = (total + limit - 1) // limit
    return ok(
        "Users retrieved successfully",
        {
            "items": [UserResponse.model_validate(u) for u in rows],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        },
    )


@router.get("/{user_id}")
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    if not _can_access(identity, user_id):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return ok("User retrieved successfully", UserResponse.model_validate(user_store.get_or_404(db, user_id)))


@router.put("/{user_id}")
def update_user(
    user_id: str,
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Profile fields only; role, email and status go through /admin."""
    if not _can_access(identity, user_id):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    user = user_store.get_or_404(db, user_id)
    user_store.apply_updates(db, user, data.model_dump(exclude_unset=True, exclude_none=True))
    db.commit()
    db.refresh(user)
    return ok("User updated successfully", UserResponse.model_validate(user))


@router.delete("/{user_id}", dependencies=[Depends(require_user_editor)])
def delete_user(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    user = user_store.get_or_404(db, user_id)
    _set_active(db, request, actor, user, False, "delete")
    return ok("User deactivated successfully")


@router.patch("/{user_id}/activate", dependencies=[Depends(require_user_editor)])
def activate_user(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    user = _set_active(db, request, actor, user_store.get_or_404(db, user_id), True)
    return ok("User activated successfully", UserResponse.model_validate(user))


@router.patch("/{user_id}/deactivate", dependencies=[Depends(require_user_editor)])
def deactivate_user(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    user = _set_active(db, request, actor, user_store.get_or_404(db, user_id), False)
    return ok("User deactivated successfully", UserResponse.model_validate(user))
