"""Identity store helpers shared by the auth, users and admin routers."""
from __future__ import annotations

from typing import Any

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mcan_api.models.user import User, UserRole
from mcan_api.services.auth import get_password_hash


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def find_by_id(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == str(user_id)).first()


def get_or_404(db: Session, user_id: str) -> User:
    user = find_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def create_user(
    db: Session,
    *,
    email: str,
    password: str,
    full_name: str,
    phone: str | None = None,
    role: UserRole = UserRole.MEMBER,
    state_code: str | None = None,
    deployment_state: str | None = None,
    service_year: str | None = None,
    is_email_verified: bool = False,
) -> User:
    """Insert a user; 409 if the email is taken. Caller commits."""
    if find_by_email(db, email):
        raise HTTPException(status_code=409, detail="User with this email already exists")
    user = User(
        email=normalize_email(email),
        password_hash=get_password_hash(password),
        full_name=full_name.strip(),
        phone=phone or None,
        role=role,
        state_code=state_code or None,
        deployment_state=deployment_state or None,
        service_year=service_year or None,
        is_active=True,
        is_email_verified=is_email_verified,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # Lost a race with another registration for the same email
        db.rollback()
        raise HTTPException(status_code=409, detail="User with this email already exists")
    return user


def apply_updates(db: Session, user: User, changes: dict[str, Any]) -> User:
    """Set the given columns; email changes are re-checked for uniqueness. Caller commits."""
    if "email" in changes and changes["email"] is not None:
        new_email = normalize_email(changes["email"])
        if new_email != user.email:
            if find_by_email(db, new_email):
                raise HTTPException(status_code=409, detail="Email already in use")
        changes["email"] = new_email
    for field, value in changes.items():
        setattr(user, field, value)
    return user


def ensure_not_super_admin(user: User, action: str = "delete") -> None:
    """SUPER_ADMIN accounts can never be deleted or deactivated, whoever asks."""
    if user.role == UserRole.SUPER_ADMIN:
        raise HTTPException(status_code=403, detail=f"Cannot {action} SUPER_ADMIN user")


def deactivate(user: User, action: str = "delete") -> User:
    """Soft delete. Caller commits."""
    ensure_not_super_admin(user, action)
    user.is_active = False
    return user
