"""Seed the initial SUPER_ADMIN account from settings."""
import logging

from sqlalchemy.orm import Session

from mcan_api.config import get_settings
from mcan_api.models.user import User, UserRole
from mcan_api.services import users as user_store

log = logging.getLogger("uvicorn.error")


def seed_super_admin(db: Session, email: str | None = None, password: str | None = None, full_name: str = "MCAN Super Admin") -> User | None:
    """Create a SUPER_ADMIN unless one already exists. Returns the new user, or None when skipped."""
    if db.query(User).filter(User.role == UserRole.SUPER_ADMIN).count() > 0:
        return None
    settings = get_settings()
    email = email or settings.super_admin_email
    if user_store.find_by_email(db, email):
        log.warning("[Seed] %s already exists with a non-admin role; super admin not seeded", email)
        return None
    user = user_store.create_user(
        db,
        email=email,
        password=password or settings.super_admin_password,
        full_name=full_name,
        role=UserRole.SUPER_ADMIN,
        is_email_verified=True,
    )
    db.commit()
    log.info("[Seed] Super admin created: %s", user.email)
    return user
