"""Authentication: registration, login, tokens, password and email flows."""
import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from mcan_api.config import get_settings
from mcan_api.database import get_db
from mcan_api.dependencies import get_current_identity, get_current_user
from mcan_api.models.user import User, UserRole
from mcan_api.responses import created, ok
from mcan_api.schemas.auth import (
    AuthTokens,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
    VerifyEmailRequest,
)
from mcan_api.services import users as user_store
from mcan_api.services.audit_log import CATEGORY_AUTH, create_log, request_context
from mcan_api.services.auth import (
    CREDENTIAL_ERROR_MESSAGES,
    TOKEN_TYPE_REFRESH,
    Identity,
    create_access_token,
    create_refresh_token,
    decode_token_with_error,
    generate_token,
    get_password_hash,
    verify_password,
)
from mcan_api.services.notifications import send_password_reset_email, send_verification_email
from mcan_api.services.permissions import permissions_for

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a reset link has been sent"


def _tokens_for(user: User) -> AuthTokens:
    return AuthTokens(
        user=UserResponse.model_validate(user),
        token=create_access_token(user),
        refresh_token=create_refresh_token(user),
    )


def _start_email_verification(db: Session, user: User) -> None:
    token = generate_token(24)
    user.email_verification_token = token
    db.commit()
    if not send_verification_email(user.email, token, user.full_name):
        log.warning("[Auth] Verification email not sent to %s. Check MAILGUN_* settings.", user.email)


@router.post("/register")
def register(data: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    # Self-registration always creates a MEMBER; other roles are assigned by an admin
    user = user_store.create_user(
        db,
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        phone=data.phone,
        role=UserRole.MEMBER,
        state_code=data.state_code,
        deployment_state=data.deployment_state,
        service_year=data.service_year,
    )
    create_log(
        db,
        CATEGORY_AUTH,
        "Member registered",
        f"{user.email} registered.",
        actor_user_id=user.id,
        actor_email=user.email,
        target_user_id=user.id,
        **request_context(request),
    )
    db.commit()
    db.refresh(user)
    _start_email_verification(db, user)
    return created("Registration successful", _tokens_for(user))


@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = user_store.find_by_email(db, data.email)
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")
    return ok("Login successful", _tokens_for(user))


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return ok("Profile fetched", UserResponse.model_validate(current_user))


@router.get("/permissions")
def my_permissions(identity: Identity = Depends(get_current_identity)):
    """Capability flags for the caller's role (from the token)."""
    return ok(
        "Permissions fetched",
        {"role": identity.role, "permissions": permissions_for(identity.role).to_client()},
    )


@router.post("/refresh")
def refresh_token(data: RefreshRequest, db: Session = Depends(get_db)):
    payload, error = decode_token_with_error(data.refresh_token, token_type=TOKEN_TYPE_REFRESH)
    if error:
        raise HTTPException(status_code=401, detail=CREDENTIAL_ERROR_MESSAGES[error])
    user = user_store.find_by_id(db, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    return ok("Token refreshed", {"token": create_access_token(user)})


@router.post("/logout")
def logout(identity: Identity = Depends(get_current_identity)):
    # Tokens are stateless; the client discards them
    return ok("Logged out")


@router.post("/forgot-password")
def forgot_password(data: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Same response whether or not the account exists."""
    user = user_store.find_by_email(db, data.email)
    if not user or not user.is_active:
        return ok(FORGOT_PASSWORD_MESSAGE)
    minutes = get_settings().password_reset_expire_minutes
    token = generate_token(24)
    user.password_reset_token = token
    user.password_reset_expires = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    db.commit()
    if not send_password_reset_email(user.email, token, minutes):
        log.warning("[Auth] Password reset email not sent to %s", user.email)
    return ok(FORGOT_PASSWORD_MESSAGE)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


@router.post("/reset-password")
def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    token = (data.token or "").strip()
    user = db.query(User).filter(User.password_reset_token == token).first() if token else None
    now = datetime.now(timezone.utc)
    if not user or not user.password_reset_expires or _as_utc(user.password_reset_expires) <= now:
        raise HTTPException(status_code=400, detail="Invalid or expired token")
    user.password_hash = get_password_hash(data.password)
    user.password_reset_token = None
    user.password_reset_expires = None
    db.commit()
    return ok("Password reset successfully")


@router.post("/change-password")
def change_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(data.current_password, current_user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    current_user.password_hash = get_password_hash(data.new_password)
    db.commit()
    return ok("Password changed successfully")


@router.post("/verify-email")
def verify_email(data: VerifyEmailRequest, db: Session = Depends(get_db)):
    token = (data.token or "").strip()
    user = db.query(User).filter(User.email_verification_token == token).first() if token else None
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired token")
    user.is_email_verified = True
    user.email_verification_token = None
    db.commit()
    return ok("Email verified successfully")


@router.post("/resend-verification")
def resend_verification(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.is_email_verified:
        return ok("Already verified")
    _start_email_verification(db, current_user)
    return ok("Verification email sent")
