"""Shared dependencies: DB session, request identity, role gates."""
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from mcan_api.database import get_db
from mcan_api.models.user import User, UserRole
from mcan_api.services.auth import (
    CREDENTIAL_ERROR_MESSAGES,
    CredentialError,
    Identity,
    decode_token_with_error,
    identity_from_claims,
)
from mcan_api.services.permissions import roles_with

security = HTTPBearer(auto_error=False)


def _unauthenticated(error: CredentialError) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=CREDENTIAL_ERROR_MESSAGES[error],
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    """Authenticate: verify the bearer token and rebuild the caller from its claims.

    The users table is not consulted, so a role change or deactivation only
    takes effect once the caller's token expires.
    """
    if not credentials:
        if request.headers.get("authorization"):
            # Header present but not "Bearer <token>"
            raise _unauthenticated(CredentialError.malformed)
        raise _unauthenticated(CredentialError.missing)
    payload, error = decode_token_with_error(credentials.credentials or "")
    if error:
        raise _unauthenticated(error)
    identity = identity_from_claims(payload)
    if identity is None:
        raise _unauthenticated(CredentialError.malformed)
    request.state.identity = identity
    return identity


def get_current_user(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> User:
    """Full user record for handlers that need profile fields (card rendering, profile)."""
    user = db.query(User).filter(User.id == identity.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def require_roles(*allowed_roles: UserRole):
    """Authorize: the authenticated role must be in `allowed_roles`."""
    allowed = frozenset(allowed_roles)

    def _checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return identity

    _checker.allowed_roles = allowed
    return _checker


def require_capability(capability: str):
    """Role gate whose allow-list is every role holding `capability` in the permission table."""
    return require_roles(*roles_with(capability))
