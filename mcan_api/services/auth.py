"""Auth service (JWT, password hashing)."""
import enum
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from mcan_api.config import get_settings
from mcan_api.models.user import User, UserRole

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


class CredentialError(str, enum.Enum):
    """Why a bearer credential was rejected. All map to 401."""
    missing = "missing"
    malformed = "malformed"
    expired = "expired"
    invalid_signature = "invalid_signature"


CREDENTIAL_ERROR_MESSAGES = {
    CredentialError.missing: "Access token is required",
    CredentialError.malformed: "Malformed token",
    CredentialError.expired: "Token expired",
    CredentialError.invalid_signature: "Invalid token",
}


@dataclass(frozen=True)
class Identity:
    """Caller identity rebuilt from token claims (no store lookup)."""
    user_id: str
    email: str
    role: UserRole


def _pwd_bytes(password: str, max_len: int = 72) -> bytes:
    return password.encode("utf-8")[:max_len]


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_pwd_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(_pwd_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def generate_token(nbytes: int = 32) -> str:
    """Opaque random token for email verification and password reset links."""
    return secrets.token_hex(nbytes)


def _encode(user: User, token_type: str, secret: str, minutes: int) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
    # PyJWT expects "sub" to be a string
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": role,
        "type": token_type,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def create_access_token(user: User) -> str:
    s = get_settings()
    return _encode(user, TOKEN_TYPE_ACCESS, s.jwt_secret_key, s.jwt_access_token_expire_minutes)


def create_refresh_token(user: User) -> str:
    s = get_settings()
    return _encode(user, TOKEN_TYPE_REFRESH, s.jwt_refresh_secret_key, s.jwt_refresh_token_expire_minutes)


def decode_token_with_error(token: str, token_type: str = TOKEN_TYPE_ACCESS) -> tuple[dict | None, CredentialError | None]:
    """Decode and verify a JWT; returns (payload, error)."""
    if not token or not isinstance(token, str) or not token.strip():
        return None, CredentialError.missing
    settings = get_settings()
    secret = settings.jwt_refresh_secret_key if token_type == TOKEN_TYPE_REFRESH else settings.jwt_secret_key
    try:
        payload = jwt.decode(
            token.strip(),
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        return None, CredentialError.expired
    except jwt.InvalidSignatureError:
        return None, CredentialError.invalid_signature
    except jwt.DecodeError:
        return None, CredentialError.malformed
    except jwt.PyJWTError:
        # Missing required claims, bad iat, wrong algorithm
        return None, CredentialError.malformed
    if payload.get("type", TOKEN_TYPE_ACCESS) != token_type:
        return None, CredentialError.invalid_signature
    return payload, None


def identity_from_claims(payload: dict) -> Identity | None:
    """Build the request identity from verified claims; None when claims are incomplete."""
    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        return None
    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        return None
    return Identity(user_id=str(user_id), email=email, role=role)
