"""Authentication and authorization gate: credential failures, allow-lists, no side effects."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from conftest import API, auth_headers
from mcan_api.config import get_settings
from mcan_api.models.audit_log import AuditLog
from mcan_api.models.eid_card import EIDCard
from mcan_api.models.user import User, UserRole
from mcan_api.routers.members import require_member_officer
from mcan_api.services.auth import create_refresh_token
from mcan_api.services.permissions import roles_with


def _token(user: User, secret: str | None = None, **overrides) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "email": user.email,
        "role": user.role.value,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=5),
    }
    payload.update(overrides)
    return jwt.encode(payload, secret or settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _assert_401(resp, message):
    assert resp.status_code == 401
    body = resp.json()
    assert body == {"success": False, "message": message, "data": None}
    assert resp.headers.get("www-authenticate") == "Bearer"


def test_missing_token(client):
    _assert_401(client.get(f"{API}/auth/me"), "Access token is required")


@pytest.mark.parametrize("header", ["Bearer not-a-jwt", "Token abc.def.ghi", "Bearer"])
def test_malformed_token(client, header):
    _assert_401(client.get(f"{API}/auth/me", headers={"Authorization": header}), "Malformed token")


def test_expired_token(client, make_user):
    user = make_user()
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = _token(user, iat=past, exp=past + timedelta(minutes=5))
    _assert_401(client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"}), "Token expired")


def test_bad_signature(client, make_user):
    token = _token(make_user(), secret="someone-elses-secret")
    _assert_401(client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"}), "Invalid token")


def test_refresh_token_is_not_an_access_token(client, make_user):
    token = create_refresh_token(make_user())
    assert client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401


def test_unknown_role_claim_is_rejected(client, make_user):
    token = _token(make_user(), role="EMPEROR")
    _assert_401(client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"}), "Malformed token")


def test_valid_token(client, make_user):
    user = make_user(full_name="Aisha Bello")
    resp = client.get(f"{API}/auth/me", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json()["data"]["full_name"] == "Aisha Bello"


def test_no_side_effects_without_token(client, db):
    assert client.post(f"{API}/eid/me").status_code == 401
    assert client.post(
        f"{API}/admin/users",
        json={"full_name": "New Member", "email": "new@test.mcan.demo", "phone": "+2348012345678", "role": "MEMBER"},
    ).status_code == 401
    assert db.query(EIDCard).count() == 0
    assert db.query(User).count() == 0
    assert db.query(AuditLog).count() == 0


def test_forbidden_role_has_no_side_effects(client, db, headers_for):
    _, headers = headers_for(UserRole.NATIONAL_ADMIN)
    resp = client.post(
        f"{API}/admin/users",
        json={"full_name": "New Member", "email": "new@test.mcan.demo", "phone": "+2348012345678", "role": "MEMBER"},
        headers=headers,
    )
    assert resp.status_code == 403
    assert resp.json()["message"] == "Insufficient permissions"
    assert db.query(User).count() == 1
    assert db.query(AuditLog).count() == 0


@pytest.mark.parametrize("role", list(UserRole))
@pytest.mark.parametrize(
    "path, capability",
    [
        ("/admin/users", "can_manage_system"),
        ("/admin/stats", "can_manage_system"),
        ("/admin/permissions", "can_manage_system"),
        ("/admin/audit-logs", "can_manage_system"),
        ("/users", "can_edit_users"),
        ("/dashboard/states", "can_access_all_states"),
    ],
)
def test_allow_lists_follow_permission_table(client, headers_for, role, path, capability):
    _, headers = headers_for(role)
    resp = client.get(f"{API}{path}", headers=headers)
    expected = 200 if role in roles_with(capability) else 403
    assert resp.status_code == expected


def test_role_comes_from_token_claims(client, db, headers_for):
    """A promotion is not visible until the caller gets a new token."""
    user, stale_headers = headers_for(UserRole.MEMBER)
    user.role = UserRole.SUPER_ADMIN
    db.commit()
    assert client.get(f"{API}/admin/users", headers=stale_headers).status_code == 403
    assert client.get(f"{API}/admin/users", headers=auth_headers(user)).status_code == 200


def test_permissions_endpoint_reports_token_role(client, headers_for):
    _, headers = headers_for(UserRole.STATE_AMEER)
    data = client.get(f"{API}/auth/permissions", headers=headers).json()["data"]
    assert data["role"] == "STATE_AMEER"
    assert data["permissions"]["canManageProperties"] is True
    assert data["permissions"]["canManageSystem"] is False


def test_member_officer_gate_allows_the_four_officer_roles():
    assert require_member_officer.allowed_roles == frozenset(
        {UserRole.SUPER_ADMIN, UserRole.NATIONAL_ADMIN, UserRole.STATE_AMEER, UserRole.STATE_SECRETARY}
    )
