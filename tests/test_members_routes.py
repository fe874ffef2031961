"""Officer-level member registration and per-member e-ID issuance."""
import pytest

from conftest import API, auth_headers
from mcan_api.config import get_settings
from mcan_api.models.audit_log import AuditLog
from mcan_api.models.eid_card import EIDCard
from mcan_api.models.user import User, UserRole
from mcan_api.services.audit_log import CATEGORY_EID_CARD, CATEGORY_USER_MANAGEMENT
from mcan_api.services.auth import verify_password
from mcan_api.services.permissions import roles_with

OFFICERS = roles_with("can_manage_payments")

NEW_MEMBER = {
    "full_name": "Zainab Yusuf",
    "email": "zainab@test.mcan.demo",
    "phone": "+2348031112222",
    "state_code": "KD/24A/0042",
    "deployment_state": "Kaduna",
    "service_year": "2024",
}


def test_officer_roles():
    assert set(OFFICERS) == {
        UserRole.SUPER_ADMIN,
        UserRole.NATIONAL_ADMIN,
        UserRole.STATE_AMEER,
        UserRole.STATE_SECRETARY,
    }


def test_create_member(client, db, headers_for):
    officer, headers = headers_for(UserRole.STATE_SECRETARY)
    resp = client.post(f"{API}/members", json=NEW_MEMBER, headers=headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["role"] == "MEMBER"
    assert data["deployment_state"] == "Kaduna"

    member = db.query(User).filter(User.id == data["id"]).one()
    assert verify_password(get_settings().default_user_password, member.password_hash)
    entry = db.query(AuditLog).filter(AuditLog.target_user_id == member.id).one()
    assert entry.category == CATEGORY_USER_MANAGEMENT
    assert entry.actor_user_id == officer.id
    assert entry.meta == {"officer_role": "STATE_SECRETARY"}


def test_create_member_ignores_requested_role(client, db, headers_for):
    _, headers = headers_for(UserRole.STATE_AMEER)
    resp = client.post(f"{API}/members", json={**NEW_MEMBER, "role": "SUPER_ADMIN"}, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["data"]["role"] == "MEMBER"


def test_create_member_duplicate_email(client, headers_for):
    _, headers = headers_for(UserRole.NATIONAL_ADMIN)
    assert client.post(f"{API}/members", json=NEW_MEMBER, headers=headers).status_code == 201
    resp = client.post(f"{API}/members", json=NEW_MEMBER, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["message"] == "User with this email already exists"


def test_create_member_validation(client, headers_for):
    _, headers = headers_for(UserRole.STATE_AMEER)
    resp = client.post(f"{API}/members", json={**NEW_MEMBER, "phone": "12"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation failed"


@pytest.mark.parametrize("role", list(UserRole))
def test_create_member_allow_list(client, db, headers_for, role):
    _, headers = headers_for(role)
    resp = client.post(f"{API}/members", json=NEW_MEMBER, headers=headers)
    if role in OFFICERS:
        assert resp.status_code == 201
    else:
        assert resp.status_code == 403
        assert resp.json()["message"] == "Insufficient permissions"
        assert db.query(User).filter(User.email == NEW_MEMBER["email"]).count() == 0
        assert db.query(AuditLog).count() == 0


@pytest.mark.parametrize("role", list(UserRole))
def test_issue_member_eid_allow_list(client, db, make_user, headers_for, role):
    member = make_user(full_name="Zainab Yusuf")
    _, headers = headers_for(role)
    resp = client.post(f"{API}/members/{member.id}/eid", headers=headers)
    if role in OFFICERS:
        assert resp.status_code == 200
        assert resp.json()["data"]["user_id"] == member.id
    else:
        assert resp.status_code == 403
        assert db.query(EIDCard).count() == 0
        assert db.query(AuditLog).count() == 0


def test_issue_member_eid(client, db, make_user, headers_for):
    member = make_user(full_name="Zainab Yusuf", deployment_state="Kaduna")
    officer, headers = headers_for(UserRole.STATE_AMEER)

    assert client.get(f"{API}/members/{member.id}/eid", headers=headers).status_code == 404
    card = client.post(f"{API}/members/{member.id}/eid", headers=headers).json()["data"]
    assert "Zainab Yusuf" in card["svg_markup"]
    assert card["status"] == "ACTIVE"

    # Member sees the same card
    mine = client.get(f"{API}/eid/me", headers=auth_headers(member)).json()["data"]
    assert mine["id"] == card["id"]
    assert client.get(f"{API}/members/{member.id}/eid", headers=headers).json()["data"]["id"] == card["id"]

    # Issuing again returns the stored card without a second audit entry
    again = client.post(f"{API}/members/{member.id}/eid", headers=headers).json()["data"]
    assert again["id"] == card["id"]
    events = db.query(AuditLog).filter(AuditLog.category == CATEGORY_EID_CARD).all()
    assert len(events) == 1
    assert events[0].actor_user_id == officer.id
    assert events[0].target_user_id == member.id


def test_regenerate_member_eid(client, db, make_user, headers_for):
    member = make_user(deployment_state="Kaduna")
    _, headers = headers_for(UserRole.STATE_SECRETARY)
    card = client.post(f"{API}/members/{member.id}/eid", headers=headers).json()["data"]
    member.deployment_state = "Zaria"
    db.commit()

    resp = client.post(f"{API}/members/{member.id}/eid", params={"regenerate": "true"}, headers=headers)
    assert resp.status_code == 200
    renewed = resp.json()["data"]
    assert renewed["id"] == card["id"]
    assert "Zaria" in renewed["svg_markup"]
    assert db.query(AuditLog).filter(AuditLog.category == CATEGORY_EID_CARD).count() == 2


def test_download_member_eid(client, make_user, headers_for):
    member = make_user()
    _, headers = headers_for(UserRole.NATIONAL_ADMIN)
    assert client.get(f"{API}/members/{member.id}/eid/download", headers=headers).status_code == 404
    card = client.post(f"{API}/members/{member.id}/eid", headers=headers).json()["data"]
    resp = client.get(f"{API}/members/{member.id}/eid/download", headers=headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("image/svg+xml")
    assert resp.text == card["svg_markup"]


def test_unknown_member(client, headers_for):
    _, headers = headers_for(UserRole.STATE_AMEER)
    resp = client.post(f"{API}/members/00000000-0000-0000-0000-000000000000/eid", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "User not found"


def test_members_require_token(client):
    assert client.post(f"{API}/members", json=NEW_MEMBER).status_code == 401
