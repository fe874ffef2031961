"""Property tracking and dashboard aggregates."""
import pytest

from conftest import API
from mcan_api.models.audit_log import AuditLog
from mcan_api.models.user import UserRole
from mcan_api.services.audit_log import CATEGORY_PROPERTY
from mcan_api.services.permissions import roles_with

MOSQUE = {
    "name": "Central Mosque",
    "description": "Lagos chapter mosque",
    "type": "MOSQUE",
    "address": "1 Marina Rd",
    "city": "Ikeja",
    "state": "Lagos",
    "state_chapter": "Lagos",
    "latitude": 6.6,
    "longitude": 3.35,
}

OFFICE = {
    "name": "Kano Secretariat",
    "description": "State office",
    "type": "OFFICE",
    "address": "5 Zoo Rd",
    "city": "Kano",
    "state": "Kano",
    "state_chapter": "Kano",
}


def _create(client, headers, body=MOSQUE) -> dict:
    resp = client.post(f"{API}/properties", json=body, headers=headers)
    assert resp.status_code == 201
    return resp.json()["data"]


@pytest.mark.parametrize("role", list(UserRole))
def test_create_allow_list(client, headers_for, role):
    _, headers = headers_for(role)
    resp = client.post(f"{API}/properties", json=MOSQUE, headers=headers)
    assert resp.status_code == (201 if role in roles_with("can_manage_properties") else 403)


def test_create_records_creator_and_logs(client, db, headers_for):
    user, headers = headers_for(UserRole.STATE_SECRETARY)
    prop = _create(client, headers)
    assert prop["added_by"] == user.id
    assert prop["status"] == "ACTIVE"
    log = db.query(AuditLog).filter(AuditLog.category == CATEGORY_PROPERTY).one()
    assert log.meta["property_id"] == prop["id"]


def test_create_validation(client, headers_for):
    _, headers = headers_for(UserRole.STATE_AMEER)
    resp = client.post(f"{API}/properties", json={**MOSQUE, "latitude": 123}, headers=headers)
    assert resp.status_code == 400


def test_list_get_and_filter(client, headers_for):
    _, admin = headers_for(UserRole.NATIONAL_ADMIN)
    _, member = headers_for(UserRole.MEMBER)
    mosque = _create(client, admin)
    _create(client, admin, OFFICE)

    data = client.get(f"{API}/properties", headers=member).json()["data"]
    assert data["pagination"]["total"] == 2
    data = client.get(f"{API}/properties?type=OFFICE", headers=member).json()["data"]
    assert [p["name"] for p in data["items"]] == ["Kano Secretariat"]
    data = client.get(f"{API}/properties?search=marina", headers=member).json()["data"]
    assert [p["id"] for p in data["items"]] == [mosque["id"]]
    data = client.get(f"{API}/properties?state_chapter=Kano", headers=member).json()["data"]
    assert data["pagination"]["total"] == 1

    resp = client.get(f"{API}/properties/{mosque['id']}", headers=member)
    assert resp.json()["data"]["name"] == "Central Mosque"
    assert client.get(f"{API}/properties/missing", headers=member).status_code == 404


def test_map_only_includes_located_properties(client, headers_for):
    _, admin = headers_for(UserRole.NATIONAL_ADMIN)
    mosque = _create(client, admin)
    _create(client, admin, OFFICE)
    points = client.get(f"{API}/properties/map", headers=admin).json()["data"]
    assert [p["id"] for p in points] == [mosque["id"]]
    assert points[0]["latitude"] == 6.6


def test_update(client, headers_for):
    _, admin = headers_for(UserRole.STATE_AMEER)
    prop = _create(client, admin)
    resp = client.put(f"{API}/properties/{prop['id']}", json={"status": "UNDER_MAINTENANCE"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "UNDER_MAINTENANCE"
    assert resp.json()["data"]["name"] == "Central Mosque"


def test_delete_requires_all_states_and_is_soft(client, headers_for):
    _, ameer = headers_for(UserRole.STATE_AMEER)
    _, national = headers_for(UserRole.NATIONAL_ADMIN)
    prop = _create(client, ameer)
    assert client.delete(f"{API}/properties/{prop['id']}", headers=ameer).status_code == 403
    assert client.delete(f"{API}/properties/{prop['id']}", headers=national).status_code == 200
    assert client.get(f"{API}/properties/{prop['id']}", headers=national).status_code == 404
    assert client.get(f"{API}/properties", headers=national).json()["data"]["pagination"]["total"] == 0
    assert client.delete(f"{API}/properties/{prop['id']}", headers=national).status_code == 404


def test_properties_require_token(client):
    assert client.get(f"{API}/properties").status_code == 401
    assert client.get(f"{API}/properties/map").status_code == 401


def test_dashboard_stats(client, headers_for, make_user):
    _, admin = headers_for(UserRole.NATIONAL_ADMIN)
    member, member_headers = headers_for(UserRole.MEMBER)
    make_user(is_email_verified=True)
    _create(client, admin)
    client.post(f"{API}/eid/me", headers=member_headers)

    data = client.get(f"{API}/dashboard/stats", headers=member_headers).json()["data"]
    assert data["total_members"] == 3
    assert data["active_members"] == 3
    assert data["verified_members"] == 1
    assert data["properties_count"] == 1
    assert data["eid_cards_issued"] == 1
    assert 0 <= data["new_members_this_month"] <= 3


def test_dashboard_states(client, headers_for, make_user):
    _, admin = headers_for(UserRole.NATIONAL_ADMIN, deployment_state="Lagos")
    make_user(deployment_state="Lagos")
    make_user(deployment_state="Kano")
    _create(client, admin)
    _create(client, admin, OFFICE)

    data = client.get(f"{API}/dashboard/states", headers=admin).json()["data"]
    assert data == [
        {"state": "Kano", "member_count": 1, "active_member_count": 1, "properties_count": 1},
        {"state": "Lagos", "member_count": 2, "active_member_count": 2, "properties_count": 1},
    ]
