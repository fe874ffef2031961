"""Card renderer: pure function from a user record to SVG markup."""
import json
from types import SimpleNamespace

from mcan_api.models.user import UserRole
from mcan_api.services.eid_render import (
    CARD_NUMBER_PREFIX,
    DEFAULT_DEPLOYMENT_STATE,
    DEFAULT_FULL_NAME,
    DEFAULT_ROLE,
    DEFAULT_STATE_CODE,
    card_number_for,
    normalize_card_number,
    render_card,
    role_label,
    short_card_id,
    verification_payload,
)

AISHA_ID = "abc123ef-1234-4abc-9def-0123456789ab"


def _aisha(**overrides):
    fields = dict(
        id=AISHA_ID,
        full_name="Aisha Bello",
        state_code="LA",
        deployment_state="Lagos",
        role=UserRole.STATE_SECRETARY,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_render_shows_member_fields():
    svg = render_card(_aisha())
    assert svg.startswith("<svg")
    assert svg.rstrip().endswith("</svg>")
    for expected in ("Aisha Bello", ">LA<", "Lagos", "STATE SECRETARY", "ABC123EF", "SCAN TO VERIFY"):
        assert expected in svg


def test_render_is_deterministic():
    assert render_card(_aisha()) == render_card(_aisha())


def test_render_changes_with_profile():
    assert render_card(_aisha()) != render_card(_aisha(full_name="Aisha B. Bello"))


def test_blank_fields_use_placeholders():
    svg = render_card(SimpleNamespace(id="0f0f0f0f-aaaa", full_name="   ", state_code=None, deployment_state="", role=None))
    assert DEFAULT_FULL_NAME in svg
    assert DEFAULT_STATE_CODE in svg
    assert DEFAULT_DEPLOYMENT_STATE in svg
    assert f">{DEFAULT_ROLE}<" in svg


def test_render_accepts_object_without_attributes():
    svg = render_card(object())
    assert DEFAULT_FULL_NAME in svg


def test_user_text_is_escaped():
    svg = render_card(_aisha(full_name='Ali <b>"Sani"</b> & Sons'))
    assert "<b>" not in svg
    assert "&lt;b&gt;" in svg
    assert "&amp; Sons" in svg
    assert "&quot;Sani&quot;" in svg


def test_card_id_helpers():
    assert short_card_id(AISHA_ID) == "ABC123EF"
    assert card_number_for(AISHA_ID) == f"{CARD_NUMBER_PREFIX}ABC123EF12344ABC9DEF0123456789AB"
    assert short_card_id(None) == ""


def test_role_label_accepts_enum_or_string():
    assert role_label(UserRole.NATIONAL_ADMIN) == "NATIONAL ADMIN"
    assert role_label("MCLO_AMEER") == "MCLO AMEER"
    assert role_label(None) == DEFAULT_ROLE


def test_verification_payload_is_stable_json():
    payload = verification_payload(AISHA_ID)
    assert payload == verification_payload(AISHA_ID)
    assert json.loads(payload) == {"cardNumber": "MCAN-ABC123EF12344ABC9DEF0123456789AB", "memberId": AISHA_ID}


def test_card_numbers_differ_when_short_ids_collide():
    first = "abc123ef-0000-4000-8000-000000000000"
    second = "abc123ef-ffff-4fff-8fff-ffffffffffff"
    assert short_card_id(first) == short_card_id(second) == "ABC123EF"
    assert card_number_for(first) != card_number_for(second)
    assert card_number_for(first).startswith(f"{CARD_NUMBER_PREFIX}ABC123EF")


def test_normalize_card_number():
    expected = card_number_for(AISHA_ID)
    assert normalize_card_number(expected) == expected
    assert normalize_card_number(expected.lower()) == expected
    assert normalize_card_number(f" mcan-{AISHA_ID} ") == expected
    assert normalize_card_number(AISHA_ID) == expected
    assert normalize_card_number("   ") == ""
    assert normalize_card_number(None) == ""
    assert normalize_card_number("MCAN-") == ""
