"""E-ID card rendering: user record in, self-contained SVG document out.

render_card() is a pure function of the user's id, name, state code, deployment
state and role. The same inputs always give byte-identical markup, which is what
lets the repository store the first render and tests compare output directly.
"""
from __future__ import annotations

import json
from xml.sax.saxutils import escape

import qrcode
from qrcode.constants import ERROR_CORRECT_M

CARD_TEMPLATE_VERSION = "v1"
CARD_NUMBER_PREFIX = "MCAN-"

DEFAULT_FULL_NAME = "Member Name"
DEFAULT_STATE_CODE = "STATE/CODE"
DEFAULT_DEPLOYMENT_STATE = "Your State"
DEFAULT_ROLE = "MEMBER"

CARD_WIDTH = 856
CARD_HEIGHT = 540
QR_SIZE = 150
QR_X = 660
QR_Y = 300

_CARD_TEMPLATE = """<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" viewBox="0 0 {width} {height}" role="img" aria-label="MCAN e-ID card for {full_name}">
  <defs>
    <linearGradient id="mcan-bg" x1="0" y1="0" x2="1" y2="1">
      <stop offset="0%" stop-color="#0b6e4f"/>
      <stop offset="100%" stop-color="#08415c"/>
    </linearGradient>
  </defs>
  <rect x="0" y="0" width="{width}" height="{height}" rx="28" fill="url(#mcan-bg)"/>
  <rect x="24" y="24" width="{inner_width}" height="{inner_height}" rx="20" fill="none" stroke="#f2c14e" stroke-width="2"/>
  <text x="56" y="92" font-family="Helvetica, Arial, sans-serif" font-size="28" font-weight="700" fill="#ffffff">MUSLIM CORPERS' ASSOCIATION OF NIGERIA</text>
  <text x="56" y="126" font-family="Helvetica, Arial, sans-serif" font-size="20" fill="#f2c14e" letter-spacing="4">DIGITAL MEMBERSHIP IDENTITY CARD</text>
  <line x1="56" y1="150" x2="{rule_end}" y2="150" stroke="#f2c14e" stroke-width="1"/>
  <text x="56" y="206" font-family="Helvetica, Arial, sans-serif" font-size="16" fill="#cfe8df">NAME</text>
  <text x="56" y="240" font-family="Helvetica, Arial, sans-serif" font-size="30" font-weight="700" fill="#ffffff">{full_name}</text>
  <text x="56" y="292" font-family="Helvetica, Arial, sans-serif" font-size="16" fill="#cfe8df">STATE CODE</text>
  <text x="56" y="322" font-family="Helvetica, Arial, sans-serif" font-size="24" fill="#ffffff">{state_code}</text>
  <text x="360" y="292" font-family="Helvetica, Arial, sans-serif" font-size="16" fill="#cfe8df">BRANCH</text>
  <text x="360" y="322" font-family="Helvetica, Arial, sans-serif" font-size="24" fill="#ffffff">{deployment_state}</text>
  <text x="56" y="374" font-family="Helvetica, Arial, sans-serif" font-size="16" fill="#cfe8df">ROLE</text>
  <text x="56" y="404" font-family="Helvetica, Arial, sans-serif" font-size="24" font-weight="700" fill="#f2c14e">{role}</text>
  <text x="56" y="456" font-family="Helvetica, Arial, sans-serif" font-size="16" fill="#cfe8df">CARD ID</text>
  <text x="56" y="488" font-family="Courier New, monospace" font-size="26" font-weight="700" fill="#ffffff" letter-spacing="3">{card_id}</text>
  <rect x="{qr_frame_x}" y="{qr_frame_y}" width="{qr_frame_size}" height="{qr_frame_size}" rx="10" fill="#ffffff"/>
  <g transform="translate({qr_x} {qr_y}) scale({qr_scale})">
    <path d="{qr_path}" fill="#000000" shape-rendering="crispEdges"/>
  </g>
  <text x="{qr_caption_x}" y="{qr_caption_y}" font-family="Helvetica, Arial, sans-serif" font-size="12" fill="#cfe8df" text-anchor="middle">SCAN TO VERIFY</text>
</svg>
"""


def _text(value) -> str:
    return "" if value is None else str(value).strip()


def _esc(value: str) -> str:
    # Values land in element text and in the aria-label attribute
    return escape(value, {'"': "&quot;"})


def short_card_id(user_id) -> str:
    """Visible card identifier: first 8 characters of the user id, upper-cased."""
    return _text(user_id)[:8].upper()


def _compact(value: str) -> str:
    return value.replace("-", "").upper()


def card_number_for(user_id) -> str:
    """Unique verification key: prefix plus the whole user id, hyphens dropped.

    It starts with the short card id printed on the card, so the two read alike,
    but two users sharing the same first 8 characters still get different numbers.
    """
    return CARD_NUMBER_PREFIX + _compact(_text(user_id))


def normalize_card_number(value) -> str:
    """Canonical form of a card number typed or scanned by a verifier; '' when blank."""
    raw = _text(value).upper()
    if raw.startswith(CARD_NUMBER_PREFIX):
        raw = raw[len(CARD_NUMBER_PREFIX):]
    raw = _compact(raw)
    return CARD_NUMBER_PREFIX + raw if raw else ""


def role_label(role) -> str:
    raw = getattr(role, "value", role)
    return (_text(raw) or DEFAULT_ROLE).replace("_", " ")


def verification_payload(user_id) -> str:
    """What the QR code encodes; sort_keys keeps it stable across runs."""
    return json.dumps(
        {"cardNumber": card_number_for(user_id), "memberId": _text(user_id)},
        sort_keys=True,
        separators=(",", ":"),
    )


def _qr_path(data: str) -> tuple[str, int]:
    """SVG path drawing the dark modules of a QR code for `data`; returns (path, modules per side)."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, border=0)
    qr.add_data(data)
    qr.make(fit=True)
    matrix = qr.get_matrix()
    parts = []
    for y, row in enumerate(matrix):
        for x, dark in enumerate(row):
            if dark:
                parts.append(f"M{x} {y}h1v1h-1z")
    return "".join(parts), len(matrix)


def render_card(user) -> str:
    """Render the e-ID card SVG for a user record.

    `user` only needs attribute access to id, full_name, state_code,
    deployment_state and role; blank or missing values use placeholder text.
    """
    user_id = getattr(user, "id", None)
    qr_path, modules = _qr_path(verification_payload(user_id))
    padding = 8
    return _CARD_TEMPLATE.format(
        width=CARD_WIDTH,
        height=CARD_HEIGHT,
        inner_width=CARD_WIDTH - 48,
        inner_height=CARD_HEIGHT - 48,
        rule_end=CARD_WIDTH - 56,
        full_name=_esc(_text(getattr(user, "full_name", None)) or DEFAULT_FULL_NAME),
        state_code=_esc(_text(getattr(user, "state_code", None)) or DEFAULT_STATE_CODE),
        deployment_state=_esc(_text(getattr(user, "deployment_state", None)) or DEFAULT_DEPLOYMENT_STATE),
        role=_esc(role_label(getattr(user, "role", None))),
        card_id=_esc(short_card_id(user_id)),
        qr_frame_x=QR_X - padding,
        qr_frame_y=QR_Y - padding,
        qr_frame_size=QR_SIZE + 2 * padding,
        qr_x=QR_X,
        qr_y=QR_Y,
        qr_scale=f"{QR_SIZE / modules:.4f}",
        qr_path=qr_path,
        qr_caption_x=QR_X + QR_SIZE // 2,
        qr_caption_y=QR_Y + QR_SIZE + padding + 18,
    )
