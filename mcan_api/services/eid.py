"""E-ID card repository: get-or-generate one card per user."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mcan_api.config import get_settings
from mcan_api.models.eid_card import EIDCard, EIDCardStatus
from mcan_api.models.user import User
from mcan_api.services.eid_render import (
    CARD_TEMPLATE_VERSION,
    card_number_for,
    normalize_card_number,
    render_card,
)

log = logging.getLogger("uvicorn.error")


def add_years(value: datetime, years: int) -> datetime:
    """Same calendar date `years` later; 29 February falls back to the 28th."""
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, day=28)


def validity_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """(issued_at, expires_at) for a card issued or regenerated at `now`."""
    issued = now or datetime.now(timezone.utc)
    return issued, add_years(issued, get_settings().eid_validity_years)


class EIDCardRepository:
    """Card storage on top of a SQLAlchemy session.

    Commits are done here (not by the caller) because generate_for_user has to
    recover from a lost insert race by rolling back and re-reading.
    """

    def __init__(self, db: Session):
        self.db = db

    def ensure_schema(self) -> None:
        """Create the eid_cards table if it is missing; no-op otherwise."""
        EIDCard.__table__.create(bind=self.db.get_bind(), checkfirst=True)

    def get_by_user(self, user_id: str) -> EIDCard | None:
        return self.db.query(EIDCard).filter(EIDCard.user_id == str(user_id)).first()

    def get_by_card_number(self, card_number: str) -> EIDCard | None:
        number = normalize_card_number(card_number)
        if not number:
            return None
        # card_number is unique, so this is the one holder or nobody
        return self.db.query(EIDCard).filter(EIDCard.card_number == number).one_or_none()

    def generate_for_user(self, user: User) -> EIDCard:
        """Return the user's card, rendering and storing it on first call.

        An existing card is never overwritten, even once expired; renewal goes
        through regenerate_for_user. If a concurrent request inserts first, the
        unique constraint on user_id rejects this insert and the stored card is
        returned instead.
        """
        existing = self.get_by_user(user.id)
        if existing:
            return existing
        issued, expires = validity_window()
        card = EIDCard(
            user_id=str(user.id),
            card_number=card_number_for(user.id),
            svg_markup=render_card(user),
            version=CARD_TEMPLATE_VERSION,
            status=EIDCardStatus.ACTIVE,
            issued_at=issued,
            expires_at=expires,
        )
        self.db.add(card)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            winner = self.get_by_user(user.id)
            if winner is None:
                # Not the user_id race (e.g. user row vanished); let the caller see it
                raise
            log.info("[EID] Card for user %s created concurrently; returning stored card %s", user.id, winner.id)
            return winner
        self.db.refresh(card)
        log.info("[EID] Generated card %s for user %s (expires %s)", card.card_number, user.id, card.expires_at)
        return card

    def regenerate_for_user(self, user: User) -> EIDCard:
        """Re-render the card from the user's current profile, keeping its id.

        The validity window restarts and the status returns to ACTIVE.
        """
        card = self.get_by_user(user.id)
        if card is None:
            return self.generate_for_user(user)
        card.svg_markup = render_card(user)
        card.card_number = card_number_for(user.id)
        card.version = CARD_TEMPLATE_VERSION
        card.status = EIDCardStatus.ACTIVE
        card.issued_at, card.expires_at = validity_window()
        self.db.commit()
        self.db.refresh(card)
        log.info("[EID] Regenerated card %s for user %s (expires %s)", card.card_number, user.id, card.expires_at)
        return card
