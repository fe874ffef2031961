"""
Bring an existing eid_cards table up to date: status / issued_at / expires_at columns,
full-length card numbers (MCAN-<user id without hyphens>) and a unique index on card_number.
For a NEW database: not needed; mcan_api.models.eid_card.EIDCard already defines all of it.
Run once on an EXISTING DB: python scripts/migrate_eid_cards_validity.py (from project root)
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from datetime import datetime, timezone

from sqlalchemy import inspect, text

from mcan_api.config import get_settings
from mcan_api.database import engine
from mcan_api.services.eid import add_years
from mcan_api.services.eid_render import card_number_for


def _add_columns(conn, existing: set[str]) -> None:
    postgres = engine.dialect.name == "postgresql"
    if "status" not in existing:
        if postgres:
            conn.execute(text(
                "DO $$ BEGIN CREATE TYPE eid_card_status AS ENUM ('ACTIVE', 'EXPIRED'); "
                "EXCEPTION WHEN duplicate_object THEN NULL; END $$"
            ))
            conn.execute(text("ALTER TABLE eid_cards ADD COLUMN status eid_card_status NOT NULL DEFAULT 'ACTIVE'"))
        else:
            conn.execute(text("ALTER TABLE eid_cards ADD COLUMN status VARCHAR(7) NOT NULL DEFAULT 'ACTIVE'"))
        print("  added: eid_cards.status")
    column_type = "TIMESTAMP WITH TIME ZONE" if postgres else "DATETIME"
    for name in ("issued_at", "expires_at"):
        if name not in existing:
            conn.execute(text(f"ALTER TABLE eid_cards ADD COLUMN {name} {column_type}"))
            print(f"  added: eid_cards.{name}")
    if postgres:
        conn.execute(text("ALTER TABLE eid_cards ALTER COLUMN card_number TYPE VARCHAR(64)"))


def _backfill(conn) -> int:
    years = get_settings().eid_validity_years
    rows = conn.execute(text("SELECT id, user_id, created_at, issued_at FROM eid_cards")).fetchall()
    for card_id, user_id, created_at, issued_at in rows:
        issued = issued_at or created_at or datetime.now(timezone.utc)
        if isinstance(issued, str):
            issued = datetime.fromisoformat(issued)
        params = {"id": card_id, "number": card_number_for(user_id), "issued": issued}
        if issued_at is None:
            params["expires"] = add_years(issued, years)
            conn.execute(
                text("UPDATE eid_cards SET card_number = :number, issued_at = :issued, expires_at = :expires WHERE id = :id"),
                params,
            )
        else:
            conn.execute(text("UPDATE eid_cards SET card_number = :number WHERE id = :id"), params)
    return len(rows)


def main():
    insp = inspect(engine)
    if "eid_cards" not in insp.get_table_names():
        print("  skip: eid_cards does not exist (created on app startup)")
        return
    existing = {c["name"] for c in insp.get_columns("eid_cards")}
    indexes = {ix["name"] for ix in insp.get_indexes("eid_cards")}
    indexes |= {uc["name"] for uc in insp.get_unique_constraints("eid_cards")}
    with engine.begin() as conn:
        _add_columns(conn, existing)
        print(f"  backfilled: {_backfill(conn)} card(s)")
        if "uq_eid_cards_card_number" not in indexes:
            conn.execute(text("CREATE UNIQUE INDEX uq_eid_cards_card_number ON eid_cards (card_number)"))
            print("  added: unique index uq_eid_cards_card_number")
        else:
            print("  skip: uq_eid_cards_card_number exists")


if __name__ == "__main__":
    main()
