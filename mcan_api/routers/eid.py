"""Digital membership ID (e-ID) cards."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mcan_api.database import get_db
from mcan_api.dependencies import get_current_user
from mcan_api.models.eid_card import EIDCardStatus
from mcan_api.models.user import User
from mcan_api.responses import ok
from mcan_api.schemas.eid import EIDCardResponse, EIDVerification
from mcan_api.services.audit_log import CATEGORY_EID_CARD, create_log, request_context
from mcan_api.services.eid import EIDCardRepository

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/eid", tags=["eid"])


def get_card_repository(db: Session = Depends(get_db)) -> EIDCardRepository:
    repo = EIDCardRepository(db)
    repo.ensure_schema()
    return repo


def issue_card(repo: EIDCardRepository, user: User, *, regenerate: bool = False):
    """Get-or-generate (or re-render) a card; storage failures become a 500 with a readable message."""
    try:
        if regenerate:
            return repo.regenerate_for_user(user)
        return repo.generate_for_user(user)
    except SQLAlchemyError:
        repo.db.rollback()
        log.exception("[EID] Card generation failed for user %s", user.id)
        raise HTTPException(status_code=500, detail="Unable to generate E-ID card")


def svg_download(card) -> Response:
    return Response(
        content=card.svg_markup,
        media_type="image/svg+xml",
        headers={"Content-Disposition": f'attachment; filename="{card.card_number}.svg"'},
    )


def record_card_event(db: Session, request: Request, actor: User, user: User, card, title: str) -> None:
    create_log(
        db,
        CATEGORY_EID_CARD,
        title,
        f"E-ID card {card.card_number} for {user.email}.",
        actor_user_id=actor.id,
        actor_email=actor.email,
        target_user_id=user.id,
        meta={"card_id": card.id, "version": card.version},
        **request_context(request),
    )
    db.commit()


@router.get("/me")
def get_my_eid(
    current_user: User = Depends(get_current_user),
    repo: EIDCardRepository = Depends(get_card_repository),
):
    card = repo.get_by_user(current_user.id)
    if not card:
        raise HTTPException(status_code=404, detail="E-ID not found")
    return ok("E-ID fetched", EIDCardResponse.model_validate(card))


@router.post("/me")
def generate_my_eid(
    request: Request,
    current_user: User = Depends(get_current_user),
    repo: EIDCardRepository = Depends(get_card_repository),
):
    """Return the caller's card, creating it on first call. Repeated calls return the same card."""
    had_card = repo.get_by_user(current_user.id) is not None
    card = issue_card(repo, current_user)
    if not had_card:
        record_card_event(repo.db, request, current_user, current_user, card, "E-ID card issued")
    return ok("E-ID generated", EIDCardResponse.model_validate(card))


@router.post("/me/regenerate")
def regenerate_my_eid(
    request: Request,
    current_user: User = Depends(get_current_user),
    repo: EIDCardRepository = Depends(get_card_repository),
):
    """Re-render the caller's card from their current profile (same card id)."""
    card = issue_card(repo, current_user, regenerate=True)
    record_card_event(repo.db, request, current_user, current_user, card, "E-ID card regenerated")
    return ok("E-ID regenerated", EIDCardResponse.model_validate(card))


@router.get("/me/download")
def download_my_eid(
    current_user: User = Depends(get_current_user),
    repo: EIDCardRepository = Depends(get_card_repository),
):
    card = repo.get_by_user(current_user.id)
    if not card:
        raise HTTPException(status_code=404, detail="E-ID not found")
    return svg_download(card)


@router.get("/verify/{card_number}")
def verify_eid(
    card_number: str,
    repo: EIDCardRepository = Depends(get_card_repository),
):
    """Public lookup behind the QR code on the card."""
    card = repo.get_by_card_number(card_number)
    if not card or not card.user:
        raise HTTPException(status_code=404, detail="E-ID not found")
    holder = card.user
    status = card.effective_status()
    if status == EIDCardStatus.EXPIRED:
        message = "E-ID has expired"
    elif not holder.is_active:
        message = "E-ID holder is inactive"
    else:
        message = "E-ID verified"
    return ok(
        message,
        EIDVerification(
            card_number=card.card_number,
            full_name=holder.full_name,
            role=holder.role,
            state_code=holder.state_code,
            deployment_state=holder.deployment_state,
            is_active=holder.is_active,
            status=status,
            is_valid=holder.is_active and status == EIDCardStatus.ACTIVE,
            issued_at=card.issued_at,
            expires_at=card.expires_at,
        ),
    )
