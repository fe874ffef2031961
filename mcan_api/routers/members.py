"""Officer-level member registration and e-ID issuance."""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from mcan_api.config import get_settings
from mcan_api.database import get_db
from mcan_api.dependencies import get_current_user, require_capability
from mcan_api.models.user import User, UserRole
from mcan_api.responses import created, ok
from mcan_api.routers.eid import get_card_repository, issue_card, record_card_event, svg_download
from mcan_api.schemas.auth import UserResponse
from mcan_api.schemas.eid import EIDCardResponse
from mcan_api.schemas.user import MemberCreate
from mcan_api.services import users as user_store
from mcan_api.services.audit_log import CATEGORY_USER_MANAGEMENT, create_log, request_context
from mcan_api.services.eid import EIDCardRepository

# Officers who collect dues (SUPER_ADMIN, NATIONAL_ADMIN, STATE_AMEER, STATE_SECRETARY) also register members
require_member_officer = require_capability("can_manage_payments")

router = APIRouter(
    prefix="/members",
    tags=["members"],
    dependencies=[Depends(require_member_officer)],
)


@router.post("")
def create_member(
    data: MemberCreate,
    request: Request,
    db: Session = Depends(get_db),
    officer: User = Depends(get_current_user),
):
    """Register a MEMBER account. Officers cannot pick the role."""
    user = user_store.create_user(
        db,
        email=data.email,
        password=data.password or get_settings().default_user_password,
        full_name=data.full_name,
        phone=data.phone,
        role=UserRole.MEMBER,
        state_code=data.state_code,
        deployment_state=data.deployment_state,
        service_year=data.service_year,
    )
    create_log(
        db,
        CATEGORY_USER_MANAGEMENT,
        "Member registered",
        f"{officer.email} registered {user.email}.",
        actor_user_id=officer.id,
        actor_email=officer.email,
        target_user_id=user.id,
        meta={"officer_role": officer.role},
        **request_context(request),
    )
    db.commit()
    db.refresh(user)
    return created("Member created successfully", UserResponse.model_validate(user))


@router.get("/{user_id}/eid")
def get_member_eid(
    user_id: str,
    db: Session = Depends(get_db),
    repo: EIDCardRepository = Depends(get_card_repository),
):
    user = user_store.get_or_404(db, user_id)
    card = repo.get_by_user(user.id)
    if not card:
        raise HTTPException(status_code=404, detail="E-ID not found")
    return ok("E-ID fetched", EIDCardResponse.model_validate(card))


@router.post("/{user_id}/eid")
def generate_member_eid(
    user_id: str,
    request: Request,
    regenerate: bool = Query(False),
    db: Session = Depends(get_db),
    officer: User = Depends(get_current_user),
    repo: EIDCardRepository = Depends(get_card_repository),
):
    """Issue the member's card, or re-render and renew it with ?regenerate=true."""
    user = user_store.get_or_404(db, user_id)
    had_card = repo.get_by_user(user.id) is not None
    card = issue_card(repo, user, regenerate=regenerate)
    if regenerate:
        record_card_event(db, request, officer, user, card, "E-ID card regenerated by officer")
    elif not had_card:
        record_card_event(db, request, officer, user, card, "E-ID card issued by officer")
    return ok("E-ID generated", EIDCardResponse.model_validate(card))


@router.get("/{user_id}/eid/download")
def download_member_eid(
    user_id: str,
    db: Session = Depends(get_db),
    repo: EIDCardRepository = Depends(get_card_repository),
):
    user = user_store.get_or_404(db, user_id)
    card = repo.get_by_user(user.id)
    if not card:
        raise HTTPException(status_code=404, detail="E-ID not found")
    return svg_download(card)
