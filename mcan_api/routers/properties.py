"""Association property tracking."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session

from mcan_api.database import get_db
from mcan_api.dependencies import get_current_identity, get_current_user, require_capability
from mcan_api.models.property import Property, PropertyStatus, PropertyType
from mcan_api.models.user import User
from mcan_api.responses import created, ok
from mcan_api.schemas.property import PropertyCreate, PropertyMapPoint, PropertyResponse, PropertyUpdate
from mcan_api.services.audit_log import CATEGORY_PROPERTY, create_log, request_context

router = APIRouter(prefix="/properties", tags=["properties"])


def _active_properties(db: Session):
    return db.query(Property).filter(Property.deleted_at.is_(None))


def _get_property_or_404(db: Session, property_id: str) -> Property:
    prop = _active_properties(db).filter(Property.id == property_id).first()
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    return prop


def _log_property(db: Session, request: Request, actor: User, prop: Property, title: str, meta: dict | None = None) -> None:
    create_log(
        db,
        CATEGORY_PROPERTY,
        title,
        f"{actor.email}: {title.lower()} '{prop.name}' ({prop.state_chapter}).",
        actor_user_id=actor.id,
        actor_email=actor.email,
        meta={"property_id": prop.id, **(meta or {})},
        **request_context(request),
    )


@router.get("")
def list_properties(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = None,
    state_chapter: str | None = None,
    type: PropertyType | None = None,
    status: PropertyStatus | None = None,
    db: Session = Depends(get_db),
    identity=Depends(get_current_identity),
):
    q = _active_properties(db)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(Property.name.ilike(like), Property.address.ilike(like), Property.city.ilike(like)))
    if state_chapter:
        q = q.filter(Property.state_chapter == state_chapter)
    if type:
        q = q.filter(Property.type == type)
    if status:
        q = q.filter(Property.status == status)
    total = q.count()
    rows = q.order_by(Property.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    total_pages = (total + limit - 1) // limit
    return ok(
        "Properties retrieved successfully",
        {
            "items": [PropertyResponse.model_validate(p) for p in rows],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        },
    )


@router.get("/map")
def property_map(db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    """Properties with coordinates, for the map view."""
    rows = (
        _active_properties(db)
        .filter(Property.latitude.isnot(None), Property.longitude.isnot(None))
        .all()
    )
    points = [
        PropertyMapPoint(
            id=p.id,
            name=p.name,
            type=p.type,
            state_chapter=p.state_chapter,
            latitude=p.latitude,
            longitude=p.longitude,
        )
        for p in rows
    ]
    return ok("Property map data retrieved successfully", points)


@router.get("/{property_id}")
def get_property(property_id: str, db: Session = Depends(get_db), identity=Depends(get_current_identity)):
    return ok("Property retrieved successfully", PropertyResponse.model_validate(_get_property_or_404(db, property_id)))


@router.post("", dependencies=[Depends(require_capability("can_manage_properties"))])
def create_property(
    data: PropertyCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prop = Property(**data.model_dump(), status=PropertyStatus.ACTIVE, added_by=current_user.id)
    db.add(prop)
    db.flush()
    _log_property(db, request, current_user, prop, "Property created", {"type": data.type})
    db.commit()
    db.refresh(prop)
    return created("Property created successfully", PropertyResponse.model_validate(prop))


@router.put("/{property_id}", dependencies=[Depends(require_capability("can_manage_properties"))])
def update_property(
    property_id: str,
    data: PropertyUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    prop = _get_property_or_404(db, property_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(prop, field, value)
    _log_property(db, request, current_user, prop, "Property updated", {"fields": sorted(changes)})
    db.commit()
    db.refresh(prop)
    return ok("Property updated successfully", PropertyResponse.model_validate(prop))


@router.delete("/{property_id}", dependencies=[Depends(require_capability("can_access_all_states"))])
def delete_property(
    property_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Soft delete: the row stays for records but leaves every listing."""
    prop = _get_property_or_404(db, property_id)
    prop.deleted_at = datetime.now(timezone.utc)
    _log_property(db, request, current_user, prop, "Property deleted")
    db.commit()
    return ok("Property deleted successfully")
