"""Property tracking schemas."""
from datetime import datetime
from pydantic import BaseModel, Field
from mcan_api.models.property import PropertyStatus, PropertyType


class PropertyCreate(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    description: str = Field(max_length=1000)
    type: PropertyType
    address: str
    city: str
    state: str
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    state_chapter: str
    ownership_document: str | None = None


class PropertyUpdate(BaseModel):
    """All optional; only provided fields are updated."""
    name: str | None = Field(default=None, min_length=2, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    type: PropertyType | None = None
    status: PropertyStatus | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    state_chapter: str | None = None
    ownership_document: str | None = None


class PropertyResponse(BaseModel):
    id: str
    name: str
    description: str
    type: PropertyType
    status: PropertyStatus
    address: str
    city: str
    state: str
    latitude: float | None
    longitude: float | None
    state_chapter: str
    ownership_document: str | None
    added_by: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class PropertyMapPoint(BaseModel):
    id: str
    name: str
    type: PropertyType
    state_chapter: str
    latitude: float
    longitude: float
