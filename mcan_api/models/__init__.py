"""
All SQLAlchemy models. Schema is the source of truth for new DBs.
Base.metadata.create_all() creates every table; no migration scripts needed for fresh installs.
"""
from mcan_api.models.user import User, UserRole
from mcan_api.models.eid_card import EIDCard
from mcan_api.models.property import Property, PropertyType, PropertyStatus
from mcan_api.models.audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "EIDCard",
    "Property",
    "PropertyType",
    "PropertyStatus",
    "AuditLog",
]
