"""Role capability table.

The flags are what the frontend uses to decide which controls to show. Route
allow-lists are derived from the same table with roles_with(), so the two
cannot drift apart.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from mcan_api.models.user import UserRole


@dataclass(frozen=True)
class RolePermissions:
    can_create_users: bool = False
    can_edit_users: bool = False
    can_delete_users: bool = False
    can_manage_properties: bool = False
    can_manage_payments: bool = False
    can_view_analytics: bool = False
    can_manage_system: bool = False
    can_access_all_states: bool = False

    def to_client(self) -> dict[str, bool]:
        """camelCase keys, the shape the web client reads (canCreateUsers, ...)."""
        out = {}
        for name, value in asdict(self).items():
            head, *rest = name.split("_")
            out[head + "".join(part.capitalize() for part in rest)] = value
        return out


CAPABILITIES: tuple[str, ...] = tuple(f.name for f in fields(RolePermissions))

ROLE_PERMISSIONS: Mapping[UserRole, RolePermissions] = MappingProxyType({
    UserRole.SUPER_ADMIN: RolePermissions(
        can_create_users=True,
        can_edit_users=True,
        can_delete_users=True,
        can_manage_properties=True,
        can_manage_payments=True,
        can_view_analytics=True,
        can_manage_system=True,
        can_access_all_states=True,
    ),
    UserRole.NATIONAL_ADMIN: RolePermissions(
        can_edit_users=True,
        can_manage_properties=True,
        can_manage_payments=True,
        can_view_analytics=True,
        can_access_all_states=True,
    ),
    UserRole.STATE_AMEER: RolePermissions(
        can_manage_properties=True,
        can_manage_payments=True,
        can_view_analytics=True,
    ),
    UserRole.STATE_SECRETARY: RolePermissions(
        can_manage_properties=True,
        can_manage_payments=True,
    ),
    UserRole.MCLO_AMEER: RolePermissions(),
    UserRole.MEMBER: RolePermissions(),
})


def check_complete(table: Mapping[UserRole, RolePermissions]) -> None:
    """Raise RuntimeError unless every role has an entry."""
    missing = [role.value for role in UserRole if role not in table]
    if missing:
        raise RuntimeError(f"Role permission table has no entry for: {', '.join(missing)}")


check_complete(ROLE_PERMISSIONS)


def permissions_for(role: UserRole) -> RolePermissions:
    return ROLE_PERMISSIONS[role]


def roles_with(capability: str) -> tuple[UserRole, ...]:
    """Roles whose flag `capability` is set, in enum order. Used to build route allow-lists."""
    if capability not in CAPABILITIES:
        raise ValueError(f"Unknown capability: {capability}")
    return tuple(role for role in UserRole if getattr(ROLE_PERMISSIONS[role], capability))


@lru_cache
def permissions_table() -> dict[str, dict[str, bool]]:
    """Client payload keyed by role name. Built once; do not mutate the result."""
    return {role.value: perms.to_client() for role, perms in ROLE_PERMISSIONS.items()}
