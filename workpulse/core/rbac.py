from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class GrantLevel(str, Enum):
    NONE = "none"
    SUBORDINATES = "subordinates"
    ALL = "all"


class PermissionKind(str, Enum):
    TRI_STATE = "tri_state"
    BOOLEAN = "boolean"


class Permission(str, Enum):
    APPROVE_LEAVE = "can_approve_leave"
    APPROVE_ONDUTY = "can_approve_onduty"
    APPROVE_TIMEOFF = "can_approve_timeoff"
    MANAGE_USERS = "can_manage_users"
    VIEW_USERS = "can_view_users"
    VIEW_REPORTS = "can_view_reports"
    MANAGE_ACTIVE_ONDUTY = "can_manage_active_onduty"
    MANAGE_SCHEDULE = "can_manage_schedule"
    VIEW_ACTIVITIES = "can_view_activities"
    MANAGE_LEAVE_TYPES = "can_manage_leave_types"
    ACCESS_WEBAPP = "can_access_webapp"
    MANAGE_ROLES = "can_manage_roles"
    MANAGE_EMAIL_SETTINGS = "can_manage_email_settings"
    MANAGE_SYSTEM_SETTINGS = "can_manage_system_settings"

    @classmethod
    def parse(cls, key: Union[str, "Permission"]) -> Optional["Permission"]:
        if isinstance(key, cls):
            return key
        try:
            return cls(key)
        except ValueError:
            return None

    @property
    def spec(self) -> "PermissionSpec":
        return PERMISSION_SPECS[self]

    @property
    def kind(self) -> PermissionKind:
        return PERMISSION_SPECS[self].kind


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    NO_ROLE = "no_role"
    INSUFFICIENT_GRANT = "insufficient_grant"
    NOT_SUBORDINATE = "not_subordinate"
    SELF_APPROVAL_FORBIDDEN = "self_approval_forbidden"
    HIERARCHY_VIOLATION = "hierarchy_violation"
    INACTIVE_TARGET = "inactive_target"
    STRUCTURAL_ERROR = "structural_error"


class DecisionScope(str, Enum):
    GLOBAL = "global"
    ALL = "all"
    SUBORDINATES = "subordinates"
    SELF = "self"
    NONE = "none"


GrantValue = Union[GrantLevel, bool]


@dataclass(frozen=True)
class PermissionSpec:
    kind: PermissionKind
    display: str
    approval: bool = False
    mutation: bool = False
    self_action: bool = False

    @property
    def most_restrictive(self) -> GrantValue:
        return False if self.kind is PermissionKind.BOOLEAN else GrantLevel.NONE


_TRI = PermissionKind.TRI_STATE
_BOOL = PermissionKind.BOOLEAN

PERMISSION_SPECS: dict[Permission, PermissionSpec] = {
    Permission.APPROVE_LEAVE: PermissionSpec(_TRI, "Approve Leave Requests", approval=True),
    Permission.APPROVE_ONDUTY: PermissionSpec(_TRI, "Approve On-Duty Requests", approval=True),
    Permission.APPROVE_TIMEOFF: PermissionSpec(_TRI, "Approve Time-Off Requests", approval=True),
    Permission.MANAGE_USERS: PermissionSpec(_TRI, "Manage Users", mutation=True, self_action=True),
    Permission.VIEW_USERS: PermissionSpec(_TRI, "View Users (Read Only)", self_action=True),
    Permission.VIEW_REPORTS: PermissionSpec(_TRI, "View Reports", self_action=True),
    Permission.MANAGE_ACTIVE_ONDUTY: PermissionSpec(_TRI, "Manage Active On-Duty", self_action=True),
    Permission.MANAGE_SCHEDULE: PermissionSpec(_TRI, "Manage Schedule", self_action=True),
    Permission.VIEW_ACTIVITIES: PermissionSpec(_TRI, "View Activities", self_action=True),
    Permission.MANAGE_LEAVE_TYPES: PermissionSpec(_BOOL, "Manage Leave Types"),
    Permission.ACCESS_WEBAPP: PermissionSpec(_BOOL, "Access Web Application"),
    Permission.MANAGE_ROLES: PermissionSpec(_BOOL, "Manage Roles"),
    Permission.MANAGE_EMAIL_SETTINGS: PermissionSpec(_BOOL, "Manage Email Settings"),
    Permission.MANAGE_SYSTEM_SETTINGS: PermissionSpec(_BOOL, "Manage System Settings"),
}

TRI_STATE_PERMISSIONS: tuple[Permission, ...] = tuple(
    p for p, s in PERMISSION_SPECS.items() if s.kind is PermissionKind.TRI_STATE
)
BOOLEAN_PERMISSIONS: tuple[Permission, ...] = tuple(
    p for p, s in PERMISSION_SPECS.items() if s.kind is PermissionKind.BOOLEAN
)
APPROVAL_PERMISSIONS: frozenset[Permission] = frozenset(
    p for p, s in PERMISSION_SPECS.items() if s.approval
)


def coerce_grant(permission: Permission, value: object) -> GrantValue:
    """Normalise a stored grant value for ``permission``.

    Older role tables stored some global permissions as ``"all"``/``"none"``
    strings; those map onto booleans. Anything unrecognised raises ``ValueError``.
    """
    if permission.kind is PermissionKind.BOOLEAN:
        if isinstance(value, bool):
            return value
        if value in (GrantLevel.ALL, GrantLevel.ALL.value):
            return True
        if value in (GrantLevel.NONE, GrantLevel.NONE.value):
            return False
        raise ValueError(f"{permission.value} expects a boolean grant, got {value!r}")

    if isinstance(value, bool):
        raise ValueError(f"{permission.value} expects none/subordinates/all, got {value!r}")
    try:
        return GrantLevel(value)
    except ValueError as exc:
        raise ValueError(f"{permission.value} expects none/subordinates/all, got {value!r}") from exc
