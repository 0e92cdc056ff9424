from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Optional, Union

from pydantic import ValidationError

from workpulse.core.errors import RoleTableError
from workpulse.core.rbac import GrantValue, Permission
from workpulse.models.role import Role, RoleTable


class RoleRegistry:
    """In-memory lookup over an already-loaded role table.

    Lookups fail closed: a missing role, an inactive role or an unknown
    permission key resolves to the most restrictive grant for that permission
    rather than raising.
    """

    def __init__(self, table: RoleTable) -> None:
        self.version = table.version
        self._roles: dict[int, Role] = {r.id: r for r in table.roles}

    @classmethod
    def from_roles(cls, roles: Iterable[Role], version: str = "adhoc") -> "RoleRegistry":
        return cls(RoleTable(version=version, roles=list(roles)))

    @staticmethod
    def read_table(path: Path) -> RoleTable:
        if not path.exists():
            raise RoleTableError(f"Role table not found: {path}")
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return RoleTable(**raw)
        except (json.JSONDecodeError, ValidationError, TypeError) as exc:
            raise RoleTableError(f"Invalid role table {path}: {exc}") from exc

    @classmethod
    def from_file(cls, path: Path) -> "RoleRegistry":
        return cls(cls.read_table(path))

    def roles(self) -> list[Role]:
        return sorted(self._roles.values(), key=lambda r: (r.hierarchy_level, r.id))

    def get_role(self, role_id: Optional[int]) -> Optional[Role]:
        if role_id is None:
            return None
        return self._roles.get(role_id)

    def get_active_role(self, role_id: Optional[int]) -> Optional[Role]:
        role = self.get_role(role_id)
        if role is None or not role.active:
            return None
        return role

    def get_grant(self, role_id: Optional[int], permission_key: Union[str, Permission]) -> GrantValue:
        permission = Permission.parse(permission_key)
        if permission is None:
            return False
        role = self.get_active_role(role_id)
        if role is None:
            return permission.spec.most_restrictive
        return role.grant_for(permission)
