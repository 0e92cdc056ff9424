from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from workpulse.core.rbac import GrantValue, Permission, coerce_grant


class Role(BaseModel):
    id: int
    name: str = Field(min_length=1, max_length=50)
    display_name: str = ""
    description: Optional[str] = None
    hierarchy_level: int = 999
    active: bool = True
    grants: dict[Permission, GrantValue] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def collect_flat_grants(cls, data: Any) -> Any:
        # Role rows are stored flat (can_* columns next to name/level); fold them into ``grants``.
        if not isinstance(data, dict):
            return data
        flat = {k: v for k, v in data.items() if Permission.parse(k) is not None}
        if not flat:
            return data
        rest = {k: v for k, v in data.items() if k not in flat}
        rest["grants"] = {**flat, **dict(data.get("grants") or {})}
        return rest

    @field_validator("grants", mode="before")
    @classmethod
    def validate_grants(cls, value: Any) -> dict[Permission, GrantValue]:
        grants: dict[Permission, GrantValue] = {}
        for key, raw in dict(value or {}).items():
            permission = Permission.parse(key)
            if permission is None:
                raise ValueError(f"Unknown permission key '{key}'")
            grants[permission] = coerce_grant(permission, raw)
        return grants

    def grant_for(self, permission: Permission) -> GrantValue:
        return self.grants.get(permission, permission.spec.most_restrictive)


class RoleTable(BaseModel):
    version: str
    roles: list[Role]

    @model_validator(mode="after")
    def validate_unique(self) -> "RoleTable":
        ids = [r.id for r in self.roles]
        names = [r.name for r in self.roles]
        if len(set(ids)) != len(ids):
            raise ValueError("Role ids must be unique")
        if len(set(names)) != len(names):
            raise ValueError("Role names must be unique")
        return self


class RolePublic(BaseModel):
    id: int
    name: str
    display_name: str
    hierarchy_level: int
    active: bool
    grants: dict[str, Any]


class HierarchyUpdateRequest(BaseModel):
    hierarchy_level: int
