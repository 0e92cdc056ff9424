from fastapi import APIRouter, Depends

from workpulse.api.deps import RequestContext, get_context, raise_for_decision, require_permission
from workpulse.core.rbac import Permission
from workpulse.models.role import HierarchyUpdateRequest, Role, RolePublic
from workpulse.services.container import audit_service, directory_service


router = APIRouter(prefix="/roles", tags=["Roles"])


def _to_public(role: Role) -> RolePublic:
    return RolePublic(
        id=role.id,
        name=role.name,
        display_name=role.display_name,
        hierarchy_level=role.hierarchy_level,
        active=role.active,
        grants={p.value: (v if isinstance(v, bool) else v.value) for p, v in role.grants.items()},
    )


@router.get("", response_model=list[RolePublic])
def list_roles(
    ctx: RequestContext = Depends(require_permission(Permission.ACCESS_WEBAPP)),
) -> list[RolePublic]:
    return [_to_public(r) for r in ctx.snapshot.registry.roles()]


@router.patch("/{role_id}/hierarchy", response_model=RolePublic)
def update_hierarchy(
    role_id: int,
    payload: HierarchyUpdateRequest,
    ctx: RequestContext = Depends(get_context),
) -> RolePublic:
    role = directory_service.require_role(role_id, ctx.snapshot)
    decision = ctx.engine.decide_role_change(ctx.actor, role, payload.hierarchy_level)
    audit_service.record_decision(ctx.actor, ctx.actor_role_name, decision)
    raise_for_decision(decision)
    updated = directory_service.update_role_hierarchy(ctx.actor, role, payload.hierarchy_level)
    return _to_public(updated)
