from fastapi import APIRouter, Depends

from workpulse.api.deps import RequestContext, get_context, raise_for_decision
from workpulse.core.rbac import Permission
from workpulse.models.authz import Decision
from workpulse.models.staff import ApproverChain, Staff, StaffPublic
from workpulse.services.container import directory_service


router = APIRouter(prefix="/staff", tags=["Staff"])


def _view_decision(ctx: RequestContext, target: Staff | None = None) -> Decision:
    # Listing users also works for roles that can manage users without an explicit view grant.
    decision = ctx.decide(Permission.VIEW_USERS, target)
    if decision.allowed:
        return decision
    fallback = ctx.decide(Permission.MANAGE_USERS, target)
    if fallback.allowed:
        return fallback
    raise_for_decision(decision)
    return decision


@router.get("", response_model=list[StaffPublic])
def list_staff(ctx: RequestContext = Depends(get_context)) -> list[StaffPublic]:
    decision = _view_decision(ctx)
    visible = ctx.engine.scope_ids(ctx.actor, decision)
    return directory_service.list_staff(visible, ctx.snapshot)


@router.get("/{staff_id}", response_model=StaffPublic)
def get_staff(staff_id: int, ctx: RequestContext = Depends(get_context)) -> StaffPublic:
    target = directory_service.require_staff(staff_id, ctx.snapshot)
    _view_decision(ctx, target)
    return directory_service.as_public(target, ctx.snapshot)


@router.get("/{staff_id}/approvers", response_model=ApproverChain)
def get_approvers(staff_id: int, ctx: RequestContext = Depends(get_context)) -> ApproverChain:
    target = directory_service.require_staff(staff_id, ctx.snapshot)
    _view_decision(ctx, target)
    return ApproverChain(staff_id=staff_id, approvers=list(ctx.snapshot.graph.approver_chain_of(staff_id)))
