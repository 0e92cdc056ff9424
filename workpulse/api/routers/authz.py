from typing import Any

from fastapi import APIRouter, Depends, Query

from workpulse.api.catalog import ENDPOINTS
from workpulse.api.deps import RequestContext, get_context, raise_for_decision, require_permission
from workpulse.core.rbac import Permission
from workpulse.models.authz import DecideRequest, Decision, ScopeResponse
from workpulse.models.matrix import MatrixReport
from workpulse.services.container import audit_service, directory_service, event_logger
from workpulse.services.matrix_verifier import PermissionMatrixVerifier


router = APIRouter(prefix="/authz", tags=["Authorization"])


@router.post("/decide", response_model=Decision)
def decide(payload: DecideRequest, ctx: RequestContext = Depends(get_context)) -> Decision:
    target = None
    if payload.target_id is not None:
        target = directory_service.require_staff(payload.target_id, ctx.snapshot)
    return ctx.decide(payload.permission, target)


@router.get("/scope/{permission}", response_model=ScopeResponse)
def scope(permission: str, ctx: RequestContext = Depends(get_context)) -> ScopeResponse:
    decision = ctx.decide(permission)
    raise_for_decision(decision)
    visible = ctx.engine.scope_ids(ctx.actor, decision)
    staff_ids = sorted(visible) if visible is not None else [s.staff_id for s in ctx.snapshot.graph.records()]
    return ScopeResponse(permission=decision.permission, scope=decision.scope, staff_ids=staff_ids)


@router.get("/matrix", response_model=MatrixReport)
def run_matrix(
    use_catalog: bool = Query(default=False),
    ctx: RequestContext = Depends(require_permission(Permission.MANAGE_ROLES)),
) -> MatrixReport:
    verifier = PermissionMatrixVerifier.from_registry(ctx.snapshot.registry)
    report = verifier.run(endpoints=ENDPOINTS if use_catalog else None)
    event_logger.log_event(
        event_type="matrix_run",
        actor_id=ctx.actor.staff_id,
        actor_role=ctx.actor_role_name,
        details={**report.summary.model_dump(), "use_catalog": use_catalog},
    )
    return report


@router.get("/audit")
def audit_summary(
    limit: int = Query(default=100, ge=1, le=1000),
    ctx: RequestContext = Depends(require_permission(Permission.VIEW_ACTIVITIES)),
) -> dict[str, Any]:
    # The dependency already recorded this decision.
    decision = ctx.engine.decide(ctx.actor, Permission.VIEW_ACTIVITIES)
    visible = ctx.engine.scope_ids(ctx.actor, decision)
    events = audit_service.event_logger.recent_events(limit)
    if visible is not None:
        events = [e for e in events if e.get("actor_id") in visible]
    return {"decisions": audit_service.deny_counts(events), "events": events}
