import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from workpulse.core.errors import StructuralError
from workpulse.core.rbac import DenyReason, Permission
from workpulse.core.security import decode_access_token
from workpulse.models.authz import Decision
from workpulse.models.staff import Staff
from workpulse.services.authorization import AuthorizationEngine
from workpulse.services.container import audit_service, directory_service
from workpulse.services.directory_service import Snapshot

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    actor: Optional[Staff]
    snapshot: Snapshot
    engine: AuthorizationEngine

    @property
    def actor_role_name(self) -> Optional[str]:
        if self.actor is None:
            return None
        role = self.snapshot.registry.get_role(self.actor.role_id)
        return role.name if role else None

    def decide(self, permission: Permission | str, target: Optional[Staff] = None) -> Decision:
        try:
            decision = self.engine.decide(self.actor, permission, target)
        except StructuralError as exc:
            logger.error("Structural error in reporting data: %s (path=%s)", exc.message, exc.path)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"reason": DenyReason.STRUCTURAL_ERROR.value, "message": exc.message},
            ) from exc
        audit_service.record_decision(
            self.actor,
            self.actor_role_name,
            decision,
            target_id=target.staff_id if target else None,
        )
        return decision

    def require(self, permission: Permission | str, target: Optional[Staff] = None) -> Decision:
        decision = self.decide(permission, target)
        raise_for_decision(decision)
        return decision


def raise_for_decision(decision: Decision) -> None:
    if decision.allowed:
        return
    status_code = (
        status.HTTP_401_UNAUTHORIZED
        if decision.reason is DenyReason.UNAUTHENTICATED
        else status.HTTP_403_FORBIDDEN
    )
    raise HTTPException(
        status_code=status_code,
        detail={"reason": decision.reason.value, "permission": decision.permission},
    )


def get_current_staff(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[Staff]:
    if not token:
        return None
    try:
        payload = decode_access_token(token)
        staff_id = int(payload.get("sub"))
    except (ValueError, TypeError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from exc

    return directory_service.snapshot().graph.get(staff_id)


def get_context(actor: Optional[Staff] = Depends(get_current_staff)) -> RequestContext:
    snapshot = directory_service.snapshot()
    if actor is not None:
        actor = snapshot.graph.get(actor.staff_id)
    return RequestContext(
        actor=actor,
        snapshot=snapshot,
        engine=AuthorizationEngine(snapshot.registry, snapshot.graph),
    )


def require_authenticated(ctx: RequestContext = Depends(get_context)) -> RequestContext:
    if ctx.actor is None or not ctx.actor.active:
        raise_for_decision(Decision.deny("authenticated", DenyReason.UNAUTHENTICATED))
    return ctx


def require_permission(permission: Permission) -> Callable[[RequestContext], RequestContext]:
    def dependency(ctx: RequestContext = Depends(get_context)) -> RequestContext:
        ctx.require(permission)
        return ctx

    return dependency
