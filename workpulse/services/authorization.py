from __future__ import annotations

import logging
from typing import Optional, Union

from workpulse.core.errors import StructuralError
from workpulse.core.rbac import (
    DecisionScope,
    DenyReason,
    GrantLevel,
    Permission,
    PermissionKind,
)
from workpulse.models.authz import Decision
from workpulse.models.role import Role
from workpulse.models.staff import Staff
from workpulse.services.org_graph import OrgGraph
from workpulse.services.role_registry import RoleRegistry

logger = logging.getLogger(__name__)

PermissionKey = Union[str, Permission]


class AuthorizationEngine:
    """Decides whether an actor may exercise a permission, optionally over a target.

    The engine is a pure function of the role registry and org graph it was
    built from. It keeps no state between calls.
    """

    def __init__(self, registry: RoleRegistry, graph: OrgGraph) -> None:
        self.registry = registry
        self.graph = graph

    def decide(
        self,
        actor: Optional[Staff],
        permission_key: PermissionKey,
        target: Optional[Staff] = None,
        *,
        fail_safe: bool = False,
    ) -> Decision:
        """Return an allow/deny ``Decision``.

        ``StructuralError`` from the org graph propagates unless ``fail_safe``
        is set, in which case it is logged and returned as
        ``Deny(structural_error)``.
        """
        key = permission_key.value if isinstance(permission_key, Permission) else str(permission_key)
        try:
            return self._decide(actor, key, target)
        except StructuralError as exc:
            if not fail_safe:
                raise
            logger.error(
                "Structural error deciding %s for actor %s: %s (path=%s)",
                key,
                actor.staff_id if actor else None,
                exc.message,
                exc.path,
            )
            return Decision.deny(key, DenyReason.STRUCTURAL_ERROR)

    def _decide(self, actor: Optional[Staff], key: str, target: Optional[Staff]) -> Decision:
        if actor is None or not actor.active:
            return Decision.deny(key, DenyReason.UNAUTHENTICATED)

        actor_role = self.registry.get_active_role(actor.role_id)
        if actor_role is None:
            return Decision.deny(key, DenyReason.NO_ROLE)

        permission = Permission.parse(key)
        if permission is None:
            return Decision.deny(key, DenyReason.INSUFFICIENT_GRANT)

        spec = permission.spec
        is_self = target is not None and target.staff_id == actor.staff_id

        if spec.approval and is_self:
            return Decision.deny(key, DenyReason.SELF_APPROVAL_FORBIDDEN)

        grant = self.registry.get_grant(actor.role_id, permission)

        if spec.kind is PermissionKind.BOOLEAN:
            if grant is True:
                return Decision.allow(key, DecisionScope.GLOBAL)
            return Decision.deny(key, DenyReason.INSUFFICIENT_GRANT)

        if spec.self_action and is_self:
            return Decision.allow(key, DecisionScope.SELF)

        if grant is GrantLevel.NONE:
            return Decision.deny(key, DenyReason.INSUFFICIENT_GRANT)

        if target is not None and spec.mutation and not target.active:
            return Decision.deny(key, DenyReason.INACTIVE_TARGET)

        if grant is GrantLevel.SUBORDINATES:
            if target is None:
                return Decision.allow(key, DecisionScope.SUBORDINATES)
            if not self.graph.is_subordinate_of(target.staff_id, actor.staff_id):
                return Decision.deny(key, DenyReason.NOT_SUBORDINATE)
            scope = DecisionScope.SUBORDINATES
        else:
            scope = DecisionScope.ALL

        if target is not None and spec.mutation and self._outranks(target, actor_role):
            return Decision.deny(key, DenyReason.HIERARCHY_VIOLATION)

        return Decision.allow(key, scope)

    def _outranks(self, target: Staff, actor_role: Role) -> bool:
        target_role = self.registry.get_role(target.role_id)
        if target_role is None:
            return False
        return target_role.hierarchy_level < actor_role.hierarchy_level

    def scope_ids(self, actor: Staff, decision: Decision) -> Optional[frozenset[int]]:
        """Staff ids a collection-level ``decision`` limits the caller to; ``None`` means unrestricted."""
        if not decision.allowed:
            return frozenset()
        if decision.scope is DecisionScope.SUBORDINATES:
            return self.graph.subordinates_of(actor.staff_id)
        if decision.scope is DecisionScope.SELF:
            return frozenset({actor.staff_id})
        return None

    def decide_role_change(
        self,
        actor: Optional[Staff],
        role: Role,
        new_hierarchy_level: Optional[int] = None,
    ) -> Decision:
        """Guard role edits against privilege escalation.

        Requires ``can_manage_roles``. Below level 0 an actor may only edit
        roles of strictly lower authority, and may only assign levels strictly
        below their own authority.
        """
        decision = self.decide(actor, Permission.MANAGE_ROLES)
        if not decision.allowed:
            return decision
        actor_role = self.registry.get_active_role(actor.role_id)
        key = Permission.MANAGE_ROLES.value
        if actor_role.hierarchy_level > 0:
            if role.hierarchy_level <= actor_role.hierarchy_level:
                return Decision.deny(key, DenyReason.HIERARCHY_VIOLATION)
            if new_hierarchy_level is not None and new_hierarchy_level <= actor_role.hierarchy_level:
                return Decision.deny(key, DenyReason.HIERARCHY_VIOLATION)
        return decision
