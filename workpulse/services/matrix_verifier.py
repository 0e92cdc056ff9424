from __future__ import annotations

import csv
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Union

from workpulse.core.rbac import DenyReason, GrantLevel, Permission, PermissionKind
from workpulse.models.authz import Decision
from workpulse.models.matrix import (
    EndpointBinding,
    MatrixReport,
    MatrixRow,
    MatrixSummary,
    Relationship,
)
from workpulse.models.role import Role, RoleTable
from workpulse.models.staff import Staff
from workpulse.repositories.data_store import utcnow
from workpulse.services.authorization import AuthorizationEngine
from workpulse.services.org_graph import OrgGraph
from workpulse.services.role_registry import RoleRegistry

logger = logging.getLogger(__name__)

ALLOW = "ALLOW"


def _deny(reason: DenyReason) -> str:
    return f"DENY:{reason.value}"


INSUFFICIENT = _deny(DenyReason.INSUFFICIENT_GRANT)
NOT_SUBORDINATE = _deny(DenyReason.NOT_SUBORDINATE)
SELF_APPROVAL = _deny(DenyReason.SELF_APPROVAL_FORBIDDEN)
HIERARCHY = _deny(DenyReason.HIERARCHY_VIOLATION)
NO_ROLE = _deny(DenyReason.NO_ROLE)

_R = Relationship

# Expected outcome per (permission class, grant, relationship), written out by hand.
# "approval": approve leave/on-duty/time-off; "self_action": other tri-state
# permissions; "boolean": global capabilities.
EXPECTED_OUTCOMES: dict[tuple[str, str, Relationship], str] = {
    ("approval", "none", _R.SELF): SELF_APPROVAL,
    ("approval", "none", _R.DIRECT_MANAGER): INSUFFICIENT,
    ("approval", "none", _R.TRANSITIVE_MANAGER): INSUFFICIENT,
    ("approval", "none", _R.UNRELATED): INSUFFICIENT,
    ("approval", "none", _R.SUBORDINATE_OF_TARGET): INSUFFICIENT,
    ("approval", "subordinates", _R.SELF): SELF_APPROVAL,
    ("approval", "subordinates", _R.DIRECT_MANAGER): ALLOW,
    ("approval", "subordinates", _R.TRANSITIVE_MANAGER): ALLOW,
    ("approval", "subordinates", _R.UNRELATED): NOT_SUBORDINATE,
    ("approval", "subordinates", _R.SUBORDINATE_OF_TARGET): NOT_SUBORDINATE,
    ("approval", "all", _R.SELF): SELF_APPROVAL,
    ("approval", "all", _R.DIRECT_MANAGER): ALLOW,
    ("approval", "all", _R.TRANSITIVE_MANAGER): ALLOW,
    ("approval", "all", _R.UNRELATED): ALLOW,
    ("approval", "all", _R.SUBORDINATE_OF_TARGET): ALLOW,
    ("self_action", "none", _R.SELF): ALLOW,
    ("self_action", "none", _R.DIRECT_MANAGER): INSUFFICIENT,
    ("self_action", "none", _R.TRANSITIVE_MANAGER): INSUFFICIENT,
    ("self_action", "none", _R.UNRELATED): INSUFFICIENT,
    ("self_action", "none", _R.SUBORDINATE_OF_TARGET): INSUFFICIENT,
    ("self_action", "subordinates", _R.SELF): ALLOW,
    ("self_action", "subordinates", _R.DIRECT_MANAGER): ALLOW,
    ("self_action", "subordinates", _R.TRANSITIVE_MANAGER): ALLOW,
    ("self_action", "subordinates", _R.UNRELATED): NOT_SUBORDINATE,
    ("self_action", "subordinates", _R.SUBORDINATE_OF_TARGET): NOT_SUBORDINATE,
    ("self_action", "all", _R.SELF): ALLOW,
    ("self_action", "all", _R.DIRECT_MANAGER): ALLOW,
    ("self_action", "all", _R.TRANSITIVE_MANAGER): ALLOW,
    ("self_action", "all", _R.UNRELATED): ALLOW,
    ("self_action", "all", _R.SUBORDINATE_OF_TARGET): ALLOW,
    ("boolean", "true", _R.SELF): ALLOW,
    ("boolean", "true", _R.DIRECT_MANAGER): ALLOW,
    ("boolean", "true", _R.TRANSITIVE_MANAGER): ALLOW,
    ("boolean", "true", _R.UNRELATED): ALLOW,
    ("boolean", "true", _R.SUBORDINATE_OF_TARGET): ALLOW,
    ("boolean", "false", _R.SELF): INSUFFICIENT,
    ("boolean", "false", _R.DIRECT_MANAGER): INSUFFICIENT,
    ("boolean", "false", _R.TRANSITIVE_MANAGER): INSUFFICIENT,
    ("boolean", "false", _R.UNRELATED): INSUFFICIENT,
    ("boolean", "false", _R.SUBORDINATE_OF_TARGET): INSUFFICIENT,
}

# Fixture staff ids; the actor reports to the manager fixture.
ACTOR_ID = 1
DIRECT_REPORT_ID = 2
TRANSITIVE_REPORT_ID = 3
UNRELATED_ID = 4
ACTOR_MANAGER_ID = 5

TARGET_FOR: dict[Relationship, int] = {
    _R.SELF: ACTOR_ID,
    _R.DIRECT_MANAGER: DIRECT_REPORT_ID,
    _R.TRANSITIVE_MANAGER: TRANSITIVE_REPORT_ID,
    _R.UNRELATED: UNRELATED_ID,
    _R.SUBORDINATE_OF_TARGET: ACTOR_MANAGER_ID,
}

PermissionKey = Union[str, Permission]
Combination = tuple[Role, str, Relationship, Optional[EndpointBinding]]


def grant_label(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, GrantLevel):
        return value.value
    return str(value)


def permission_class(permission: Permission) -> str:
    spec = permission.spec
    if spec.kind is PermissionKind.BOOLEAN:
        return "boolean"
    if spec.approval:
        return "approval"
    return "self_action"


class PermissionMatrixVerifier:
    """Drives the engine over role × permission × relationship and checks every outcome.

    Each actor role gets a five-person fixture org: the actor, a direct and a
    transitive report, an unrelated colleague, and the actor's own manager.
    Reports and the colleague hold the lowest-authority role in the table; the
    manager holds the highest, so manage-users checks against the manager
    exercise the hierarchy rule.

    A failing or crashing combination is recorded as a failed row; the run
    always completes.
    """

    def __init__(
        self,
        roles: Iterable[Role],
        version: str = "adhoc",
        engine_factory: Callable[[RoleRegistry, OrgGraph], AuthorizationEngine] = AuthorizationEngine,
        max_workers: Optional[int] = None,
    ) -> None:
        self.roles = sorted(roles, key=lambda r: (r.hierarchy_level, r.id))
        if not self.roles:
            raise ValueError("The matrix needs at least one role")
        self.version = version
        self.registry = RoleRegistry(RoleTable(version=version, roles=self.roles))
        self.engine_factory = engine_factory
        self.max_workers = max_workers
        self._top_role = self.roles[0]
        self._bottom_role = self.roles[-1]

    @classmethod
    def from_registry(cls, registry: RoleRegistry, **kwargs) -> "PermissionMatrixVerifier":
        return cls(registry.roles(), version=registry.version, **kwargs)

    def fixture_staff(self, actor_role: Role) -> list[Staff]:
        low = self._bottom_role.id
        return [
            Staff(staff_id=ACTOR_ID, full_name="Actor", role_id=actor_role.id, reporting_to=ACTOR_MANAGER_ID),
            Staff(staff_id=DIRECT_REPORT_ID, full_name="Direct Report", role_id=low, reporting_to=ACTOR_ID),
            Staff(
                staff_id=TRANSITIVE_REPORT_ID,
                full_name="Transitive Report",
                role_id=low,
                reporting_to=DIRECT_REPORT_ID,
            ),
            Staff(staff_id=UNRELATED_ID, full_name="Unrelated", role_id=low),
            Staff(staff_id=ACTOR_MANAGER_ID, full_name="Manager", role_id=self._top_role.id),
        ]

    def expected_outcome(self, actor_role: Role, permission_key: str, relationship: Relationship) -> str:
        if not actor_role.active:
            return NO_ROLE
        permission = Permission.parse(permission_key)
        if permission is None:
            return INSUFFICIENT
        grant = grant_label(actor_role.grant_for(permission))
        expected = EXPECTED_OUTCOMES[(permission_class(permission), grant, relationship)]
        if expected == ALLOW and permission.spec.mutation and relationship is not _R.SELF:
            target_role = self._top_role if relationship is _R.SUBORDINATE_OF_TARGET else self._bottom_role
            if target_role.hierarchy_level < actor_role.hierarchy_level:
                return HIERARCHY
        return expected

    def combinations(
        self,
        permissions: Optional[Sequence[PermissionKey]] = None,
        relationships: Optional[Sequence[Relationship]] = None,
        endpoints: Optional[Sequence[EndpointBinding]] = None,
    ) -> list[Combination]:
        relationships = list(relationships or Relationship)
        if endpoints is not None:
            actions: list[tuple[str, Optional[EndpointBinding]]] = [(e.permission, e) for e in endpoints]
        else:
            keys = permissions if permissions is not None else list(Permission)
            actions = [(k.value if isinstance(k, Permission) else str(k), None) for k in keys]
        return [
            (role, key, relationship, endpoint)
            for role in self.roles
            for key, endpoint in actions
            for relationship in relationships
        ]

    def evaluate(self, combination: Combination) -> MatrixRow:
        role, key, relationship, endpoint = combination
        expected = "unknown"
        try:
            expected = self.expected_outcome(role, key, relationship)
            staff = self.fixture_staff(role)
            graph = OrgGraph(staff)
            engine = self.engine_factory(self.registry, graph)
            decision: Decision = engine.decide(
                graph.get(ACTOR_ID),
                key,
                graph.get(TARGET_FOR[relationship]),
            )
            outcome = decision.outcome
            error = None
        except Exception as exc:
            logger.warning("Matrix combination %s/%s/%s failed: %s", role.name, key, relationship.value, exc)
            outcome = f"error:{type(exc).__name__}"
            error = str(exc)
        return MatrixRow(
            role=role.name,
            permission=key,
            relationship=relationship,
            grant=grant_label(self.registry.get_grant(role.id, key)),
            method=endpoint.method if endpoint else None,
            route=endpoint.route if endpoint else None,
            decision=outcome,
            expected=expected,
            passed=error is None and outcome == expected,
            error=error,
        )

    def run(
        self,
        permissions: Optional[Sequence[PermissionKey]] = None,
        relationships: Optional[Sequence[Relationship]] = None,
        endpoints: Optional[Sequence[EndpointBinding]] = None,
    ) -> MatrixReport:
        combos = self.combinations(permissions, relationships, endpoints)
        if self.max_workers and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                rows = list(pool.map(self.evaluate, combos))
        else:
            rows = [self.evaluate(c) for c in combos]

        passed = sum(1 for r in rows if r.passed)
        total = len(rows)
        summary = MatrixSummary(
            total=total,
            passed=passed,
            failed=total - passed,
            pass_rate=round(passed / total * 100, 2) if total else 0.0,
        )
        logger.info("Permission matrix: %d combinations, %d passed, %d failed", total, passed, total - passed)
        return MatrixReport(
            generated_at=utcnow(),
            role_table_version=self.version,
            summary=summary,
            rows=rows,
        )


CSV_HEADERS = [
    "role",
    "permission",
    "relationship",
    "grant",
    "method",
    "route",
    "decision",
    "expected",
    "status",
    "error",
]


def write_json(report: MatrixReport, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    return path


def write_csv(report: MatrixReport, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_HEADERS)
        writer.writeheader()
        for row in report.rows:
            writer.writerow(
                {
                    "role": row.role,
                    "permission": row.permission,
                    "relationship": row.relationship.value,
                    "grant": row.grant,
                    "method": row.method or "",
                    "route": row.route or "",
                    "decision": row.decision,
                    "expected": row.expected,
                    "status": "PASS" if row.passed else "FAIL",
                    "error": row.error or "",
                }
            )
    return path
