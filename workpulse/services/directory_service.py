from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, status

from workpulse.models.role import Role
from workpulse.models.staff import Staff, StaffPublic
from workpulse.repositories.data_store import DataStore, utcnow
from workpulse.services.audit_service import EventLogger
from workpulse.services.org_graph import OrgGraph
from workpulse.services.role_registry import RoleRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Consistent view of roles and staff for one request."""

    registry: RoleRegistry
    graph: OrgGraph
    taken_at: datetime
    revision: int


class DirectoryService:
    def __init__(self, store: DataStore, event_logger: EventLogger) -> None:
        self.store = store
        self.event_logger = event_logger
        self._snapshot: Optional[Snapshot] = None

    def load(self, role_table_path: Path, staff_seed_path: Optional[Path] = None) -> None:
        table = RoleRegistry.read_table(role_table_path)
        self.store.load_roles(table)
        if staff_seed_path is not None and staff_seed_path.exists():
            raw = json.loads(staff_seed_path.read_text(encoding="utf-8"))
            self.store.load_staff(Staff(**row) for row in raw)
        logger.info(
            "Loaded role table %s (%d roles) and %d staff records",
            table.version,
            len(table.roles),
            len(self.store.staff),
        )
        self.validate()

    def validate(self) -> list[tuple[int, ...]]:
        cycles = self.snapshot().graph.find_cycles()
        for cycle in cycles:
            logger.error("Reporting cycle in staff directory: %s", " -> ".join(map(str, cycle)))
        return cycles

    def snapshot(self) -> Snapshot:
        """Registry and graph for the store's current revision, rebuilt only after a write."""
        with self.store.lock:
            current = self._snapshot
            if current is None or current.revision != self.store.revision:
                current = Snapshot(
                    registry=RoleRegistry(self.store.role_table),
                    graph=OrgGraph(self.store.staff.values()),
                    taken_at=utcnow(),
                    revision=self.store.revision,
                )
                self._snapshot = current
            return current

    def require_staff(self, staff_id: int, snapshot: Optional[Snapshot] = None) -> Staff:
        record = (snapshot or self.snapshot()).graph.get(staff_id)
        if not record:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff member not found")
        return record

    def require_role(self, role_id: int, snapshot: Optional[Snapshot] = None) -> Role:
        role = (snapshot or self.snapshot()).registry.get_role(role_id)
        if not role:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")
        return role

    def as_public(self, record: Staff, snapshot: Optional[Snapshot] = None) -> StaffPublic:
        role = (snapshot or self.snapshot()).registry.get_role(record.role_id)
        return StaffPublic(
            staff_id=record.staff_id,
            full_name=record.full_name,
            role_id=record.role_id,
            role_name=role.name if role else None,
            reporting_to=record.reporting_to,
            approving_manager_id=record.approving_manager_id,
            active=record.active,
        )

    def list_staff(self, visible_ids: Optional[frozenset[int]], snapshot: Snapshot) -> list[StaffPublic]:
        """Staff records, limited to ``visible_ids`` unless it is ``None``."""
        records = snapshot.graph.records()
        if visible_ids is not None:
            records = [r for r in records if r.staff_id in visible_ids]
        return [self.as_public(r, snapshot) for r in records]

    def update_role_hierarchy(self, actor: Staff, role: Role, hierarchy_level: int) -> Role:
        updated = role.model_copy(update={"hierarchy_level": hierarchy_level})
        self.store.put_role(updated)
        self.event_logger.log_event(
            event_type="role_change",
            actor_id=actor.staff_id,
            actor_role=str(actor.role_id),
            details={
                "role_id": role.id,
                "role_name": role.name,
                "from_level": role.hierarchy_level,
                "to_level": hierarchy_level,
            },
        )
        return updated
