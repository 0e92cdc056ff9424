from __future__ import annotations

from datetime import datetime, timezone
from threading import RLock
from typing import Iterable

from workpulse.models.role import Role, RoleTable
from workpulse.models.staff import Staff


class DataStore:
    """In-memory holder for the loaded role table and staff directory.

    Writers replace records under ``lock`` and bump ``revision`` so readers
    can tell when a cached view is stale.
    """

    def __init__(self) -> None:
        self.lock = RLock()
        self.role_table = RoleTable(version="empty", roles=[])
        self.staff: dict[int, Staff] = {}
        self.revision = 0

    def load_roles(self, table: RoleTable) -> None:
        with self.lock:
            self.role_table = table
            self.revision += 1

    def load_staff(self, records: Iterable[Staff]) -> None:
        with self.lock:
            self.staff = {s.staff_id: s for s in records}
            self.revision += 1

    def put_role(self, role: Role) -> None:
        with self.lock:
            roles = [r for r in self.role_table.roles if r.id != role.id] + [role]
            self.role_table = RoleTable(version=self.role_table.version, roles=roles)
            self.revision += 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
