from __future__ import annotations

from collections import deque
from typing import Callable, Iterable, Optional

from workpulse.core.errors import StructuralError
from workpulse.models.staff import Staff


class OrgGraph:
    """Reporting hierarchy derived from staff records.

    ``reporting_to`` edges form the subordinate graph; ``approving_manager_id``
    (falling back to ``reporting_to``) forms the approver chain. Every walk is
    bounded by ``len(staff) + 1`` steps and raises ``StructuralError`` on a
    cycle instead of looping.
    """

    def __init__(self, staff: Iterable[Staff]) -> None:
        self._staff: dict[int, Staff] = {s.staff_id: s for s in staff}
        self._children: dict[int, list[int]] = {}
        for record in self._staff.values():
            if record.reporting_to is not None:
                self._children.setdefault(record.reporting_to, []).append(record.staff_id)
        for ids in self._children.values():
            ids.sort()
        self._bound = len(self._staff) + 1
        self._cycle_members = frozenset(i for cycle in self.find_cycles() for i in cycle)

    def __contains__(self, staff_id: object) -> bool:
        return staff_id in self._staff

    def __len__(self) -> int:
        return len(self._staff)

    def records(self) -> list[Staff]:
        return [self._staff[k] for k in sorted(self._staff)]

    def get(self, staff_id: Optional[int]) -> Optional[Staff]:
        if staff_id is None:
            return None
        return self._staff.get(staff_id)

    def _walk_up(self, start_id: int, link: Callable[[Staff], Optional[int]]) -> list[int]:
        chain: list[int] = []
        seen = {start_id}
        current = self._staff.get(start_id)
        while current is not None:
            parent_id = link(current)
            if parent_id is None or parent_id not in self._staff:
                break
            if parent_id in seen or len(chain) >= self._bound:
                raise StructuralError(
                    f"Reporting cycle detected while walking up from staff {start_id}",
                    path=tuple([start_id, *chain, parent_id]),
                )
            seen.add(parent_id)
            chain.append(parent_id)
            current = self._staff.get(parent_id)
        return chain

    def managers_of(self, staff_id: int) -> tuple[int, ...]:
        """``reporting_to`` chain from the direct manager up to the root."""
        return tuple(self._walk_up(staff_id, lambda s: s.reporting_to))

    def is_subordinate_of(self, candidate_id: int, manager_id: int) -> bool:
        """True when ``manager_id`` is above ``candidate_id`` on the reporting line.

        A walk that touches a reporting cycle raises ``StructuralError``, even
        when the manager is reached first: mutual subordination is never a
        valid relationship.
        """
        if candidate_id == manager_id:
            return False
        if candidate_id in self._cycle_members:
            raise StructuralError(
                f"Staff {candidate_id} is part of a reporting cycle",
                path=(candidate_id,),
            )
        path = [candidate_id]
        current = self._staff.get(candidate_id)
        while current is not None and current.reporting_to is not None:
            parent_id = current.reporting_to
            if parent_id in path or parent_id in self._cycle_members or len(path) >= self._bound:
                raise StructuralError(
                    f"Reporting cycle detected while resolving staff {candidate_id}",
                    path=tuple([*path, parent_id]),
                )
            if parent_id == manager_id:
                return True
            path.append(parent_id)
            current = self._staff.get(parent_id)
        return False

    def direct_reports_of(self, manager_id: int) -> frozenset[int]:
        return frozenset(c for c in self._children.get(manager_id, []) if c != manager_id)

    def subordinates_of(self, manager_id: int) -> frozenset[int]:
        found: set[int] = set()
        queue = deque(self._children.get(manager_id, []))
        while queue:
            staff_id = queue.popleft()
            if staff_id == manager_id or staff_id in found:
                raise StructuralError(
                    f"Reporting cycle detected below staff {manager_id}",
                    path=(manager_id, staff_id),
                )
            found.add(staff_id)
            if len(found) > self._bound:
                raise StructuralError(f"Subordinate walk from staff {manager_id} exceeded its bound")
            queue.extend(self._children.get(staff_id, []))
        return frozenset(found)

    def approver_chain_of(self, staff_id: int) -> tuple[int, ...]:
        return tuple(
            self._walk_up(
                staff_id,
                lambda s: s.approving_manager_id if s.approving_manager_id is not None else s.reporting_to,
            )
        )

    def find_cycles(self) -> list[tuple[int, ...]]:
        """Every distinct ``reporting_to`` cycle, each rotated to start at its smallest id."""
        cycles: set[tuple[int, ...]] = set()
        settled: set[int] = set()
        for start_id in sorted(self._staff):
            if start_id in settled:
                continue
            path: list[int] = []
            index: dict[int, int] = {}
            current: Optional[int] = start_id
            while current is not None and current not in settled:
                if current in index:
                    loop = path[index[current]:]
                    pivot = loop.index(min(loop))
                    cycles.add(tuple(loop[pivot:] + loop[:pivot]))
                    break
                index[current] = len(path)
                path.append(current)
                record = self._staff.get(current)
                current = record.reporting_to if record is not None else None
            settled.update(path)
        return sorted(cycles)
