from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Any, Optional

from workpulse.core.config import settings
from workpulse.models.authz import Decision
from workpulse.models.staff import Staff


class EventLogger:
    def __init__(self, event_path: Path | None = None) -> None:
        self.event_path = event_path or settings.event_log_path
        self.event_path.parent.mkdir(parents=True, exist_ok=True)
        self.lock = RLock()

    def log_event(
        self,
        event_type: str,
        actor_id: Optional[int],
        actor_role: Optional[str],
        details: dict[str, Any],
    ) -> None:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "actor_id": actor_id,
            "actor_role": actor_role,
            "details": details,
        }
        line = json.dumps(payload, default=str)
        with self.lock:
            with self.event_path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")

    def read_events(self) -> list[dict[str, Any]]:
        if not self.event_path.exists():
            return []

        with self.lock:
            lines = self.event_path.read_text(encoding="utf-8").splitlines()

        events: list[dict[str, Any]] = []
        for raw in lines:
            if not raw.strip():
                continue
            try:
                events.append(json.loads(raw))
            except json.JSONDecodeError:
                continue
        return events

    def recent_events(self, limit: int = 100) -> list[dict[str, Any]]:
        return self.read_events()[-limit:]


class AuditService:
    def __init__(self, event_logger: EventLogger, enabled: bool = True) -> None:
        self.event_logger = event_logger
        self.enabled = enabled

    def record_decision(
        self,
        actor: Optional[Staff],
        actor_role: Optional[str],
        decision: Decision,
        target_id: Optional[int] = None,
    ) -> None:
        if not self.enabled:
            return
        self.event_logger.log_event(
            event_type="authz_decision",
            actor_id=actor.staff_id if actor else None,
            actor_role=actor_role,
            details={
                "permission": decision.permission,
                "target_id": target_id,
                "allowed": decision.allowed,
                "reason": decision.reason.value if decision.reason else None,
                "scope": decision.scope.value,
            },
        )

    def deny_counts(self, events: Optional[list[dict[str, Any]]] = None) -> dict[str, int]:
        if events is None:
            events = self.event_logger.read_events()
        return dict(
            Counter(
                e.get("details", {}).get("reason") or "allowed"
                for e in events
                if e.get("event_type") == "authz_decision"
            )
        )
