from typing import Optional

from pydantic import BaseModel, Field, model_validator

from workpulse.core.rbac import DecisionScope, DenyReason


class Decision(BaseModel):
    allowed: bool
    permission: str
    reason: Optional[DenyReason] = None
    scope: DecisionScope = DecisionScope.NONE

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_reason(self) -> "Decision":
        if self.allowed and self.reason is not None:
            raise ValueError("An allowed decision carries no deny reason")
        if not self.allowed and self.reason is None:
            raise ValueError("A denied decision needs a deny reason")
        return self

    @classmethod
    def allow(cls, permission: str, scope: DecisionScope) -> "Decision":
        return cls(allowed=True, permission=permission, scope=scope)

    @classmethod
    def deny(cls, permission: str, reason: DenyReason) -> "Decision":
        return cls(allowed=False, permission=permission, reason=reason)

    @property
    def outcome(self) -> str:
        return "ALLOW" if self.allowed else f"DENY:{self.reason.value}"


class DecideRequest(BaseModel):
    permission: str = Field(min_length=3, max_length=64)
    target_id: Optional[int] = None


class ScopeResponse(BaseModel):
    permission: str
    scope: DecisionScope
    staff_ids: list[int]
