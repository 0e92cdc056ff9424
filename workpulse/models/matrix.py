from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Relationship(str, Enum):
    SELF = "actor_is_target"
    DIRECT_MANAGER = "actor_is_direct_manager"
    TRANSITIVE_MANAGER = "actor_is_transitive_manager"
    UNRELATED = "actor_is_unrelated"
    SUBORDINATE_OF_TARGET = "actor_is_subordinate_of_target"


class EndpointBinding(BaseModel):
    method: str
    route: str
    permission: str
    description: str = ""


class MatrixRow(BaseModel):
    role: str
    permission: str
    relationship: Relationship
    grant: str
    method: Optional[str] = None
    route: Optional[str] = None
    decision: str
    expected: str
    passed: bool
    error: Optional[str] = None


class MatrixSummary(BaseModel):
    total: int
    passed: int
    failed: int
    pass_rate: float


class MatrixReport(BaseModel):
    generated_at: datetime
    role_table_version: str
    summary: MatrixSummary
    rows: list[MatrixRow] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.summary.failed == 0
