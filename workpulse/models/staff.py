from typing import Optional

from pydantic import BaseModel


class Staff(BaseModel):
    staff_id: int
    full_name: str = ""
    email: Optional[str] = None
    role_id: Optional[int] = None
    reporting_to: Optional[int] = None
    approving_manager_id: Optional[int] = None
    active: bool = True

    model_config = {"frozen": True}


class StaffPublic(BaseModel):
    staff_id: int
    full_name: str
    role_id: Optional[int] = None
    role_name: Optional[str] = None
    reporting_to: Optional[int] = None
    approving_manager_id: Optional[int] = None
    active: bool


class ApproverChain(BaseModel):
    staff_id: int
    approvers: list[int]
