from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from uuid import UUID


class RoleShortageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    role_code: str
    role_name: str
    required: int
    assigned: int
    needed: int


class StaffingResponse(BaseModel):
    shift_id: UUID
    required_total: int
    filled_total: int
    fulfillment_band: str
    fully_staffed: bool
    display: str
    per_role_shortages: list[RoleShortageResponse] = []


class WorkerRequirement(BaseModel):
    roleCode: str
    requiredCount: Optional[int] = Field(default=0)


class WorkerRequirementsUpdate(BaseModel):
    requirements: list[WorkerRequirement]


class WorkerRequirementsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    required_crew_chiefs: int
    required_stagehands: int
    required_fork_operators: int
    required_reach_fork_operators: int
    required_riggers: int
    required_general_laborers: int
