from pydantic import BaseModel
from datetime import datetime
from .common import ORMModel
from ..models.task import TaskFrequency


class TaskCreate(BaseModel):
    title: str
    description: str | None = None
    point_value: int
    frequency: TaskFrequency = TaskFrequency.ONCE
    due_date: datetime | None = None
    assigned_to: str | None = None
    requires_proof: bool = False


class TaskComplete(BaseModel):
    proof_ref: str | None = None


class TaskOut(ORMModel):
    id: str
    title: str
    description: str | None = None
    point_value: int
    frequency: str
    due_date: datetime | None = None
    created_by: str
    assigned_to: str | None = None
    requires_proof: bool
    status: str
    proof_ref: str | None = None
    created_at: datetime
    completed_at: datetime | None = None
    approved_by: str | None = None
    overdue: bool = False
