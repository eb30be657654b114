from datetime import datetime
from enum import StrEnum
from sqlalchemy import String, Integer, Text, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from uuid import uuid4

from ..db.base_class import Base
from ..db.types import UTCDateTime
from . import utcnow


class TaskFrequency(StrEnum):
    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"


class TaskStatus(StrEnum):
    AVAILABLE = "Available"
    CLAIMED = "Claimed"
    PENDING_APPROVAL = "PendingApproval"
    COMPLETED = "Completed"


class FamilyTask(Base):
    __tablename__ = "familytask"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    point_value: Mapped[int] = mapped_column(Integer, nullable=False)
    frequency: Mapped[TaskFrequency] = mapped_column(default=TaskFrequency.ONCE)
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime)
    created_by: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(String(64), index=True)
    requires_proof: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[TaskStatus] = mapped_column(default=TaskStatus.AVAILABLE, index=True)
    proof_ref: Mapped[str | None] = mapped_column(String(512))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime)
    approved_by: Mapped[str | None] = mapped_column(String(64))
    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    def is_overdue(self, now: datetime) -> bool:
        return self.due_date is not None and now > self.due_date and self.status != TaskStatus.COMPLETED
