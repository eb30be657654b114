import logging
from datetime import datetime
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import (
    ErrorReason, NotFound, PermissionDenied, StateConflict, ValidationError, require_admin,
)
from ..models import utcnow
from ..models.points import PointSource
from ..models.task import FamilyTask, TaskFrequency, TaskStatus
from .points_service import PointsLedger, require_positive

logger = logging.getLogger(__name__)


def _task_key(task_id: str) -> str:
    return f"task:{task_id}"


class TaskLifecycle:
    """Available -> Claimed -> [PendingApproval] -> Completed.

    Points are paid through the ledger exactly once, in the same transaction
    as the transition into Completed.
    """

    def __init__(self, db: Session, ledger: PointsLedger, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.ledger = ledger
        self.clock = clock

    def _get_task(self, task_id: str) -> FamilyTask:
        stmt = (
            select(FamilyTask)
            .where(FamilyTask.id == task_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        task = self.db.execute(stmt).scalar_one_or_none()
        if not task:
            raise NotFound(ErrorReason.TASK_NOT_FOUND, f"Task {task_id} not found")
        return task

    def get(self, task_id: str) -> FamilyTask:
        return self._get_task(task_id)

    def create(
        self,
        *,
        created_by: str,
        title: str,
        point_value: int,
        description: str | None = None,
        frequency: TaskFrequency = TaskFrequency.ONCE,
        due_date: datetime | None = None,
        assigned_to: str | None = None,
        requires_proof: bool = False,
    ) -> FamilyTask:
        if not title or not title.strip():
            raise ValidationError(ErrorReason.INVALID_TASK, "Task title is required")
        require_positive(point_value, "Task point value")

        now = self.clock()
        t = FamilyTask(
            title=title.strip(),
            description=description,
            point_value=point_value,
            frequency=TaskFrequency(frequency),
            due_date=due_date,
            created_by=created_by,
            assigned_to=assigned_to,
            requires_proof=requires_proof,
            status=TaskStatus.AVAILABLE,
            created_at=now,
            updated_at=now,
        )
        with self.ledger.transaction():
            self.db.add(t)
            self.db.flush()
        logger.info(f"Task created: id={t.id}, title={t.title!r}, points={t.point_value}, by={created_by}")
        return t

    def claim(self, task_id: str, user_id: str) -> FamilyTask:
        with self.ledger.transaction(_task_key(task_id)):
            task = self._get_task(task_id)
            if task.status == TaskStatus.COMPLETED:
                raise StateConflict(ErrorReason.ALREADY_COMPLETED, "Task is already completed")
            if task.status != TaskStatus.AVAILABLE:
                raise StateConflict(ErrorReason.ALREADY_CLAIMED, "Task has already been claimed")
            # a pre-assigned task can only be picked up by its assignee
            if task.assigned_to is not None and task.assigned_to != user_id:
                raise StateConflict(ErrorReason.ALREADY_CLAIMED, "Task is assigned to someone else")
            task.assigned_to = user_id
            task.status = TaskStatus.CLAIMED
            task.updated_at = self.clock()
            self.ledger.notify("task.claimed", user_id, task_id=task.id)
        logger.info(f"Task {task_id} claimed by user={user_id}")
        return task

    def complete(self, task_id: str, user_id: str, proof_ref: str | None = None) -> FamilyTask:
        with self.ledger.transaction(_task_key(task_id)):
            task = self._get_task(task_id)
            if task.status == TaskStatus.COMPLETED:
                raise StateConflict(ErrorReason.ALREADY_COMPLETED, "Task is already completed")
            if task.status != TaskStatus.CLAIMED:
                raise StateConflict(ErrorReason.INVALID_TRANSITION,
                                    f"Cannot complete a task in status {task.status}")
            if task.assigned_to != user_id:
                raise PermissionDenied(ErrorReason.NOT_ASSIGNEE, "Only the assignee can complete this task")
            if task.requires_proof and not proof_ref:
                raise ValidationError(ErrorReason.PROOF_REQUIRED, "This task requires proof of completion")

            now = self.clock()
            if proof_ref:
                task.proof_ref = proof_ref
            task.updated_at = now
            if task.requires_proof:
                task.status = TaskStatus.PENDING_APPROVAL
                self.ledger.notify("task.submitted", user_id, task_id=task.id)
            else:
                self._finish(task, now)
        logger.info(f"Task {task_id} completed by user={user_id}, status={task.status}")
        return task

    def approve(self, task_id: str, *, approver_id: str, is_admin: bool) -> FamilyTask:
        require_admin(is_admin, "approve tasks")
        with self.ledger.transaction(_task_key(task_id)):
            task = self._get_task(task_id)
            if task.status == TaskStatus.COMPLETED:
                raise StateConflict(ErrorReason.ALREADY_COMPLETED, "Task has already been approved")
            if task.status != TaskStatus.PENDING_APPROVAL:
                raise StateConflict(ErrorReason.INVALID_TRANSITION,
                                    f"Cannot approve a task in status {task.status}")
            now = self.clock()
            task.approved_by = approver_id
            task.approved_at = now
            self._finish(task, now)
        logger.info(f"Task {task_id} approved by {approver_id}")
        return task

    def _finish(self, task: FamilyTask, now: datetime) -> None:
        # caller holds the task lock inside an open transaction
        task.status = TaskStatus.COMPLETED
        task.completed_at = now
        task.updated_at = now
        self.ledger.award(
            task.assigned_to,
            task.point_value,
            source=PointSource.TASK,
            reason=f"Completed task: {task.title}",
            reference_id=task.id,
        )
        self.ledger.notify("task.completed", task.assigned_to, task_id=task.id, points=task.point_value)

    def delete(self, task_id: str, *, user_id: str, is_admin: bool) -> None:
        with self.ledger.transaction(_task_key(task_id)):
            task = self._get_task(task_id)
            if not (is_admin or task.created_by == user_id):
                raise PermissionDenied(ErrorReason.NOT_OWNER, "Only the creator or an admin can delete a task")
            if task.status == TaskStatus.COMPLETED:
                raise StateConflict(ErrorReason.ALREADY_COMPLETED, "Completed tasks are kept for history")
            self.db.delete(task)
        logger.info(f"Task {task_id} deleted by {user_id}")

    # --- queries ---
    def list_available(self) -> list[FamilyTask]:
        stmt = select(FamilyTask).where(
            FamilyTask.status == TaskStatus.AVAILABLE,
            FamilyTask.assigned_to.is_(None),
        ).order_by(FamilyTask.created_at)
        return list(self.db.execute(stmt).scalars())

    def list_for_user(self, user_id: str) -> list[FamilyTask]:
        stmt = select(FamilyTask).where(FamilyTask.assigned_to == user_id).order_by(FamilyTask.created_at)
        return list(self.db.execute(stmt).scalars())

    def list_pending_approval(self) -> list[FamilyTask]:
        stmt = select(FamilyTask).where(FamilyTask.status == TaskStatus.PENDING_APPROVAL).order_by(FamilyTask.updated_at)
        return list(self.db.execute(stmt).scalars())
