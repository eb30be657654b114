from typing import List

from fastapi import APIRouter, Depends, Response

from ...models.task import FamilyTask
from ...schemas.task import TaskCreate, TaskComplete, TaskOut
from ...services.task_service import TaskLifecycle
from ..deps import Caller, get_caller, get_tasks

router = APIRouter()


def _out(tasks: TaskLifecycle, task: FamilyTask) -> TaskOut:
    return TaskOut.model_validate(task).model_copy(update={"overdue": task.is_overdue(tasks.clock())})


# ------------------------------------------------------------------------
#  Create a task
# ------------------------------------------------------------------------
@router.post("", response_model=TaskOut, status_code=201)
def create_family_task(
    payload: TaskCreate,
    tasks: TaskLifecycle = Depends(get_tasks),
    current: Caller = Depends(get_caller),
):
    t = tasks.create(
        created_by=current.user_id,
        title=payload.title,
        description=payload.description,
        point_value=payload.point_value,
        frequency=payload.frequency,
        due_date=payload.due_date,
        assigned_to=payload.assigned_to,
        requires_proof=payload.requires_proof,
    )
    return _out(tasks, t)


# ------------------------------------------------------------------------
#  Queries
# ------------------------------------------------------------------------
@router.get("/available", response_model=List[TaskOut])
def available_tasks(
    tasks: TaskLifecycle = Depends(get_tasks),
    current: Caller = Depends(get_caller),
):
    return [_out(tasks, t) for t in tasks.list_available()]


@router.get("/mine", response_model=List[TaskOut])
def my_tasks(
    tasks: TaskLifecycle = Depends(get_tasks),
    current: Caller = Depends(get_caller),
):
    return [_out(tasks, t) for t in tasks.list_for_user(current.user_id)]


@router.get("/pending", response_model=List[TaskOut])
def pending_tasks(
    tasks: TaskLifecycle = Depends(get_tasks),
    current: Caller = Depends(get_caller),
):
    return [_out(tasks, t) for t in tasks.list_pending_approval()]


@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: str,
    tasks: TaskLifecycle = Depends(get_tasks),
    current: Caller = Depends(get_caller),
):
    return _out(tasks, tasks.get(task_id))


# ------------------------------------------------------------------------
#  Transitions
# ------------------------------------------------------------------------
@router.post("/{task_id}/claim", response_model=TaskOut)
def claim_task(
    task_id: str,
    tasks: TaskLifecycle = Depends(get_tasks),
    current: Caller = Depends(get_caller),
):
    return _out(tasks, tasks.claim(task_id, current.user_id))


@router.post("/{task_id}/complete", response_model=TaskOut)
def complete_task(
    task_id: str,
    payload: TaskComplete | None = None,
    tasks: TaskLifecycle = Depends(get_tasks),
    current: Caller = Depends(get_caller),
):
    proof_ref = payload.proof_ref if payload else None
    return _out(tasks, tasks.complete(task_id, current.user_id, proof_ref))


@router.post("/{task_id}/approve", response_model=TaskOut)
def approve_task(
    task_id: str,
    tasks: TaskLifecycle = Depends(get_tasks),
    current: Caller = Depends(get_caller),
):
    return _out(tasks, tasks.approve(task_id, approver_id=current.user_id, is_admin=current.is_admin))


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: str,
    tasks: TaskLifecycle = Depends(get_tasks),
    current: Caller = Depends(get_caller),
):
    tasks.delete(task_id, user_id=current.user_id, is_admin=current.is_admin)
    return Response(status_code=204)
