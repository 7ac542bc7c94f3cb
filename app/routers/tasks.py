import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError

from app.core.auth import require_admin, require_member, require_any
from app.core.deps import get_notifier, get_task_store, get_user_store
from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.core.security import Claims
from app.models.common import utcnow
from app.models.task import Task, TaskStatus
from app.schemas.task import (
    TaskCreate, TaskAssign, TaskStatusUpdate, TaskUpdate, TaskResponse,
    UpcomingTaskResponse, UpcomingDeadlinesResponse
)
from app.schemas.user import MessageResponse
from app.services.deadline_service import default_window
from app.services.notifier import Notifier, assignment_message
from app.services.task_service import group_by_urgency
from app.services.task_store import TaskStore
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_or_404(tasks: TaskStore, task_id: str) -> Task:
    task = tasks.get(task_id)
    if not task:
        raise NotFoundError("Task not found")
    return task


def ensure_can_update(task: Task, claims: Claims):
    # admin: toutes les tâches, user: seulement celles qui lui sont assignées
    if not claims.is_admin and task.assigned_to != claims.user_id:
        raise ForbiddenError("You are not authorized to update this task")


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    tasks: TaskStore = Depends(get_task_store),
    users: UserStore = Depends(get_user_store),
    claims: Claims = Depends(require_admin)
):
    if tasks.get(task_data.task_id):
        raise ValidationError(f"Task with ID {task_data.task_id} already exists")

    if task_data.assigned_to and not users.get(task_data.assigned_to):
        raise NotFoundError(f"User with ID {task_data.assigned_to} does not exist")

    new_task = Task(
        task_id=task_data.task_id,
        title=task_data.title,
        description=task_data.description,
        status=TaskStatus.PENDING.value,
        deadline=task_data.deadline,
        assigned_to=task_data.assigned_to,
    )
    try:
        tasks.put(new_task)
    except IntegrityError:
        tasks.rollback()
        raise ValidationError(f"Task with ID {task_data.task_id} already exists")
    logger.info(f"Task {new_task.task_id} created by {claims.user_id}")
    return new_task


@router.post("/assign", response_model=MessageResponse)
def assign_task(
    data: TaskAssign,
    tasks: TaskStore = Depends(get_task_store),
    users: UserStore = Depends(get_user_store),
    notifier: Notifier = Depends(get_notifier),
    claims: Claims = Depends(require_admin)
):
    """Assigner une tâche et prévenir l'utilisateur par mail"""

    user = users.get(data.user_id)
    if not user:
        raise NotFoundError(f"User with ID {data.user_id} does not exist")

    if not tasks.get(data.task_id):
        raise NotFoundError(f"Task with ID {data.task_id} does not exist")

    # Nouveau destinataire: le rappel de deadline doit pouvoir repartir
    task = tasks.update(data.task_id, {"assigned_to": user.user_id, "notification_sent": None})
    logger.info(f"Task {task.task_id} assigned to {user.user_id}")

    subject, text = assignment_message(user.name, task.title, task.deadline)
    notifier.send(user.contact, subject, text)

    return {"message": "Task assigned and user notified successfully"}


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    tasks: TaskStore = Depends(get_task_store),
    claims: Claims = Depends(require_admin)
):
    return tasks.scan()


@router.get("/mine", response_model=List[TaskResponse])
def my_tasks(
    tasks: TaskStore = Depends(get_task_store),
    claims: Claims = Depends(require_member)
):
    return tasks.query_by_assignee(claims.user_id)


@router.get("/upcoming-deadlines", response_model=UpcomingDeadlinesResponse)
def upcoming_deadlines(
    tasks: TaskStore = Depends(get_task_store),
    claims: Claims = Depends(require_any)
):
    completed = TaskStatus.COMPLETED.value
    if claims.is_admin:
        pending = tasks.scan(exclude_status=completed)
    else:
        pending = tasks.query_by_assignee(claims.user_id, exclude_status=completed)

    groups = group_by_urgency(pending, utcnow(), default_window())

    def to_response(entry: dict) -> UpcomingTaskResponse:
        base = TaskResponse.model_validate(entry["task"]).model_dump()
        return UpcomingTaskResponse(**base, time_remaining=entry["time_remaining"])

    return {
        "past_due": [to_response(e) for e in groups["past_due"]],
        "due_soon": [to_response(e) for e in groups["due_soon"]],
        "upcoming": [to_response(e) for e in groups["upcoming"]],
        "total_tasks": groups["total_tasks"],
    }


@router.put("/{task_id}/status", response_model=TaskResponse)
def update_status(
    task_id: str,
    data: TaskStatusUpdate,
    tasks: TaskStore = Depends(get_task_store),
    claims: Claims = Depends(require_any)
):
    task = get_task_or_404(tasks, task_id)
    ensure_can_update(task, claims)

    task = tasks.update(task_id, {"status": data.status.value})
    logger.info(f"Task {task_id} status set to {data.status.value} by {claims.user_id}")
    return task


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    data: TaskUpdate,
    tasks: TaskStore = Depends(get_task_store),
    claims: Claims = Depends(require_any)
):
    changes = data.changes()
    if not changes:
        raise ValidationError(
            "Missing update fields: provide at least one of title, description, deadline, or status"
        )

    task = get_task_or_404(tasks, task_id)
    ensure_can_update(task, claims)

    # Un user assigné ne change que le statut
    if not claims.is_admin and set(changes) != {"status"}:
        raise ForbiddenError("Only admins can change task details other than status")

    if "deadline" in changes and changes["deadline"] != task.deadline:
        changes["notification_sent"] = None

    task = tasks.update(task_id, changes)
    return task


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: str,
    tasks: TaskStore = Depends(get_task_store),
    claims: Claims = Depends(require_admin)
):
    if not tasks.delete(task_id):
        raise NotFoundError("Task not found")

    logger.info(f"Task {task_id} deleted by {claims.user_id}")
    return {"message": "Task deleted successfully"}
