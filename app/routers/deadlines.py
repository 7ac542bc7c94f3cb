"""
Router pour lancer le sweep des deadlines à la demande (admin)
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.core.auth import require_admin
from app.core.deps import get_notifier, get_task_store, get_user_store
from app.core.errors import InternalError, SweepError
from app.core.security import Claims
from app.services.deadline_service import notify_upcoming_deadlines, reset_notification_flags
from app.services.notifier import Notifier
from app.services.task_store import TaskStore
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deadlines", tags=["deadlines"])


class SweepResponse(BaseModel):
    message: str
    candidates: int
    processed: int
    failed: int


@router.post("/notify", response_model=SweepResponse)
def notify(
    tasks: TaskStore = Depends(get_task_store),
    users: UserStore = Depends(get_user_store),
    notifier: Notifier = Depends(get_notifier),
    claims: Claims = Depends(require_admin)
):
    try:
        result = notify_upcoming_deadlines(tasks, users, notifier)
    except SweepError as e:
        logger.error(f"Deadline notify sweep failed: {e}")
        raise InternalError("Failed to process deadline notifications", details=str(e))

    return {
        "message": f"Successfully processed {result.processed} tasks with upcoming deadlines",
        "candidates": result.candidates,
        "processed": result.processed,
        "failed": result.failed,
    }


@router.post("/reset", response_model=SweepResponse)
def reset(
    tasks: TaskStore = Depends(get_task_store),
    claims: Claims = Depends(require_admin)
):
    try:
        result = reset_notification_flags(tasks)
    except SweepError as e:
        logger.error(f"Notification flag reset failed: {e}")
        raise InternalError("Failed to reset notification flags", details=str(e))

    return {
        "message": f"Successfully reset notification flags for {result.processed} tasks",
        "candidates": result.candidates,
        "processed": result.processed,
        "failed": result.failed,
    }
