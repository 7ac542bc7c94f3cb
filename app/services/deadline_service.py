"""
Sweep des deadlines: rappels avant échéance et remise à zéro des flags.

Les deux passes sont idempotentes vis-à-vis du flag `notification_sent`:
- notify pose le flag uniquement après un envoi réussi,
- reset retire le flag des tâches sorties de la fenêtre (ou terminées),
  pour qu'une nouvelle approche de la deadline redéclenche un rappel.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.errors import NotifierError, SweepError
from app.models.common import utcnow
from app.models.task import Task
from app.services.notifier import Notifier, deadline_reminder_message
from app.services.task_store import TaskStore
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    candidates: int
    processed: int
    failed: int = 0


def default_window() -> timedelta:
    return timedelta(hours=settings.DEADLINE_WINDOW_HOURS)


def is_within_window(task: Task, now: datetime, window: timedelta) -> bool:
    remaining = task.deadline - now
    return timedelta(0) < remaining <= window


def needs_reminder(task: Task, now: datetime, window: timedelta) -> bool:
    if not task.assigned_to or task.is_completed or task.notification_sent:
        return False
    return is_within_window(task, now, window)


def needs_reset(task: Task, now: datetime, window: timedelta) -> bool:
    if task.is_completed:
        return True
    return not is_within_window(task, now, window)


def notify_upcoming_deadlines(
    tasks: TaskStore,
    users: UserStore,
    notifier: Notifier,
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> SweepResult:
    now = now or utcnow()
    window = window or default_window()

    try:
        candidates = [t for t in tasks.scan() if needs_reminder(t, now, window)]
    except SQLAlchemyError as e:
        raise SweepError(f"Could not scan tasks: {e}") from e

    logger.info(f"Found {len(candidates)} tasks with upcoming deadlines")

    processed = 0
    failed = 0
    # ids relevés avant le premier commit (qui expire les objets chargés)
    for task_id, task in [(t.task_id, t) for t in candidates]:
        try:
            user = users.get(task.assigned_to)
            if user is None:
                logger.warning(f"User {task.assigned_to} not found for task {task_id}")
                failed += 1
                continue

            hours_remaining = round((task.deadline - now).total_seconds() / 3600)
            subject, text = deadline_reminder_message(
                user.name, task.title, task.description, task.status, task.deadline, hours_remaining
            )
            notifier.send(user.contact, subject, text)
            tasks.update(task_id, {"notification_sent": True})
        except (NotifierError, SQLAlchemyError) as e:
            logger.error(f"Deadline reminder failed for task {task_id}: {e}")
            tasks.rollback()
            failed += 1
            continue

        processed += 1
        logger.info(f"Deadline notification sent to {user.contact} for task {task_id}")

    return SweepResult(candidates=len(candidates), processed=processed, failed=failed)


def reset_notification_flags(
    tasks: TaskStore,
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> SweepResult:
    now = now or utcnow()
    window = window or default_window()

    try:
        candidates = [t for t in tasks.scan_flagged() if needs_reset(t, now, window)]
    except SQLAlchemyError as e:
        raise SweepError(f"Could not scan flagged tasks: {e}") from e

    logger.info(f"Found {len(candidates)} tasks to reset notification flags")

    processed = 0
    failed = 0
    for task_id in [t.task_id for t in candidates]:
        try:
            tasks.update(task_id, {"notification_sent": None})
        except SQLAlchemyError as e:
            logger.error(f"Could not reset notification flag for task {task_id}: {e}")
            tasks.rollback()
            failed += 1
            continue
        processed += 1
        logger.debug(f"Reset notification flag for task {task_id}")

    return SweepResult(candidates=len(candidates), processed=processed, failed=failed)
