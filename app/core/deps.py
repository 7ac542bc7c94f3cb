from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.notifier import Notifier
from app.services.task_store import TaskStore
from app.services.user_store import UserStore


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_task_store(db: Session = Depends(get_db)) -> TaskStore:
    return TaskStore(db)
