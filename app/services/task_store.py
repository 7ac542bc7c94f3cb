"""Task store: accès par clé primaire ou par assignee (index secondaire)"""

from typing import List, Mapping, Any, Optional

from sqlalchemy.orm import Session

from app.models.common import utcnow
from app.models.task import Task

UPDATABLE_FIELDS = frozenset({
    "title", "description", "status", "deadline", "assigned_to", "notification_sent",
})


class TaskStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, task_id: str) -> Optional[Task]:
        return self.db.get(Task, task_id)

    def query_by_assignee(self, user_id: str, exclude_status: Optional[str] = None) -> List[Task]:
        query = self.db.query(Task).filter(Task.assigned_to == user_id)
        if exclude_status:
            query = query.filter(Task.status != exclude_status)
        return query.order_by(Task.deadline).all()

    def scan(self, exclude_status: Optional[str] = None) -> List[Task]:
        query = self.db.query(Task)
        if exclude_status:
            query = query.filter(Task.status != exclude_status)
        return query.order_by(Task.deadline).all()

    def scan_flagged(self) -> List[Task]:
        return self.db.query(Task).filter(Task.notification_sent.isnot(None)).all()

    def put(self, task: Task) -> Task:
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def update(self, task_id: str, changes: Mapping[str, Any]) -> Optional[Task]:
        """Mise à jour partielle si la tâche existe (last write wins)"""
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update task fields: {', '.join(sorted(unknown))}")

        task = self.get(task_id)
        if task is None:
            return None

        for field, value in changes.items():
            setattr(task, field, value)
        task.updated_at = utcnow()

        self.db.commit()
        self.db.refresh(task)
        return task

    def rollback(self):
        self.db.rollback()

    def delete(self, task_id: str) -> bool:
        task = self.get(task_id)
        if task is None:
            return False
        self.db.delete(task)
        self.db.commit()
        return True
