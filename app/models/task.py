"""Task model"""

import enum

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey

from app.core.database import Base
from app.models.common import utcnow


class TaskStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class Task(Base):
    __tablename__ = "tasks"

    task_id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default=TaskStatus.PENDING.value)
    deadline = Column(DateTime, nullable=False, index=True)

    assigned_to = Column(String, ForeignKey("users.user_id"), nullable=True, index=True)
    # Posé par le sweep une fois le rappel envoyé, retiré hors fenêtre
    notification_sent = Column(Boolean, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED.value
