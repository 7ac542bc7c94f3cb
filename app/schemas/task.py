"""Pydantic schemas for task request/response validation."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional, List

from app.models.common import to_naive_utc
from app.models.task import TaskStatus


class TaskCreate(BaseModel):
    task_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    deadline: datetime
    assigned_to: Optional[str] = None

    @field_validator("deadline")
    @classmethod
    def deadline_to_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class TaskAssign(BaseModel):
    task_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskUpdate(BaseModel):
    """Partial update: only the fields sent are applied."""

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    status: Optional[TaskStatus] = None

    @field_validator("deadline")
    @classmethod
    def deadline_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return value
        return to_naive_utc(value)

    def changes(self) -> dict:
        data = self.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in data:
            data["status"] = data["status"].value
        return data


class TaskResponse(BaseModel):
    task_id: str
    title: str
    description: str
    status: TaskStatus
    deadline: datetime
    assigned_to: Optional[str]
    notification_sent: Optional[bool]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimeRemaining(BaseModel):
    days: int
    hours: int
    total_seconds: int
    is_past_due: bool


class UpcomingTaskResponse(TaskResponse):
    time_remaining: TimeRemaining


class UpcomingDeadlinesResponse(BaseModel):
    past_due: List[UpcomingTaskResponse]
    due_soon: List[UpcomingTaskResponse]
    upcoming: List[UpcomingTaskResponse]
    total_tasks: int
