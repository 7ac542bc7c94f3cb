"""Task service"""

from datetime import datetime, timedelta
from typing import List

from app.models.task import Task


def time_remaining(task: Task, now: datetime) -> dict:
    remaining = task.deadline - now
    total_seconds = int(remaining.total_seconds())
    # days/hours en valeur absolue, le signe est porté par is_past_due
    days, rest = divmod(abs(total_seconds), 24 * 3600)
    hours = rest // 3600
    return {
        "days": days,
        "hours": hours,
        "total_seconds": total_seconds,
        "is_past_due": total_seconds < 0,
    }


def group_by_urgency(tasks: List[Task], now: datetime, window: timedelta) -> dict:
    past_due, due_soon, upcoming = [], [], []

    for task in sorted(tasks, key=lambda t: t.deadline):
        remaining = time_remaining(task, now)
        entry = {"task": task, "time_remaining": remaining}
        if remaining["is_past_due"]:
            past_due.append(entry)
        elif remaining["total_seconds"] <= window.total_seconds():
            due_soon.append(entry)
        else:
            upcoming.append(entry)

    return {
        "past_due": past_due,
        "due_soon": due_soon,
        "upcoming": upcoming,
        "total_tasks": len(tasks),
    }
