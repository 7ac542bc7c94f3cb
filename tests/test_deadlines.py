from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import SweepError
from app.models.common import utcnow
from app.models.task import Task
from app.services.deadline_service import notify_upcoming_deadlines, reset_notification_flags
from app.services.task_store import TaskStore
from app.services.user_store import UserStore
from app.worker import run_sweep_once


@pytest.fixture
def stores(db):
    return TaskStore(db), UserStore(db)


def test_notify_flags_task_once(stores, member, make_task, notifier, db):
    """Test : deadline à 10h, assignée, non terminée -> un rappel et le flag posé"""
    tasks, users = stores
    make_task("t1", assigned_to="u1", hours=10)

    result = notify_upcoming_deadlines(tasks, users, notifier)
    assert result.processed == 1
    assert len(notifier.sent) == 1
    assert notifier.sent[0]["to"] == member.contact
    assert "due in 10 hours" in notifier.sent[0]["subject"]

    db.expire_all()
    assert db.get(Task, "t1").notification_sent is True

    # Deuxième passage immédiat: pas de doublon
    result = notify_upcoming_deadlines(tasks, users, notifier)
    assert result.candidates == 0
    assert len(notifier.sent) == 1


@pytest.mark.parametrize("kwargs", [
    {"assigned_to": None, "hours": 10},
    {"assigned_to": "u1", "hours": 10, "status": "Completed"},
    {"assigned_to": "u1", "hours": 30},
    {"assigned_to": "u1", "hours": -1},
])
def test_notify_skips_ineligible(stores, member, make_task, notifier, kwargs):
    tasks, users = stores
    make_task("t1", **kwargs)

    result = notify_upcoming_deadlines(tasks, users, notifier)
    assert result.candidates == 0
    assert notifier.sent == []


def test_notify_send_failure_keeps_going(stores, member, make_user, make_task, notifier, db):
    """Test : un échec d'envoi est loggé, la boucle continue, pas de flag posé"""
    tasks, users = stores
    make_user("u2", contact="broken@example.com")
    make_task("t1", assigned_to="u2", hours=5)
    make_task("t2", assigned_to="u1", hours=6)
    notifier.fail_for.add("broken@example.com")

    result = notify_upcoming_deadlines(tasks, users, notifier)
    assert result.candidates == 2
    assert result.processed == 1
    assert result.failed == 1

    db.expire_all()
    assert db.get(Task, "t1").notification_sent is None
    assert db.get(Task, "t2").notification_sent is True


def test_notify_scan_failure(notifier):
    class BrokenTaskStore:
        def scan(self):
            raise OperationalError("SELECT", {}, Exception("db down"))

    with pytest.raises(SweepError):
        notify_upcoming_deadlines(BrokenTaskStore(), None, notifier)


def test_reset_clears_passed_deadline(stores, member, make_task, db):
    """Test : flag sur une tâche dont la deadline est passée -> retiré"""
    tasks, _ = stores
    make_task("passed", assigned_to="u1", hours=-1, notification_sent=True)
    make_task("far", assigned_to="u1", hours=48, notification_sent=True)
    make_task("done", assigned_to="u1", hours=5, status="Completed", notification_sent=True)
    make_task("still", assigned_to="u1", hours=5, notification_sent=True)

    result = reset_notification_flags(tasks)
    assert result.processed == 3

    db.expire_all()
    assert db.get(Task, "passed").notification_sent is None
    assert db.get(Task, "far").notification_sent is None
    assert db.get(Task, "done").notification_sent is None
    assert db.get(Task, "still").notification_sent is True


def test_notify_again_after_reset(stores, member, make_task, notifier, db):
    """Test : après reset, une nouvelle approche de la deadline redéclenche un rappel"""
    tasks, users = stores
    make_task("t1", assigned_to="u1", hours=10)
    notify_upcoming_deadlines(tasks, users, notifier)

    # Deadline repoussée hors fenêtre puis de nouveau proche
    tasks.update("t1", {"deadline": utcnow() + timedelta(hours=40)})
    reset_notification_flags(tasks)
    tasks.update("t1", {"deadline": utcnow() + timedelta(hours=3)})

    result = notify_upcoming_deadlines(tasks, users, notifier)
    assert result.processed == 1
    assert len(notifier.sent) == 2


def test_run_sweep_once(session_factory, member, make_task, notifier):
    make_task("t1", assigned_to="u1", hours=10)
    make_task("t2", assigned_to="u1", hours=-3, notification_sent=True)

    notified, reset = run_sweep_once(session_factory, notifier)
    assert notified.processed == 1
    assert reset.processed == 1


# ========== ENDPOINTS ==========

def test_notify_endpoint(client, admin_headers, member, make_task, notifier):
    make_task("t1", assigned_to="u1", hours=10)
    response = client.post("/deadlines/notify", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["processed"] == 1
    assert len(notifier.sent) == 1


def test_reset_endpoint(client, admin_headers, member, make_task):
    make_task("t1", assigned_to="u1", hours=-1, notification_sent=True)
    response = client.post("/deadlines/reset", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["processed"] == 1


def test_run_sweep_once_reset_runs_when_notify_fails(session_factory, member, make_task, notifier, monkeypatch):
    """Test : un échec global de notify n'empêche pas le reset"""
    make_task("t1", assigned_to="u1", hours=-3, notification_sent=True)

    def broken_notify(*args, **kwargs):
        raise SweepError("Could not scan tasks: db down")

    monkeypatch.setattr("app.worker.notify_upcoming_deadlines", broken_notify)

    notified, reset = run_sweep_once(session_factory, notifier)
    assert notified is None
    assert reset.processed == 1
