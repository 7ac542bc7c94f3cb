import pytest

from app.models.task import Task
from app.services.task_store import TaskStore
from app.services.user_store import UserStore


def test_task_update_partial(db, make_task):
    """TEST: seuls les champs fournis changent, updated_at avance"""
    task = make_task("t1", title="Old")
    before = task.updated_at

    updated = TaskStore(db).update("t1", {"title": "New"})
    assert updated.title == "New"
    assert updated.status == "Pending"
    assert updated.updated_at >= before


def test_task_update_none_clears_field(db, member, make_task):
    make_task("t1", assigned_to="u1", notification_sent=True)
    updated = TaskStore(db).update("t1", {"assigned_to": None, "notification_sent": None})
    assert updated.assigned_to is None
    assert updated.notification_sent is None


def test_update_unknown_record_returns_none(db):
    assert TaskStore(db).update("nope", {"title": "x"}) is None
    assert UserStore(db).update("nope", {"name": "x"}) is None


@pytest.mark.parametrize("changes", [{"task_id": "t2"}, {"created_at": None}, {"owner": "x"}])
def test_task_update_rejects_fields(db, make_task, changes):
    """TEST: la clé primaire et les champs inconnus ne sont pas modifiables"""
    make_task("t1")
    with pytest.raises(ValueError):
        TaskStore(db).update("t1", changes)
    assert db.get(Task, "t1") is not None


def test_user_update_rejects_primary_key(db, member):
    with pytest.raises(ValueError):
        UserStore(db).update("u1", {"user_id": "u9"})


def test_query_by_assignee(db, member, make_user, make_task):
    make_user("u2")
    make_task("a", assigned_to="u1", hours=10)
    make_task("b", assigned_to="u1", hours=5, status="Completed")
    make_task("c", assigned_to="u2")

    store = TaskStore(db)
    assert [t.task_id for t in store.query_by_assignee("u1")] == ["b", "a"]
    assert [t.task_id for t in store.query_by_assignee("u1", exclude_status="Completed")] == ["a"]


def test_scan_flagged(db, make_task):
    make_task("a", notification_sent=True)
    make_task("b")
    assert [t.task_id for t in TaskStore(db).scan_flagged()] == ["a"]


def test_user_get_by_contact(db, member):
    store = UserStore(db)
    assert store.get_by_contact("u1@example.com").user_id == "u1"
    assert store.get_by_contact("nobody@example.com") is None


def test_delete(db, member, make_task):
    make_task("t1")
    assert TaskStore(db).delete("t1") is True
    assert TaskStore(db).delete("t1") is False
    assert UserStore(db).delete("u1") is True
