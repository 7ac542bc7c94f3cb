import os
import sys
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))

# L'app par défaut de app.main ne doit pas créer de fichier sqlite
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.core.errors import NotifierError
from app.core.security import create_access_token, hash_secret
from app.main import create_app
from app.models.common import utcnow
from app.models.task import Task
from app.models.user import User


class FakeNotifier:
    """Notifier de test: garde les mails envoyés, échoue pour `fail_for`"""

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send(self, to, subject, text):
        if to in self.fail_for:
            raise NotifierError(f"SMTP refused {to}")
        self.sent.append({"to": to, "subject": subject, "text": text})


@pytest.fixture
def session_factory():
    """DB SQLite en mémoire, neuve pour chaque test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(session_factory, notifier):
    """Client de test FastAPI"""
    app = create_app(session_factory=session_factory, notifier=notifier)
    return TestClient(app)


@pytest.fixture
def db(session_factory):
    """Session DB pour les tests"""
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def make_user(db):
    """Crée un utilisateur directement en base"""

    def _make_user(user_id, role="user", password="pass123", contact=None, name=None):
        user = User(
            user_id=user_id,
            name=name or user_id.capitalize(),
            role=role,
            contact=contact or f"{user_id}@example.com",
            password_hash=hash_secret(password) if password else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_task(db):
    """Crée une tâche directement en base, deadline relative à maintenant"""

    def _make_task(task_id, assigned_to=None, hours=48, status="Pending", notification_sent=None, title=None):
        task = Task(
            task_id=task_id,
            title=title or f"Task {task_id}",
            description="",
            status=status,
            deadline=utcnow() + timedelta(hours=hours),
            assigned_to=assigned_to,
            notification_sent=notification_sent,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    return _make_task


@pytest.fixture
def admin(make_user):
    return make_user("admin", role="admin", name="Admin")


@pytest.fixture
def member(make_user):
    return make_user("u1", name="Alice")


@pytest.fixture
def admin_headers(admin):
    token = create_access_token(admin.user_id, admin.role, admin.name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def member_headers(member):
    token = create_access_token(member.user_id, member.role, member.name)
    return {"Authorization": f"Bearer {token}"}
