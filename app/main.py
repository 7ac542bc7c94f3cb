from typing import Optional

from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.core.database import Base, default_session_factory
from app.core.errors import register_error_handlers
from app.core.logging_setup import setup_logging
from app.routers import health, auth, users, tasks, deadlines
from app.services.notifier import Notifier, build_notifier


def create_app(session_factory: Optional[sessionmaker] = None, notifier: Optional[Notifier] = None) -> FastAPI:
    session_factory = session_factory or default_session_factory()

    # Init DB
    Base.metadata.create_all(bind=session_factory.kw["bind"])

    app = FastAPI(
        title="Task Assignment API",
        version="1.0.0"
    )
    app.state.session_factory = session_factory
    app.state.notifier = notifier or build_notifier(settings)

    register_error_handlers(app)

    # Routes
    app.include_router(health.router, prefix="/health")
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(tasks.router)
    app.include_router(deadlines.router)

    return app


setup_logging(settings.LOG_LEVEL)
app = create_app()
