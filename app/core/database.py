from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from fastapi import Request
from app.core.config import settings


def make_session_factory(database_url: str) -> sessionmaker:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


Base = declarative_base()


def default_session_factory() -> sessionmaker:
    return make_session_factory(settings.DATABASE_URL)


def get_db(request: Request):
    """Dépendance sessionDB (factory portée par l'app)"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
