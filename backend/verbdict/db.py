from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from verbdict.core.settings import get_settings


class Base(DeclarativeBase):
    pass


SQLALCHEMY_DATABASE_URL = get_settings().database_url

# check_same_thread=False is required for SQLite when using threads (Uvicorn reload)
_connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create the verbs and attempts tables if they do not exist yet."""
    from verbdict import db_models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
