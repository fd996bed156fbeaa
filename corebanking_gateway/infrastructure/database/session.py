"""Database engine and session factory for reconciliation and audit writes"""

from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from corebanking_gateway.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pooling for server databases; SQLite (local runs, tests) gets a thread-shareable connection"""
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; the bridge commits its own units of work"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
