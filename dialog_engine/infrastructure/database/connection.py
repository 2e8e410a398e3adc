"""
Database Engine.

One SQLAlchemy engine per process, built lazily from settings.DATABASE_URL
so that importing the package never opens a connection.
"""

from functools import lru_cache

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from ...config import settings


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    # echo=False in production to avoid leaking conversation data in logs
    return create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)


def init_db(engine: Engine = None):
    """
    Idempotent initialization.
    Creates tables if they do not exist.
    """
    SQLModel.metadata.create_all(engine or get_engine())
