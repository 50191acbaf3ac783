from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hapa.core.config import get_settings

settings = get_settings()

DATABASE_URL = settings.database_url  # fail fast if missing


def build_engine(url: str):
    if url.startswith("sqlite"):
        # single shared connection so in-memory databases survive across sessions
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        future=True,
    )


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
