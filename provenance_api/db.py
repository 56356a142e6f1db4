from __future__ import annotations

import logging
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import settings


logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    connect_args = {"connect_timeout": max(1, settings.PGPOOL_CONN_TIMEOUT_MS // 1000)}
    if settings.PGSSL:
        connect_args["sslmode"] = "require"

    return create_engine(
        url,
        pool_size=settings.PGPOOL_MAX,
        pool_recycle=max(1, settings.PGPOOL_IDLE_TIMEOUT_MS // 1000),
        pool_pre_ping=True,
        connect_args=connect_args,
    )


if settings.DATABASE_URL:
    engine: Engine | None = build_engine(settings.DATABASE_URL)
    SessionLocal: sessionmaker | None = sessionmaker(autocommit=False, autoflush=False, bind=engine)
else:
    # Без БД работают только кэш в памяти и чтение из блокчейна
    logger.warning("DATABASE_URL is not set. Postgres features will be disabled.")
    engine = None
    SessionLocal = None

_initialized = False


def init_db() -> None:
    global _initialized
    if engine is None or _initialized:
        return
    # Импорт регистрирует модели в Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    _initialized = True


def get_db() -> Iterator[Session | None]:
    if SessionLocal is None:
        yield None
        return

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
