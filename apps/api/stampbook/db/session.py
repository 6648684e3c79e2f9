from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from stampbook.core.config import settings

connect_args: dict[str, Any] = {}
if settings.database_url.startswith("sqlite"):
    # SQLite connections are shared across the threadpool FastAPI runs sync routes in.
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)
