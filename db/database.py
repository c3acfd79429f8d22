from pathlib import Path
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from db.models import Base
from doc_vault.logger import GLOBAL_LOGGER as log


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Build the async engine. For file-backed SQLite the parent directory is
    created and foreign keys are switched on for every connection.
    """
    url = make_url(database_url)
    connect_args = {}

    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        # wait for a competing writer instead of failing with "database is locked"
        connect_args["timeout"] = 30

    engine = create_async_engine(
        database_url, echo=echo, future=True, connect_args=connect_args
    )

    if url.get_backend_name() == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        expire_on_commit=False,
        class_=AsyncSession,
        autoflush=False,
        autocommit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Initialize database and create tables if they do not exist.
    Should be called once at startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("Database initialized and tables created")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an AsyncSession per request,
    and ensures proper cleanup.
    """
    db = request.app.state.container.session_factory()
    try:
        yield db
    finally:
        await db.close()
