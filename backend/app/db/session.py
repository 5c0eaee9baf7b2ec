"""Database store client, request-scoped sessions, and startup initialization."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import Depends, Request
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app import models as _models
from app.core.logging import get_logger
from app.db.sample_data import sample_proposals
from app.models.bonus_proposals import BonusProposal

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

# Import model modules so SQLModel metadata is fully registered at startup.
_MODEL_REGISTRY = _models

logger = get_logger(__name__)


class DatabaseInitializationError(RuntimeError):
    """Raised when the store stays unreachable after every startup attempt."""


def _normalize_database_url(database_url: str) -> str:
    if "://" not in database_url:
        return database_url
    scheme, rest = database_url.split("://", 1)
    if scheme in {"postgresql", "postgres"}:
        return f"postgresql+psycopg://{rest}"
    return database_url


class Database:
    """Connection pool and session factory for one store.

    Built once by the application factory and handed to request handlers via
    `get_session`; nothing in the app reaches for a module-level engine.
    """

    def __init__(self, database_url: str, *, engine: AsyncEngine | None = None) -> None:
        self.engine: AsyncEngine = engine or create_async_engine(
            _normalize_database_url(database_url),
            pool_pre_ping=True,
        )
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def ping(self) -> None:
        """Run a trivial query, raising the driver error if the store is down."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_schema(self, *, reset: bool = False) -> None:
        async with self.engine.connect() as conn, conn.begin():
            if reset:
                await conn.run_sync(SQLModel.metadata.drop_all)
            await conn.run_sync(SQLModel.metadata.create_all)

    async def seed_sample_data(self) -> int:
        """Insert the sample proposals when the table is empty; return rows added."""
        async with self.session_maker() as session:
            result = await session.exec(select(func.count()).select_from(BonusProposal))
            if result.one() > 0:
                return 0
            rows = sample_proposals()
            session.add_all(rows)
            await session.commit()
            return len(rows)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def init_db(
    database: Database,
    *,
    max_attempts: int,
    retry_delay_seconds: float,
    reset: bool = False,
    seed: bool = False,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Prepare the schema, retrying with a fixed delay until the store answers.

    Raises `DatabaseInitializationError` after `max_attempts` failed attempts.
    """
    for attempt in range(1, max_attempts + 1):
        logger.info("db.init.attempt", extra={"attempt": attempt, "max_attempts": max_attempts})
        try:
            await database.ping()
            await database.create_schema(reset=reset)
            if seed:
                inserted = await database.seed_sample_data()
                if inserted:
                    logger.info("db.init.sample_data_inserted", extra={"count": inserted})
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "db.init.attempt_failed",
                extra={"attempt": attempt, "error": str(exc)},
            )
            if attempt < max_attempts:
                logger.info("db.init.retrying", extra={"delay_seconds": retry_delay_seconds})
                await sleep(retry_delay_seconds)
            continue
        logger.info("db.init.complete", extra={"attempt": attempt})
        return

    msg = f"Failed to initialize database after {max_attempts} attempts"
    raise DatabaseInitializationError(msg)


def get_database(request: Request) -> Database:
    """Return the store client attached to the running application."""
    database: Database = request.app.state.database
    return database


DATABASE_DEP = Depends(get_database)


async def get_session(database: Database = DATABASE_DEP) -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped async DB session with safe rollback on errors."""
    async with database.session_maker() as session:
        try:
            yield session
        finally:
            in_txn = False
            try:
                in_txn = bool(session.in_transaction())
            except SQLAlchemyError:
                logger.exception("Failed to inspect session transaction state.")
            if in_txn:
                try:
                    await session.rollback()
                except SQLAlchemyError:
                    logger.exception("Failed to rollback session after request error.")
