"""sql_storage.py — Postgres-backed mode record and datasets.

Every write happens inside one transaction, so a reader sees either the
whole previous record or the whole new one. SQLAlchemy and driver failures
are re-raised as ``StorageError``.

Called by: registry.py when STORAGE_PROVIDER=database
Depends on: models/tables.py, models/database.py, redis_identity.py
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy import delete, select, text
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from devpulse.config import Settings
from devpulse.core.errors import StorageError
from devpulse.core.modes import ModeConfiguration
from devpulse.core.providers.redis_identity import RedisIdentityPointerStore
from devpulse.core.registry import register_provider
from devpulse.models.database import build_engine, build_session_factory
from devpulse.models.schemas import Dataset
from devpulse.models.tables import AppModeRecord, Base, MockDatasetRecord

logger = logging.getLogger(__name__)

# Errors raised before SQLAlchemy can wrap them (e.g. connection refused).
_DB_ERRORS = (SQLAlchemyError, OSError)

_MODE_ROW_ID = 1


class SqlModeStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self) -> ModeConfiguration | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(AppModeRecord, _MODE_ROW_ID)
        except _DB_ERRORS as exc:
            raise StorageError(f"Failed to load app mode: {exc}") from exc
        if row is None:
            return None
        return ModeConfiguration.from_dict(
            {
                "mode": row.mode,
                "dataset_id": row.dataset_id,
                "error_simulation": row.error_simulation,
                "enabled_features": row.enabled_features,
                "updated_at": row.updated_at.isoformat() if row.updated_at else None,
            }
        )

    async def save(self, config: ModeConfiguration) -> None:
        data = config.to_dict()
        record = AppModeRecord(
            id=_MODE_ROW_ID,
            mode=data["mode"],
            dataset_id=data["dataset_id"],
            error_simulation=data["error_simulation"],
            enabled_features=data["enabled_features"],
            updated_at=config.updated_at or datetime.now(UTC),
        )
        try:
            async with self._session_factory() as session, session.begin():
                await session.merge(record)
        except _DB_ERRORS as exc:
            raise StorageError(f"Failed to save app mode: {exc}") from exc


class SqlDatasetBackend:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _values(dataset: Dataset) -> dict:
        return {
            "name": dataset.name,
            "generation_id": dataset.generation_id,
            "parameters": dataset.generation_parameters.model_dump(mode="json"),
            "data": dataset.model_dump(mode="json"),
            "created_at": datetime.now(UTC),
        }

    async def get(self, name: str) -> Dataset | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(MockDatasetRecord.data).where(MockDatasetRecord.name == name)
                )
                data = result.scalar_one_or_none()
        except _DB_ERRORS as exc:
            raise StorageError(f"Failed to load dataset '{name}': {exc}") from exc
        return Dataset.model_validate(data) if data is not None else None

    async def insert_if_absent(self, dataset: Dataset) -> Dataset:
        stmt = (
            insert(MockDatasetRecord)
            .values(**self._values(dataset))
            .on_conflict_do_nothing(index_elements=["name"])
        )
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(stmt)
                result = await session.execute(
                    select(MockDatasetRecord.data).where(MockDatasetRecord.name == dataset.name)
                )
                data = result.scalar_one()
        except _DB_ERRORS as exc:
            raise StorageError(f"Failed to store dataset '{dataset.name}': {exc}") from exc
        return Dataset.model_validate(data)

    async def replace(self, dataset: Dataset) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    delete(MockDatasetRecord).where(MockDatasetRecord.name == dataset.name)
                )
                await session.execute(insert(MockDatasetRecord).values(**self._values(dataset)))
        except _DB_ERRORS as exc:
            raise StorageError(f"Failed to replace dataset '{dataset.name}': {exc}") from exc

    async def delete(self, name: str) -> bool:
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    delete(MockDatasetRecord).where(MockDatasetRecord.name == name)
                )
        except _DB_ERRORS as exc:
            raise StorageError(f"Failed to delete dataset '{name}': {exc}") from exc
        return result.rowcount > 0

    async def list_names(self) -> list[str]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(MockDatasetRecord.name).order_by(MockDatasetRecord.id)
                )
                return list(result.scalars())
        except _DB_ERRORS as exc:
            raise StorageError(f"Failed to list datasets: {exc}") from exc


class DatabaseStorage:
    """Postgres for the mode record and datasets, Redis for identity pointers."""

    name = "database"

    def __init__(self, settings: Settings) -> None:
        self._engine = build_engine(settings)
        session_factory = build_session_factory(self._engine)
        self._redis = aioredis.from_url(settings.redis_url, decode_responses=True)

        self.modes = SqlModeStore(session_factory)
        self.datasets = SqlDatasetBackend(session_factory)
        self.identity_pointers = RedisIdentityPointerStore(
            self._redis, settings.identity_session_ttl_seconds
        )

    async def startup(self) -> None:
        """Create missing tables."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except _DB_ERRORS as exc:
            raise StorageError(f"Failed to initialize database schema: {exc}") from exc
        logger.info("Database schema ready")

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            await self._redis.ping()
        except (*_DB_ERRORS, RedisError) as exc:
            logger.warning("Storage ping failed: %s", exc)
            return False
        return True

    async def aclose(self) -> None:
        await self._redis.aclose()
        await self._engine.dispose()


register_provider("storage", "database", DatabaseStorage)
