"""
Texture Repository

Read-only data access for the `textures` catalog. Catalog rows are
maintained out of band.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from adtime.core.exceptions import DatabaseError, TextureNotFoundError
from adtime.core.logging import get_logger
from adtime.database.models.texture import TextureRecord
from adtime.domain.models.texture import Texture

if TYPE_CHECKING:
    from sqlalchemy import Select

    from adtime.core.database.service import DatabaseService

logger = get_logger(__name__)


class TextureRepository:
    def __init__(self, database_service: DatabaseService) -> None:
        self._db_service = database_service

    async def _fetch_one(self, stmt: Select, operation: str, lookup: str, value: str) -> Texture:
        start_time = time.monotonic()
        try:
            async with self._db_service.get_session() as session:
                record = (await session.execute(stmt)).scalars().first()
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "Failed to load texture",
                extra={
                    "lookup": lookup,
                    "value": value,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise DatabaseError(operation, exc, **{lookup: value}) from exc

        if record is None:
            raise TextureNotFoundError(value, lookup=lookup)

        logger.debug(
            "Texture loaded from database",
            extra={
                "lookup": lookup,
                "value": value,
                "latency_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return Texture.from_db(record)

    async def get_by_id(self, texture_id: str) -> Texture:
        """
        Raises
        ------
        TextureNotFoundError
            If no texture has this id.
        """
        stmt = select(TextureRecord).where(TextureRecord.id == texture_id)
        return await self._fetch_one(stmt, "textures.get_by_id", "texture_id", texture_id)

    async def get_by_name(self, name: str) -> Texture:
        stmt = (
            select(TextureRecord)
            .where(TextureRecord.name == name)
            .order_by(TextureRecord.id)
            .limit(1)
        )
        return await self._fetch_one(stmt, "textures.get_by_name", "name", name)

    async def list_available(self) -> List[Texture]:
        """In-stock textures ordered by name."""
        stmt = (
            select(TextureRecord)
            .where(TextureRecord.in_stock.is_(True))
            .order_by(TextureRecord.name, TextureRecord.id)
        )
        try:
            async with self._db_service.get_session() as session:
                records = (await session.execute(stmt)).scalars().all()
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "Failed to list available textures",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise DatabaseError("textures.get_available", exc) from exc

        return [Texture.from_db(record) for record in records]
