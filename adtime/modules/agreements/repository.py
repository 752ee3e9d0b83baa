"""
Agreement Repository

Data access for the `users` consent table: one row per user, written with
an INSERT ... ON CONFLICT upsert so concurrent consents cannot create
duplicates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from adtime.core.database.base import utc_now
from adtime.core.exceptions import ConfigurationError, DatabaseError
from adtime.core.logging import get_logger
from adtime.database.models.user import UserRecord
from adtime.domain.models.agreement import UserAgreement

if TYPE_CHECKING:
    from adtime.core.database.service import DatabaseService

logger = get_logger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class AgreementRepository:
    def __init__(self, database_service: DatabaseService) -> None:
        self._db_service = database_service

    async def upsert_consent(self, user_id: int, phone_number: str) -> None:
        """Record consent for `user_id`, overwriting any stored phone number."""
        insert = _UPSERT_DIALECTS.get(self._db_service.dialect_name)
        if insert is None:
            raise ConfigurationError(
                "drivername",
                f"upsert is not supported for dialect {self._db_service.dialect_name!r}",
            )

        now = utc_now()
        stmt = insert(UserRecord).values(
            user_id=user_id,
            agreed_to_tpa=True,
            phone_number=phone_number,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserRecord.user_id],
            set_={
                "agreed_to_tpa": True,
                "phone_number": stmt.excluded.phone_number,
                "updated_at": now,
            },
        )

        try:
            async with self._db_service.get_transaction() as session:
                await session.execute(stmt)
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "Failed to save user agreement",
                extra={"user_id": user_id, "error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise DatabaseError("agreements.save", exc, user_id=user_id) from exc

        logger.info("User agreement saved", extra={"user_id": user_id})

    async def get(self, user_id: int) -> Optional[UserAgreement]:
        try:
            async with self._db_service.get_session() as session:
                record = await session.get(UserRecord, user_id)
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "Failed to load user agreement",
                extra={"user_id": user_id, "error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise DatabaseError("agreements.get", exc, user_id=user_id) from exc

        return UserAgreement.from_db(record) if record is not None else None
