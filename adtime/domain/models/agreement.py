"""
User consent record (agreement to the terms of personal-data processing).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adtime.database.models.user import UserRecord


@dataclass(frozen=True)
class UserAgreement:
    user_id: int
    agreed: bool = False
    phone_number: str = ""

    @classmethod
    def absent(cls, user_id: int) -> UserAgreement:
        """The value reported for a user who never gave consent."""
        return cls(user_id=user_id)

    @classmethod
    def from_db(cls, row: UserRecord) -> UserAgreement:
        return cls(
            user_id=row.user_id,
            agreed=bool(row.agreed_to_tpa),
            phone_number=row.phone_number or "",
        )
