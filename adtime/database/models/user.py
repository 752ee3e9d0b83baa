"""
UserRecord: consent to personal-data processing, one row per user.
Pure schema only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from adtime.core.database.base import Base, utc_now


class UserRecord(Base):
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    agreed_to_tpa: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    phone_number: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
