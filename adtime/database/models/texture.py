"""
TextureRecord: leather texture catalog.
Pure schema only. Maintained out of band; the bot only reads it.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adtime.core.database.base import Base


class TextureRecord(Base):
    __tablename__ = "textures"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    price_per_dm2: Mapped[float] = mapped_column(Float, nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    in_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
