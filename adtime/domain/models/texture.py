"""
Texture (leather material) catalog entry.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adtime.database.models.texture import TextureRecord


@dataclass(frozen=True)
class Texture:
    id: str
    name: str
    price_per_dm2: float
    image_url: str = ""
    in_stock: bool = True

    @property
    def has_valid_price(self) -> bool:
        return self.price_per_dm2 > 0

    @classmethod
    def from_db(cls, row: TextureRecord) -> Texture:
        return cls(
            id=row.id,
            name=row.name,
            price_per_dm2=row.price_per_dm2,
            image_url=row.image_url or "",
            in_stock=bool(row.in_stock),
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> Texture:
        """
        Decode a cached texture.

        Raises ValueError, KeyError or TypeError on malformed payloads.
        """
        data = json.loads(raw)
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            price_per_dm2=float(data["price_per_dm2"]),
            image_url=str(data.get("image_url") or ""),
            in_stock=bool(data.get("in_stock", True)),
        )
