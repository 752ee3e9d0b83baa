"""
Texture Service

Catalog reads for the bot. Point lookups by id go through a validated
read-through cache (`texture:{id}`, 24 hours by default): a cached entry
with a non-positive price is discarded and refetched, and a database row
with a non-positive price is reported as `InvalidTexturePriceError` and
never cached.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from adtime.core.cache.keys import texture_key
from adtime.core.cache.read_through import ValidatedReadThrough
from adtime.core.exceptions import InvalidTexturePriceError
from adtime.domain.models.texture import Texture

if TYPE_CHECKING:
    from adtime.core.cache.protocol import CacheBackend
    from adtime.modules.textures.repository import TextureRepository

DEFAULT_TEXTURE_TTL_SECONDS = 24 * 60 * 60


class TextureService:
    def __init__(
        self,
        texture_repository: TextureRepository,
        cache: CacheBackend,
        *,
        ttl_seconds: int = DEFAULT_TEXTURE_TTL_SECONDS,
    ) -> None:
        self._repository = texture_repository
        self._read_through: ValidatedReadThrough[Texture] = ValidatedReadThrough(
            cache,
            name="texture",
            ttl_seconds=ttl_seconds,
            encode=Texture.to_json,
            decode=Texture.from_json,
            validate=lambda texture: texture.has_valid_price,
            on_invalid_source=lambda texture: InvalidTexturePriceError(
                texture.id, texture.price_per_dm2
            ),
        )

    async def get_texture_by_id(self, texture_id: str) -> Texture:
        """
        Raises
        ------
        TextureNotFoundError
            If the texture does not exist.
        InvalidTexturePriceError
            If the stored texture has a non-positive price.
        DatabaseError
            On database failure.
        """
        return await self._read_through.get(
            texture_key(texture_id),
            lambda: self._repository.get_by_id(texture_id),
        )

    async def get_texture_by_name(self, name: str) -> Texture:
        return await self._repository.get_by_name(name)

    async def get_available_textures(self) -> List[Texture]:
        return await self._repository.list_available()
