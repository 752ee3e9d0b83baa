"""
Unit tests for the texture catalog read path.

The validated read-through is exercised end to end: SQLite behind the
repository, the in-memory cache in front of it.
"""

import json

import pytest
from sqlalchemy import text

from adtime.core.cache.keys import texture_key
from adtime.core.exceptions import (
    DatabaseError,
    InvalidTexturePriceError,
    TextureNotFoundError,
)
from adtime.domain.models.texture import Texture


class TestGetTextureById:
    async def test_loads_and_caches(self, storage, cache, add_texture):
        await add_texture("oak", "Oak", 12.5)

        texture = await storage.get_texture_by_id("oak")

        assert texture == Texture(
            id="oak",
            name="Oak",
            price_per_dm2=12.5,
            image_url="https://img.example/oak.png",
            in_stock=True,
        )
        assert Texture.from_json(await cache.get(texture_key("oak"))) == texture
        assert await cache.ttl(texture_key("oak")) == 24 * 60 * 60

    async def test_second_read_within_ttl_skips_database(
        self, storage, add_texture, query_log
    ):
        await add_texture("oak")
        await storage.get_texture_by_id("oak")
        executed = len(query_log)

        await storage.get_texture_by_id("oak")

        assert len(query_log) == executed

    async def test_expired_entry_is_refetched(self, storage, cache, clock, add_texture, query_log):
        await add_texture("oak")
        await storage.get_texture_by_id("oak")
        executed = len(query_log)

        clock.advance(24 * 60 * 60 + 1)
        await storage.get_texture_by_id("oak")

        assert len(query_log) > executed

    async def test_cached_non_positive_price_is_refetched(self, storage, cache, add_texture):
        await add_texture("oak", price_per_dm2=12.5)
        poisoned = Texture(id="oak", name="Oak", price_per_dm2=0.0)
        await cache.set(texture_key("oak"), poisoned.to_json())

        texture = await storage.get_texture_by_id("oak")

        assert texture.price_per_dm2 == 12.5
        assert Texture.from_json(await cache.get(texture_key("oak"))).price_per_dm2 == 12.5

    async def test_undecodable_cache_entry_is_a_miss(self, storage, cache, add_texture):
        await add_texture("oak")
        await cache.set(texture_key("oak"), "{not json")

        texture = await storage.get_texture_by_id("oak")

        assert texture.id == "oak"
        assert json.loads(await cache.get(texture_key("oak")))["id"] == "oak"

    async def test_cache_read_failure_falls_back_to_database(self, storage, cache, add_texture):
        await add_texture("oak")
        cache.fail("GET", "SET")

        texture = await storage.get_texture_by_id("oak")

        assert texture.id == "oak"

    async def test_invalid_database_price_is_reported_and_not_cached(
        self, storage, cache, add_texture
    ):
        await add_texture("broken", price_per_dm2=-1.0)

        with pytest.raises(InvalidTexturePriceError) as exc_info:
            await storage.get_texture_by_id("broken")

        assert exc_info.value.value == -1.0
        assert await cache.get(texture_key("broken")) is None

    async def test_missing_texture(self, storage, cache):
        with pytest.raises(TextureNotFoundError):
            await storage.get_texture_by_id("nope")

        assert await cache.get(texture_key("nope")) is None

    async def test_database_failure_is_wrapped(self, storage, db):
        async with db.engine.begin() as conn:
            await conn.execute(text("DROP TABLE textures"))

        with pytest.raises(DatabaseError) as exc_info:
            await storage.get_texture_by_id("oak")

        assert exc_info.value.operation == "textures.get_by_id"


class TestCatalogQueries:
    async def test_get_by_name(self, storage, add_texture):
        await add_texture("oak", "Oak")
        await add_texture("ash", "Ash")

        texture = await storage.get_texture_by_name("Ash")

        assert texture.id == "ash"

    async def test_get_by_name_missing(self, storage):
        with pytest.raises(TextureNotFoundError) as exc_info:
            await storage.get_texture_by_name("Walnut")

        assert exc_info.value.lookup == "name"

    async def test_available_textures_in_stock_only_sorted_by_name(self, storage, add_texture):
        await add_texture("oak", "Oak")
        await add_texture("ash", "Ash")
        await add_texture("elm", "Elm", in_stock=False)

        textures = await storage.get_available_textures()

        assert [t.name for t in textures] == ["Ash", "Oak"]
