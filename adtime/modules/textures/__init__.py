from adtime.modules.textures.repository import TextureRepository
from adtime.modules.textures.service import TextureService

__all__ = ["TextureRepository", "TextureService"]
