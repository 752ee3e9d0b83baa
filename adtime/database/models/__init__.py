"""
Database Models Package
=======================

SQLAlchemy ORM models for the Adtime order bot:

- orders   (OrderRecord)   customer orders, soft-deleted
- textures (TextureRecord) leather catalog, read-only for the bot
- users    (UserRecord)    consent records, upserted

Schema only, no business logic. Importing this package registers every
table on `Base.metadata`.
"""

from adtime.core.database.base import Base

from .order import OrderRecord
from .texture import TextureRecord
from .user import UserRecord

__all__ = [
    "Base",
    "OrderRecord",
    "TextureRecord",
    "UserRecord",
]
