from adtime.modules.storage.service import (
    StorageService,
    initialize_storage,
    shutdown_storage,
)

__all__ = ["StorageService", "initialize_storage", "shutdown_storage"]
