"""
Factory for creating blob store instances.
Simple, clean factory with singleton caching.
"""

import logging
from enum import Enum

from .strategies import BlobStore, LocalBlobStore, InMemoryBlobStore
from share_app.config import settings

logger = logging.getLogger(__name__)


class BlobBackend(Enum):
    """Available blob backends"""
    LOCAL = "local"
    MEMORY = "memory"


class BlobStoreFactory:
    """
    Simple factory for creating blob stores.

    Gets configuration from settings (not passed as parameters).
    """

    _instance: BlobStore = None  # Single cached instance

    @classmethod
    def create(cls, backend: BlobBackend) -> BlobStore:
        """
        Create or return cached blob store.

        Args:
            backend: Type of blob backend (from enum)

        Returns:
            Singleton blob store instance
        """
        if cls._instance is not None:
            return cls._instance

        if backend == BlobBackend.LOCAL:
            cls._instance = LocalBlobStore(settings.blob_root)
            logger.info("✅ Local blob store initialized at %s", settings.blob_root)

        elif backend == BlobBackend.MEMORY:
            cls._instance = InMemoryBlobStore()
            logger.info("✅ In-memory blob store initialized")

        else:
            raise ValueError(f"Unknown blob backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
