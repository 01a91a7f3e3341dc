"""
Factory for creating metadata store instances.
Simple, clean factory with one cached instance per namespace.
"""

import logging
from enum import Enum
from typing import Dict

from .strategies import (
    MetadataStore,
    RedisMetadataStore,
    SQLMetadataStore,
    InMemoryMetadataStore,
)
from share_app.config import settings

logger = logging.getLogger(__name__)


class MetadataBackend(Enum):
    """Available metadata backends"""
    SQL = "sql"
    REDIS = "redis"
    MEMORY = "memory"


class MetadataStoreFactory:
    """
    Simple factory for creating metadata stores.

    Uses Singleton Pattern per namespace - the record namespace and the
    analytics namespace each get one instance, reused afterwards.
    Gets configuration from settings (not passed as parameters).
    """

    _instances: Dict[str, MetadataStore] = {}

    @classmethod
    def create(cls, backend: MetadataBackend, namespace: str = "") -> MetadataStore:
        """
        Create or return cached metadata store.

        Args:
            backend: Type of metadata backend (from enum)
            namespace: Logical namespace ("" for records, "analytics" for counters)

        Returns:
            Singleton metadata store for that namespace
        """
        if namespace in cls._instances:
            return cls._instances[namespace]

        if backend == MetadataBackend.SQL:
            from share_app.database.connection import SessionLocal
            instance = SQLMetadataStore(SessionLocal, namespace=namespace)
            logger.info("✅ SQL metadata store initialized (namespace=%r)", namespace)

        elif backend == MetadataBackend.REDIS:
            import redis

            try:
                redis_client = redis.from_url(
                    settings.redis_url,
                    decode_responses=False,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )

                # Test connection immediately
                redis_client.ping()

                instance = RedisMetadataStore(redis_client, namespace=namespace)
                logger.info("✅ Redis metadata store initialized (namespace=%r)", namespace)

            except redis.RedisError as e:
                logger.warning("⚠️  Redis connection failed: %s", e)
                logger.warning("⚠️  Falling back to in-memory metadata store")
                instance = InMemoryMetadataStore(namespace=namespace)

        elif backend == MetadataBackend.MEMORY:
            instance = InMemoryMetadataStore(namespace=namespace)
            logger.info("✅ In-memory metadata store initialized (namespace=%r)", namespace)

        else:
            raise ValueError(f"Unknown metadata backend: {backend}")

        cls._instances[namespace] = instance
        return instance

    @classmethod
    def clear_instances(cls):
        """Clear cached instances (for testing)"""
        cls._instances = {}
