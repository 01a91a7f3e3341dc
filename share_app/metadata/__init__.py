"""
Metadata store module.
Implements Strategy Pattern for flexible key-value backends.
"""

from .strategies import (
    MetadataStore,
    RedisMetadataStore,
    SQLMetadataStore,
    InMemoryMetadataStore,
)
from .factory import MetadataStoreFactory, MetadataBackend

__all__ = [
    "MetadataStore",
    "RedisMetadataStore",
    "SQLMetadataStore",
    "InMemoryMetadataStore",
    "MetadataStoreFactory",
    "MetadataBackend",
]
