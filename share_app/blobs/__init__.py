"""
Blob storage module for shared payloads.

Strategy Pattern for pluggable payload storage, kept separate from the
metadata store (no shared transactions between the two).
"""

from .strategies import BlobStore, LocalBlobStore, InMemoryBlobStore
from .factory import BlobStoreFactory, BlobBackend

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "InMemoryBlobStore",
    "BlobStoreFactory",
    "BlobBackend",
]
